"""
Solver Module - Solver Identity, Options and Selection

Provides:
- Solver / Invoker enums and the SOLVERS compatibility table
- Options and resolve_options: validated solver options with defaults
- select_solver: data-driven automatic solver choice
"""

from .options import Options, default_npt, known_fields, resolve_options
from .registry import (
    SELECTION_RULES,
    SOLVERS,
    Invoker,
    SelectionRule,
    Solver,
    SolverSpec,
    parse_invoker,
    parse_solver_name,
    solver_handles,
)
from .selection import match_rule, select_solver

__all__ = [
    'Options',
    'default_npt',
    'known_fields',
    'resolve_options',
    'SELECTION_RULES',
    'SOLVERS',
    'Invoker',
    'SelectionRule',
    'Solver',
    'SolverSpec',
    'parse_invoker',
    'parse_solver_name',
    'solver_handles',
    'match_rule',
    'select_solver',
]
