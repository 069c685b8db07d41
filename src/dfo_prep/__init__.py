"""
dfo-prep - Problem Preprocessing for Derivative-Free Optimization

Turns a user-supplied problem (objective, x0, linear/bound/nonlinear
constraints, options) into a canonical, solver-ready problem plus a
reversible transformation record.

Key Features:
- Validation of every input with precise error kinds
- Detection of trivial and infeasible linear constraints and bounds
- Elimination of variables fixed by their bounds
- Affine rescaling of bounded variables onto [-1, 1]
- Projection of x0 onto bound/linear constraints
- Option resolution with recoverable warnings, never fatal
- Data-driven solver selection (uobyqa, newuoa, bobyqa, lincoa, cobyla)
"""

from .adapters import HUGE_C, HUGE_F, ConstraintAdapter, ObjectiveAdapter
from .contract import (
    ConstraintFacts,
    Problem,
    ProblemType,
    constraint_violation,
    problem_type,
)
from .core import Diagnostic, DiagnosticLog, ProblemInfo, canonical_dumps, canonical_hash
from .errors import (
    ConstraintNotNumeric,
    InvalidBound,
    InvalidInputError,
    InvalidLinearConstraint,
    InvalidNonlinearConstraint,
    InvalidObjective,
    InvalidObjectiveShape,
    InvalidOptions,
    InvalidProblem,
    InvalidProblemType,
    InvalidX0,
    PreprocessingError,
    PreprocessingWarning,
    RecoverableOptionWarning,
    UnexpectedError,
)
from .logging import configure_logging, get_logger, set_log_level
from .pipeline import decode_problem, prepare, prepare_problem
from .solver import SOLVERS, Invoker, Options, Solver, resolve_options, select_solver
from .transforms import AffineScaling, VariableReduction

__version__ = "0.1.0"

__all__ = [
    # Pipeline
    'prepare',
    'prepare_problem',
    'decode_problem',
    # Problem
    'Problem',
    'ProblemType',
    'ConstraintFacts',
    'problem_type',
    'constraint_violation',
    'ProblemInfo',
    'VariableReduction',
    'AffineScaling',
    # Adapters
    'ObjectiveAdapter',
    'ConstraintAdapter',
    'HUGE_F',
    'HUGE_C',
    # Solvers and options
    'Solver',
    'Invoker',
    'SOLVERS',
    'Options',
    'resolve_options',
    'select_solver',
    # Diagnostics
    'Diagnostic',
    'DiagnosticLog',
    'canonical_dumps',
    'canonical_hash',
    # Errors
    'PreprocessingError',
    'InvalidInputError',
    'InvalidObjective',
    'InvalidObjectiveShape',
    'InvalidX0',
    'InvalidLinearConstraint',
    'InvalidBound',
    'InvalidNonlinearConstraint',
    'ConstraintNotNumeric',
    'InvalidOptions',
    'InvalidProblemType',
    'InvalidProblem',
    'UnexpectedError',
    'PreprocessingWarning',
    'RecoverableOptionWarning',
    # Logging
    'get_logger',
    'set_log_level',
    'configure_logging',
]
