"""
Preprocess Module - Input Validation and Normalization

Provides:
- Linear-constraint normalization (trivial/infeasible rows)
- Bound normalization (infeasible bounds, fixed variables)
- Objective, x0 and nonlinear-constraint validation
"""

from .bounds import BoundConstraints, normalize_bounds
from .functions import prepare_nonlcon, prepare_objective, prepare_x0
from .linear import (
    LinearConstraints,
    normalize_equalities,
    normalize_inequalities,
    normalize_linear_constraints,
)

__all__ = [
    'BoundConstraints',
    'normalize_bounds',
    'LinearConstraints',
    'normalize_equalities',
    'normalize_inequalities',
    'normalize_linear_constraints',
    'prepare_nonlcon',
    'prepare_objective',
    'prepare_x0',
]
