"""
Transforms Module - Invertible Problem Rewrites

Provides:
- VariableReduction: elimination of variables fixed by bounds
- AffineScaling: rescaling of bounded variables onto [-1, 1]
- x0 projection onto bound/linear constraints
"""

from .projection import PROJECTED_TYPES, project_onto_linear, project_x0
from .reduction import ReducedFunction, VariableReduction, reduce_problem
from .scaling import (
    SUBSTANTIAL_SCALING_THRESHOLD,
    AffineScaling,
    ScaledFunction,
    compute_scaling,
    scale_problem,
)

__all__ = [
    'PROJECTED_TYPES',
    'project_onto_linear',
    'project_x0',
    'ReducedFunction',
    'VariableReduction',
    'reduce_problem',
    'SUBSTANTIAL_SCALING_THRESHOLD',
    'AffineScaling',
    'ScaledFunction',
    'compute_scaling',
    'scale_problem',
]
