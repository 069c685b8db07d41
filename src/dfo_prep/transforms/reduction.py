"""
Variable Reducer

Eliminates variables fixed by their bounds. The reduced problem lives in the
space of free variables only:

    x0'    = x0[free]
    b'     = b - A[:, fixed] @ fixed_value
    A'     = A[:, free]
    lb/ub' = lb[free] / ub[free]
    f'(y)  = f(expand(y)),  nonlcon'(y) = nonlcon(expand(y))

where expand(y) scatters y into the free indices and fixed_value into the
fixed ones. The VariableReduction record is enough to invert the map.
"""

from dataclasses import dataclass
from typing import Any, Callable, Tuple

import numpy as np

from ..contract import Problem


@dataclass(frozen=True, eq=False)
class VariableReduction:
    """
    Map between the full space and the space of free variables.

    Attributes:
        free: Boolean mask over the full space, True for free variables
        fixed_value: Values of the fixed variables, in index order
    """
    free: np.ndarray
    fixed_value: np.ndarray

    @property
    def n_full(self) -> int:
        return int(self.free.size)

    @property
    def n_free(self) -> int:
        return int(np.sum(self.free))

    @property
    def fixed(self) -> np.ndarray:
        return ~self.free

    def expand(self, x_free: np.ndarray) -> np.ndarray:
        """Scatter a free-space point into the full space."""
        x = np.empty(self.n_full)
        x[self.free] = np.asarray(x_free, dtype=np.float64).reshape(-1)
        x[~self.free] = self.fixed_value
        return x

    def restrict(self, x_full: np.ndarray) -> np.ndarray:
        """Slice a full-space point down to its free coordinates."""
        return np.asarray(x_full, dtype=np.float64).reshape(-1)[self.free]


@dataclass(frozen=True)
class ReducedFunction:
    """An evaluator on the full space, called with free-space points."""
    fun: Callable[[np.ndarray], Any]
    reduction: VariableReduction

    def __call__(self, x_free: np.ndarray) -> Any:
        return self.fun(self.reduction.expand(x_free))


def _reduce_system(A: np.ndarray, b: np.ndarray, reduction: VariableReduction):
    if A.size == 0:
        return A, b
    b = b - A[:, reduction.fixed] @ reduction.fixed_value
    A = A[:, reduction.free]
    return A, b


def reduce_problem(problem: Problem, fixed: np.ndarray) -> Tuple[Problem, VariableReduction]:
    """
    Remove the variables flagged in `fixed` from a normalized problem.

    Args:
        problem: Normalized problem (bounds filled, linear systems canonical)
        fixed: Boolean mask of fixed variables; some but not all must be set

    Returns:
        (reduced problem, reduction record)
    """
    fixed = np.asarray(fixed, dtype=bool)
    free = ~fixed
    fixed_value = (problem.lb[fixed] + problem.ub[fixed]) / 2
    reduction = VariableReduction(free=free, fixed_value=fixed_value)

    Aineq, bineq = _reduce_system(problem.Aineq, problem.bineq, reduction)
    Aeq, beq = _reduce_system(problem.Aeq, problem.beq, reduction)

    reduced = Problem(
        objective=ReducedFunction(problem.objective, reduction),
        x0=problem.x0[free],
        Aineq=Aineq,
        bineq=bineq,
        Aeq=Aeq,
        beq=beq,
        lb=problem.lb[free],
        ub=problem.ub[free],
        nonlcon=None if problem.nonlcon is None else ReducedFunction(problem.nonlcon, reduction),
    )
    return reduced, reduction
