"""
Scaler

Affine change of variables

    x_original = scaling_factor * x_canonical + shift

For each variable with finite lower and upper bounds:
    scaling_factor = (ub - lb) / 2,  shift = (lb + ub) / 2
so its bounds become [-1, 1]. Every other variable keeps scaling_factor = 1
and is shifted by its x0 entry, so its x0 becomes 0.

Linear systems absorb the map:  A' = A @ diag(scaling_factor),
b' = b - A @ shift.  Bounds become (bound - shift) / scaling_factor.
"""

from dataclasses import dataclass
from typing import Any, Callable, Tuple

import numpy as np

from ..checks import EPS
from ..contract import Problem
from ..errors import UnexpectedError

# max(scaling_factor) / min(scaling_factor) above this means the trust-region
# radii must be re-derived in the scaled space.
SUBSTANTIAL_SCALING_THRESHOLD = 4.0


@dataclass(frozen=True, eq=False)
class AffineScaling:
    """The map x_original = scaling_factor * x_canonical + shift."""
    scaling_factor: np.ndarray
    shift: np.ndarray

    def to_original(self, x: np.ndarray) -> np.ndarray:
        return self.scaling_factor * np.asarray(x, dtype=np.float64) + self.shift

    def to_canonical(self, x: np.ndarray) -> np.ndarray:
        return (np.asarray(x, dtype=np.float64) - self.shift) / self.scaling_factor

    @property
    def ratio(self) -> float:
        return float(np.max(self.scaling_factor) / np.min(self.scaling_factor))

    @property
    def substantial(self) -> bool:
        return self.ratio > SUBSTANTIAL_SCALING_THRESHOLD

    @property
    def is_identity_scale(self) -> bool:
        return bool(np.all(self.scaling_factor == 1))


@dataclass(frozen=True)
class ScaledFunction:
    """An evaluator on the original space, called with canonical points."""
    fun: Callable[[np.ndarray], Any]
    scaling: AffineScaling

    def __call__(self, x: np.ndarray) -> Any:
        return self.fun(self.scaling.to_original(x))


def compute_scaling(x0: np.ndarray, lb: np.ndarray, ub: np.ndarray) -> AffineScaling:
    """
    Derive the scaling from the bounds and x0.

    Raises:
        UnexpectedError: if a scaling factor falls below machine epsilon
    """
    n = x0.size
    both = (lb > -np.inf) & (ub < np.inf)
    scaling_factor = np.ones(n)
    shift = np.zeros(n)
    scaling_factor[both] = (ub[both] - lb[both]) / 2
    shift[both] = (lb[both] + ub[both]) / 2
    shift[~both] = x0[~both]

    if n > 0 and np.min(scaling_factor) < EPS:
        raise UnexpectedError(
            "scale_problem", "invalid scaling factor returned.", kind="InvalidScaling"
        )
    return AffineScaling(scaling_factor=scaling_factor, shift=shift)


def _scale_system(A: np.ndarray, b: np.ndarray, scaling: AffineScaling):
    if A.size == 0:
        return A, b
    b = b - A @ scaling.shift
    A = A * scaling.scaling_factor[np.newaxis, :]
    return A, b


def scale_problem(problem: Problem) -> Tuple[Problem, AffineScaling]:
    """
    Rescale a normalized (and possibly reduced) problem.

    Returns:
        (scaled problem, scaling record)
    """
    scaling = compute_scaling(problem.x0, problem.lb, problem.ub)

    Aineq, bineq = _scale_system(problem.Aineq, problem.bineq, scaling)
    Aeq, beq = _scale_system(problem.Aeq, problem.beq, scaling)

    scaled = Problem(
        objective=ScaledFunction(problem.objective, scaling),
        x0=scaling.to_canonical(problem.x0),
        Aineq=Aineq,
        bineq=bineq,
        Aeq=Aeq,
        beq=beq,
        lb=scaling.to_canonical(problem.lb),
        ub=scaling.to_canonical(problem.ub),
        nonlcon=None if problem.nonlcon is None else ScaledFunction(problem.nonlcon, scaling),
    )
    return scaled, scaling
