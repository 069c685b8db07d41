"""
Objective & Constraint Adapters

Wrap raw user evaluators so that solver code always receives a finite real
scalar (objective) or a pair of finite real vectors (constraints).

Extreme barrier: NaN and huge values are replaced by HUGE_F / HUGE_C, so that
undefined regions look very bad to the solver instead of crashing it.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

import numpy as np

from .errors import ConstraintNotNumeric, InvalidObjectiveShape

HUGE_F = 2.0 ** 100
HUGE_C = 2.0 ** 100

_NUMERIC_KINDS = ("i", "u", "f", "c")


def _numeric_array(value: Any) -> Optional[np.ndarray]:
    """Return value as a numeric ndarray, or None if it is not numeric."""
    if isinstance(value, (bool, np.bool_, str, bytes)):
        return None
    try:
        arr = np.asarray(value)
    except (TypeError, ValueError):
        return None
    if arr.dtype.kind not in _NUMERIC_KINDS:
        return None
    return arr


@dataclass(frozen=True)
class ObjectiveAdapter:
    """
    Objective evaluator with shape checks and extreme-barrier clamping.

    Attributes:
        fun: Raw user objective
        invoker: Name used as message prefix
    """
    fun: Callable[[np.ndarray], Any]
    invoker: str = "pdfo"

    def __call__(self, x: np.ndarray) -> float:
        arr = _numeric_array(self.fun(x))
        if arr is None or arr.size != 1:
            raise InvalidObjectiveShape(
                "objective function should return a scalar value.", self.invoker
            )
        # asin/acos and friends may return complex values near domain edges
        f = float(np.real(arr.reshape(-1)[0]))
        if np.isnan(f) or f > HUGE_F:
            f = HUGE_F
        return f


@dataclass(frozen=True)
class ConstraintAdapter:
    """
    Nonlinear constraint evaluator returning clamped (cineq, ceq).

    The constraints are cineq(x) <= 0 and ceq(x) == 0.

    Attributes:
        nonlcon: Raw user constraint function returning (cineq, ceq)
        invoker: Name used as message prefix
    """
    nonlcon: Callable[[np.ndarray], Any]
    invoker: str = "pdfo"

    def __call__(self, x: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        output = self.nonlcon(x)
        if not isinstance(output, (tuple, list)) or len(output) != 2:
            raise ConstraintNotNumeric(
                "constraint function should return two numeric vectors.", self.invoker
            )
        cineq = self._as_vector(output[0])
        ceq = self._as_vector(output[1])

        cineq[np.isnan(cineq)] = HUGE_C
        # Not extreme barrier: very negative cineq means "satisfied", but -inf
        # would still poison the interpolation models.
        cineq = np.clip(cineq, -HUGE_C, HUGE_C)

        ceq[np.isnan(ceq)] = HUGE_C
        ceq = np.clip(ceq, -HUGE_C, HUGE_C)
        return cineq, ceq

    def _as_vector(self, value: Any) -> np.ndarray:
        if value is None:
            return np.zeros(0)
        arr = _numeric_array(value)
        if arr is None:
            raise ConstraintNotNumeric(
                "constraint function should return two numeric vectors.", self.invoker
            )
        return np.real(arr).astype(np.float64).reshape(-1)


@dataclass(frozen=True)
class ZeroObjective:
    """Placeholder objective used when the problem defines none."""

    def __call__(self, x: np.ndarray) -> float:
        return 0.0
