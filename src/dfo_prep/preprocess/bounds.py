"""
Bound Normalizer

Fills missing bounds with -inf/+inf, then detects infeasible bounds (lb > ub)
and variables fixed by their bounds (|lb - ub| < 2 eps).
"""

from dataclasses import dataclass
from typing import Any

import numpy as np

from ..checks import EPS, as_float_vector, is_real_vector
from ..errors import InvalidBound


@dataclass
class BoundConstraints:
    """Normalized bounds with their per-variable flags."""
    lb: np.ndarray
    ub: np.ndarray
    infeasible_bound: np.ndarray
    fixed: np.ndarray
    fixed_value: np.ndarray

    @property
    def n_fixed(self) -> int:
        return int(np.sum(self.fixed))


def _normalize_one(bound: Any, n: int, name: str, fill: float, invoker: str) -> np.ndarray:
    ok, length = is_real_vector(bound)
    if not (ok and (length == n or length == 0)):
        raise InvalidBound(
            f"{name} should be a real vector and length({name})=length(x0) unless {name}=[].",
            invoker,
        )
    if length == 0:
        return np.full(n, fill)
    return as_float_vector(bound)


def normalize_bounds(lb: Any, ub: Any, n: int, invoker: str = "pdfo") -> BoundConstraints:
    """
    Validate and normalize lb <= x <= ub for a problem of dimension n.

    The fixed test is a near-equality, not exact equality, so that bounds
    differing only by round-off still pin the variable.

    Raises:
        InvalidBound: on non-real input or a length mismatch
    """
    lb = _normalize_one(lb, n, "lb", -np.inf, invoker)
    ub = _normalize_one(ub, n, "ub", np.inf, invoker)

    infeasible_bound = lb > ub
    with np.errstate(invalid="ignore"):
        fixed = np.abs(lb - ub) < 2 * EPS
    fixed_value = (lb[fixed] + ub[fixed]) / 2

    return BoundConstraints(
        lb=lb,
        ub=ub,
        infeasible_bound=infeasible_bound,
        fixed=fixed,
        fixed_value=fixed_value,
    )
