"""
Linear-Constraint Normalizer

Validates Aineq @ x <= bineq and Aeq @ x == beq and detects degenerate rows.

For each row with inf-norm r = max_j |A[i, j]|:
- inequality, r == 0: infeasible iff b < 0, otherwise trivial
- inequality, r > 0: infeasible iff b/r == -inf, trivial iff b/r == +inf
- equality, r == 0: infeasible iff b != 0, otherwise trivial
- equality, r > 0: infeasible iff |b/r| == inf

Trivial rows are removed. Infeasible rows are kept and flagged.
"""

from dataclasses import dataclass
from typing import Any, Tuple

import numpy as np

from ..checks import as_float_matrix, as_float_vector, is_real_column, is_real_matrix
from ..errors import InvalidLinearConstraint
from ..logging import get_logger

logger = get_logger(__name__)


@dataclass
class LinearConstraints:
    """Normalized linear constraints together with their row flags."""
    Aineq: np.ndarray
    bineq: np.ndarray
    Aeq: np.ndarray
    beq: np.ndarray
    infeasible_lineq: np.ndarray
    trivial_lineq: np.ndarray
    infeasible_leq: np.ndarray
    trivial_leq: np.ndarray


def _validate(A: Any, b: Any, n: int, what: str, invoker: str) -> Tuple[np.ndarray, np.ndarray]:
    ok_A, m, cols = is_real_matrix(A)
    ok_b, len_b = is_real_column(b)
    if not (ok_A and ok_b and m == len_b and (cols == n or cols == 0)):
        raise InvalidLinearConstraint(
            f"A{what} should be a real matrix, B{what} should be a real column, "
            f"and size(A{what})=[length(B{what}), length(X0)] unless A{what}=B{what}=[].",
            invoker,
        )
    return as_float_matrix(A), as_float_vector(b)


def _row_norms(A: np.ndarray) -> np.ndarray:
    return np.max(np.abs(A), axis=1)


def _canonical_empty(A: np.ndarray, b: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    # Empty systems are always (0, 0) / (0,) so downstream slicing stays
    # dimension-safe.
    if A.size == 0 or b.size == 0:
        return np.zeros((0, 0)), np.zeros(0)
    return A, b


def normalize_inequalities(
    Aineq: Any, bineq: Any, n: int, invoker: str = "pdfo"
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Normalize Aineq @ x <= bineq.

    Returns:
        (Aineq, bineq, infeasible, trivial); trivial rows removed
    """
    A, b = _validate(Aineq, bineq, n, "ineq", invoker)
    m = b.size
    if m == 0:
        return np.zeros((0, 0)), np.zeros(0), np.zeros(0, dtype=bool), np.zeros(0, dtype=bool)

    r = _row_norms(A)
    zero = r == 0
    r = np.where(zero, 1.0, r)
    with np.errstate(invalid="ignore"):
        ratio = b / r
    infeasible = (ratio == -np.inf) | (zero & (b < 0))
    trivial = (ratio == np.inf) | (zero & (b >= 0))

    A, b = _canonical_empty(A[~trivial, :], b[~trivial])
    return A, b, infeasible, trivial


def normalize_equalities(
    Aeq: Any, beq: Any, n: int, invoker: str = "pdfo"
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Normalize Aeq @ x == beq.

    Returns:
        (Aeq, beq, infeasible, trivial); trivial rows removed
    """
    A, b = _validate(Aeq, beq, n, "eq", invoker)
    m = b.size
    if m == 0:
        return np.zeros((0, 0)), np.zeros(0), np.zeros(0, dtype=bool), np.zeros(0, dtype=bool)

    r = _row_norms(A)
    zero = r == 0
    r = np.where(zero, 1.0, r)
    with np.errstate(invalid="ignore"):
        ratio = np.abs(b / r)
    infeasible = (ratio == np.inf) | (zero & (b != 0))
    trivial = zero & (b == 0)

    A, b = _canonical_empty(A[~trivial, :], b[~trivial])
    return A, b, infeasible, trivial


def normalize_linear_constraints(
    Aineq: Any,
    bineq: Any,
    Aeq: Any,
    beq: Any,
    n: int,
    invoker: str = "pdfo",
) -> LinearConstraints:
    """
    Validate and normalize both linear systems for a problem of dimension n.

    Raises:
        InvalidLinearConstraint: on non-real input or inconsistent shapes
    """
    Aineq, bineq, infeasible_lineq, trivial_lineq = normalize_inequalities(
        Aineq, bineq, n, invoker
    )
    Aeq, beq, infeasible_leq, trivial_leq = normalize_equalities(Aeq, beq, n, invoker)

    if np.any(trivial_lineq) or np.any(trivial_leq):
        logger.debug(
            "removed %d trivial inequalities and %d trivial equalities",
            int(np.sum(trivial_lineq)), int(np.sum(trivial_leq)),
        )

    return LinearConstraints(
        Aineq=Aineq,
        bineq=bineq,
        Aeq=Aeq,
        beq=beq,
        infeasible_lineq=infeasible_lineq,
        trivial_lineq=trivial_lineq,
        infeasible_leq=infeasible_leq,
        trivial_leq=trivial_leq,
    )
