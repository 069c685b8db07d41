"""
Problem Contract Definition

Defines the optimization problem structure handed to a derivative-free solver:

    min f(x)
    s.t. Aineq @ x <= bineq
         Aeq @ x == beq
         lb <= x <= ub
         cineq(x) <= 0, ceq(x) == 0   where (cineq, ceq) = nonlcon(x)

Also defines:
- ProblemType: the constraint-richness classification used for solver matching
- ConstraintFacts: degeneracy facts found while normalizing constraints
- problem_type / constraint_violation: pure functions over a problem
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

import numpy as np

Objective = Callable[[np.ndarray], float]
NonlinearConstraint = Callable[[np.ndarray], Tuple[np.ndarray, np.ndarray]]


class ProblemType(Enum):
    """Problem types, in increasing order of constraint richness."""
    UNCONSTRAINED = "unconstrained"
    BOUND_CONSTRAINED = "bound-constrained"
    LINEARLY_CONSTRAINED = "linearly-constrained"
    NONLINEARLY_CONSTRAINED = "nonlinearly-constrained"

    @property
    def rank(self) -> int:
        return _TYPE_RANK[self]

    @property
    def label(self) -> str:
        """Human-readable form used in messages ("bound constrained")."""
        return self.value.replace("-", " ")

    def __lt__(self, other: 'ProblemType') -> bool:
        if not isinstance(other, ProblemType):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: 'ProblemType') -> bool:
        if not isinstance(other, ProblemType):
            return NotImplemented
        return self.rank <= other.rank


_TYPE_RANK = {
    ProblemType.UNCONSTRAINED: 0,
    ProblemType.BOUND_CONSTRAINED: 1,
    ProblemType.LINEARLY_CONSTRAINED: 2,
    ProblemType.NONLINEARLY_CONSTRAINED: 3,
}


def _empty_matrix() -> np.ndarray:
    return np.zeros((0, 0))


def _empty_vector() -> np.ndarray:
    return np.zeros(0)


@dataclass
class Problem:
    """
    A (normalized) optimization problem.

    Attributes:
        objective: f(x) -> float
        x0: Initial point, 1-D array of length n
        Aineq, bineq: Linear inequalities Aineq @ x <= bineq ((0, 0)/(0,) if none)
        Aeq, beq: Linear equalities Aeq @ x == beq ((0, 0)/(0,) if none)
        lb, ub: Bounds, length n, +-inf where absent
        nonlcon: x -> (cineq, ceq), or None
    """
    objective: Optional[Objective]
    x0: np.ndarray
    Aineq: np.ndarray = field(default_factory=_empty_matrix)
    bineq: np.ndarray = field(default_factory=_empty_vector)
    Aeq: np.ndarray = field(default_factory=_empty_matrix)
    beq: np.ndarray = field(default_factory=_empty_vector)
    lb: Optional[np.ndarray] = None
    ub: Optional[np.ndarray] = None
    nonlcon: Optional[NonlinearConstraint] = None

    @property
    def n(self) -> int:
        return int(np.asarray(self.x0).size)

    @property
    def m_ineq(self) -> int:
        return int(np.asarray(self.bineq).size)

    @property
    def m_eq(self) -> int:
        return int(np.asarray(self.beq).size)

    def to_canonical(self) -> Dict[str, Any]:
        """JSON-friendly view; callables are reduced to their presence."""
        return {
            "x0": np.asarray(self.x0),
            "Aineq": np.asarray(self.Aineq),
            "bineq": np.asarray(self.bineq),
            "Aeq": np.asarray(self.Aeq),
            "beq": np.asarray(self.beq),
            "lb": None if self.lb is None else np.asarray(self.lb),
            "ub": None if self.ub is None else np.asarray(self.ub),
            "has_objective": self.objective is not None,
            "has_nonlcon": self.nonlcon is not None,
        }


@dataclass(frozen=True, eq=False)
class ConstraintFacts:
    """
    Facts established while normalizing the linear and bound constraints.

    Computed once by the pipeline and never modified afterwards.

    Attributes:
        infeasible_lineq: Per inequality row, unsatisfiable
        trivial_lineq: Per inequality row, always satisfied (removed)
        infeasible_leq: Per equality row, unsatisfiable
        trivial_leq: Per equality row, always satisfied (removed)
        infeasible_bound: Per variable, lb > ub
        fixed: Per variable, |lb - ub| < 2 eps
        fixed_value: (lb + ub) / 2 for each fixed variable, in index order
    """
    infeasible_lineq: np.ndarray
    trivial_lineq: np.ndarray
    infeasible_leq: np.ndarray
    trivial_leq: np.ndarray
    infeasible_bound: np.ndarray
    fixed: np.ndarray
    fixed_value: np.ndarray

    @property
    def infeasible(self) -> bool:
        return bool(
            np.any(self.infeasible_lineq) or
            np.any(self.infeasible_leq) or
            np.any(self.infeasible_bound)
        )

    @property
    def nofreex(self) -> bool:
        """True when every variable is fixed by its bounds."""
        return bool(np.all(self.fixed))

    def to_canonical(self) -> Dict[str, Any]:
        return {
            "infeasible_lineq": self.infeasible_lineq,
            "trivial_lineq": self.trivial_lineq,
            "infeasible_leq": self.infeasible_leq,
            "trivial_leq": self.trivial_leq,
            "infeasible_bound": self.infeasible_bound,
            "fixed": self.fixed,
            "fixed_value": self.fixed_value,
        }


def problem_type(
    Aineq: Optional[np.ndarray],
    Aeq: Optional[np.ndarray],
    lb: Optional[np.ndarray],
    ub: Optional[np.ndarray],
    nonlcon: Optional[NonlinearConstraint],
) -> ProblemType:
    """
    Classify a constraint set.

    Nonlinear constraints dominate linear ones, which dominate bounds.
    Infinite bounds do not count as constraints.
    """
    if nonlcon is not None:
        return ProblemType.NONLINEARLY_CONSTRAINED
    if _has_rows(Aineq) or _has_rows(Aeq):
        return ProblemType.LINEARLY_CONSTRAINED
    if (lb is not None and np.size(lb) > 0 and np.max(lb) > -np.inf) or \
            (ub is not None and np.size(ub) > 0 and np.min(ub) < np.inf):
        return ProblemType.BOUND_CONSTRAINED
    return ProblemType.UNCONSTRAINED


def _has_rows(A: Optional[np.ndarray]) -> bool:
    return A is not None and np.size(A) > 0


def constraint_violation(
    x: np.ndarray,
    Aineq: np.ndarray,
    bineq: np.ndarray,
    Aeq: np.ndarray,
    beq: np.ndarray,
    lb: np.ndarray,
    ub: np.ndarray,
    nonlcon: Optional[NonlinearConstraint] = None,
) -> float:
    """
    Maximal constraint violation of x.

    Bound and linear residuals are relative to max(1, |rhs|); nonlinear
    residuals are absolute. NaN terms (e.g. inf - inf) are ignored.
    """
    x = np.asarray(x, dtype=np.float64)
    with np.errstate(invalid="ignore"):
        rhs = np.concatenate([lb, ub])
        gaps = np.concatenate([lb - x, x - ub]) / np.maximum(1.0, np.abs(rhs))
        terms = [gaps]
        if _has_rows(Aineq):
            terms.append((Aineq @ x - bineq) / np.maximum(1.0, np.abs(bineq)))
        if _has_rows(Aeq):
            terms.append(np.abs(Aeq @ x - beq) / np.maximum(1.0, np.abs(beq)))
    if nonlcon is not None:
        cineq, ceq = nonlcon(x)
        terms.append(np.asarray(cineq, dtype=np.float64).reshape(-1))
        terms.append(np.abs(np.asarray(ceq, dtype=np.float64).reshape(-1)))
    return float(np.fmax.reduce(np.concatenate(terms), initial=0.0))
