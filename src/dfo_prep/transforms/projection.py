"""
x0 Feasibility Projection

Moves x0 onto the feasible set of the bound and linear constraints:
- bound-constrained: componentwise clipping into [lb, ub]
- linearly-constrained: min 0.5 * ||x - x0||^2 subject to all linear
  constraints and bounds, solved with SLSQP

Nonlinearly-constrained problems are never projected: moving x0 toward the
linear constraints may dramatically increase its nonlinear infeasibility.
"""

from typing import List, Optional, Tuple

import numpy as np

from ..checks import EPS
from ..contract import Problem, ProblemType
from ..logging import get_logger

logger = get_logger(__name__)

PROJECTED_TYPES = (ProblemType.BOUND_CONSTRAINED, ProblemType.LINEARLY_CONSTRAINED)


def _bounds_list(lb: np.ndarray, ub: np.ndarray) -> List[Tuple[Optional[float], Optional[float]]]:
    return [
        (None if lo == -np.inf else float(lo), None if hi == np.inf else float(hi))
        for lo, hi in zip(lb, ub)
    ]


def project_onto_linear(problem: Problem, maxiter: int = 200) -> np.ndarray:
    """
    Least-distance projection of x0 onto {Aineq x <= bineq, Aeq x = beq, lb <= x <= ub}.

    Falls back to the clipped x0 when SLSQP does not converge.
    """
    from scipy.optimize import minimize

    x0 = np.asarray(problem.x0, dtype=np.float64)
    start = np.clip(x0, problem.lb, problem.ub)

    constraints = []
    if problem.m_ineq > 0:
        Aineq, bineq = problem.Aineq, problem.bineq
        constraints.append({
            'type': 'ineq',
            'fun': lambda x: bineq - Aineq @ x,
            'jac': lambda x: -Aineq,
        })
    if problem.m_eq > 0:
        Aeq, beq = problem.Aeq, problem.beq
        constraints.append({
            'type': 'eq',
            'fun': lambda x: Aeq @ x - beq,
            'jac': lambda x: Aeq,
        })

    result = minimize(
        lambda x: 0.5 * float(np.dot(x - x0, x - x0)),
        start,
        jac=lambda x: x - x0,
        method='SLSQP',
        bounds=_bounds_list(problem.lb, problem.ub),
        constraints=constraints,
        options={'maxiter': maxiter, 'disp': False},
    )
    if not result.success:
        logger.debug("x0 projection did not converge: %s", result.message)
        return start
    return np.clip(result.x, problem.lb, problem.ub)


def project_x0(problem: Problem, ptype: ProblemType) -> Tuple[np.ndarray, bool]:
    """
    Project x0 according to the problem type.

    Returns:
        (new x0, revised) where revised tells whether x0 moved by more than
        eps * max(1, ||x0||)
    """
    x0 = np.asarray(problem.x0, dtype=np.float64)
    if ptype == ProblemType.BOUND_CONSTRAINED:
        x_new = np.clip(x0, problem.lb, problem.ub)
    elif ptype == ProblemType.LINEARLY_CONSTRAINED:
        x_new = project_onto_linear(problem)
    else:
        return x0, False

    revised = bool(np.linalg.norm(x0 - x_new) > EPS * max(1.0, float(np.linalg.norm(x0))))
    return x_new, revised
