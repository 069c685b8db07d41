"""
Solver Selector

Only the automatic front end (invoker pdfo) selects a solver. A user-named
solver that can handle the refined problem type is kept as is; otherwise the
first matching row of SELECTION_RULES decides, and the options that depend on
the solver (npt, and rhobeg/rhoend for bobyqa) are re-derived.
"""

from dataclasses import replace

import numpy as np

from ..checks import EPS
from ..contract import ProblemType
from ..core.diagnostics import DiagnosticLog
from ..errors import RecoverableOptionWarning, UnexpectedError
from ..logging import get_logger
from .options import Options
from .registry import SELECTION_RULES, SOLVERS, Invoker, SelectionRule, Solver, solver_handles

logger = get_logger(__name__)


def match_rule(ptype: ProblemType, n: int, maxfun: int) -> SelectionRule:
    """First selection rule matching the problem type and budget."""
    for rule in SELECTION_RULES:
        if rule.ptype == ptype and rule.applies(n, maxfun):
            return rule
    raise UnexpectedError(
        "select_solver",
        f"unknown problem type '{ptype}' received.",
        kind="InvalidProbType",
    )


def _adapt_options(options: Options, solver: Solver, n: int,
                   lb: np.ndarray, ub: np.ndarray) -> Options:
    spec = SOLVERS[solver]
    changes = {}
    if spec.accepts_npt:
        changes['npt'] = min(2 * n + 1, options.maxfun - 1)
    if spec.bound_limited_rhobeg:
        half_width = float(np.min(ub - lb) / 2) if lb.size else np.inf
        rhobeg = min(options.rhobeg, half_width)
        rhoend = (options.rhoend / options.rhobeg) * rhobeg
        changes['rhobeg'] = max(rhobeg, EPS)
        changes['rhoend'] = max(rhoend, EPS)
    return replace(options, **changes)


def select_solver(
    options: Options,
    refined_type: ProblemType,
    n: int,
    lb: np.ndarray,
    ub: np.ndarray,
    invoker: Invoker,
    log: DiagnosticLog,
) -> Options:
    """
    Resolve the solver for the automatic front end.

    Args:
        options: Options returned by resolve_options
        refined_type: Problem type after reduction
        n: Dimension after reduction
        lb, ub: Bounds of the final (possibly scaled) problem
        invoker: Must be Invoker.PDFO
        log: Diagnostic log

    Returns:
        Options with solver set (and npt/rhobeg/rhoend revised if selected here)

    Raises:
        UnexpectedError: for another invoker, or if the table picks a solver
            that cannot handle the problem
    """
    if invoker is not Invoker.PDFO:
        raise UnexpectedError(
            "select_solver", "select_solver serves only pdfo.", kind="InvalidInvoker"
        )

    solver = options.solver
    if solver is not None and solver_handles(refined_type, solver):
        logger.debug("keeping requested solver %s", solver.value)
        return options

    if solver is not None:
        log.add(
            f"{invoker.value}:InvalidSolver",
            f"{invoker.value}: {solver.value} cannot solve a {refined_type.label} problem; "
            f"{invoker.value} will select a solver automatically.",
            RecoverableOptionWarning,
        )

    rule = match_rule(refined_type, n, options.maxfun)
    chosen = rule.solver
    if not solver_handles(refined_type, chosen):
        raise UnexpectedError(
            "select_solver", f"invalid solver '{chosen.value}' selected.", kind="InvalidSolver"
        )
    logger.debug("selected %s for %s problem (%s)", chosen.value, refined_type.value, rule.condition)
    return replace(_adapt_options(options, chosen, n, np.asarray(lb), np.asarray(ub)), solver=chosen)
