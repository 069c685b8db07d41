"""
Preprocessing Pipeline

Turns user input into a canonical, solver-ready problem:

    validate objective, x0
      -> normalize linear constraints and bounds
      -> validate nonlinear constraints
      -> infeasibility / all-fixed facts
      -> classify, reduce, classify again
      -> invoker/problem compatibility
      -> resolve options
      -> project x0 (bound/linear problems)
      -> scale (if options.scale)
      -> select solver (invoker pdfo only)

Returns (problem, options, info). info.restore_x maps a solution of the
canonical problem back to the user's variables.
"""

from dataclasses import replace
from typing import Any, Dict, Mapping, Tuple, Union

import numpy as np

from .adapters import ZeroObjective
from .checks import EPS, is_empty
from .contract import ConstraintFacts, Problem, ProblemType, constraint_violation, problem_type
from .core.diagnostics import DiagnosticLog
from .core.problem_info import ProblemInfo
from .errors import InvalidProblem, InvalidProblemType
from .logging import get_logger
from .preprocess import (
    normalize_bounds,
    normalize_linear_constraints,
    prepare_nonlcon,
    prepare_objective,
    prepare_x0,
)
from .solver import Invoker, Options, parse_invoker, resolve_options, select_solver, solver_handles
from .transforms import PROJECTED_TYPES, project_x0, reduce_problem, scale_problem

logger = get_logger(__name__)

PROBLEM_FIELDS = (
    'objective', 'x0', 'Aineq', 'bineq', 'Aeq', 'beq', 'lb', 'ub', 'nonlcon', 'options', 'solver',
)


def decode_problem(problem: Any, invoker: Invoker, log: DiagnosticLog) -> Dict[str, Any]:
    """
    Read a problem mapping into keyword arguments for prepare().

    The fields are not validated here; that happens in the pipeline.

    Raises:
        InvalidProblem: if problem is not a mapping or has no x0
    """
    name = invoker.value
    if not isinstance(problem, Mapping):
        raise InvalidProblem("the unique input is not a problem-defining mapping.", name)

    given = {key: value for key, value in problem.items() if not is_empty(value)}
    if 'x0' not in given:
        raise InvalidProblem("PROBLEM misses the x0 field(s).", name)

    decoded = {key: given.get(key) for key in PROBLEM_FIELDS if key != 'solver'}
    if decoded['objective'] is None:
        log.add(f"{name}:NoObjective", f"{name}: there is no objective function.")
        decoded['objective'] = ZeroObjective()

    unknown = sorted(str(key) for key in set(given) - set(PROBLEM_FIELDS))
    if unknown:
        if len(unknown) == 1:
            message = f"{name}: problem with an unknown field {unknown[0]}; it is ignored."
        else:
            message = f"{name}: problem with unknown fields {', '.join(unknown)}; they are ignored."
        log.add(f"{name}:UnknownProbField", message)

    if 'solver' in given:
        # A top-level solver overrides options['solver']
        options = decoded['options']
        if options is None:
            options = {}
        elif isinstance(options, Options):
            options = options.specified()
        if isinstance(options, Mapping):
            options = dict(options)
            options['solver'] = given['solver']
        decoded['options'] = options

    decoded['fun'] = decoded.pop('objective')
    return decoded


def check_compatibility(ptype: ProblemType, invoker: Invoker) -> None:
    """
    Raises:
        InvalidProblemType: if a specific-solver invoker cannot handle ptype
    """
    if not solver_handles(ptype, invoker):
        raise InvalidProblemType(
            f"{ptype.label} problem received; {invoker.value} cannot solve it.", invoker.value
        )


def prepare(
    fun: Any,
    x0: Any,
    Aineq: Any = None,
    bineq: Any = None,
    Aeq: Any = None,
    beq: Any = None,
    lb: Any = None,
    ub: Any = None,
    nonlcon: Any = None,
    options: Any = None,
    invoker: Union[str, Invoker] = "pdfo",
) -> Tuple[Problem, Options, ProblemInfo]:
    """
    Validate and normalize a derivative-free optimization problem.

    Args:
        fun: Objective x -> float, or None for a feasibility problem
        x0: Initial point (real vector)
        Aineq, bineq: Linear inequalities Aineq @ x <= bineq
        Aeq, beq: Linear equalities Aeq @ x == beq
        lb, ub: Bounds (missing entries mean unbounded)
        nonlcon: x -> (cineq, ceq) with cineq <= 0 and ceq == 0
        options: None, a mapping of option names, or an Options instance
        invoker: "pdfo" (automatic solver choice) or a solver name

    Returns:
        (canonical problem, resolved options, ProblemInfo)

    Raises:
        InvalidInputError: on unusable input (see errors.py)
        UnexpectedError: on an internal inconsistency
    """
    invoker = parse_invoker(invoker)
    log = DiagnosticLog()
    return _run(
        invoker, log,
        fun=fun, x0=x0, Aineq=Aineq, bineq=bineq, Aeq=Aeq, beq=beq,
        lb=lb, ub=ub, nonlcon=nonlcon, options=options,
    )


def prepare_problem(
    problem: Mapping[str, Any],
    invoker: Union[str, Invoker] = "pdfo",
) -> Tuple[Problem, Options, ProblemInfo]:
    """
    Same as prepare(), for a problem given as a single mapping with keys
    objective, x0, Aineq, bineq, Aeq, beq, lb, ub, nonlcon, options, solver.
    """
    invoker = parse_invoker(invoker)
    log = DiagnosticLog()
    return _run(invoker, log, **decode_problem(problem, invoker, log))


def _run(
    invoker: Invoker,
    log: DiagnosticLog,
    fun: Any,
    x0: Any,
    Aineq: Any,
    bineq: Any,
    Aeq: Any,
    beq: Any,
    lb: Any,
    ub: Any,
    nonlcon: Any,
    options: Any,
) -> Tuple[Problem, Options, ProblemInfo]:
    name = invoker.value
    raw_data = {
        'objective': fun, 'x0': x0, 'Aineq': Aineq, 'bineq': bineq, 'Aeq': Aeq,
        'beq': beq, 'lb': lb, 'ub': ub, 'nonlcon': nonlcon, 'options': options,
    }

    objective = prepare_objective(fun, name, log)
    x0 = prepare_x0(x0, name)
    n = x0.size

    linear = normalize_linear_constraints(Aineq, bineq, Aeq, beq, n, name)
    bounds = normalize_bounds(lb, ub, n, name)
    facts = ConstraintFacts(
        infeasible_lineq=linear.infeasible_lineq,
        trivial_lineq=linear.trivial_lineq,
        infeasible_leq=linear.infeasible_leq,
        trivial_leq=linear.trivial_leq,
        infeasible_bound=bounds.infeasible_bound,
        fixed=bounds.fixed,
        fixed_value=bounds.fixed_value,
    )
    nonlcon = prepare_nonlcon(nonlcon, name)

    problem = Problem(
        objective=objective,
        x0=x0,
        Aineq=linear.Aineq,
        bineq=linear.bineq,
        Aeq=linear.Aeq,
        beq=linear.beq,
        lb=bounds.lb,
        ub=bounds.ub,
        nonlcon=nonlcon,
    )

    info = ProblemInfo(invoker=name, facts=facts, infeasible=facts.infeasible, nofreex=facts.nofreex)
    if facts.nofreex:
        info.constrv_fixedx = constraint_violation(
            facts.fixed_value, problem.Aineq, problem.bineq, problem.Aeq, problem.beq,
            problem.lb, problem.ub, problem.nonlcon,
        )
    if info.infeasible:
        logger.debug("problem is infeasible")

    info.raw_dim = n
    info.raw_type = problem_type(problem.Aineq, problem.Aeq, problem.lb, problem.ub, problem.nonlcon)
    if np.any(facts.fixed) and not facts.nofreex and not facts.infeasible:
        problem, info.reduction = reduce_problem(problem, facts.fixed)
        info.reduced = True
        logger.debug("reduced dimension %d -> %d", n, problem.n)
    info.refined_dim = problem.n
    info.refined_type = problem_type(problem.Aineq, problem.Aeq, problem.lb, problem.ub, problem.nonlcon)
    logger.debug("problem type %s -> %s", info.raw_type.value, info.refined_type.value)

    check_compatibility(info.refined_type, invoker)

    # After reduction: the bobyqa rhobeg limit depends on the reduced bounds
    options = resolve_options(invoker, options, problem.n, problem.lb, problem.ub, log)

    degenerate = info.nofreex or info.infeasible
    if info.refined_type in PROJECTED_TYPES and not degenerate:
        x_new, revised = project_x0(problem, info.refined_type)
        if revised:
            log.add(f"{name}:ReviseX0", f"{name}: x0 is revised to satisfy the constraints.")
            problem = replace(problem, x0=x_new)

    # After projection: the shift depends on x0
    if options.scale and not degenerate:
        problem, info.scaling = scale_problem(problem)
        info.scaled = True
        if not info.scaling.is_identity_scale:
            log.add(
                f"{name}:ProblemScaled",
                f"{name}: problem scaled according to bound constraints; do this only if the "
                f"bounds reflect the scaling of variables; if not, set options.scale=false to "
                f"disable scaling.",
            )
        if info.scaling.substantial:
            options = replace(
                options,
                rhobeg=1.0,
                rhoend=max(options.rhoend / options.rhobeg, EPS),
            )
            logger.debug("substantially scaled (ratio %.3g); rhobeg reset to 1", info.scaling.ratio)

    if invoker is Invoker.PDFO:
        options = select_solver(
            options, info.refined_type, problem.n, problem.lb, problem.ub, invoker, log
        )

    info.solver = None if options.solver is None else options.solver.value
    info.warnings = list(log.entries)
    info.refined_data = {'problem': problem, 'options': options}
    if options.debug:
        info.raw_data = raw_data

    logger.debug("prepared %s problem for %s with %d warning(s)",
                 info.refined_type.value, info.solver, len(info.warnings))
    return problem, options, info
