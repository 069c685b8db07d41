"""
Solver Registry

The authoritative data about the derivative-free solvers:
- SOLVERS: what each solver accepts (richest problem type, npt, rhobeg limits)
- SELECTION_RULES: ordered decision table used when no usable solver was named

Adding a solver means adding a SolverSpec and, if it should ever be chosen
automatically, a SelectionRule.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from ..contract import ProblemType
from ..errors import UnexpectedError


class Solver(Enum):
    """Derivative-free solvers the pipeline can hand a problem to."""
    UOBYQA = "uobyqa"
    NEWUOA = "newuoa"
    BOBYQA = "bobyqa"
    LINCOA = "lincoa"
    COBYLA = "cobyla"


class Invoker(Enum):
    """Who runs the pipeline: the automatic front end or a specific solver."""
    PDFO = "pdfo"
    UOBYQA = "uobyqa"
    NEWUOA = "newuoa"
    BOBYQA = "bobyqa"
    LINCOA = "lincoa"
    COBYLA = "cobyla"

    @property
    def solver(self) -> Optional[Solver]:
        """The solver this invoker stands for, None for the front end."""
        if self is Invoker.PDFO:
            return None
        return Solver(self.value)


@dataclass(frozen=True)
class SolverSpec:
    """
    Static description of one solver.

    Attributes:
        solver: Solver identity
        richest_type: Richest ProblemType the solver can handle
        accepts_npt: Whether npt is a user option for this solver
        default_npt: n -> default number of interpolation points (also used
            as the minimum sample count when validating maxfun)
        bound_limited_rhobeg: Whether rhobeg must not exceed min(ub - lb)/2
        maxfun_rule: Message fragment stating the solver's maxfun requirement
        description: One-line summary
    """
    solver: Solver
    richest_type: ProblemType
    accepts_npt: bool
    default_npt: Callable[[int], int]
    bound_limited_rhobeg: bool
    maxfun_rule: str
    description: str


def _full_quadratic_npt(n: int) -> int:
    return (n + 1) * (n + 2) // 2


def _two_n_plus_one(n: int) -> int:
    return 2 * n + 1


def _n_plus_one(n: int) -> int:
    return n + 1


SOLVERS: Dict[Solver, SolverSpec] = {
    Solver.UOBYQA: SolverSpec(
        solver=Solver.UOBYQA,
        richest_type=ProblemType.UNCONSTRAINED,
        accepts_npt=False,
        default_npt=_full_quadratic_npt,
        bound_limited_rhobeg=False,
        maxfun_rule="requires maxfun > (n+1)*(n+2)/2; it is set to (n+1)*(n+2)/2+1",
        description="full quadratic models, unconstrained",
    ),
    Solver.NEWUOA: SolverSpec(
        solver=Solver.NEWUOA,
        richest_type=ProblemType.UNCONSTRAINED,
        accepts_npt=True,
        default_npt=_two_n_plus_one,
        bound_limited_rhobeg=False,
        maxfun_rule="requires maxfun > npt; it is set to npt+1",
        description="underdetermined quadratic interpolation, unconstrained",
    ),
    Solver.BOBYQA: SolverSpec(
        solver=Solver.BOBYQA,
        richest_type=ProblemType.BOUND_CONSTRAINED,
        accepts_npt=True,
        default_npt=_two_n_plus_one,
        bound_limited_rhobeg=True,
        maxfun_rule="requires maxfun > npt; it is set to npt+1",
        description="quadratic interpolation with bound constraints",
    ),
    Solver.LINCOA: SolverSpec(
        solver=Solver.LINCOA,
        richest_type=ProblemType.LINEARLY_CONSTRAINED,
        accepts_npt=True,
        default_npt=_two_n_plus_one,
        bound_limited_rhobeg=False,
        maxfun_rule="requires maxfun > npt; it is set to npt+1",
        description="quadratic interpolation with linear constraints",
    ),
    Solver.COBYLA: SolverSpec(
        solver=Solver.COBYLA,
        richest_type=ProblemType.NONLINEARLY_CONSTRAINED,
        accepts_npt=False,
        default_npt=_n_plus_one,
        bound_limited_rhobeg=False,
        maxfun_rule="requires maxfun > n+1; it is set to n+2",
        description="linear models, general nonlinear constraints",
    ),
}


@dataclass(frozen=True)
class SelectionRule:
    """One row of the selection table: first matching row wins."""
    ptype: ProblemType
    applies: Callable[[int, int], bool]
    solver: Solver
    condition: str


def _small_and_affordable(n: int, maxfun: int) -> bool:
    return 2 <= n <= 8 and maxfun >= _full_quadratic_npt(n) + 1


def _tight_budget(n: int, maxfun: int) -> bool:
    # maxfun >= n+2 is guaranteed by option resolution, so this means maxfun == n+2
    return maxfun <= n + 2


def _always(n: int, maxfun: int) -> bool:
    return True


SELECTION_RULES: List[SelectionRule] = [
    SelectionRule(ProblemType.UNCONSTRAINED, _small_and_affordable, Solver.UOBYQA,
                  "2 <= n <= 8 and maxfun >= (n+1)(n+2)/2+1"),
    SelectionRule(ProblemType.UNCONSTRAINED, _tight_budget, Solver.COBYLA, "maxfun <= n+2"),
    SelectionRule(ProblemType.UNCONSTRAINED, _always, Solver.NEWUOA, "otherwise"),
    SelectionRule(ProblemType.BOUND_CONSTRAINED, _tight_budget, Solver.COBYLA, "maxfun <= n+2"),
    SelectionRule(ProblemType.BOUND_CONSTRAINED, _always, Solver.BOBYQA, "otherwise"),
    SelectionRule(ProblemType.LINEARLY_CONSTRAINED, _tight_budget, Solver.COBYLA, "maxfun <= n+2"),
    SelectionRule(ProblemType.LINEARLY_CONSTRAINED, _always, Solver.LINCOA, "otherwise"),
    SelectionRule(ProblemType.NONLINEARLY_CONSTRAINED, _always, Solver.COBYLA, "always"),
]


def solver_handles(ptype: ProblemType, solver: Union[Solver, Invoker]) -> bool:
    """
    Compatibility matrix lookup.

    The automatic front end (Invoker.PDFO) handles every problem type.
    """
    if isinstance(solver, Invoker):
        if solver is Invoker.PDFO:
            return True
        solver = solver.solver
    return ptype <= SOLVERS[solver].richest_type


def parse_invoker(invoker: Union[str, Invoker]) -> Invoker:
    """
    Validate an invoker name against the closed set of invokers.

    Raises:
        UnexpectedError: for anything outside the set
    """
    if isinstance(invoker, Invoker):
        return invoker
    try:
        return Invoker(invoker)
    except ValueError:
        names = ", ".join(member.value for member in Invoker)
        raise UnexpectedError(
            "prepare", f"invoker should be one of {names}.", kind="InvalidInvoker"
        ) from None


def parse_solver_name(name: Any) -> Optional[Solver]:
    """Case-insensitive solver lookup; None for unknown names and non-strings."""
    if isinstance(name, Solver):
        return name
    if not isinstance(name, str):
        return None
    try:
        return Solver(name.lower())
    except ValueError:
        return None
