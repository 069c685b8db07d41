"""
Options Resolver

Every option field goes through the same three-state machine:

    unset                   -> default
    user-specified, valid   -> accepted
    user-specified, invalid -> RecoverableOptionWarning + corrected value

Cross-field rules:
- npt is an option only for newuoa/bobyqa/lincoa: n+2 <= npt <= (n+1)(n+2)/2
- maxfun must exceed the solver's minimum sample count
- rhoend <= rhobeg, both floored at machine epsilon
- bobyqa needs rhobeg <= min(ub - lb)/2

No correction is fatal. The only error is an options object of the wrong type.
"""

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Mapping, Optional

import numpy as np

from ..checks import EPS, is_empty, is_integer_scalar, is_logical_scalar, is_real_scalar
from ..core.diagnostics import DiagnosticLog
from ..errors import InvalidOptions, RecoverableOptionWarning
from .registry import SOLVERS, Invoker, Solver, parse_solver_name

DEFAULT_MAXFUN_PER_VARIABLE = 500
DEFAULT_RHOBEG = 1.0
DEFAULT_RHOEND = 1e-6
DEFAULT_FTARGET = -np.inf

UNKNOWN_SOLVER = "UNKNOWN_SOLVER"

_COMMON_FIELDS = (
    'maxfun', 'rhobeg', 'rhoend', 'ftarget', 'classical', 'scale', 'quiet',
    'debug', 'chkfunval', 'solver',
)


@dataclass(frozen=True)
class Options:
    """
    Solver options.

    As user input, a field left at None is unset; any other value counts as
    set, even one equal to the default. As resolver output, every field is
    filled in except npt, which stays None while no solver has been chosen.
    """
    npt: Optional[int] = None
    maxfun: Optional[int] = None
    rhobeg: Optional[float] = None
    rhoend: Optional[float] = None
    ftarget: Optional[float] = None
    classical: Optional[bool] = None
    scale: Optional[bool] = None
    quiet: Optional[bool] = None
    debug: Optional[bool] = None
    chkfunval: Optional[bool] = None
    solver: Optional[Solver] = None

    def specified(self) -> Dict[str, Any]:
        """Fields that are set, as a plain dict."""
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if isinstance(value, Solver):
                value = value.value
            result[f.name] = value
        return result

    def to_canonical(self) -> Dict[str, Any]:
        return asdict(self)


def known_fields(solver: Optional[Solver]):
    """Option names accepted for the given solver (npt only where it is used)."""
    if solver is not None and SOLVERS[solver].accepts_npt:
        return ('npt',) + _COMMON_FIELDS
    return _COMMON_FIELDS


def default_npt(solver: Optional[Solver], n: int) -> Optional[int]:
    if solver is None:
        return None
    return SOLVERS[solver].default_npt(n)


def _as_field_mapping(options: Any, invoker: str) -> Dict[str, Any]:
    if options is None:
        return {}
    if isinstance(options, Options):
        return options.specified()
    if isinstance(options, Mapping):
        return {key: value for key, value in options.items() if not is_empty(value)}
    raise InvalidOptions("OPTIONS should be a mapping or an Options instance.", invoker)


def _scalar(x: Any) -> float:
    return float(np.asarray(x, dtype=np.float64).reshape(-1)[0])


def _flag_text(flag: bool) -> str:
    return "true" if flag else "false"


class _Resolver:
    """Single-use helper holding the state of one resolve_options call."""

    def __init__(self, invoker: Invoker, user: Dict[str, Any], n: int,
                 lb: np.ndarray, ub: np.ndarray, log: DiagnosticLog):
        self.invoker = invoker
        self.name = invoker.value
        self.user = user
        self.n = n
        self.lb = lb
        self.ub = ub
        self.log = log

    def warn(self, kind: str, message: str) -> None:
        self.log.add(f"{self.name}:{kind}", f"{self.name}: {message}", RecoverableOptionWarning)

    def resolve_solver(self) -> Optional[Solver]:
        requested = self.user.get('solver')
        if 'solver' in self.user and not isinstance(requested, (str, Solver)):
            requested = UNKNOWN_SOLVER

        if self.invoker is Invoker.PDFO:
            if 'solver' not in self.user:
                return None
            solver = parse_solver_name(requested)
            if solver is None and not (isinstance(requested, str) and requested.lower() == 'pdfo'):
                self.warn(
                    "UnknownSolver",
                    f"unknown solver specified; {self.name} will select one automatically.",
                )
            return solver

        if 'solver' in self.user and parse_solver_name(requested) is not self.invoker.solver:
            self.warn(
                "InvalidSolver",
                f"a solver different from {self.name} is specified; it is ignored.",
            )
        return self.invoker.solver

    def check_unknown_fields(self, solver: Optional[Solver]) -> None:
        unknown = sorted(set(self.user) - set(known_fields(solver)))
        if not unknown:
            return
        if len(unknown) == 1:
            message = f"unknown option {unknown[0]}; it is ignored."
        else:
            message = f"unknown options {', '.join(unknown)}; they are ignored."
        self.warn("UnknownOption", message)

    def resolve_npt(self, solver: Optional[Solver], npt_default: Optional[int]) -> Optional[int]:
        if 'npt' in self.user and solver is not None and SOLVERS[solver].accepts_npt:
            npt = self.user['npt']
            n = self.n
            if is_integer_scalar(npt) and n + 2 <= _scalar(npt) <= (n + 1) * (n + 2) // 2:
                return int(_scalar(npt))
            self.warn(
                "InvalidNpt",
                f"invalid npt. for {solver.value}, it should be an integer and "
                f"n+2 <= npt <= (n+1)*(n+2)/2; it is set to 2n+1.",
            )
        return npt_default

    def resolve_maxfun(self, solver: Optional[Solver], npt: Optional[int], maxfun_default: int) -> int:
        fallback = maxfun_default if npt is None else max(maxfun_default, npt + 1)
        if 'maxfun' not in self.user:
            return fallback

        maxfun = self.user['maxfun']
        if not is_integer_scalar(maxfun) or _scalar(maxfun) <= 0:
            self.warn(
                "InvalidMaxfun",
                f"invalid maxfun; it should be a positive integer; it is set to {maxfun_default}.",
            )
            return fallback
        maxfun = int(_scalar(maxfun))
        if solver is None and maxfun <= self.n + 1:
            self.warn(
                "InvalidMaxfun",
                "invalid maxfun; it should be a positive integer at least n+2; it is set to n+2.",
            )
            return self.n + 2
        if solver is not None and maxfun <= npt:
            self.warn(
                "InvalidMaxfun",
                f"invalid maxfun; {solver.value} {SOLVERS[solver].maxfun_rule}.",
            )
            return npt + 1
        return maxfun

    def resolve_rhobeg(self, solver: Optional[Solver], rhobeg_default: float) -> float:
        half_width = self.half_width()
        rhobeg = None
        if 'rhobeg' in self.user:
            value = self.user['rhobeg']
            if not (is_real_scalar(value) and _scalar(value) > 0):
                self.warn(
                    "InvalidRhobeg",
                    f"invalid rhobeg; it should be a positive number; "
                    f"it is set to max({rhobeg_default:f}, rhoend).",
                )
            elif solver is not None and SOLVERS[solver].bound_limited_rhobeg and _scalar(value) > half_width:
                self.warn(
                    "InvalidRhobeg",
                    f"invalid rhobeg; {solver.value} requires rhobeg <= min(ub-lb)/2; "
                    f"it is set to min(ub-lb)/2.",
                )
                rhobeg = half_width
            else:
                rhobeg = _scalar(value)
        if rhobeg is None:
            rhoend = self.user.get('rhoend')
            if is_real_scalar(rhoend):
                rhobeg = max(rhobeg_default, _scalar(rhoend))
            else:
                rhobeg = rhobeg_default
        return max(float(rhobeg), EPS)

    def resolve_rhoend(self, rhobeg: float, rhobeg_default: float, rhoend_default: float) -> float:
        if rhobeg_default > 0:
            ratio = rhoend_default / rhobeg_default
        else:
            # zero-width bounds under bobyqa; both radii end up at eps
            ratio = DEFAULT_RHOEND / DEFAULT_RHOBEG
        if 'rhoend' in self.user:
            value = self.user['rhoend']
            if is_real_scalar(value) and _scalar(value) <= rhobeg:
                return max(_scalar(value), EPS)
            self.warn(
                "InvalidRhoend",
                f"invalid rhoend; we should have rhobeg >= rhoend > 0; "
                f"it is set to {ratio:f}*rhobeg.",
            )
        return max(ratio * rhobeg, EPS)

    def resolve_ftarget(self) -> float:
        if 'ftarget' in self.user:
            value = self.user['ftarget']
            if is_real_scalar(value):
                return _scalar(value)
            self.warn(
                "InvalidFtarget",
                f"invalid ftarget; it should be real number; it is set to {DEFAULT_FTARGET:f}.",
            )
        return DEFAULT_FTARGET

    def resolve_flag(self, name: str, kind: str, default: bool) -> bool:
        if name in self.user:
            value = self.user[name]
            if is_logical_scalar(value):
                return bool(value)
            self.warn(
                kind,
                f"invalid {name} flag; it should be true(1) or false(0); "
                f"it is set to {_flag_text(default)}.",
            )
        return default

    def resolve_chkfunval(self, debug: bool) -> bool:
        if 'chkfunval' in self.user:
            value = self.user['chkfunval']
            if not is_logical_scalar(value):
                self.warn(
                    "InvalidChkfunval",
                    "invalid chkfunval flag; it should be true(1) or false(0); "
                    "it is set to false.",
                )
            elif bool(value) and not debug:
                self.warn(
                    "InvalidChkfunval",
                    "chkfunval=true but debug=false; chkfunval is set to false; "
                    "set both flags to true to check function values.",
                )
            else:
                return bool(value)
        return False

    def will_scale(self) -> bool:
        value = self.user.get('scale')
        if is_logical_scalar(value):
            return bool(value)
        return False

    def half_width(self) -> float:
        if self.lb.size == 0:
            return np.inf
        return float(np.min(self.ub - self.lb) / 2)


def resolve_options(
    invoker: Invoker,
    options: Any,
    n: int,
    lb: np.ndarray,
    ub: np.ndarray,
    log: DiagnosticLog,
) -> Options:
    """
    Validate user options and fill in defaults.

    Args:
        invoker: Validated invoker
        options: None, a mapping of option names, or an Options instance
        n: Dimension of the (reduced) problem
        lb, ub: Bounds of the (reduced) problem; used for the bobyqa rhobeg limit
        log: Diagnostic log receiving every correction

    Returns:
        Fully resolved Options

    Raises:
        InvalidOptions: if options is not None, a mapping or an Options
    """
    user = _as_field_mapping(options, invoker.value)
    resolver = _Resolver(invoker, user, n, np.asarray(lb, dtype=np.float64),
                         np.asarray(ub, dtype=np.float64), log)

    solver = resolver.resolve_solver()
    resolver.check_unknown_fields(solver)

    maxfun_default = DEFAULT_MAXFUN_PER_VARIABLE * n
    rhobeg_default = DEFAULT_RHOBEG
    rhoend_default = DEFAULT_RHOEND
    if solver is not None and SOLVERS[solver].bound_limited_rhobeg:
        rhobeg_limited = min(rhobeg_default, resolver.half_width())
        if not resolver.will_scale():
            # the scaled problem keeps the generic defaults
            rhoend_default = (rhoend_default / rhobeg_default) * rhobeg_limited
        rhobeg_default = rhobeg_limited

    npt = resolver.resolve_npt(solver, default_npt(solver, n))
    maxfun = resolver.resolve_maxfun(solver, npt, maxfun_default)
    rhobeg = resolver.resolve_rhobeg(solver, rhobeg_default)
    rhoend = resolver.resolve_rhoend(rhobeg, rhobeg_default, rhoend_default)
    ftarget = resolver.resolve_ftarget()

    classical = resolver.resolve_flag('classical', "InvalidClassicalFlag", False)
    if classical:
        resolver.warn(
            "Classical",
            "in classical mode, which is recommended only for research purpose; "
            "set options.classical=false to disable classical mode.",
        )
    scale = resolver.resolve_flag('scale', "InvalidScaleFlag", False)
    quiet = resolver.resolve_flag('quiet', "InvalidQuietFlag", True)
    debug = resolver.resolve_flag('debug', "InvalidDebugflag", False)
    if debug:
        resolver.warn("Debug", "in debug mode; set options.debug=false to disable debug.")

    chkfunval = resolver.resolve_chkfunval(debug)
    if chkfunval:
        if solver is Solver.COBYLA:
            what = "fx=fun(x) and conval=con(x) at exit, which costs an extra function/constraint evaluation"
        else:
            what = "fx=fun(x) at exit, which costs an extra function evaluation"
        resolver.warn(
            "Chkfunval",
            f"checking whether {what}; set options.chkfunval=false to disable the check.",
        )

    return Options(
        npt=npt,
        maxfun=maxfun,
        rhobeg=rhobeg,
        rhoend=rhoend,
        ftarget=ftarget,
        classical=classical,
        scale=scale,
        quiet=quiet,
        debug=debug,
        chkfunval=chkfunval,
        solver=solver,
    )
