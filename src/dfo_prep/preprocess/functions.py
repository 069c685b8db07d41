"""
Objective, x0 and nonlinear-constraint validation.
"""

from typing import Any, Callable, Optional

import numpy as np

from ..adapters import ConstraintAdapter, ObjectiveAdapter, ZeroObjective
from ..checks import as_float_vector, is_real_vector
from ..core.diagnostics import DiagnosticLog
from ..errors import InvalidNonlinearConstraint, InvalidObjective, InvalidX0


def prepare_objective(fun: Any, invoker: str, log: DiagnosticLog) -> ObjectiveAdapter:
    """
    Wrap the objective in an ObjectiveAdapter.

    A missing objective (None) is replaced by the zero function and reported.

    Raises:
        InvalidObjective: if fun is neither None nor callable
    """
    if fun is None:
        log.add(f"{invoker}:NoObjective", f"{invoker}: there is no objective function.")
        fun = ZeroObjective()
    elif not callable(fun):
        raise InvalidObjective("FUN should be a function handle or a function name.", invoker)
    return ObjectiveAdapter(fun, invoker)


def prepare_x0(x0: Any, invoker: str) -> np.ndarray:
    """
    Validate x0 and return it as a float 1-D array.

    Raises:
        InvalidX0: if x0 is not a non-empty real vector
    """
    ok, length = is_real_vector(x0)
    if not (ok and length > 0):
        raise InvalidX0("X0 should be a real vector/scalar.", invoker)
    return as_float_vector(x0).copy()


def prepare_nonlcon(nonlcon: Any, invoker: str) -> Optional[Callable]:
    """
    Wrap the nonlinear constraint function in a ConstraintAdapter.

    Raises:
        InvalidNonlinearConstraint: if nonlcon is neither None nor callable
    """
    if nonlcon is None:
        return None
    if not callable(nonlcon):
        raise InvalidNonlinearConstraint(
            "nonlcon should be a function handle or a function name.", invoker
        )
    return ConstraintAdapter(nonlcon, invoker)
