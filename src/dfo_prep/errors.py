"""
Errors and Warnings

Two kinds of failure:
- InvalidInputError: the caller supplied something unusable (fix the input, retry)
- UnexpectedError: an internal invariant broke (a defect, never user error)

Recoverable anomalies are not errors. They are corrected in place and issued
as PreprocessingWarning / RecoverableOptionWarning.
"""

from typing import Optional


class PreprocessingError(Exception):
    """Base class for all preprocessing failures."""

    kind = "PreprocessingError"

    def __init__(self, message: str, invoker: Optional[str] = None):
        super().__init__(message)
        self.invoker = invoker

    @property
    def identifier(self) -> str:
        prefix = self.invoker if self.invoker else "dfo_prep"
        return f"{prefix}:{self.kind}"


class InvalidInputError(PreprocessingError, ValueError):
    """User-facing validation error."""

    kind = "InvalidInput"

    def __init__(self, message: str, invoker: Optional[str] = None):
        if invoker:
            message = f"{invoker}: {message}"
        super().__init__(message, invoker)


class InvalidObjective(InvalidInputError):
    kind = "InvalidFun"


class InvalidObjectiveShape(InvalidObjective):
    """Objective returned something other than a single numeric value."""
    kind = "ObjectiveNotScalar"


class InvalidX0(InvalidInputError):
    kind = "InvalidX0"


class InvalidLinearConstraint(InvalidInputError):
    kind = "InvalidLinCon"


class InvalidBound(InvalidInputError):
    kind = "InvalidBound"


class InvalidNonlinearConstraint(InvalidInputError):
    kind = "InvalidCon"


class ConstraintNotNumeric(InvalidNonlinearConstraint):
    """Constraint function returned non-numeric output."""
    kind = "ConstrNotNumeric"


class InvalidOptions(InvalidInputError):
    kind = "InvalidOptions"


class InvalidProblemType(InvalidInputError):
    kind = "InvalidProb"


class InvalidProblem(InvalidInputError):
    """The problem mapping itself is malformed (not a mapping, missing x0)."""
    kind = "InvalidProb"


class UnexpectedError(PreprocessingError, RuntimeError):
    """Internal invariant violation. Always a defect."""

    kind = "Unexpected"

    def __init__(self, where: str, message: str, kind: Optional[str] = None):
        super().__init__(f"{where}: UNEXPECTED ERROR: {message}", where)
        if kind is not None:
            self.kind = kind


class PreprocessingWarning(UserWarning):
    """A non-fatal anomaly that was recorded and worked around."""


class RecoverableOptionWarning(PreprocessingWarning):
    """An option (or solver choice) was invalid and has been corrected."""
