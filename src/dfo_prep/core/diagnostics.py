"""
Diagnostic Log

Every stage of the pipeline reports recoverable anomalies here instead of
failing. The log is ordered: the sequence of diagnostics is part of the
observable result and is attached to ProblemInfo.warnings.

Each diagnostic is also issued through the warnings module (so callers can
filter or escalate it) and logged at DEBUG.
"""

import sys
import warnings
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Type

from ..errors import PreprocessingWarning
from ..logging import get_logger

logger = get_logger(__name__)


def _outside_package_stacklevel() -> int:
    """stacklevel of the first frame outside dfo_prep, seen from add()."""
    frame = sys._getframe(1)
    level = 1
    while frame is not None and frame.f_globals.get("__name__", "").startswith("dfo_prep"):
        frame = frame.f_back
        level += 1
    return level


@dataclass(frozen=True)
class Diagnostic:
    """A single (warning_id, message) pair, e.g. ("pdfo:InvalidMaxfun", ...)."""
    warning_id: str
    message: str
    sequence: int = 0
    category: Type[Warning] = PreprocessingWarning

    def to_canonical(self) -> Dict[str, Any]:
        return {
            "sequence": self.sequence,
            "warning_id": self.warning_id,
            "message": self.message,
        }


class DiagnosticLog:
    """Append-only, ordered collection of diagnostics for one pipeline call."""

    def __init__(self, emit: bool = True):
        self.entries: List[Diagnostic] = []
        self.emit = emit

    def add(
        self,
        warning_id: str,
        message: str,
        category: Type[Warning] = PreprocessingWarning,
    ) -> Diagnostic:
        """
        Record a diagnostic and issue it as a Python warning.

        Args:
            warning_id: "<invoker>:<Kind>" identifier
            message: Human-readable message
            category: Warning class used when issuing

        Returns:
            The recorded diagnostic
        """
        entry = Diagnostic(
            warning_id=warning_id,
            message=message,
            sequence=len(self.entries),
            category=category,
        )
        self.entries.append(entry)
        logger.debug("%s %s", warning_id, message)
        if self.emit:
            warnings.warn(message, category, stacklevel=_outside_package_stacklevel())
        return entry

    @property
    def messages(self) -> List[str]:
        return [entry.message for entry in self.entries]

    @property
    def ids(self) -> List[str]:
        return [entry.warning_id for entry in self.entries]

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)
