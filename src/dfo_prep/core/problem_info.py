"""
ProblemInfo

The reversible record of everything the pipeline did to a problem:
- degeneracy facts (infeasible rows/bounds, fixed variables)
- dimensions and types before and after reduction
- the reduction and scaling maps, needed to map a solution back
- the ordered diagnostics
- snapshots of the raw input (debug mode only) and of the refined problem

A solver works in the canonical space. restore_x() is the only thing a
caller must apply to its result.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from ..contract import ConstraintFacts, ProblemType
from ..transforms.reduction import VariableReduction
from ..transforms.scaling import AffineScaling
from .canonical_json import canonical_hash
from .diagnostics import Diagnostic


def _snapshot_view(snapshot: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if snapshot is None:
        return None
    view = {}
    for key, value in snapshot.items():
        if hasattr(value, 'to_canonical'):
            view[key] = value.to_canonical()
        elif callable(value):
            view[key] = getattr(value, '__name__', type(value).__name__)
        else:
            view[key] = value
    return view


@dataclass
class ProblemInfo:
    """
    Transformation record produced by the pipeline.

    Attributes:
        invoker: Name of the invoker ("pdfo" or a solver name)
        facts: Constraint facts (None when the pipeline stopped early)
        infeasible: Some constraint row or bound is unsatisfiable
        nofreex: Every variable is fixed by its bounds
        constrv_fixedx: Constraint violation at the fixed point (nofreex only)
        raw_dim, raw_type: Dimension and type before reduction
        refined_dim, refined_type: Dimension and type after reduction
        reduced, reduction: Whether fixed variables were eliminated, and how
        scaled, scaling: Whether the problem was rescaled, and how
        solver: Name of the solver the problem is meant for
        warnings: Ordered diagnostics
        raw_data: Raw inputs (kept only in debug mode)
        refined_data: Canonical problem and resolved options
    """
    invoker: str
    facts: Optional[ConstraintFacts] = None
    infeasible: bool = False
    nofreex: bool = False
    constrv_fixedx: Optional[float] = None
    raw_dim: int = 0
    raw_type: Optional[ProblemType] = None
    refined_dim: int = 0
    refined_type: Optional[ProblemType] = None
    reduced: bool = False
    reduction: Optional[VariableReduction] = None
    scaled: bool = False
    scaling: Optional[AffineScaling] = None
    solver: Optional[str] = None
    warnings: List[Diagnostic] = field(default_factory=list)
    raw_data: Optional[Dict[str, Any]] = None
    refined_data: Optional[Dict[str, Any]] = None

    @property
    def scaling_factor(self) -> Optional[np.ndarray]:
        return None if self.scaling is None else self.scaling.scaling_factor

    @property
    def shift(self) -> Optional[np.ndarray]:
        return None if self.scaling is None else self.scaling.shift

    @property
    def messages(self) -> List[str]:
        return [w.message for w in self.warnings]

    def restore_x(self, x: Any) -> np.ndarray:
        """
        Map a canonical-space point back to the user's variables.

        Undoes scaling first, then reduction. When every variable is fixed
        the answer is the fixed point whatever x is.
        """
        if self.nofreex and self.facts is not None:
            return np.array(self.facts.fixed_value, dtype=np.float64)
        x = np.asarray(x, dtype=np.float64).reshape(-1)
        if self.scaled:
            x = self.scaling.to_original(x)
        if self.reduced:
            x = self.reduction.expand(x)
        return x

    def canonical_point(self, x: Any) -> np.ndarray:
        """Map a point of the user's space into the canonical space."""
        x = np.asarray(x, dtype=np.float64).reshape(-1)
        if self.reduced:
            x = self.reduction.restrict(x)
        if self.scaled:
            x = self.scaling.to_canonical(x)
        return x

    def to_canonical(self) -> Dict[str, Any]:
        return {
            "invoker": self.invoker,
            "facts": None if self.facts is None else self.facts.to_canonical(),
            "infeasible": self.infeasible,
            "nofreex": self.nofreex,
            "constrv_fixedx": self.constrv_fixedx,
            "raw_dim": self.raw_dim,
            "raw_type": self.raw_type,
            "refined_dim": self.refined_dim,
            "refined_type": self.refined_type,
            "reduced": self.reduced,
            "free": None if self.reduction is None else self.reduction.free,
            "scaled": self.scaled,
            "scaling_factor": self.scaling_factor,
            "shift": self.shift,
            "solver": self.solver,
            "warnings": [w.to_canonical() for w in self.warnings],
            "raw_data": _snapshot_view(self.raw_data),
            "refined_data": _snapshot_view(self.refined_data),
        }

    def fingerprint(self) -> str:
        """SHA-256 of the canonical form."""
        return canonical_hash(self.to_canonical())
