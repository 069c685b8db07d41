"""
Toy Problems

Named numpy objectives and constraint functions, so that a problem can be
written as plain JSON (see the `inspect` command).

Objectives:
- sphere:     f(x) = sum((x_i - c_i)^2)
- rosenbrock: f(x) = sum(100 (x_{i+1} - x_i^2)^2 + (1 - x_i)^2), on x - c
- rastrigin:  f(x) = 10 n + sum((x_i - c_i)^2 - 10 cos(2 pi (x_i - c_i)))

Constraints (x -> (cineq, ceq)):
- unit_ball:   ||x||^2 - 1 <= 0
- unit_sphere: ||x||^2 - 1 == 0
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

import numpy as np


def _centered(x: np.ndarray, center: Optional[np.ndarray]) -> np.ndarray:
    x = np.asarray(x, dtype=np.float64).reshape(-1)
    if center is None:
        return x
    return x - center


def sphere(x: np.ndarray, center: Optional[np.ndarray] = None) -> float:
    z = _centered(x, center)
    return float(np.dot(z, z))


def rosenbrock(x: np.ndarray, center: Optional[np.ndarray] = None) -> float:
    z = _centered(x, center)
    return float(np.sum(100.0 * (z[1:] - z[:-1] ** 2) ** 2 + (1.0 - z[:-1]) ** 2))


def rastrigin(x: np.ndarray, center: Optional[np.ndarray] = None) -> float:
    z = _centered(x, center)
    return float(10.0 * z.size + np.sum(z ** 2 - 10.0 * np.cos(2.0 * np.pi * z)))


def unit_ball(x: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    x = np.asarray(x, dtype=np.float64).reshape(-1)
    return np.array([np.dot(x, x) - 1.0]), np.zeros(0)


def unit_sphere(x: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    x = np.asarray(x, dtype=np.float64).reshape(-1)
    return np.zeros(0), np.array([np.dot(x, x) - 1.0])


OBJECTIVES: Dict[str, Callable[..., float]] = {
    'sphere': sphere,
    'rosenbrock': rosenbrock,
    'rastrigin': rastrigin,
}

CONSTRAINTS: Dict[str, Callable[[np.ndarray], Tuple[np.ndarray, np.ndarray]]] = {
    'unit_ball': unit_ball,
    'unit_sphere': unit_sphere,
}


@dataclass(frozen=True)
class ToyObjective:
    """A named objective, optionally shifted to a center."""
    name: str
    center: Optional[Tuple[float, ...]] = None

    def __call__(self, x: np.ndarray) -> float:
        center = None if self.center is None else np.asarray(self.center, dtype=np.float64)
        return OBJECTIVES[self.name](x, center)


def resolve_objective(spec: Any) -> Optional[ToyObjective]:
    """
    Build an objective from a JSON value.

    Accepts a name ("sphere") or a mapping {"name": ..., "center": [...]}.
    None stays None.

    Raises:
        KeyError: for an unknown name
    """
    if spec is None:
        return None
    if isinstance(spec, str):
        name, center = spec, None
    else:
        name, center = spec['name'], spec.get('center')
    if name not in OBJECTIVES:
        raise KeyError(f"unknown objective '{name}'; available: {', '.join(sorted(OBJECTIVES))}")
    return ToyObjective(name, None if center is None else tuple(float(c) for c in center))


def resolve_constraint(name: Any) -> Optional[Callable]:
    """Look up a named constraint function; None stays None."""
    if name is None:
        return None
    if name not in CONSTRAINTS:
        raise KeyError(f"unknown constraint '{name}'; available: {', '.join(sorted(CONSTRAINTS))}")
    return CONSTRAINTS[name]
