"""
Scalar/Vector/Matrix Validators

Typed predicates shared by every preprocessing stage.

Conventions:
- None and empty arrays are valid empty vectors/matrices, never scalars
- Booleans are not numeric (except for is_logical_scalar)
- Complex input is rejected everywhere
- A 1-D array passed as a matrix is read as a single row
"""

import numbers
from typing import Any, Tuple

import numpy as np

EPS = float(np.finfo(np.float64).eps)

_REAL_KINDS = ("i", "u", "f")


def _as_array(x: Any) -> Any:
    """Convert to ndarray, returning None when conversion is impossible."""
    if isinstance(x, np.ndarray):
        return x
    try:
        return np.asarray(x)
    except (TypeError, ValueError):
        return None


def is_empty(x: Any) -> bool:
    """True for None and for zero-size array-likes."""
    if x is None:
        return True
    if isinstance(x, (str, bytes)):
        return len(x) == 0
    arr = _as_array(x)
    return arr is not None and arr.dtype != object and arr.size == 0


def _is_real_array(arr: Any) -> bool:
    return arr is not None and arr.dtype.kind in _REAL_KINDS


def is_real_scalar(x: Any) -> bool:
    """A single real number (NaN and inf included). None is not a scalar."""
    if isinstance(x, (bool, np.bool_)):
        return False
    if isinstance(x, numbers.Real):
        return True
    if isinstance(x, np.ndarray):
        return x.size == 1 and x.ndim <= 2 and _is_real_array(x)
    return False


def is_integer_scalar(x: Any) -> bool:
    """A real scalar with no fractional part (inf and NaN excluded)."""
    if not is_real_scalar(x):
        return False
    value = float(np.asarray(x).reshape(-1)[0])
    return np.isfinite(value) and value.is_integer()


def is_logical_scalar(x: Any) -> bool:
    """A bool, or a real scalar equal to 0 or 1."""
    if isinstance(x, (bool, np.bool_)):
        return True
    if isinstance(x, np.ndarray) and x.size == 1 and x.dtype.kind == "b":
        return True
    if is_real_scalar(x):
        value = float(np.asarray(x).reshape(-1)[0])
        return value == 0 or value == 1
    return False


def is_real_vector(x: Any) -> Tuple[bool, int]:
    """
    Check for a real vector (row, column, 1-D or scalar).

    Returns:
        (ok, length); length is 0 for empty input and -1 when not ok
    """
    if is_empty(x):
        return True, 0
    if isinstance(x, (bool, np.bool_, str, bytes)):
        return False, -1
    arr = _as_array(x)
    if not _is_real_array(arr):
        return False, -1
    if arr.ndim <= 1:
        return True, int(arr.size)
    if arr.ndim == 2 and min(arr.shape) == 1:
        return True, int(arr.size)
    return False, -1


def is_real_column(x: Any) -> Tuple[bool, int]:
    """
    Check for a real column: 1-D, scalar, or shape (m, 1).

    Returns:
        (ok, length)
    """
    if is_empty(x):
        return True, 0
    if isinstance(x, (bool, np.bool_, str, bytes)):
        return False, -1
    arr = _as_array(x)
    if not _is_real_array(arr):
        return False, -1
    if arr.ndim <= 1:
        return True, int(arr.size)
    if arr.ndim == 2 and arr.shape[1] == 1:
        return True, int(arr.shape[0])
    return False, -1


def is_real_matrix(x: Any) -> Tuple[bool, int, int]:
    """
    Check for a real matrix.

    Returns:
        (ok, rows, cols); (True, 0, 0) for empty input
    """
    if is_empty(x):
        return True, 0, 0
    if isinstance(x, (bool, np.bool_, str, bytes)):
        return False, -1, -1
    arr = _as_array(x)
    if not _is_real_array(arr):
        return False, -1, -1
    if arr.ndim == 0:
        return True, 1, 1
    if arr.ndim == 1:
        return True, 1, int(arr.size)
    if arr.ndim == 2:
        return True, int(arr.shape[0]), int(arr.shape[1])
    return False, -1, -1


def as_float_vector(x: Any) -> np.ndarray:
    """Flatten a validated vector into a float64 1-D array."""
    if is_empty(x):
        return np.zeros(0)
    return np.asarray(x, dtype=np.float64).reshape(-1)


def as_float_matrix(x: Any) -> np.ndarray:
    """Convert a validated matrix into a float64 2-D array ((0, 0) if empty)."""
    if is_empty(x):
        return np.zeros((0, 0))
    arr = np.asarray(x, dtype=np.float64)
    if arr.ndim < 2:
        arr = arr.reshape(1, -1)
    return arr
