"""
Canonical JSON Serialization

Deterministic JSON (sorted keys, compact separators) for ProblemInfo
snapshots, and SHA-256 fingerprints over it. numpy arrays and scalars,
enums and non-finite floats are all accepted.
"""

import hashlib
import json
import math
from enum import Enum
from typing import Any

import numpy as np


def to_jsonable(obj: Any) -> Any:
    """
    Recursively convert numpy/enum values into plain JSON types.

    Non-finite floats become the strings "inf", "-inf" and "nan" so the
    output is strict JSON.
    """
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, np.ndarray):
        return [to_jsonable(v) for v in obj.tolist()]
    if isinstance(obj, (np.bool_, bool)):
        return bool(obj)
    if isinstance(obj, (np.integer, int)):
        return int(obj)
    if isinstance(obj, (np.floating, float)):
        value = float(obj)
        if math.isnan(value):
            return "nan"
        if math.isinf(value):
            return "inf" if value > 0 else "-inf"
        return value
    if isinstance(obj, dict):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]
    return obj


def canonical_dumps(obj: Any, indent: int = None) -> str:
    """
    Canonical JSON serialization with sorted keys.

    Args:
        obj: Object to serialize
        indent: Indentation level (None for compact)

    Returns:
        Canonical JSON string
    """
    return json.dumps(
        to_jsonable(obj),
        sort_keys=True,
        separators=(',', ':') if indent is None else None,
        indent=indent,
        default=str
    )


def canonical_hash(obj: Any) -> str:
    """SHA-256 hex digest of the canonical JSON of obj."""
    return hashlib.sha256(canonical_dumps(obj).encode()).hexdigest()
