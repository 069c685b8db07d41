"""
Core Module - Foundational Components

Provides:
- Canonical JSON serialization
- Ordered diagnostics log
- ProblemInfo (transformation record and inverse map)
"""

from .canonical_json import canonical_dumps, canonical_hash, to_jsonable
from .diagnostics import Diagnostic, DiagnosticLog
from .problem_info import ProblemInfo

__all__ = [
    'canonical_dumps',
    'canonical_hash',
    'to_jsonable',
    'Diagnostic',
    'DiagnosticLog',
    'ProblemInfo',
]
