"""
Output Processing Module

Recovers structured data from free-form completion text.

Components:
- find_json_object: First balanced JSON object in a response
- extract_structured: JSON with required keys, or a caller fallback
- StructuredResult: Tagged success/fallback outcome
"""

from .parser import (
    StructuredResult,
    extract_structured,
    find_json_object,
    iter_json_spans,
)

__all__ = [
    "StructuredResult",
    "extract_structured",
    "find_json_object",
    "iter_json_spans",
]
