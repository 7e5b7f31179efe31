"""
Structured Response Parser

Recovers a JSON object from free-form model output.

Completion providers are asked for JSON but routinely wrap it in prose or
markdown fences, truncate it, or ignore the instruction entirely. The
parser:
- scans for balanced ``{...}`` spans (string and escape aware)
- parses the first span that is valid JSON
- checks required keys and, optionally, a pydantic schema
- otherwise returns a deep copy of the caller's fallback

It never raises. The result is tagged so callers can tell a real answer
from a fallback.
"""

import copy
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Type, Union

from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError

logger = logging.getLogger(__name__)

Fallback = Union[Dict[str, Any], Callable[[], Dict[str, Any]], None]

# Unclosed opening braces retried before the scan gives up
MAX_UNBALANCED_STARTS = 20


@dataclass
class StructuredResult:
    """Outcome of extracting structured data from model text."""
    success: bool
    data: Dict[str, Any]
    parse_method: str  # "json" or "fallback"
    errors: List[str] = field(default_factory=list)

    @property
    def used_fallback(self) -> bool:
        return self.parse_method == "fallback"


# =========================================================================
# JSON SPAN SCANNING
# =========================================================================

def iter_json_spans(text: str) -> Iterator[str]:
    """
    Yield balanced top-level ``{...}`` spans in order of their opening brace.

    Braces inside JSON string literals are ignored, as are escaped quotes.
    Scanning resumes after the end of each yielded span, so objects nested
    in an earlier span are never yielded on their own. An opening brace
    that never closes is retried from the next brace, at most
    MAX_UNBALANCED_STARTS times, which keeps the scan linear.
    """
    if not text:
        return
    unbalanced = 0
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        end = -1
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    end = index
                    break
        if end != -1:
            yield text[start:end + 1]
            start = text.find("{", end + 1)
            continue

        unbalanced += 1
        if unbalanced >= MAX_UNBALANCED_STARTS:
            logger.debug(f"Stopped JSON scan after {unbalanced} unbalanced braces")
            return
        start = text.find("{", start + 1)


def find_json_object(text: str) -> Optional[Dict[str, Any]]:
    """
    Return the first top-level balanced span that parses as a JSON object.

    A span that is not valid JSON (prose such as "{placeholder}") is
    skipped in favour of the next top-level span.

    Args:
        text: Raw model output

    Returns:
        Parsed dict, or None when no span parses
    """
    for span in iter_json_spans(text):
        try:
            parsed = json.loads(span)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


# =========================================================================
# EXTRACTION WITH FALLBACK
# =========================================================================

def _resolve_fallback(fallback: Fallback) -> Dict[str, Any]:
    if fallback is None:
        return {}
    if callable(fallback):
        return fallback()
    return copy.deepcopy(fallback)


def extract_structured(
    text: Optional[str],
    required_keys: Sequence[str] = (),
    fallback: Fallback = None,
    schema: Optional[Type[BaseModel]] = None,
) -> StructuredResult:
    """
    Extract a JSON object from model text, or fall back.

    Args:
        text: Raw completion text
        required_keys: Keys that must be present in the parsed object
        fallback: Dict (deep-copied) or zero-argument factory used on failure
        schema: Optional pydantic model the object must validate against

    Returns:
        StructuredResult tagged "json" on success, "fallback" otherwise
    """
    errors: List[str] = []

    data = find_json_object(text or "")
    if data is None:
        errors.append("No JSON object found in response")
    else:
        missing = [key for key in required_keys if key not in data]
        if missing:
            errors.append(f"Missing required keys: {', '.join(missing)}")
        elif schema is not None:
            try:
                data = schema.model_validate(data).model_dump()
            except SchemaValidationError as e:
                errors.append(f"Schema validation failed: {e.error_count()} errors")

        if not errors:
            return StructuredResult(success=True, data=data, parse_method="json")

    logger.debug(f"Structured extraction fell back: {'; '.join(errors)}")
    return StructuredResult(
        success=False,
        data=_resolve_fallback(fallback),
        parse_method="fallback",
        errors=errors,
    )
