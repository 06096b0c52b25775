"""Input normalization for DTO string fields.

Provides ``normalize_string()`` for null-byte stripping and Unicode NFC
normalization, its DTO-validator form ``normalize_text()``, ``clean_text()``
which normalizes then HTML-sanitizes, and ``format_validation_errors()``
for structured 422 output.
"""

from __future__ import annotations

import unicodedata
from typing import Any

from storefront_guard.security.html_sanitizer import sanitize

_REQUEST_LOCATIONS = frozenset({"body", "query", "path"})


def normalize_string(value: str) -> str:
    """Strip null bytes and normalize to Unicode NFC."""
    value = value.replace("\x00", "")
    value = unicodedata.normalize("NFC", value)
    return value


def normalize_text(value: Any) -> Any:
    """``normalize_string`` for DTO validators; non-strings pass through."""
    if not isinstance(value, str):
        return value
    return normalize_string(value)


def clean_text(value: Any, allow_html: bool = False) -> Any:
    """Normalize then sanitize a user-content string.

    Applied as a Pydantic ``field_validator`` (mode ``before``) on DTO
    fields that keep markup.  Non-string values are returned unchanged so
    the field's own type validation reports them.
    """
    if not isinstance(value, str):
        return value
    return sanitize(normalize_string(value), allow_html)


def format_validation_errors(exc: Any) -> list[dict[str, str]]:
    """Convert a Pydantic ``ValidationError`` into a structured list.

    Returns a list of ``{"field": ..., "message": ...}`` dicts suitable for
    a 422 JSON response.  The ``body``/``query`` prefix FastAPI adds to
    request locations is dropped.  Never includes stack traces.
    """
    errors: list[dict[str, str]] = []
    for err in exc.errors():
        loc = tuple(err.get("loc", ()))
        if loc and loc[0] in _REQUEST_LOCATIONS:
            loc = loc[1:]
        field = ".".join(str(part) for part in loc) if loc else "unknown"
        errors.append({
            "field": field,
            "message": err.get("msg", "Validation error"),
        })
    return errors
