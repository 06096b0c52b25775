"""HTML escaping and tag stripping for inbound request payloads.

Last line of defence against stored/reflected XSS before user-supplied
strings reach persistence or rendering.  ``escape()`` is the safe default;
``sanitize(..., allow_html=True)`` keeps markup but strips script blocks,
inline event handlers, dangerous URI schemes and ``href``/``src``/``style``
attributes.

The tag stripping is a regex approximation, not an HTML parser.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Union

from storefront_guard.core.errors import SanitizationError

_security_logger = logging.getLogger("storefront_guard.security")

JSONValue = Union[str, int, float, bool, None, list["JSONValue"], dict[str, "JSONValue"]]

# ── Escaping ────────────────────────────────────────────────────────────

_ESCAPE_MAP: dict[str, str] = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
    "/": "&#x2F;",
}

_ESCAPE_PATTERN = re.compile(r"[&<>\"'/]")

# ── Tag stripping (allow_html=True) ─────────────────────────────────────
# Applied in order; each pass sees the output of the previous one.

_SCRIPT_BLOCK = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_QUOTED_HANDLER = re.compile(r"on\w+\s*=\s*[\"'][^\"']*[\"']", re.IGNORECASE)
_BARE_HANDLER = re.compile(r"on\w+\s*=\s*[^\s>]*", re.IGNORECASE)
_JAVASCRIPT_SCHEME = re.compile(r"javascript:", re.IGNORECASE)
_DATA_HTML_SCHEME = re.compile(r"data:text/html", re.IGNORECASE)
_DANGEROUS_ATTRIBUTE = re.compile(r"\s*(on\w+|href|src|style)\s*=\s*[\"'][^\"']*[\"']", re.IGNORECASE)

_STRIP_PASSES: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("script_block", _SCRIPT_BLOCK),
    ("event_handler", _QUOTED_HANDLER),
    ("event_handler", _BARE_HANDLER),
    ("javascript_scheme", _JAVASCRIPT_SCHEME),
    ("data_html_scheme", _DATA_HTML_SCHEME),
    ("dangerous_attribute", _DANGEROUS_ATTRIBUTE),
)

# ── Field Selector ──────────────────────────────────────────────────────

COMMON_SANITIZE_FIELDS: frozenset[str] = frozenset(
    {
        "name",
        "description",
        "notes",
        "reason",
        "comment",
        "message",
        "content",
        "text",
        "title",
        "address",
        "city",
        "firstName",
        "lastName",
        "phoneNumber",
    }
)

_SCALAR_TYPES = (int, float, Decimal)


@dataclass(frozen=True)
class SanitizationPolicy:
    """How a payload is cleaned.

    ``field_allow_list=None`` sanitizes every string field; otherwise only
    the named keys are touched.
    """

    allow_html: bool = False
    field_allow_list: frozenset[str] | None = None

    def __post_init__(self) -> None:
        if self.field_allow_list is not None and not isinstance(self.field_allow_list, frozenset):
            object.__setattr__(self, "field_allow_list", frozenset(self.field_allow_list))


def escape(text: Any) -> str:
    """Replace ``& < > " ' /`` with HTML entities in a single scan.

    ``None`` and non-string input map to ``""``.  Already-escaped text is
    escaped again (``&amp;`` becomes ``&amp;amp;``).
    """
    if not isinstance(text, str) or not text:
        return ""
    return _ESCAPE_PATTERN.sub(lambda m: _ESCAPE_MAP[m.group(0)], text)


def sanitize(text: Any, allow_html: bool = False) -> str:
    """Sanitize a single string.

    Without ``allow_html`` this is ``escape()``.  With it, markup is kept
    but script blocks, ``on*`` handlers, ``javascript:`` and
    ``data:text/html`` schemes and ``href``/``src``/``style`` attributes
    are removed, then the result is trimmed.
    """
    if not isinstance(text, str) or not text:
        return ""

    if not allow_html:
        return escape(text)

    sanitized = text
    removed: list[str] = []
    for label, pattern in _STRIP_PASSES:
        sanitized, count = pattern.subn("", sanitized)
        if count and label not in removed:
            removed.append(label)

    if removed:
        _security_logger.warning(
            "SECURITY event=xss_stripped detail='%s'", ",".join(removed)
        )
    return sanitized.strip()


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _check_scalar(value: Any, path: str) -> None:
    """Reject values that cannot come out of a JSON decoder."""
    if value is None or isinstance(value, _SCALAR_TYPES):
        return
    raise SanitizationError(f"unsupported value type {type(value).__name__}", path)


def _walk(value: Any, allowed: frozenset[str] | None, allow_html: bool, path: str) -> Any:
    if isinstance(value, Mapping):
        result: dict[Any, Any] = {}
        for key, item in value.items():
            child = f"{path}.{key}"
            if isinstance(item, str):
                if allowed is None or key in allowed:
                    item = sanitize(item, allow_html)
            elif isinstance(item, Mapping) or _is_sequence(item):
                item = _walk(item, allowed, allow_html, child)
            else:
                _check_scalar(item, child)
            result[key] = item
        return result

    items: list[Any] = []
    for index, item in enumerate(value):
        child = f"{path}[{index}]"
        # Sequence items carry no field name, so the allow-list does not apply.
        if isinstance(item, str):
            item = sanitize(item, allow_html)
        elif isinstance(item, Mapping) or _is_sequence(item):
            item = _walk(item, allowed, allow_html, child)
        else:
            _check_scalar(item, child)
        items.append(item)
    return tuple(items) if isinstance(value, tuple) else items


def sanitize_deep(
    value: JSONValue,
    field_allow_list: Iterable[str] | None = None,
    allow_html: bool = False,
) -> JSONValue:
    """Return a sanitized copy of a JSON-decoded payload.

    Mappings and sequences are rebuilt; the input is never mutated.  String
    values of a mapping are sanitized when no allow-list is given or their
    key is listed.  Nested containers are always recursed into.  Numbers,
    booleans and ``None`` pass through, as does a top-level scalar.

    Raises ``SanitizationError`` for values outside the JSON variant.
    """
    allowed = frozenset(field_allow_list) if field_allow_list is not None else None
    if isinstance(value, Mapping) or _is_sequence(value):
        return _walk(value, allowed, allow_html, "$")
    if not isinstance(value, str):
        _check_scalar(value, "$")
    return value


def sanitize_with_policy(value: JSONValue, policy: SanitizationPolicy) -> JSONValue:
    """``sanitize_deep()`` driven by a ``SanitizationPolicy``."""
    return sanitize_deep(value, policy.field_allow_list, policy.allow_html)


def sanitize_request_body(body: Any, policy: SanitizationPolicy | None = None) -> Any:
    """Sanitize the common user-content fields of a decoded request body.

    Defaults to escaping ``COMMON_SANITIZE_FIELDS``.  The body must be an
    object or an array; anything else raises ``SanitizationError``.
    """
    if not (isinstance(body, Mapping) or _is_sequence(body)):
        raise SanitizationError(
            f"request body must be an object or array, got {type(body).__name__}"
        )
    if policy is None:
        policy = SanitizationPolicy(field_allow_list=COMMON_SANITIZE_FIELDS)
    return sanitize_with_policy(body, policy)


def sanitize_query_params(
    params: Mapping[str, Any] | Iterable[tuple[str, Any]],
    allow_html: bool = False,
) -> Any:
    """Sanitize every string value of flat query parameters.

    Accepts a mapping (returns a dict) or a sequence of key/value pairs
    (returns a list, keeping order and repeated keys).  Non-string values
    are kept unchanged.
    """
    if isinstance(params, Mapping):
        return dict(sanitize_query_params(params.items(), allow_html))
    return [
        (key, sanitize(value, allow_html) if isinstance(value, str) else value)
        for key, value in params
    ]
