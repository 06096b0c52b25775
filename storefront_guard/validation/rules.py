"""Declarative rule combinator for entity validation.

A ``Rule`` is a named predicate over a field accessor plus the message it
emits on failure.  A ``RuleSet`` is the ordered, immutable tuple of rules
for one entity kind.  ``RuleSet.validate()`` runs every rule (no
short-circuit) and collects the messages in declaration order.

Rules name fields in snake_case.  On a mapping the accessor falls back to
the camelCase wire alias (``first_name`` -> ``firstName``); on any other
object it reads the attribute.

Only ``required*`` rules report a missing value; format, length, enum,
date and numeric rules pass when the field is absent or blank.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict

_logger = logging.getLogger("storefront_guard.validation")

Check = Callable[[Any, datetime], bool]


class ValidationResult(BaseModel):
    """Outcome of validating one entity.  Immutable once returned."""

    model_config = ConfigDict(frozen=True)

    is_valid: bool
    errors: tuple[str, ...] = ()

    @classmethod
    def from_errors(cls, errors: Iterable[str]) -> ValidationResult:
        collected = tuple(errors)
        return cls(is_valid=not collected, errors=collected)


@dataclass(frozen=True)
class Rule:
    """One named check.  ``check(entity, now)`` returns ``True`` on pass."""

    field: str
    message: str
    check: Check

    def passes(self, entity: Any, now: datetime) -> bool:
        return self.check(entity, now)


# ── Field access ────────────────────────────────────────────────────────


def camel_case(name: str) -> str:
    """``socio_professional_category_id`` -> ``socioProfessionalCategoryId``."""
    head, *tail = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in tail)


def field_value(entity: Any, field: str) -> Any:
    """Read *field* from a mapping (snake_case, then camelCase) or an object."""
    if isinstance(entity, Mapping):
        if field in entity:
            return entity[field]
        return entity.get(camel_case(field))
    return getattr(entity, field, None)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _as_number(value: Any) -> Decimal | None:
    """Coerce numeric input; ``None`` for non-numeric.

    Booleans, NaN and infinities are rejected.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = Decimal(str(value))
    elif isinstance(value, str):
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        return None
    return number if number.is_finite() else None


def parse_moment(value: Any) -> datetime:
    """Coerce a date, datetime or ISO-8601 string to an aware datetime.

    Naive values are taken as UTC.  Raises ``ValueError`` when *value*
    cannot be read as a moment.
    """
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime.combine(value, time.min)
    elif isinstance(value, str):
        moment = datetime.fromisoformat(value.strip())
    else:
        raise ValueError(f"not a date: {type(value).__name__}")
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment


# ── Rule factories ──────────────────────────────────────────────────────


def required(field: str, label: str, message: str | None = None) -> Rule:
    """Non-empty value; strings must be non-blank after trimming."""

    def check(entity: Any, now: datetime) -> bool:
        return not _is_blank(field_value(entity, field))

    return Rule(field, message or f"{label} is required", check)


def _is_positive_id(value: Any) -> bool:
    """Positive integral number or digit string; booleans are rejected."""
    if isinstance(value, str):
        value = value.strip()
        return value.isascii() and value.isdigit() and int(value) > 0
    number = _as_number(value)
    return number is not None and number > 0 and number == number.to_integral_value()


def required_id(field: str, label: str) -> Rule:
    """Reference to another record: a positive integer, possibly sent as a string."""

    def check(entity: Any, now: datetime) -> bool:
        return _is_positive_id(field_value(entity, field))

    return Rule(field, f"{label} is required", check)


def positive_id(field: str, label: str) -> Rule:
    """Like ``required_id`` with the order-service wording."""

    def check(entity: Any, now: datetime) -> bool:
        return _is_positive_id(field_value(entity, field))

    return Rule(field, f"{label} is required and must be positive", check)


def max_length(field: str, label: str, limit: int) -> Rule:

    def check(entity: Any, now: datetime) -> bool:
        value = field_value(entity, field)
        return not isinstance(value, str) or len(value) <= limit

    return Rule(field, f"{label} must be {limit} characters or less", check)


def matches(
    field: str,
    label: str,
    pattern: str,
    message: str | None = None,
    *,
    strip_whitespace: bool = False,
) -> Rule:
    """Present value must fully match *pattern*.

    ``strip_whitespace`` removes every whitespace character before matching
    (registration numbers are often typed in groups).
    """
    compiled = re.compile(pattern)

    def check(entity: Any, now: datetime) -> bool:
        value = field_value(entity, field)
        if _is_blank(value):
            return True
        text = value if isinstance(value, str) else str(value)
        if strip_whitespace:
            text = re.sub(r"\s", "", text)
        return compiled.fullmatch(text) is not None

    return Rule(field, message or f"{label} format is invalid", check)


def one_of(
    field: str,
    label: str,
    choices: Iterable[str],
    message: str | None = None,
    *,
    required: bool = False,
) -> Rule:
    """Value must belong to *choices*; absence fails only when *required*."""
    allowed = tuple(choices)

    def check(entity: Any, now: datetime) -> bool:
        value = field_value(entity, field)
        if _is_blank(value):
            return not required
        return value in allowed

    return Rule(field, message or f"{label} must be one of: {', '.join(allowed)}", check)


def is_date(field: str, label: str) -> Rule:

    def check(entity: Any, now: datetime) -> bool:
        value = field_value(entity, field)
        if _is_blank(value):
            return True
        try:
            parse_moment(value)
        except ValueError:
            return False
        return True

    return Rule(field, f"{label} format is invalid", check)


def not_in_future(field: str, label: str) -> Rule:
    """Readable date must not be later than the validation time.

    Unreadable dates pass here; pair with ``is_date`` to report them.
    """

    def check(entity: Any, now: datetime) -> bool:
        value = field_value(entity, field)
        if _is_blank(value):
            return True
        try:
            return parse_moment(value) <= now
        except ValueError:
            return True

    return Rule(field, f"{label} cannot be in the future", check)


def _numeric_rule(field: str, message: str, accept: Callable[[Decimal], bool]) -> Rule:

    def check(entity: Any, now: datetime) -> bool:
        value = field_value(entity, field)
        if value is None:
            return True
        number = _as_number(value)
        return number is not None and accept(number)

    return Rule(field, message, check)


def positive(field: str, message: str) -> Rule:
    return _numeric_rule(field, message, lambda n: n > 0)


def non_negative(field: str, message: str) -> Rule:
    return _numeric_rule(field, message, lambda n: n >= 0)


def between(field: str, low: int | float, high: int | float, message: str) -> Rule:
    """Inclusive numeric range."""
    lower, upper = Decimal(str(low)), Decimal(str(high))
    return _numeric_rule(field, message, lambda n: lower <= n <= upper)


def not_less_than(field: str, other: str, message: str) -> Rule:
    """Cross-field comparison: ``field >= other`` when both are numeric."""

    def check(entity: Any, now: datetime) -> bool:
        left = _as_number(field_value(entity, field))
        right = _as_number(field_value(entity, other))
        if left is None or right is None:
            return True
        return left >= right

    return Rule(field, message, check)


# ── RuleSet ─────────────────────────────────────────────────────────────

_NON_ENTITY_TYPES = (str, bytes, int, float, Decimal, list, tuple, set, frozenset)


@dataclass(frozen=True)
class RuleSet:
    """Ordered rules for one entity kind.

    Built once at import time and shared read-only by every caller.
    """

    kind: str
    rules: tuple[Rule, ...]

    def validate(self, entity: Any, *, now: datetime | None = None) -> ValidationResult:
        """Run every rule against *entity* and collect failure messages.

        *now* defaults to the current UTC time, taken once per call.
        Raises ``TypeError`` when *entity* is not a mapping or object.
        """
        if entity is None or isinstance(entity, _NON_ENTITY_TYPES):
            raise TypeError(
                f"{self.kind} must be a mapping or object, got {type(entity).__name__}"
            )
        if now is None:
            now = datetime.now(UTC)
        elif now.tzinfo is None:
            now = now.replace(tzinfo=UTC)

        result = ValidationResult.from_errors(
            rule.message for rule in self.rules if not rule.passes(entity, now)
        )
        if not result.is_valid:
            _logger.debug(
                "event=validation_failed kind=%s violations=%d", self.kind, len(result.errors)
            )
        return result

    @property
    def fields(self) -> tuple[str, ...]:
        """Field names in declaration order, without duplicates."""
        return tuple(dict.fromkeys(rule.field for rule in self.rules))
