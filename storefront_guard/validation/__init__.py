"""Entity validation: declarative rule sets per entity kind.

Validation never raises for bad data: ``validate_entity`` returns a
``ValidationResult`` listing every violated rule.  ``ensure_valid`` is the
raising variant for handlers that map exceptions to 400 responses.
"""

from storefront_guard.validation.entities import (
    ENTITY_RULES,
    ensure_valid,
    get_rule_set,
    validate_entity,
)
from storefront_guard.validation.rules import Rule, RuleSet, ValidationResult

__all__ = [
    "ENTITY_RULES",
    "Rule",
    "RuleSet",
    "ValidationResult",
    "ensure_valid",
    "get_rule_set",
    "validate_entity",
]
