"""Per-entity rule sets and the read-only registry.

Length limits mirror the platform's SQL column sizes.  Rule order is the
order messages are reported in.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from types import MappingProxyType
from typing import Any

from storefront_guard.core.errors import EntityValidationError, UnknownEntityKindError
from storefront_guard.validation.rules import (
    RuleSet,
    ValidationResult,
    between,
    is_date,
    matches,
    max_length,
    non_negative,
    not_in_future,
    not_less_than,
    one_of,
    positive,
    positive_id,
    required,
    required_id,
)

EMAIL_PATTERN = r"[^\s@]+@[^\s@]+\.[^\s@]+"
PHONE_PATTERN = r"[\d\s\-+()]+"
POSTAL_CODE_PATTERN = r"[\w\s-]+"
SIRET_PATTERN = r"\d{14}"
VAT_PATTERN = r"[A-Z]{2}[A-Z0-9]{2,12}"
PAGE_SLUG_PATTERN = r"[a-z0-9-]+"

ADDRESS_TYPES: tuple[str, ...] = ("shipping", "billing")
IMAGE_VARIANT_TYPES: tuple[str, ...] = ("thumbnail", "small", "medium", "large", "original")

# ── Customer service ────────────────────────────────────────────────────

# Birthday must parse as a date before the future check; an unreadable value
# is reported as "Birthday format is invalid" rather than ignored.
CUSTOMER = RuleSet(
    "customer",
    (
        required("first_name", "First name"),
        max_length("first_name", "First name", 100),
        required("last_name", "Last name"),
        max_length("last_name", "Last name", 100),
        required("email", "Email"),
        matches("email", "Email", EMAIL_PATTERN),
        max_length("email", "Email", 255),
        required_id("civility_id", "Civility ID"),
        required_id("socio_professional_category_id", "Socio-professional category ID"),
        matches("phone_number", "Phone number", PHONE_PATTERN),
        max_length("phone_number", "Phone number", 20),
        is_date("birthday", "Birthday"),
        not_in_future("birthday", "Birthday"),
    ),
)

CUSTOMER_ADDRESS = RuleSet(
    "customer_address",
    (
        required_id("customer_id", "Customer ID"),
        one_of(
            "address_type",
            "Address type",
            ADDRESS_TYPES,
            'Address type must be either "shipping" or "billing"',
            required=True,
        ),
        required("address", "Address"),
        required("postal_code", "Postal code"),
        max_length("postal_code", "Postal code", 10),
        required("city", "City"),
        max_length("city", "City", 100),
        required_id("country_id", "Country ID"),
        matches("postal_code", "Postal code", POSTAL_CODE_PATTERN),
    ),
)

CUSTOMER_COMPANY = RuleSet(
    "customer_company",
    (
        required_id("customer_id", "Customer ID"),
        required("company_name", "Company name"),
        max_length("company_name", "Company name", 255),
        matches(
            "siret_number",
            "SIRET number",
            SIRET_PATTERN,
            "SIRET number must be 14 digits",
            strip_whitespace=True,
        ),
        matches(
            "vat_number",
            "VAT number",
            VAT_PATTERN,
            "VAT number format is invalid (e.g., FR12345678901)",
            strip_whitespace=True,
        ),
    ),
)

# Reference data

COUNTRY = RuleSet(
    "country",
    (
        required("country_name", "Country name"),
        max_length("country_name", "Country name", 100),
    ),
)

CIVILITY = RuleSet(
    "civility",
    (
        required("abbreviation", "Abbreviation"),
        max_length("abbreviation", "Abbreviation", 10),
    ),
)

SOCIO_PROFESSIONAL_CATEGORY = RuleSet(
    "socio_professional_category",
    (
        required("category_name", "Category name"),
        max_length("category_name", "Category name", 100),
    ),
)

# ── Product service ─────────────────────────────────────────────────────

PRODUCT_IMAGE_VARIANT = RuleSet(
    "product_image_variant",
    (
        required_id("image_id", "Image ID"),
        required("variant_type", "Variant type"),
        required("file_path", "File path"),
        non_negative("width", "Width must be positive"),
        non_negative("height", "Height must be positive"),
        non_negative("file_size", "File size must be positive"),
        between("quality", 1, 100, "Quality must be between 1 and 100"),
        one_of("variant_type", "Variant type", IMAGE_VARIANT_TYPES),
    ),
)

# ── Website content service ─────────────────────────────────────────────

WEBSITE_PAGE = RuleSet(
    "website_page",
    (
        required("page_slug", "Page slug"),
        max_length("page_slug", "Page slug", 100),
        required("page_title", "Page title"),
        max_length("page_title", "Page title", 255),
        required("markdown_content", "Markdown content"),
        matches(
            "page_slug",
            "Page slug",
            PAGE_SLUG_PATTERN,
            "Page slug must contain only lowercase letters, numbers, and hyphens",
        ),
    ),
)

# ── Order service ───────────────────────────────────────────────────────

ORDER_ITEM = RuleSet(
    "order_item",
    (
        positive_id("order_id", "Order ID"),
        positive_id("product_id", "Product ID"),
        required("product_name", "Product name", "Product name is required and cannot be empty"),
        positive("quantity", "Quantity must be positive"),
        non_negative("unit_price_ht", "Unit price HT must be non-negative"),
        non_negative("unit_price_ttc", "Unit price TTC must be non-negative"),
        not_less_than(
            "unit_price_ttc",
            "unit_price_ht",
            "Unit price TTC must be greater than or equal to unit price HT",
        ),
    ),
)

CREDIT_NOTE = RuleSet(
    "credit_note",
    (
        positive_id("customer_id", "Customer ID"),
        positive_id("order_id", "Order ID"),
        non_negative("total_amount_ht", "Total amount HT must be non-negative"),
        non_negative("total_amount_ttc", "Total amount TTC must be non-negative"),
        not_less_than(
            "total_amount_ttc",
            "total_amount_ht",
            "Total amount TTC must be greater than or equal to total amount HT",
        ),
        required("reason", "Reason"),
        required("payment_method", "Payment method"),
    ),
)

CREDIT_NOTE_ITEM = RuleSet(
    "credit_note_item",
    (
        positive_id("credit_note_id", "Credit note ID"),
        positive_id("product_id", "Product ID"),
        positive("quantity", "Quantity must be positive"),
        non_negative("unit_price_ht", "Unit price HT must be non-negative"),
        non_negative("unit_price_ttc", "Unit price TTC must be non-negative"),
        not_less_than(
            "unit_price_ttc",
            "unit_price_ht",
            "Unit price TTC must be greater than or equal to unit price HT",
        ),
        between("vat_rate", 0, 100, "VAT rate must be between 0 and 100"),
    ),
)

# ── Registry ────────────────────────────────────────────────────────────

ENTITY_RULES: Mapping[str, RuleSet] = MappingProxyType(
    {
        rule_set.kind: rule_set
        for rule_set in (
            CUSTOMER,
            CUSTOMER_ADDRESS,
            CUSTOMER_COMPANY,
            COUNTRY,
            CIVILITY,
            SOCIO_PROFESSIONAL_CATEGORY,
            PRODUCT_IMAGE_VARIANT,
            WEBSITE_PAGE,
            ORDER_ITEM,
            CREDIT_NOTE,
            CREDIT_NOTE_ITEM,
        )
    }
)


def get_rule_set(kind: str) -> RuleSet:
    """Return the rule set for *kind* or raise ``UnknownEntityKindError``."""
    try:
        return ENTITY_RULES[kind]
    except KeyError:
        raise UnknownEntityKindError(kind) from None


def validate_entity(kind: str, entity: Any, *, now: datetime | None = None) -> ValidationResult:
    """Validate *entity* against the rule set registered for *kind*."""
    return get_rule_set(kind).validate(entity, now=now)


def ensure_valid(kind: str, entity: Any, *, now: datetime | None = None) -> None:
    """Raise ``EntityValidationError`` listing every violation, if any."""
    result = validate_entity(kind, entity, now=now)
    if not result.is_valid:
        raise EntityValidationError(kind, result.errors)
