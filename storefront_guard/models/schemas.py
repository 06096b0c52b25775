"""Request DTO and response models.

Input schemas for the customer and website-content request bodies with
field-level constraints matching the platform's SQL columns.  Free-text
fields are null-byte stripped and NFC normalized before the constraints
run.  HTML escaping belongs to ``SanitizationMiddleware``, which has
already rewritten the body when a DTO parses it; the length limits apply
to that escaped text.  Markdown page content is the exception: it keeps
markup, so scripts and event handlers are stripped here.

Wire names are camelCase; Python attributes are snake_case.
"""

from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from storefront_guard.security.input_validators import clean_text, normalize_text

EMAIL_REGEX = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"
PHONE_REGEX = r"^[\d\s\-+()]+$"
SLUG_REGEX = r"^[a-z0-9-]+$"


class HealthResponse(BaseModel):
    """Response model for GET /health."""

    service: str
    version: str
    status: str
    uptime_seconds: float


class FieldError(BaseModel):
    field: str
    message: str


class ValidationErrorResponse(BaseModel):
    """422 body for DTO schema failures."""

    error: str = "Request validation failed"
    code: str = "REQUEST_INVALID"
    request_id: str
    fields: list[FieldError]


class _WireModel(BaseModel):
    """Base for request bodies: camelCase on the wire, snake_case in code."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# ── Customer service ────────────────────────────────────────────────────


class CustomerCreateDTO(_WireModel):
    civility_id: int = Field(..., gt=0)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=255, pattern=EMAIL_REGEX)
    socio_professional_category_id: int = Field(..., gt=0)
    phone_number: str | None = Field(default=None, max_length=20, pattern=PHONE_REGEX)
    birthday: date | None = None

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def normalize_names(cls, v: str) -> str:
        return normalize_text(v)


class CustomerUpdateDTO(_WireModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    email: str | None = Field(default=None, max_length=255, pattern=EMAIL_REGEX)
    socio_professional_category_id: int | None = Field(default=None, gt=0)
    phone_number: str | None = Field(default=None, max_length=20, pattern=PHONE_REGEX)
    birthday: date | None = None

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def normalize_names(cls, v: str | None) -> str | None:
        return normalize_text(v)


class AddressCreateDTO(_WireModel):
    address_type: Literal["shipping", "billing"]
    address: str = Field(..., min_length=1)
    postal_code: str = Field(..., min_length=1, max_length=10)
    city: str = Field(..., min_length=1, max_length=100)
    country_name: str | None = Field(default=None, max_length=100)
    is_default: bool = False

    @field_validator("address", "city", "country_name", mode="before")
    @classmethod
    def normalize_free_text(cls, v: str | None) -> str | None:
        return normalize_text(v)


class AddressUpdateDTO(_WireModel):
    address_type: Literal["shipping", "billing"] | None = None
    address: str | None = Field(default=None, min_length=1)
    postal_code: str | None = Field(default=None, min_length=1, max_length=10)
    city: str | None = Field(default=None, min_length=1, max_length=100)
    country_name: str | None = Field(default=None, max_length=100)
    is_default: bool | None = None

    @field_validator("address", "city", "country_name", mode="before")
    @classmethod
    def normalize_free_text(cls, v: str | None) -> str | None:
        return normalize_text(v)


# ── Website content service ─────────────────────────────────────────────


class WebsitePageCreateDTO(_WireModel):
    page_slug: str = Field(..., min_length=1, max_length=100, pattern=SLUG_REGEX)
    page_title: str = Field(..., min_length=1, max_length=255)
    markdown_content: str = Field(..., min_length=1)

    @field_validator("page_title", mode="before")
    @classmethod
    def normalize_title(cls, v: str) -> str:
        return normalize_text(v)

    @field_validator("markdown_content", mode="before")
    @classmethod
    def sanitize_markdown(cls, v: str) -> str:
        """Markdown may carry inline HTML: strip active content, keep markup."""
        return clean_text(v, allow_html=True)
