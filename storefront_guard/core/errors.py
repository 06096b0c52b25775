"""Structured error responses for the payload guard.

Custom exception hierarchy shared by the sanitizer, the entity validators
and the HTTP adapter.  Validation failures are normally returned as a
``ValidationResult``; ``EntityValidationError`` only exists for route
handlers that prefer to raise and let the app map it to a 400.
"""

from pydantic import BaseModel, Field


class StorefrontGuardError(Exception):
    """Base exception for all storefront-guard errors."""


class SanitizationError(StorefrontGuardError):
    """Raised when a payload cannot be walked by the sanitizer.

    Covers structurally invalid invocations: a request body that is not a
    mapping or sequence, or values outside the JSON variant.
    """

    def __init__(self, detail: str, path: str = "") -> None:
        self.detail = detail
        self.path = path
        msg = f"Sanitization failed: {detail}"
        if path:
            msg += f" at '{path}'"
        super().__init__(msg)


class UnknownEntityKindError(StorefrontGuardError):
    """Raised when no rule set is registered for an entity kind."""

    def __init__(self, entity_kind: str) -> None:
        self.entity_kind = entity_kind
        super().__init__(f"Unknown entity kind: '{entity_kind}'")


class EntityValidationError(StorefrontGuardError):
    """Raised by ``ensure_valid`` when an entity breaks one or more rules.

    Carries every collected message so the caller can report all of them in
    a single response.
    """

    def __init__(self, entity_kind: str, errors: list[str] | tuple[str, ...]) -> None:
        self.entity_kind = entity_kind
        self.errors = tuple(errors)
        super().__init__(f"Invalid {entity_kind}: " + "; ".join(self.errors))


_STATUS_CODES: dict[str, int] = {
    "VALIDATION_FAILED": 400,
    "SANITIZATION_FAILED": 400,
    "UNKNOWN_ENTITY_KIND": 404,
    "GUARD_ERROR": 500,
    "INTERNAL_ERROR": 500,
}


class StructuredErrorResponse(BaseModel):
    """Structured error response.

    Returns ``{"error", "code", "request_id", "errors"}`` with no stack traces.
    ``errors`` lists every violated rule for validation failures and is
    empty otherwise.
    """

    error: str
    code: str
    request_id: str
    errors: list[str] = Field(default_factory=list)

    @classmethod
    def from_exception(cls, exc: Exception, request_id: str) -> "StructuredErrorResponse":
        """Create from an exception, mapping to machine-readable codes.

        Never leaks internal details for unhandled exceptions.
        """
        if isinstance(exc, EntityValidationError):
            return cls(
                error=f"Invalid {exc.entity_kind}",
                code="VALIDATION_FAILED",
                request_id=request_id,
                errors=list(exc.errors),
            )
        if isinstance(exc, SanitizationError):
            return cls(
                error=str(exc),
                code="SANITIZATION_FAILED",
                request_id=request_id,
            )
        if isinstance(exc, UnknownEntityKindError):
            return cls(
                error=str(exc),
                code="UNKNOWN_ENTITY_KIND",
                request_id=request_id,
            )
        if isinstance(exc, StorefrontGuardError):
            return cls(
                error=str(exc),
                code="GUARD_ERROR",
                request_id=request_id,
            )
        # Unhandled: never expose internal details
        return cls(
            error="An internal error occurred",
            code="INTERNAL_ERROR",
            request_id=request_id,
        )

    @property
    def status_code(self) -> int:
        """HTTP status matching ``code``; unknown codes map to 500."""
        return _STATUS_CODES.get(self.code, 500)
