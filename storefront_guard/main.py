"""FastAPI application entrypoint.

Hosts the sanitization middleware, a request-ID middleware, a ``/health``
endpoint, ``POST /validate/{entity_kind}`` for services that delegate
entity validation, and the exception handlers that turn guard errors into
structured JSON responses.
"""

import logging
import time
import uuid
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from storefront_guard.core.config import Settings, build_policy, configure_logging
from storefront_guard.core.errors import StorefrontGuardError, StructuredErrorResponse
from storefront_guard.models.schemas import HealthResponse, ValidationErrorResponse
from storefront_guard.security.input_validators import format_validation_errors
from storefront_guard.security.middleware import SanitizationMiddleware
from storefront_guard.validation import ValidationResult, ensure_valid

logger = logging.getLogger(__name__)

settings = Settings()
configure_logging(settings.LOG_LEVEL)

_start_time = time.monotonic()

app = FastAPI(
    title=settings.SERVICE_NAME,
    version=settings.SERVICE_VERSION,
)


# ── Middleware chain ────────────────────────────────────────────────────
# Order: RequestID → Sanitization → [handler]
# Starlette add_middleware prepends, so LAST added = OUTERMOST.

app.add_middleware(
    SanitizationMiddleware,
    policy=build_policy(settings),
    methods=settings.SANITIZE_METHODS,
    sanitize_query=settings.SANITIZE_QUERY_PARAMS,
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next) -> Response:
    """Assign or preserve a unique request ID on every request."""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "")


# ── Error handlers ──────────────────────────────────────────────────────


@app.exception_handler(StorefrontGuardError)
async def guard_error_handler(request: Request, exc: StorefrontGuardError) -> JSONResponse:
    body = StructuredErrorResponse.from_exception(exc, request_id=_request_id(request))
    if body.status_code >= 500:
        logger.error("event=guard_error code=%s detail=%s", body.code, exc)
    return JSONResponse(status_code=body.status_code, content=body.model_dump())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    body = ValidationErrorResponse(
        request_id=_request_id(request),
        fields=format_validation_errors(exc),
    )
    return JSONResponse(status_code=422, content=body.model_dump())


# ── Routes ──────────────────────────────────────────────────────────────


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Return service health with name, version, status, and uptime."""
    return HealthResponse(
        service=settings.SERVICE_NAME,
        version=settings.SERVICE_VERSION,
        status="healthy",
        uptime_seconds=round(time.monotonic() - _start_time, 2),
    )


@app.post("/validate/{entity_kind}", response_model=ValidationResult)
async def validate(entity_kind: str, payload: dict[str, Any]) -> ValidationResult:
    """Validate an already-sanitized entity body.

    Returns the passing ``ValidationResult``; failures surface as a 400
    listing every violated rule.
    """
    ensure_valid(entity_kind, payload)
    return ValidationResult(is_valid=True)


def run() -> None:
    """Console entrypoint: serve the app with uvicorn on HOST:PORT."""
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())
