"""Settings for the storefront-guard service.

Centralized configuration loaded from environment variables with the
STOREFRONT_GUARD_ prefix.  List values are given as JSON, for example
``STOREFRONT_GUARD_SANITIZE_METHODS='["POST"]'``.
"""

from __future__ import annotations

import logging

from pydantic_settings import BaseSettings

from storefront_guard.security.html_sanitizer import (
    COMMON_SANITIZE_FIELDS,
    SanitizationPolicy,
)

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


class Settings(BaseSettings):
    """storefront-guard configuration.

    All fields can be overridden by environment variables prefixed with
    ``STOREFRONT_GUARD_``.  For example, ``STOREFRONT_GUARD_PORT=9999``
    overrides the default port.
    """

    # ── Service identity ────────────────────────────────────────────
    SERVICE_NAME: str = "storefront-guard"
    SERVICE_VERSION: str = "0.1.0"
    HOST: str = "0.0.0.0"
    PORT: int = 8090

    # ── Sanitization ────────────────────────────────────────────────
    SANITIZE_METHODS: list[str] = ["POST", "PUT", "PATCH"]
    SANITIZE_QUERY_PARAMS: bool = True
    SANITIZE_ALL_FIELDS: bool = False  # False -> common field allow-list only
    ALLOW_HTML: bool = False  # Escape-first default

    # ── Logging ─────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"

    model_config = {
        "env_prefix": "STOREFRONT_GUARD_",
    }


def build_policy(settings: Settings) -> SanitizationPolicy:
    """Derive the default request-body ``SanitizationPolicy`` from Settings."""
    fields = None if settings.SANITIZE_ALL_FIELDS else COMMON_SANITIZE_FIELDS
    return SanitizationPolicy(allow_html=settings.ALLOW_HTML, field_allow_list=fields)


def configure_logging(level: str = "INFO") -> None:
    """Install the service log format on the root logger.

    Raises ``ValueError`` for an unknown level name.
    """
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level}")
    logging.basicConfig(level=numeric, format=_LOG_FORMAT)
