"""Request sanitization middleware.

ASGI middleware that replaces the JSON body of POST/PUT/PATCH requests with
its sanitized copy before any route handler (and its validation) sees it.
String query parameters of the same requests are sanitized as well,
whatever the body's content type (not only alongside a JSON object body).

Bodies that are not JSON, or not a JSON object/array, are forwarded
untouched; malformed JSON is left for the handler to reject.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import Any
from urllib.parse import parse_qsl, urlencode

from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from storefront_guard.security.html_sanitizer import (
    COMMON_SANITIZE_FIELDS,
    SanitizationPolicy,
    sanitize_query_params,
    sanitize_request_body,
)

_logger = logging.getLogger("storefront_guard.security")

_DEFAULT_METHODS: tuple[str, ...] = ("POST", "PUT", "PATCH")


def _is_json(content_type: str) -> bool:
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


async def _read_body(receive: Receive) -> bytes:
    """Drain the request body from *receive*."""
    chunks: list[bytes] = []
    more_body = True
    while more_body:
        message = await receive()
        if message["type"] != "http.request":
            break
        chunks.append(message.get("body", b""))
        more_body = message.get("more_body", False)
    return b"".join(chunks)


def _replay(body: bytes, receive: Receive) -> Receive:
    """A ``receive`` that yields *body* once, then defers to the original."""
    sent = False

    async def replay() -> Message:
        nonlocal sent
        if not sent:
            sent = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return replay


def _with_header(scope: Scope, name: bytes, value: bytes) -> Scope:
    headers = [(k, v) for k, v in scope["headers"] if k.lower() != name]
    headers.append((name, value))
    return {**scope, "headers": headers}


class SanitizationMiddleware:
    """Sanitize inbound JSON bodies and query strings.

    Args:
        app:            The wrapped ASGI application.
        policy:         Body policy.  Defaults to escaping
                        ``COMMON_SANITIZE_FIELDS``.
        methods:        HTTP methods whose requests are sanitized.
        sanitize_query: Also sanitize string query parameters.
    """

    def __init__(
        self,
        app: ASGIApp,
        policy: SanitizationPolicy | None = None,
        methods: Iterable[str] = _DEFAULT_METHODS,
        sanitize_query: bool = True,
    ) -> None:
        self.app = app
        self.policy = policy or SanitizationPolicy(field_allow_list=COMMON_SANITIZE_FIELDS)
        self.methods = frozenset(m.upper() for m in methods)
        self.sanitize_query = sanitize_query

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["method"] not in self.methods:
            await self.app(scope, receive, send)
            return

        if self.sanitize_query and scope.get("query_string"):
            scope = self._sanitize_query(scope)

        if not _is_json(Headers(scope=scope).get("content-type", "")):
            await self.app(scope, receive, send)
            return

        body = await _read_body(receive)
        try:
            payload: Any = json.loads(body)
        except ValueError:
            await self.app(scope, _replay(body, receive), send)
            return

        if not isinstance(payload, (dict, list)):
            await self.app(scope, _replay(body, receive), send)
            return

        cleaned = sanitize_request_body(payload, self.policy)
        if cleaned != payload:
            _logger.info("event=body_sanitized path=%s", scope.get("path", ""))
        new_body = json.dumps(cleaned, ensure_ascii=False).encode("utf-8")
        scope = _with_header(scope, b"content-length", str(len(new_body)).encode("latin-1"))
        await self.app(scope, _replay(new_body, receive), send)

    def _sanitize_query(self, scope: Scope) -> Scope:
        raw = scope["query_string"].decode("latin-1")
        pairs = parse_qsl(raw, keep_blank_values=True)
        cleaned = sanitize_query_params(pairs, self.policy.allow_html)
        return {**scope, "query_string": urlencode(cleaned).encode("latin-1")}
