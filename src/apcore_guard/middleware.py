"""ASGI middleware that runs the guard dispatch once per request and exposes the result via ContextVar."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from contextvars import ContextVar
from http import HTTPStatus
from typing import Any

from apcore import Identity

from apcore_guard.constants import DEFAULT_EXEMPT_PATHS
from apcore_guard.errors import ErrorMapper
from apcore_guard.exceptions import AuthenticationError, ProviderNotFoundError
from apcore_guard.tokens import PostAuthenticationToken, PreAuthenticationToken

logger = logging.getLogger(__name__)

# Bridge between the ASGI middleware and request handlers
auth_token_var: ContextVar[PostAuthenticationToken | None] = ContextVar("auth_token", default=None)
auth_identity_var: ContextVar[Identity | None] = ContextVar("auth_identity", default=None)

TokenFactory = Callable[[dict[str, str]], PreAuthenticationToken | None]


def extract_headers(scope: dict[str, Any]) -> dict[str, str]:
    """Extract headers from ASGI scope as a lowercase-key dict."""
    result: dict[str, str] = {}
    for key_bytes, value_bytes in scope.get("headers", []):
        result[key_bytes.decode("latin-1").lower()] = value_bytes.decode("latin-1")
    return result


class GuardMiddleware:
    """ASGI middleware that authenticates requests and sets ``auth_token_var``/``auth_identity_var``.

    Args:
        app: The ASGI application to wrap.
        manager: An ``AuthenticationManager`` or ``GuardAuthenticationProvider``.
        token_factory: Builds a ``PreAuthenticationToken`` from the request
            headers, or returns None when the request carries no credentials.
        exempt_paths: Exact paths that bypass authentication.
        exempt_prefixes: Path prefixes that bypass authentication.
        require_auth: If True, unauthenticated requests receive 401.
            If False, requests proceed without identity (permissive mode).
        error_mapper: Builds the rejection response, including its HTTP status.
            Defaults to ``ErrorMapper()``.
    """

    def __init__(
        self,
        app: Any,
        manager: Any,
        token_factory: TokenFactory,
        *,
        exempt_paths: set[str] | None = None,
        exempt_prefixes: set[str] | None = None,
        require_auth: bool = True,
        error_mapper: ErrorMapper | None = None,
    ) -> None:
        exempt_paths = set(exempt_paths) if exempt_paths is not None else set(DEFAULT_EXEMPT_PATHS)
        exempt_prefixes = set(exempt_prefixes or ())
        for path in exempt_paths | exempt_prefixes:
            if not path.startswith("/"):
                raise ValueError(f"Exempt path {path!r} must start with '/'")
        self._app = app
        self._manager = manager
        self._token_factory = token_factory
        self._exempt_paths = exempt_paths
        self._exempt_prefixes = exempt_prefixes
        self._require_auth = require_auth
        self._error_mapper = error_mapper or ErrorMapper()

    def _is_exempt(self, path: str) -> bool:
        """Check if a path is exempt from authentication."""
        if path in self._exempt_paths:
            return True
        return any(path.startswith(prefix) for prefix in self._exempt_prefixes)

    async def __call__(self, scope: dict[str, Any], receive: Any, send: Any) -> None:
        if scope["type"] != "http":
            await self._app(scope, receive, send)
            return

        path = scope.get("path", "")
        if self._is_exempt(path):
            await self._app(scope, receive, send)
            return

        authenticated: PostAuthenticationToken | None = None
        error: AuthenticationError | None = None

        token = self._token_factory(extract_headers(scope))
        if token is None:
            error = ProviderNotFoundError("Request carries no credentials.")
        else:
            try:
                authenticated = self._manager.authenticate(token)
            except AuthenticationError as exc:
                error = exc

        if authenticated is None and self._require_auth:
            logger.warning("Authentication failed for %s: %s", path, error.message if error else "no token")
            await self._send_error(send, error)
            return

        token_reset = auth_token_var.set(authenticated)
        identity_reset = auth_identity_var.set(authenticated.to_identity() if authenticated is not None else None)
        try:
            await self._app(scope, receive, send)
        finally:
            auth_identity_var.reset(identity_reset)
            auth_token_var.reset(token_reset)

    async def _send_error(self, send: Any, error: AuthenticationError | None) -> None:
        """Send the JSON error response built by the error mapper."""
        response = self._error_mapper.to_error_response(error or ProviderNotFoundError())
        status = response["status"]
        payload: dict[str, Any] = {
            "error": HTTPStatus(status).phrase,
            "code": response["error_type"],
            "detail": response["message"],
        }
        if response["details"]:
            payload.update(response["details"])
        body = json.dumps(payload).encode()
        headers = [
            [b"content-type", b"application/json"],
            [b"content-length", str(len(body)).encode()],
        ]
        if status == 401:
            headers.append([b"www-authenticate", b"Guard"])
        await send({"type": "http.response.start", "status": status, "headers": headers})
        await send({"type": "http.response.body", "body": body})
