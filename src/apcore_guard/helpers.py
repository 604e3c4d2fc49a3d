"""Request-scoped helpers for code running behind ``GuardMiddleware``.

All helpers read the ContextVars set by the middleware and return empty
results outside an authenticated request.
"""

from __future__ import annotations

from apcore import Identity

from apcore_guard.middleware import auth_identity_var, auth_token_var
from apcore_guard.tokens import PostAuthenticationToken


def current_token() -> PostAuthenticationToken | None:
    """Return the post-authentication token of the current request, if any."""
    return auth_token_var.get()


def current_identity() -> Identity | None:
    """Return the apcore ``Identity`` of the current request, if any."""
    return auth_identity_var.get()


def is_granted(role: str, token: PostAuthenticationToken | None = None) -> bool:
    """Check whether *token* (default: the current request's) holds *role*.

    Invalidated tokens grant nothing.
    """
    if token is None:
        token = current_token()
    if token is None or not token.authenticated:
        return False
    return role in token.roles
