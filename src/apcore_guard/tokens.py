"""Pre- and post-authentication tokens exchanged with the dispatch layer."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from apcore import Identity

from apcore_guard.context_key import ContextKey
from apcore_guard.protocol import User


class PreAuthenticationToken:
    """Unverified credentials plus the ContextKey of the authenticator that built them.

    Args:
        credentials: Authenticator-specific payload, passed through untouched.
        context_key: Wire-form ContextKey, e.g. ``"main_0"``.
    """

    def __init__(self, credentials: Any, context_key: str) -> None:
        self._credentials = credentials
        self._context_key = context_key

    @classmethod
    def for_authenticator(
        cls, credentials: Any, context_name: str, authenticator_id: str
    ) -> PreAuthenticationToken:
        """Build a token addressed to one authenticator of one context."""
        return cls(credentials, str(ContextKey(context_name, authenticator_id)))

    @property
    def credentials(self) -> Any:
        return self._credentials

    @property
    def context_key(self) -> str:
        return self._context_key

    @property
    def authenticated(self) -> bool:
        return False

    @property
    def roles(self) -> tuple[str, ...]:
        return ()

    def erase_credentials(self) -> None:
        self._credentials = None

    def __repr__(self) -> str:
        return f"PreAuthenticationToken(context_key={self._context_key!r})"


class PostAuthenticationToken:
    """A verified user bound to a security context.

    Created by an authenticator's ``create_authenticated_token``. The token
    starts authenticated; the surrounding pipeline may later invalidate it
    with ``set_authenticated(False)`` (for instance when the stored user
    changed between requests), after which the provider answers it with
    ``AuthenticationExpiredError``.

    Args:
        user: The resolved user.
        context_name: Security context the user authenticated against.
        roles: Granted roles. Defaults to ``user.roles`` when available.
            A single role string counts as one role.
        attrs: Extra attributes copied into the apcore ``Identity``.
    """

    def __init__(
        self,
        user: Any,
        context_name: str,
        roles: Sequence[str] | None = None,
        *,
        attrs: dict[str, Any] | None = None,
    ) -> None:
        if not context_name:
            raise ValueError("context_name must not be empty")
        if roles is None:
            roles = getattr(user, "roles", None) or ()
        if isinstance(roles, str):
            roles = (roles,)
        elif isinstance(roles, (bytes, bytearray)):
            raise TypeError(f"roles must be a str or a sequence of str, got {type(roles).__name__}")
        self._user = user
        self._context_name = context_name
        self._roles: tuple[str, ...] = tuple(str(r) for r in roles)
        self._attrs: dict[str, Any] = dict(attrs or {})
        self._authenticated = True

    @property
    def user(self) -> Any:
        return self._user

    @property
    def context_name(self) -> str:
        return self._context_name

    @property
    def roles(self) -> tuple[str, ...]:
        return self._roles

    @property
    def attrs(self) -> dict[str, Any]:
        return dict(self._attrs)

    @property
    def credentials(self) -> None:
        # Credentials are never kept once a user is verified.
        return None

    @property
    def authenticated(self) -> bool:
        return self._authenticated

    def set_authenticated(self, authenticated: bool) -> None:
        """Invalidate the token. Re-authenticating requires a new token."""
        if authenticated and not self._authenticated:
            raise ValueError("Cannot mark an invalidated token as authenticated; create a new token instead.")
        self._authenticated = bool(authenticated)

    def erase_credentials(self) -> None:
        erase = getattr(self._user, "erase_credentials", None)
        if callable(erase):
            erase()

    @property
    def user_identifier(self) -> str:
        if isinstance(self._user, User):
            return str(self._user.identifier)
        return str(self._user)

    def to_identity(self) -> Identity:
        """Convert to an apcore ``Identity`` for downstream executors."""
        attrs = dict(self._attrs)
        attrs.setdefault("context", self._context_name)
        return Identity(
            id=self.user_identifier,
            type="user",
            roles=self._roles,
            attrs=attrs,
        )

    def __repr__(self) -> str:
        return (
            f"PostAuthenticationToken(user={self.user_identifier!r}, "
            f"context_name={self._context_name!r}, roles={self._roles!r}, "
            f"authenticated={self._authenticated!r})"
        )
