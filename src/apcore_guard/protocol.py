"""Collaborator protocols consumed by the guard authentication provider."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from apcore_guard.tokens import PostAuthenticationToken


@runtime_checkable
class User(Protocol):
    """Minimal user surface the package reads when building identities."""

    identifier: str
    roles: Sequence[str]


@runtime_checkable
class Authenticator(Protocol):
    """Protocol for pluggable guard authenticators.

    Each authenticator handles one kind of credential. The provider calls
    the three methods below, in order, only on the authenticator whose
    ContextKey matches the token; the others are never invoked.
    """

    def resolve_user(self, credentials: Any, user_store: Any) -> Any | None:
        """Load the user the credentials claim to belong to.

        Args:
            credentials: The opaque payload carried by the token.
            user_store: The provider's user store, passed through untouched.

        Returns:
            The user, or ``None`` if no user matches.
        """
        ...

    def verify_credentials(self, credentials: Any, user: Any) -> bool:
        """Return ``True`` if *credentials* are valid for *user*.

        Only ``True`` grants access. ``False`` and other falsy values
        (``None``, ``0``, ``""``) are answered with ``BadCredentialsError``;
        a truthy value that is not ``True`` is a programming error and
        raises ``TypeError``.
        """
        ...

    def create_authenticated_token(self, user: Any, context_name: str) -> PostAuthenticationToken:
        """Build the post-authentication token for a verified user."""
        ...


@runtime_checkable
class UserStore(Protocol):
    """Lookup surface handed to ``Authenticator.resolve_user``.

    The provider never calls it directly.
    """

    def load_user(self, identifier: str) -> Any | None: ...


@runtime_checkable
class UserChecker(Protocol):
    """Account status gate run around credential verification.

    Both methods return nothing on success and raise (usually an
    ``AccountStatusError``) to reject the account.
    """

    def check_pre_auth(self, user: Any) -> None: ...

    def check_post_auth(self, user: Any) -> None: ...


@runtime_checkable
class PasswordAuthenticated(Protocol):
    """Implemented by authenticators whose credentials contain a plaintext password."""

    def get_password(self, credentials: Any) -> str | None: ...


@runtime_checkable
class PasswordUpgrader(Protocol):
    """Implemented by user stores able to persist a re-hashed password."""

    def upgrade_password(self, user: Any, new_hashed_password: str) -> None: ...


@runtime_checkable
class PasswordHasher(Protocol):
    """Hashes passwords and reports when a stored hash is outdated."""

    def needs_rehash(self, user: Any) -> bool: ...

    def hash(self, password: str) -> str: ...
