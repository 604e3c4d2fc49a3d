"""GuardAuthenticationProvider: dispatch a token to the authenticator that issued it."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import Any

from apcore_guard.context_key import ContextKey, validate_context_name
from apcore_guard.exceptions import (
    AuthenticationExpiredError,
    AuthenticationFailedError,
    BadCredentialsError,
    OriginMismatchError,
)
from apcore_guard.protocol import Authenticator, PasswordAuthenticated, PasswordHasher, PasswordUpgrader, UserChecker
from apcore_guard.tokens import PostAuthenticationToken, PreAuthenticationToken

logger = logging.getLogger(__name__)


class GuardAuthenticationProvider:
    """Authenticates tokens produced by the guard authenticators of one security context.

    Each registered authenticator owns one ContextKey,
    ``"<context_name>_<authenticator_id>"``. A pre-authentication token names
    the key of the authenticator that built it; ``authenticate`` hands the
    token to that authenticator only and runs the account status checks
    around credential verification.

    The provider is immutable once constructed and keeps no per-call state,
    so one instance can serve concurrent requests without locking.

    Args:
        authenticators: Either a mapping of stable authenticator ids to
            authenticators (insertion order is dispatch order), or a
            sequence, in which case positions ``"0"``, ``"1"``, ... are the ids.
        user_store: Passed through to ``Authenticator.resolve_user``.
        context_name: Name of the security context (e.g. a firewall name).
        user_checker: Runs ``check_pre_auth``/``check_post_auth`` on the user.
        password_hasher: Optional hasher; enables transparent password
            upgrades when the user store and authenticator support it.

    Raises:
        ValueError: Malformed context name or authenticator id, or two
            registrations that would share a ContextKey.
        TypeError: An entry does not implement the ``Authenticator`` protocol.
    """

    __slots__ = ("_context_name", "_authenticators", "_user_store", "_user_checker", "_password_hasher")

    def __init__(
        self,
        authenticators: Mapping[str, Authenticator] | Sequence[Authenticator],
        user_store: Any,
        context_name: str,
        user_checker: UserChecker,
        *,
        password_hasher: PasswordHasher | None = None,
    ) -> None:
        self._context_name = validate_context_name(context_name)
        self._authenticators = MappingProxyType(self._build_table(context_name, authenticators))
        self._user_store = user_store
        self._user_checker = user_checker
        self._password_hasher = password_hasher
        logger.debug(
            "Guard provider for context '%s' registered %d authenticator(s): %s",
            context_name,
            len(self._authenticators),
            ", ".join(self._authenticators),
        )

    @staticmethod
    def _build_table(
        context_name: str,
        authenticators: Mapping[str, Authenticator] | Sequence[Authenticator],
    ) -> dict[str, tuple[str, Authenticator]]:
        """Map each ContextKey to its ``(authenticator_id, authenticator)`` pair."""
        if isinstance(authenticators, Mapping):
            entries = [(str(key), value) for key, value in authenticators.items()]
        elif isinstance(authenticators, (str, bytes)) or not isinstance(authenticators, Sequence):
            raise TypeError(
                f"authenticators must be a mapping or a sequence, got {type(authenticators).__name__}"
            )
        else:
            entries = [(str(index), value) for index, value in enumerate(authenticators)]

        table: dict[str, tuple[str, Authenticator]] = {}
        for authenticator_id, authenticator in entries:
            if not isinstance(authenticator, Authenticator):
                raise TypeError(
                    f"Authenticator '{authenticator_id}' ({type(authenticator).__name__}) does not "
                    "implement resolve_user/verify_credentials/create_authenticated_token"
                )
            key = str(ContextKey(context_name, authenticator_id))
            if key in table:
                raise ValueError(f"Duplicate context key '{key}' in context '{context_name}'")
            table[key] = (authenticator_id, authenticator)
        return table

    @property
    def context_name(self) -> str:
        return self._context_name

    @property
    def context_keys(self) -> tuple[str, ...]:
        """ContextKeys handled by this provider, in dispatch order."""
        return tuple(self._authenticators)

    @property
    def authenticator_ids(self) -> tuple[str, ...]:
        return tuple(authenticator_id for authenticator_id, _ in self._authenticators.values())

    def supports(self, token: Any) -> bool:
        """Return True if *token* was issued by one of this provider's authenticators.

        Pure predicate: never raises, never calls an authenticator and never
        modifies the token.
        """
        if not isinstance(token, PreAuthenticationToken):
            return False
        context_key = token.context_key
        return isinstance(context_key, str) and context_key in self._authenticators

    def authenticate(self, token: Any) -> PostAuthenticationToken:
        """Authenticate *token* through the authenticator that issued it.

        Args:
            token: A ``PreAuthenticationToken``, or a ``PostAuthenticationToken``
                carried over from an earlier request.

        Returns:
            The post-authentication token built by the matching authenticator.
            An already authenticated post-authentication token is returned as-is.

        Raises:
            AuthenticationExpiredError: *token* is a post-authentication token
                that has been invalidated.
            OriginMismatchError: no authenticator of this context issued *token*.
            AuthenticationFailedError: the authenticator resolved no user.
            BadCredentialsError: the authenticator rejected the credentials.
            TypeError: *token* is not a guard token, or an authenticator
                returned a value of the wrong type.

        Errors raised by the user checker are propagated unchanged.
        """
        if isinstance(token, PostAuthenticationToken):
            if token.authenticated:
                return token
            logger.debug("Post-authentication token for context '%s' is no longer authenticated", self._context_name)
            raise AuthenticationExpiredError(user=token.user)

        if not isinstance(token, PreAuthenticationToken):
            raise TypeError(f"GuardAuthenticationProvider only supports guard tokens, got {type(token).__name__}")

        context_key = token.context_key
        for expected_key, (authenticator_id, authenticator) in self._authenticators.items():
            if expected_key != context_key:
                continue
            logger.debug("Token '%s' dispatched to authenticator '%s'", context_key, authenticator_id)
            return self._authenticate_via(authenticator, token)

        raise OriginMismatchError(str(context_key), self._context_name)

    def _authenticate_via(self, authenticator: Authenticator, token: PreAuthenticationToken) -> PostAuthenticationToken:
        """Resolve, check and verify the user, then build the authenticated token."""
        authenticator_name = type(authenticator).__name__
        credentials = token.credentials

        user = authenticator.resolve_user(credentials, self._user_store)
        if user is None:
            raise AuthenticationFailedError(f'No user returned from "{authenticator_name}.resolve_user()".')

        self._user_checker.check_pre_auth(user)

        result = authenticator.verify_credentials(credentials, user)
        # Only True grants access; a truthy non-bool never does.
        if result is not True:
            if result:
                raise TypeError(
                    f'"{authenticator_name}.verify_credentials()" must return a bool, '
                    f"got {type(result).__name__}"
                )
            raise BadCredentialsError(
                f'Authentication failed because "{authenticator_name}.verify_credentials()" did not return True.'
            )

        self._upgrade_password(authenticator, credentials, user)

        self._user_checker.check_post_auth(user)

        authenticated_token = authenticator.create_authenticated_token(user, self._context_name)
        if not isinstance(authenticated_token, PostAuthenticationToken):
            raise TypeError(
                f'"{authenticator_name}.create_authenticated_token()" must return a '
                f"PostAuthenticationToken, got {type(authenticated_token).__name__}"
            )
        return authenticated_token

    def _upgrade_password(self, authenticator: Authenticator, credentials: Any, user: Any) -> None:
        """Re-hash the user's password when the stored hash is outdated."""
        hasher = self._password_hasher
        if hasher is None:
            return
        if not isinstance(self._user_store, PasswordUpgrader) or not isinstance(authenticator, PasswordAuthenticated):
            return
        password = authenticator.get_password(credentials)
        if password is None or not hasher.needs_rehash(user):
            return
        logger.debug("Upgrading outdated password hash in context '%s'", self._context_name)
        self._user_store.upgrade_password(user, hasher.hash(password))

    def __repr__(self) -> str:
        return f"GuardAuthenticationProvider(context_name={self._context_name!r}, context_keys={self.context_keys!r})"
