"""AuthenticationManager: pick the provider responsible for a token."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

from apcore_guard.exceptions import AccountStatusError, AuthenticationError, ProviderNotFoundError
from apcore_guard.provider import GuardAuthenticationProvider
from apcore_guard.tokens import PostAuthenticationToken

logger = logging.getLogger(__name__)


class AuthenticationManager:
    """Routes tokens across several guard providers (one per security context).

    Providers are consulted in order. Those that do not support the token are
    skipped. An ``AccountStatusError`` ends the search immediately; any other
    ``AuthenticationError`` is remembered and the next supporting provider is
    tried. If nothing succeeds the last error is raised, or
    ``ProviderNotFoundError`` when no provider supported the token at all.

    Args:
        providers: Providers to consult, in priority order.
        on_success: Called with the authenticated token after a success.
        on_failure: Called with ``(token, error)`` before the error is raised.
        erase_credentials: Call ``erase_credentials()`` on the returned token.
    """

    def __init__(
        self,
        providers: Sequence[GuardAuthenticationProvider],
        *,
        on_success: Callable[[PostAuthenticationToken], None] | None = None,
        on_failure: Callable[[Any, AuthenticationError], None] | None = None,
        erase_credentials: bool = True,
    ) -> None:
        if not providers:
            raise ValueError("AuthenticationManager requires at least one provider")
        self._providers = tuple(providers)
        self._on_success = on_success
        self._on_failure = on_failure
        self._erase_credentials = erase_credentials

    @property
    def providers(self) -> tuple[GuardAuthenticationProvider, ...]:
        return self._providers

    def supports(self, token: Any) -> bool:
        return any(self._supports(provider, token) for provider in self._providers)

    def authenticate(self, token: Any) -> PostAuthenticationToken:
        """Authenticate *token* with the first provider able to handle it.

        Raises:
            AuthenticationError: The last failure, or ``ProviderNotFoundError``.
        """
        last_error: AuthenticationError | None = None
        result: PostAuthenticationToken | None = None

        for provider in self._providers:
            if not self._supports(provider, token):
                logger.debug("Provider for context '%s' does not support %r", provider.context_name, token)
                continue
            try:
                result = provider.authenticate(token)
            except AccountStatusError as exc:
                last_error = exc
                break
            except AuthenticationError as exc:
                last_error = exc
                continue
            break

        if result is not None:
            if self._erase_credentials:
                result.erase_credentials()
            logger.info(
                "Authenticated '%s' in context '%s'",
                result.user_identifier,
                result.context_name,
            )
            if self._on_success is not None:
                self._on_success(result)
            return result

        if last_error is None:
            last_error = ProviderNotFoundError(
                f"No authentication provider found for token of type {type(token).__name__}."
            )
        last_error.token = token
        if self._on_failure is not None:
            self._on_failure(token, last_error)
        raise last_error

    @staticmethod
    def _supports(provider: GuardAuthenticationProvider, token: Any) -> bool:
        # Post-authentication tokens are routed by context so invalidated
        # tokens still reach the provider that raises the expiry error.
        if isinstance(token, PostAuthenticationToken):
            return token.context_name == provider.context_name
        return provider.supports(token)
