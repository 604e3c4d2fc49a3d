"""Authentication exceptions raised by apcore-guard.

Every failure produced by the dispatch layer derives from
``AuthenticationError``. Exceptions fall into two groups:

Credential and routing failures (another provider may still succeed):
    - AuthenticationFailedError: the authenticator resolved no user
    - BadCredentialsError: the authenticator rejected the credentials
    - OriginMismatchError: no authenticator of the context issued the token
    - ProviderNotFoundError: no provider supports the token

Account status failures (terminal, stop provider iteration):
    - AuthenticationExpiredError: a previously authenticated token was invalidated
    - DisabledAccountError, LockedAccountError, AccountExpiredError,
      CredentialsExpiredError: raised by user checker implementations

Usage:
    from apcore_guard.exceptions import AuthenticationError, BadCredentialsError
"""

from __future__ import annotations

__all__ = [
    "AccountExpiredError",
    "AccountStatusError",
    "AuthenticationError",
    "AuthenticationExpiredError",
    "AuthenticationFailedError",
    "BadCredentialsError",
    "CredentialsExpiredError",
    "DisabledAccountError",
    "LockedAccountError",
    "OriginMismatchError",
    "ProviderNotFoundError",
]

from typing import Any

from apcore_guard.constants import ERROR_CODES


class AuthenticationError(Exception):
    """Base class for every authentication failure.

    Attributes:
        code: Stable machine-readable error code.
        message: Operator-facing message (may contain routing details).
        details: Optional structured context.
        safe_message: Message that can be shown to an unauthenticated client.
        token: The token that failed, attached by ``AuthenticationManager``.
    """

    code: str = ERROR_CODES["AUTHENTICATION_ERROR"]
    safe_message: str = "An authentication exception occurred."

    def __init__(self, message: str | None = None, *, details: dict[str, Any] | None = None) -> None:
        self.message = message if message is not None else self.safe_message
        self.details = details or {}
        self.token: Any = None
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class AuthenticationFailedError(AuthenticationError):
    """The matched authenticator could not resolve a user from the credentials."""

    code = ERROR_CODES["AUTHENTICATION_FAILED"]
    safe_message = "Authentication failed."


class BadCredentialsError(AuthenticationError):
    """A user was resolved but credential verification returned ``False``."""

    code = ERROR_CODES["BAD_CREDENTIALS"]
    safe_message = "Invalid credentials."


class OriginMismatchError(AuthenticationError):
    """The token's ContextKey matches none of the provider's authenticators.

    Attributes:
        context_key: The ContextKey carried by the token.
        context_name: The security context of the provider that rejected it.
    """

    code = ERROR_CODES["ORIGIN_MISMATCH"]

    def __init__(self, context_key: str, context_name: str) -> None:
        self.context_key = context_key
        self.context_name = context_name
        super().__init__(
            f'Token with context key "{context_key}" did not originate from any of the '
            f'authenticators of context "{context_name}".',
            details={"context_key": context_key, "context_name": context_name},
        )


class ProviderNotFoundError(AuthenticationError):
    """No configured provider supports the token."""

    code = ERROR_CODES["PROVIDER_NOT_FOUND"]
    safe_message = "No authentication provider found to support the authentication token."


class AccountStatusError(AuthenticationError):
    """Base class for account status failures.

    Raised by user checkers before or after credential verification. The
    provider propagates these unchanged.

    Attributes:
        user: The user whose account failed the check, if known.
    """

    code = ERROR_CODES["ACCOUNT_STATUS"]
    safe_message = "Account status check failed."

    def __init__(
        self,
        message: str | None = None,
        *,
        user: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.user = user
        super().__init__(message, details=details)


class AuthenticationExpiredError(AccountStatusError):
    """A post-authentication token has been marked as no longer authenticated.

    The caller must force a fresh authentication (e.g. log the user out).
    """

    code = ERROR_CODES["AUTHENTICATION_EXPIRED"]
    safe_message = "Authentication expired because your account information has changed."


class DisabledAccountError(AccountStatusError):
    code = ERROR_CODES["ACCOUNT_DISABLED"]
    safe_message = "Account is disabled."


class LockedAccountError(AccountStatusError):
    code = ERROR_CODES["ACCOUNT_LOCKED"]
    safe_message = "Account is locked."


class AccountExpiredError(AccountStatusError):
    code = ERROR_CODES["ACCOUNT_EXPIRED"]
    safe_message = "Account has expired."


class CredentialsExpiredError(AccountStatusError):
    code = ERROR_CODES["CREDENTIALS_EXPIRED"]
    safe_message = "Credentials have expired."
