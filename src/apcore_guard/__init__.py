"""apcore-guard: guard authenticator dispatch for apcore services."""

from __future__ import annotations

from apcore_guard._utils import configure_logging
from apcore_guard.constants import AUTHENTICATOR_ID_PATTERN, CONTEXT_KEY_SEPARATOR, ERROR_CODES
from apcore_guard.context_key import ContextKey
from apcore_guard.errors import ErrorMapper
from apcore_guard.exceptions import (
    AccountExpiredError,
    AccountStatusError,
    AuthenticationError,
    AuthenticationExpiredError,
    AuthenticationFailedError,
    BadCredentialsError,
    CredentialsExpiredError,
    DisabledAccountError,
    LockedAccountError,
    OriginMismatchError,
    ProviderNotFoundError,
)
from apcore_guard.helpers import current_identity, current_token, is_granted
from apcore_guard.manager import AuthenticationManager
from apcore_guard.middleware import GuardMiddleware, auth_identity_var, auth_token_var, extract_headers
from apcore_guard.protocol import (
    Authenticator,
    PasswordAuthenticated,
    PasswordHasher,
    PasswordUpgrader,
    User,
    UserChecker,
    UserStore,
)
from apcore_guard.provider import GuardAuthenticationProvider
from apcore_guard.tokens import PostAuthenticationToken, PreAuthenticationToken

__all__ = [
    # Dispatch
    "GuardAuthenticationProvider",
    "AuthenticationManager",
    "ContextKey",
    # Tokens
    "PreAuthenticationToken",
    "PostAuthenticationToken",
    # Collaborator protocols
    "Authenticator",
    "User",
    "UserStore",
    "UserChecker",
    "PasswordAuthenticated",
    "PasswordHasher",
    "PasswordUpgrader",
    # Errors
    "AuthenticationError",
    "AuthenticationFailedError",
    "BadCredentialsError",
    "OriginMismatchError",
    "ProviderNotFoundError",
    "AccountStatusError",
    "AuthenticationExpiredError",
    "DisabledAccountError",
    "LockedAccountError",
    "AccountExpiredError",
    "CredentialsExpiredError",
    "ErrorMapper",
    # ASGI integration
    "GuardMiddleware",
    "auth_token_var",
    "auth_identity_var",
    "extract_headers",
    "current_token",
    "current_identity",
    "is_granted",
    # Constants
    "CONTEXT_KEY_SEPARATOR",
    "AUTHENTICATOR_ID_PATTERN",
    "ERROR_CODES",
    # Logging
    "configure_logging",
]

__version__ = "0.1.0"
