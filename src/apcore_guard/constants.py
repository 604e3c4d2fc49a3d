"""Constants shared across apcore-guard."""

from __future__ import annotations

import re

# Joins a security context name and an authenticator id into a ContextKey.
CONTEXT_KEY_SEPARATOR = "_"

# Authenticator ids never contain the separator, so the last separator in a
# ContextKey always splits it back into (context_name, authenticator_id).
AUTHENTICATOR_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9.\-]*$")

ERROR_CODES: dict[str, str] = {
    "AUTHENTICATION_ERROR": "AUTHENTICATION_ERROR",
    "AUTHENTICATION_FAILED": "AUTHENTICATION_FAILED",
    "BAD_CREDENTIALS": "BAD_CREDENTIALS",
    "ORIGIN_MISMATCH": "ORIGIN_MISMATCH",
    "PROVIDER_NOT_FOUND": "PROVIDER_NOT_FOUND",
    "ACCOUNT_STATUS": "ACCOUNT_STATUS",
    "AUTHENTICATION_EXPIRED": "AUTHENTICATION_EXPIRED",
    "ACCOUNT_DISABLED": "ACCOUNT_DISABLED",
    "ACCOUNT_LOCKED": "ACCOUNT_LOCKED",
    "ACCOUNT_EXPIRED": "ACCOUNT_EXPIRED",
    "CREDENTIALS_EXPIRED": "CREDENTIALS_EXPIRED",
    "INTERNAL_ERROR": "INTERNAL_ERROR",
}

ErrorCodes = ERROR_CODES

DEFAULT_EXEMPT_PATHS = frozenset({"/health", "/metrics"})

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
