"""ErrorMapper: authentication exceptions -> client-facing error responses."""

from __future__ import annotations

from typing import Any

from apcore_guard.constants import ErrorCodes
from apcore_guard.exceptions import AuthenticationError, AuthenticationExpiredError


class ErrorMapper:
    """Maps apcore-guard exceptions to error response dictionaries."""

    def to_error_response(self, error: Exception) -> dict[str, Any]:
        """
        Convert any exception to an error response dict.

        Returns:
            dict with keys:
                - is_error: True
                - error_type: str (error code or "INTERNAL_ERROR")
                - status: int (HTTP status to send)
                - message: str (safe error message)
                - details: dict | None (optional additional context)
        """
        if isinstance(error, AuthenticationError):
            return self._handle_authentication_error(error)

        # Unknown exception - sanitize completely
        return {
            "is_error": True,
            "error_type": ErrorCodes["INTERNAL_ERROR"],
            "status": 500,
            "message": "Internal error occurred",
            "details": None,
        }

    def _handle_authentication_error(self, error: AuthenticationError) -> dict[str, Any]:
        """Handle known authentication errors.

        Only the class-level safe message reaches the client; operator
        messages can name contexts, authenticators and users.
        """
        details: dict[str, Any] | None = None
        if isinstance(error, AuthenticationExpiredError):
            details = {"reauthenticate": True}

        return {
            "is_error": True,
            "error_type": error.code,
            "status": 401,
            "message": error.safe_message,
            "details": details,
        }
