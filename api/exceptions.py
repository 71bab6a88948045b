"""API exception classes.

Every API error carries:
- message: Human-readable error message
- error_code: Machine-readable code (e.g., "NOT_FOUND")
- details: Optional dictionary with additional context
"""

from typing import Any, Optional


class NewsletterAPIException(Exception):
    """Base exception for all API errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code for client handling
        details: Optional dictionary with additional error context
        status_code: HTTP status code (set by subclasses)
    """

    status_code: int = 500
    default_error_code: str = "INTERNAL_ERROR"
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to the "error" object of a JSON response."""
        result = {
            "code": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class NotFoundError(NewsletterAPIException):
    """Resource missing or owned by someone else (HTTP 404)."""

    status_code = 404
    default_error_code = "NOT_FOUND"
    default_message = "Resource not found"


class AuthenticationError(NewsletterAPIException):
    """Credentials missing, invalid or expired (HTTP 401)."""

    status_code = 401
    default_error_code = "AUTHENTICATION_FAILED"
    default_message = "Authentication required"
