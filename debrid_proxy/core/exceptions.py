"""
Exception hierarchy for the Debrid proxy application.

Provides layered exception structure for domain-specific errors.
Every exception carries the HTTP status the API layer responds with,
plus a details dict for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class DebridProxyException(Exception):
    """Base exception for all Debrid proxy application errors."""

    status_code: int = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(DebridProxyException):
    """Raised when input validation fails."""

    status_code = 400

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class AuthenticationError(DebridProxyException):
    """Raised when a request carries no valid credentials."""

    status_code = 401


class PermissionDeniedError(DebridProxyException):
    """Raised when an authenticated caller may not perform an operation."""

    status_code = 403

    def __init__(self, message: str = "Forbidden", details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details)


class NotFoundError(DebridProxyException):
    """Raised when a document cannot be found."""

    status_code = 404


class ConflictError(DebridProxyException):
    """Raised when a write collides with existing state (duplicates, reuse)."""

    status_code = 409


class ConfigurationError(DebridProxyException):
    """Raised when a required setting is missing at call time."""

    status_code = 500


class UpstreamError(DebridProxyException):
    """Raised when the upstream API cannot be reached."""

    status_code = 502

    def __init__(
        self,
        message: str,
        url: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize upstream error.

        Args:
            message: Error message
            url: Upstream URL that failed
            details: Additional context
        """
        details = details or {}
        if url:
            details["url"] = url
        super().__init__(message, details)


class UpstreamTimeoutError(UpstreamError):
    """Raised when the upstream API does not answer in time."""

    status_code = 504


class EmailDeliveryError(DebridProxyException):
    """Raised when the email provider rejects or fails a send."""

    status_code = 502
