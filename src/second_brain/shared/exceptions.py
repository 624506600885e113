"""
Custom exception classes for the application.

Every exception carries the HTTP status it maps to; the handlers registered
in ``second_brain.main`` turn them into ``{"success": false, "error", "code"}``
JSON bodies.
"""

from typing import Any


class AppException(Exception):
    """Base exception for application errors."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "APP_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize application exception.

        Args:
            message: Human-readable error message.
            code: Machine-readable error code.
            details: Additional error details (logged, never returned).
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


class ValidationError(AppException):
    """Raised when request fields are missing or malformed (distinct from pydantic ValidationError)."""

    status_code = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "VALIDATION_ERROR", details)


class InvalidCodeError(AppException):
    """Raised when the verification provider rejects a one-time code."""

    status_code = 400

    def __init__(
        self,
        message: str = "Invalid verification code",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, "INVALID_CODE", details)


class AuthenticationError(AppException):
    """Raised when authentication fails."""

    status_code = 401

    def __init__(
        self,
        message: str = "Authentication failed",
        code: str = "AUTH_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class InvalidTokenError(AuthenticationError):
    """Raised when a token is malformed, expired or wrongly signed."""

    def __init__(
        self,
        message: str = "Invalid token",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, "INVALID_TOKEN", details)


class InvalidRefreshTokenError(AuthenticationError):
    """Raised when a refresh token cannot be exchanged for an access token."""

    def __init__(
        self,
        message: str = "Invalid refresh token",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, "INVALID_REFRESH_TOKEN", details)


class WebhookSignatureError(AppException):
    """Raised when a provider webhook fails signature validation."""

    status_code = 403

    def __init__(self, message: str = "Invalid webhook signature") -> None:
        super().__init__(message, "INVALID_SIGNATURE")


class NotFoundError(AppException):
    """Raised when a requested entity does not exist."""

    status_code = 404

    def __init__(
        self,
        message: str = "Not found",
        code: str = "NOT_FOUND",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class UserNotFoundError(NotFoundError):
    """Raised when a user is not found."""

    def __init__(
        self,
        message: str = "User not found",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, "USER_NOT_FOUND", details)


class ReminderNotFoundError(NotFoundError):
    """Raised when a reminder is not found for the requesting user."""

    def __init__(self, reminder_id: int) -> None:
        super().__init__(
            f"Reminder not found: {reminder_id}",
            "REMINDER_NOT_FOUND",
            {"reminder_id": reminder_id},
        )


class UpstreamProviderError(AppException):
    """Raised when the telephony or language-model provider fails.

    The message is generic; provider detail travels in ``details`` and the
    chained exception, which are logged but never returned to the client.
    """

    status_code = 500

    def __init__(
        self,
        message: str = "Upstream provider request failed",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, "UPSTREAM_PROVIDER_ERROR", details)


class PersistenceError(AppException):
    """Raised when the database layer fails."""

    status_code = 500

    def __init__(
        self,
        message: str = "Database operation failed",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, "PERSISTENCE_ERROR", details)
