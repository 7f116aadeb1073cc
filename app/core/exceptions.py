"""
Base exception classes for application-wide error handling.

This module provides a standardized exception hierarchy that enables:
- Consistent error responses across the application
- Machine-readable error codes for client handling
- Generic 500 responses for upstream and unexpected failures

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Input validation failures
    ├── NotFoundError - Resource not found
    ├── PermissionDeniedError - Authorization failures
    ├── ConflictError - State conflicts (duplicates)
    └── ExternalServiceError - Object storage and other upstream failures

Usage:
    from core.exceptions import ExternalServiceError

    try:
        client.delete_object(Bucket=bucket, Key=key)
    except ClientError as e:
        raise ExternalServiceError(
            "Object storage delete failed",
            error_code="OBJECT_STORAGE_ERROR",
            details={"public_id": key, "original_error": str(e)},
        ) from e

Note:
    Expected business failures are returned as core.services.ServiceResult.
    These exceptions are for the exceptional path; core.views.api_exception_handler
    turns them into HTTP responses. This module imports nothing from DRF, so
    the core package stays importable while the app registry loads.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any

GENERIC_SERVER_ERROR = "Server error. Please try again later."


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, metadata, etc.)
    """

    default_error_code: str = "APPLICATION_ERROR"
    status_code: int = 400

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Returns:
            Dict with error, error_code and (if any) details keys
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """Raised when input validation fails."""

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    """Raised when a requested resource is not found."""

    default_error_code: str = "NOT_FOUND"


class PermissionDeniedError(BaseApplicationError):
    """Raised when user lacks permission for an operation."""

    default_error_code: str = "PERMISSION_DENIED"


class ConflictError(BaseApplicationError):
    """Raised when operation conflicts with current resource state."""

    default_error_code: str = "CONFLICT"


class ExternalServiceError(BaseApplicationError):
    """
    Raised when an external service call fails.

    Use for:
    - Object storage upload/delete failures
    - Network timeouts against upstream services

    Note:
        The original error belongs in details for the logs. Clients only
        ever see the generic server error message.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
    status_code: int = 500
