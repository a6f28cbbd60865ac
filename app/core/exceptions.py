"""
Base exception classes for application-wide error handling.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Input validation failures
    ├── NotFoundError - Resource not found
    ├── AuthenticationError - Caller could not be authenticated
    └── ConflictError - State conflicts (concurrent modifications, transitions)

Usage:
    from core.exceptions import NotFoundError

    raise NotFoundError(
        "Payment not found",
        error_code="PAYMENT_NOT_FOUND",
        details={"provider_payment_id": "abc"},
    )

    # Convert to dict for an HTTP response
    try:
        ...
    except BaseApplicationError as e:
        return JsonResponse(e.to_dict(), status=400)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, metadata, etc.)
    """

    default_error_code: str = "APPLICATION_ERROR"

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
        Convert exception to dictionary for an HTTP response.

        Example:
            {
                "error": "Payment not found",
                "error_code": "PAYMENT_NOT_FOUND",
                "details": {"order_number": "ORD-1"}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails.

    Use for malformed webhook bodies and missing required identifiers.
    HTTP 400 is the appropriate status.
    """

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    """
    Raised when a requested resource is not found.

    HTTP 404 is the appropriate status.
    """

    default_error_code: str = "NOT_FOUND"


class AuthenticationError(BaseApplicationError):
    """
    Raised when the caller's identity cannot be established.

    For webhooks this means a missing or mismatching signature.
    HTTP 401 is the appropriate status.
    """

    default_error_code: str = "AUTHENTICATION_FAILED"


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with current resource state.

    Use for:
    - Invalid state transitions
    - Concurrent modification conflicts

    HTTP 409 Conflict is the appropriate status.
    """

    default_error_code: str = "CONFLICT"

