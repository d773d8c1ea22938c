"""
Base exception classes for application-wide error handling.

This module provides a standardized exception hierarchy that enables:
- Consistent error responses across the settlement API
- Machine-readable error codes for client handling
- Detailed error information for debugging

Exception Hierarchy:
    BaseApplicationError (base, HTTP 500)
    ├── ValidationError - Input validation failures (HTTP 400)
    ├── NotFoundError - Resource not found (HTTP 404)
    ├── PermissionDeniedError - Authorization failures (HTTP 403)
    └── ConflictError - State conflicts, replays, invalid transitions (HTTP 409)

Usage:
    from core.exceptions import ValidationError, NotFoundError

    # Raise with message only
    raise ValidationError("Amount must be positive")

    # Raise with error code for client handling
    raise ValidationError("Amount must be positive", error_code="INVALID_AMOUNT")

    # Raise with additional details
    raise NotFoundError(
        "Payout not found",
        error_code="PAYOUT_NOT_FOUND",
        details={"payout_id": str(payout_id)},
    )

    # Convert to dict for API response
    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=e.http_status)

Note:
    These exceptions are for domain/business logic errors.
    DRF handles API-layer exceptions (serialization, authentication, etc.).
    core.exception_handler turns uncaught instances into JSON responses.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Provides a consistent interface for error handling across the application.
    All custom exceptions should inherit from this class.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (amounts, identifiers, etc.)
        http_status: Status code used when the error reaches the API layer

    Example:
        try:
            balance = TreasuryLedger.release(merchant_id, amount, fee, payout_id)
        except BaseApplicationError as e:
            logger.warning("Release rejected", extra={"error_code": e.error_code})
            return Response(e.to_dict(), status=e.http_status)
    """

    default_error_code: str = "APPLICATION_ERROR"
    http_status: int = 500

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code (defaults to class default)
            details: Additional error context
        """
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Returns:
            Dict with error, error_code, and details keys

        Example:
            {
                "error": "Payout not found",
                "error_code": "PAYOUT_NOT_FOUND",
                "details": {"payout_id": "8c1f..."}
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
    """
    Raised when input validation fails.

    Use for:
    - Negative or fractional-cent amounts
    - Malformed identifiers (claim tokens, emails)
    - Batch size limits

    Example:
        raise ValidationError(
            "Amount must not be negative",
            error_code="INVALID_AMOUNT",
            details={"amount": str(amount)},
        )

    Note:
        For DRF serializer validation, use DRF's built-in validation.
        Use this for service-layer validation logic.
    """

    default_error_code: str = "VALIDATION_ERROR"
    http_status: int = 400


class NotFoundError(BaseApplicationError):
    """
    Raised when a requested resource is not found.

    Use for single-resource lookups where existence is expected, such as
    a balance row that must exist after get-or-create, or a reservation
    that a release refers to.

    Example:
        raise NotFoundError(
            f"Recipient {recipient_id} not found",
            error_code="RECIPIENT_NOT_FOUND",
            details={"recipient_id": str(recipient_id)},
        )

    Note:
        Read paths that can legitimately miss (lookups by email or token)
        return None instead.
    """

    default_error_code: str = "NOT_FOUND"
    http_status: int = 404


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when the caller lacks permission for an operation.

    Example:
        if payout.merchant_id != merchant_id:
            raise PermissionDeniedError(
                "Payout belongs to another merchant",
                error_code="PAYOUT_FORBIDDEN",
            )

    Note:
        For authentication failures (missing/invalid API key), use DRF's
        AuthenticationFailed. Use this for authorization failures.
    """

    default_error_code: str = "PERMISSION_DENIED"
    http_status: int = 403


class ConflictError(BaseApplicationError):
    """
    Raised when operation conflicts with current resource state.

    Use for:
    - Replayed ledger operations (release twice, refund after release)
    - Invalid state transitions
    - Optimistic locking failures

    Example:
        raise ConflictError(
            f"Cannot expire payout in {payout.status} status",
            error_code="INVALID_STATE_TRANSITION",
            details={"current_status": payout.status, "action": "expire"},
        )

    Note:
        HTTP 409 Conflict is the appropriate status for these errors.
    """

    default_error_code: str = "CONFLICT"
    http_status: int = 409
