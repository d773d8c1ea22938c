"""
Base service layer patterns for business logic encapsulation.

This module provides foundational patterns for the service layer:
- ServiceResult: Standard result wrapper for consistent success/failure handling
- BaseService: Base class with common service utilities

Service Layer Philosophy:
    Services encapsulate business logic separate from views and models.
    Views handle HTTP concerns, models handle data, services handle logic.

Pattern Comparison:
    - ServiceResult: Use for expected failures (insufficient balance,
      already claimed, expired)
    - Exceptions: Use for unexpected failures (missing rows, negative
      amounts, malformed tokens)

Usage:
    from core.services import BaseService, ServiceResult

    class TreasuryLedger(BaseService):
        @classmethod
        def reserve(cls, merchant_id, amount, fee, payout_id) -> ServiceResult[MerchantBalance]:
            with cls.atomic():
                balance = cls._lock_balance(merchant_id)
                if balance.available < amount + fee:
                    return ServiceResult.failure(
                        "Insufficient balance",
                        error_code="INSUFFICIENT_BALANCE",
                    )
                ...
            return ServiceResult.success(balance)

    # In view
    result = TreasuryLedger.reserve(merchant_id, amount, fee, payout_id)
    if result.success:
        return Response(BalanceSerializer(result.data).data)
    return Response(result.to_response(), status=402)

Related:
    - core.exceptions: For unexpected/exceptional errors
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

# Generic type for ServiceResult data
T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Provides consistent success/failure handling without exceptions.
    Use this for expected failures (business rule rejections).

    Attributes:
        success: Whether the operation succeeded
        data: Result data. Usually None on failure, but a failure may carry
            the record that caused the rejection (e.g. the payout that was
            already claimed)
        error: Error message if failed (None if successful)
        error_code: Machine-readable error code for client handling
        errors: Field-level errors for validation failures

    Usage:
        # Success case
        return ServiceResult.success(balance)

        # Failure case
        return ServiceResult.failure("Insufficient balance", "INSUFFICIENT_BALANCE")

        # Failure that hands back the conflicting record
        return ServiceResult.failure(
            "Payout already claimed",
            error_code="PAYOUT_ALREADY_CLAIMED",
            data=payout,
        )

        # Check result
        result = PayoutLifecycle.claim_payout(token, wallet, signature)
        if result.success:
            payout = result.data
        else:
            print(f"Error: {result.error} ({result.error_code})")
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        """
        Create a successful result.

        Args:
            data: The result data

        Returns:
            ServiceResult with success=True and data set
        """
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
        data: T | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code for client handling
            errors: Field-level errors (for validation failures)
            data: Optional record describing the current state that caused
                the rejection

        Returns:
            ServiceResult with success=False and error details

        Example:
            return ServiceResult.failure("Payout not found", "PAYOUT_NOT_FOUND")
        """
        return cls(
            success=False,
            data=data,
            error=error,
            error_code=error_code,
            errors=errors,
        )

    @classmethod
    def from_exception(cls, exc: Exception, error_code: str | None = None) -> ServiceResult[T]:
        """
        Create a failed result from an exception.

        Application errors keep their own error_code; other exceptions
        fall back to the class name.

        Args:
            exc: The caught exception
            error_code: Optional error code override

        Returns:
            ServiceResult with error details from exception
        """
        message = getattr(exc, "message", None) or str(exc)
        code = error_code or getattr(exc, "error_code", None) or exc.__class__.__name__.upper()
        return cls(success=False, error=message, error_code=code)

    def to_response(self) -> dict[str, Any]:
        """
        Convert to API response format.

        Returns:
            Dict with success status and data or error details
        """
        if self.success:
            return {"success": True, "data": self.data}

        response: dict[str, Any] = {
            "success": False,
            "error": self.error,
        }
        if self.error_code:
            response["error_code"] = self.error_code
        if self.errors:
            response["errors"] = self.errors
        return response

    def __bool__(self) -> bool:
        """
        Allow using result in boolean context.

        Example:
            result = TreasuryLedger.reserve(...)
            if result:  # Same as: if result.success
                ...
        """
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Provides common utilities for services:
    - Logging setup per service
    - Database transaction management
    - Exception handling patterns

    Design Notes:
        - Use @staticmethod or @classmethod (no instance state)
        - Services should be stateless
        - Use ServiceResult for expected failures
        - Raise exceptions for unexpected failures
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get logger for this service.

        Returns a logger named after the service class for
        easy filtering in logs.

        Returns:
            Logger instance for this service

        Example:
            class TreasuryLedger(BaseService):
                @classmethod
                def credit(cls, merchant_id, amount):
                    cls.get_logger().info("Crediting treasury", extra={...})
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        All database operations within this context manager are
        wrapped in a transaction. If any operation fails, all
        changes are rolled back. Nested use creates a savepoint.

        Yields:
            None

        Example:
            with cls.atomic():
                balance.save()
                TreasuryTransaction.objects.create(...)
                # If the audit row fails, the balance change is rolled back
        """
        with transaction.atomic():
            yield

    @classmethod
    def handle_exception(
        cls,
        exc: Exception,
        context: str = "",
        log_level: int = logging.ERROR,
    ) -> ServiceResult:
        """
        Convert exception to ServiceResult with logging.

        Used where one failure must not abort a larger unit of work,
        such as a single member of a payout batch.

        Args:
            exc: The caught exception
            context: Additional context for logging
            log_level: Logging level (default ERROR)

        Returns:
            ServiceResult with error details
        """
        logger = cls.get_logger()
        message = f"{context}: {exc}" if context else str(exc)
        logger.log(log_level, message, exc_info=log_level >= logging.ERROR)
        return ServiceResult.from_exception(exc)
