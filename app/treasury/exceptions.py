"""
Treasury-specific exceptions for merchant balance operations.

This module provides a hierarchy of exceptions for treasury operations,
inheriting from the core exception classes for API consistency.

Exception Hierarchy:
    TreasuryError (base)
    ├── InvalidAmount - Negative or fractional-cent amounts
    ├── BalanceNotFound - Balance row missing where one must exist
    ├── ReservationNotFound - Release/refund without a reservation
    ├── ReservationMismatch - Release/refund amounts differ from the reservation
    ├── ReservationConflict - Second reserve for a payout with other amounts
    └── ReservationAlreadySettled - Reservation already released or refunded

Insufficient balance on reserve/withdraw is not an exception: those
operations return a failed ServiceResult.

Usage:
    from treasury.exceptions import ReservationAlreadySettled

    try:
        TreasuryLedger.refund(merchant_id, amount, fee, payout_id)
    except ReservationAlreadySettled as e:
        logger.warning("Payout already settled", extra=e.details)
"""

from __future__ import annotations

from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)


class TreasuryError(BaseApplicationError):
    """
    Base exception for all treasury operations.

    Example:
        try:
            TreasuryLedger.release(merchant_id, amount, fee, payout_id)
        except TreasuryError as e:
            return Response(e.to_dict(), status=e.http_status)
    """

    default_error_code: str = "TREASURY_ERROR"


class InvalidAmount(TreasuryError, ValidationError):
    """Raised for negative, non-numeric, or fractional-cent amounts."""

    default_error_code: str = "INVALID_AMOUNT"


class BalanceNotFound(TreasuryError, NotFoundError):
    """
    Raised when a merchant balance row is missing.

    Mutations create the row on demand, so this indicates a data
    integrity fault rather than a normal miss.
    """

    default_error_code: str = "BALANCE_NOT_FOUND"


class ReservationNotFound(TreasuryError, NotFoundError):
    """
    Raised when release or refund names a payout that was never reserved.

    Example:
        raise ReservationNotFound(
            f"No reservation for payout {payout_id}",
            details={"payout_id": str(payout_id)},
        )
    """

    default_error_code: str = "RESERVATION_NOT_FOUND"


class ReservationMismatch(TreasuryError, ValidationError):
    """
    Raised when release/refund amounts differ from what was reserved.

    Only the reserved total can leave the reserved bucket for a payout,
    so a mismatch is rejected before any balance field changes.
    """

    default_error_code: str = "RESERVATION_MISMATCH"


class ReservationConflict(TreasuryError, ConflictError):
    """Raised when a payout is reserved a second time with different amounts."""

    default_error_code: str = "RESERVATION_CONFLICT"


class ReservationAlreadySettled(TreasuryError, ConflictError):
    """
    Raised when a reservation that was already settled is settled the other way.

    A released reservation cannot be refunded and a refunded one cannot be
    released. Repeating the same settlement is a no-op, not an error.
    """

    default_error_code: str = "RESERVATION_ALREADY_SETTLED"
