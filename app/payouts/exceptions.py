"""
Payout-specific exceptions.

Expected rejections during a claim (already claimed, expired, not
found) are returned as ServiceResult failures by PayoutLifecycle; the
exceptions here cover caller errors and integrity faults.

Exception Hierarchy:
    PayoutError (base)
    ├── PayoutNotFound - Payout lookup by id failed
    ├── InvalidClaimToken - Malformed claim token
    ├── InvalidPayoutTransition - FSM transition not allowed
    └── BatchTooLarge - Batch exceeds PAYOUTS_MAX_BATCH_SIZE

Usage:
    from payouts.exceptions import InvalidPayoutTransition

    try:
        PayoutLifecycle.expire_payout(payout.id)
    except InvalidPayoutTransition as e:
        logger.warning(f"Cannot expire: {e}")
"""

from __future__ import annotations

from core.exceptions import BaseApplicationError, ConflictError, NotFoundError, ValidationError


class PayoutError(BaseApplicationError):
    """Base exception for payout operations."""

    default_error_code: str = "PAYOUT_ERROR"


class PayoutNotFound(PayoutError, NotFoundError):
    """
    Raised when a payout referenced by id does not exist.

    Example:
        raise PayoutNotFound(
            f"Payout {payout_id} not found",
            details={"payout_id": str(payout_id)},
        )
    """

    default_error_code: str = "PAYOUT_NOT_FOUND"


class InvalidClaimToken(PayoutError, ValidationError):
    """Raised when a claim token is empty or not in the issued format."""

    default_error_code: str = "INVALID_CLAIM_TOKEN"


class InvalidPayoutTransition(PayoutError, ConflictError):
    """
    Raised when a payout cannot move to the requested state.

    Wraps django_fsm.TransitionNotAllowed so callers only deal with
    application errors.
    """

    default_error_code: str = "INVALID_PAYOUT_TRANSITION"


class BatchTooLarge(PayoutError, ValidationError):
    """Raised when a batch has more items than PAYOUTS_MAX_BATCH_SIZE."""

    default_error_code: str = "BATCH_TOO_LARGE"


__all__ = [
    "BatchTooLarge",
    "InvalidClaimToken",
    "InvalidPayoutTransition",
    "PayoutError",
    "PayoutNotFound",
]
