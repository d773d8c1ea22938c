"""
Recipient-specific exceptions.

Exception Hierarchy:
    RecipientError (base)
    ├── RecipientNotFound - Recipient lookup by id failed
    └── InsufficientBalance - Debit larger than the held balance

InvalidAmount is shared with the treasury (amounts follow the same
rules everywhere) and re-exported here.

Usage:
    from recipients.exceptions import InsufficientBalance

    try:
        RecipientLedger.debit_balance(recipient.id, amount, tx_signature)
    except InsufficientBalance as e:
        print(f"Need {e.required}, have {e.available}")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError, NotFoundError
from treasury.exceptions import InvalidAmount

if TYPE_CHECKING:
    import uuid
    from decimal import Decimal
    from typing import Any


class RecipientError(BaseApplicationError):
    """Base exception for recipient operations."""

    default_error_code: str = "RECIPIENT_ERROR"


class RecipientNotFound(RecipientError, NotFoundError):
    """Raised when a recipient referenced by id does not exist."""

    default_error_code: str = "RECIPIENT_NOT_FOUND"


class InsufficientBalance(RecipientError):
    """
    Raised when a recipient's held balance cannot cover a debit.

    No balance field changes before this is raised.

    Attributes:
        recipient_id: The recipient whose balance was too low
        required: The amount that was requested
        available: The balance at the time of the request
    """

    default_error_code: str = "INSUFFICIENT_BALANCE"
    http_status: int = 402

    def __init__(
        self,
        recipient_id: uuid.UUID,
        required: Decimal,
        available: Decimal,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize with recipient details and amounts.

        Args:
            recipient_id: Recipient with insufficient funds
            required: Amount requested
            available: Amount held
            error_code: Optional custom error code
            details: Optional additional error context
        """
        self.recipient_id = recipient_id
        self.required = required
        self.available = available

        full_details = {
            "recipient_id": str(recipient_id),
            "required": str(required),
            "available": str(available),
        }
        if details:
            full_details.update(details)

        super().__init__(
            message="Insufficient balance",
            error_code=error_code,
            details=full_details,
        )


__all__ = [
    "InsufficientBalance",
    "InvalidAmount",
    "RecipientError",
    "RecipientNotFound",
]
