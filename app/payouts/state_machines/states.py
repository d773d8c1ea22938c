"""
State enums for payout models.

These are Django TextChoices used as FSMField choices.

State Machines Overview:

Payout States:
    pending → funded → sent → claimed (treasury-funded path)
    pending → sent → claimed (externally funded path)
    sent → expired | failed
    pending/funded → failed

PayoutBatch States:
    processing → completed | partial | failed
"""

from django.db import models


class PayoutStatus(models.TextChoices):
    """
    States for the Payout model lifecycle.

    Terminal states: CLAIMED, EXPIRED, FAILED

    State Flow:
        PENDING → FUNDED → SENT → CLAIMED
        PENDING → SENT → CLAIMED (no treasury reservation)

    Unwind Flow:
        SENT → EXPIRED (claim window passed, reservation refunded)
        PENDING/FUNDED/SENT → FAILED (reservation refunded)
    """

    PENDING = "pending", "Pending"
    FUNDED = "funded", "Funded"
    SENT = "sent", "Sent"
    CLAIMED = "claimed", "Claimed"
    EXPIRED = "expired", "Expired"
    FAILED = "failed", "Failed"


class PayoutBatchStatus(models.TextChoices):
    """
    Aggregate status of a PayoutBatch.

    COMPLETED when every member payout was created, PARTIAL when some
    were, FAILED when none were.
    """

    PROCESSING = "processing", "Processing"
    COMPLETED = "completed", "Completed"
    PARTIAL = "partial", "Partial"
    FAILED = "failed", "Failed"


TERMINAL_PAYOUT_STATUSES = frozenset(
    {PayoutStatus.CLAIMED, PayoutStatus.EXPIRED, PayoutStatus.FAILED}
)
