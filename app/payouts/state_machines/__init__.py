"""
State machine enums for payout models.
"""

from payouts.state_machines.states import (
    TERMINAL_PAYOUT_STATUSES,
    PayoutBatchStatus,
    PayoutStatus,
)

__all__ = [
    "PayoutBatchStatus",
    "PayoutStatus",
    "TERMINAL_PAYOUT_STATUSES",
]
