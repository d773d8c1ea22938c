"""
Payouts app: the payout settlement state machine.

This app handles:
- Payout creation funded by a treasury reservation
- Claims by token, with replay protection
- Expiry and failure, refunding the reservation
- Batches of payouts
- Lifecycle signals for webhook and email collaborators

Related apps:
    - treasury: reserve / release / refund of merchant funds
    - recipients: registration, stats and held balances on claim

Usage:
    from payouts.services import PayoutLifecycle

    result = PayoutLifecycle.create_payout(merchant_id, wallet, email, amount)
"""
