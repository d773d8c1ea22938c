"""
Treasury app: merchant balances and the payout fee schedule.

This app handles:
- Merchant treasury balances (available / pending / reserved buckets)
- Reservation, release and refund of payout funds
- The append-only treasury audit log
- Platform fee calculation

Related apps:
    - payouts: Reserves funds on payout creation, releases or refunds them
      when the payout settles

Usage:
    from treasury.fees import calculate_fee
    from treasury.services import TreasuryLedger

    fee = calculate_fee(amount)
    result = TreasuryLedger.reserve(merchant_id, amount, fee, payout_id)
"""
