"""
Recipients app: payout recipients, held balances and magic-link login.

This app handles:
- Recipient identity keyed by normalized email, with the wallet on file
- The auto-delivery decision for new payouts
- Held balances for payouts credited instead of delivered on-chain
- One-time magic-link tokens

Related apps:
    - payouts: Registers recipients on claim and credits held balances

Usage:
    from recipients.services import AuthTokenService, RecipientDirectory, RecipientLedger
"""
