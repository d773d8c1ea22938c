"""
Payout lifecycle signals.

Each signal is sent once the transition that caused it has committed,
with the payout as the `payout` keyword argument. Webhook dispatch and
recipient emails connect receivers to these; this app only emits them.

Usage:
    from django.dispatch import receiver
    from payouts.signals import payout_claimed

    @receiver(payout_claimed)
    def notify_merchant(sender, payout, **kwargs):
        ...
"""

from django.dispatch import Signal

payout_created = Signal()
payout_claimed = Signal()
payout_expired = Signal()
payout_failed = Signal()
