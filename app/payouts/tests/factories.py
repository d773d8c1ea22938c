"""
Factory Boy factories for payout test data.

Usage:
    from payouts.tests.factories import PayoutFactory

    payout = PayoutFactory(email="alice@example.com", amount=Decimal("25.00"))
    pending = PayoutFactory(status=PayoutStatus.PENDING)

Note:
    Factory payouts have no treasury reservation. Tests that check money
    movement should create payouts with PayoutLifecycle.create_payout.
"""

import secrets
from datetime import timedelta
from decimal import Decimal

import factory
from django.utils import timezone

from payouts.models import Payout, PayoutBatch
from payouts.state_machines import PayoutStatus


class PayoutBatchFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = PayoutBatch

    merchant_id = factory.Sequence(lambda n: f"merchant_{n}")
    merchant_wallet = factory.Sequence(lambda n: f"MerchWa11et{n:032d}")
    currency = "USDC"


class PayoutFactory(factory.django.DjangoModelFactory):
    """
    Factory for creating Payout instances.

    Default creates a SENT payout with an open claim window.
    """

    class Meta:
        model = Payout

    merchant_id = factory.Sequence(lambda n: f"merchant_{n}")
    merchant_wallet = factory.Sequence(lambda n: f"MerchWa11et{n:032d}")
    email = factory.Sequence(lambda n: f"payee{n}@example.com")
    amount = Decimal("25.00")
    fee = Decimal("0.25")
    currency = "USDC"
    status = PayoutStatus.SENT
    claim_token = factory.LazyFunction(lambda: secrets.token_urlsafe(32))
    expires_at = factory.LazyFunction(lambda: timezone.now() + timedelta(days=7))
