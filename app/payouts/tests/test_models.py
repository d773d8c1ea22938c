"""
Tests for Payout model properties, versioning and constraints.
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.db import IntegrityError, transaction
from django.utils import timezone

from payouts.models import Payout
from payouts.state_machines import PayoutStatus
from payouts.tests.factories import PayoutFactory


class TestPayoutProperties:
    def test_claim_url(self, db, settings):
        settings.PAYOUTS_CLAIM_BASE_URL = "https://pay.example.com/"
        payout = PayoutFactory()

        assert payout.claim_url == f"https://pay.example.com/claim/{payout.claim_token}"

    def test_claimable_while_window_open(self, db):
        payout = PayoutFactory()

        assert payout.is_claimable is True
        assert payout.is_past_expiry is False

    def test_not_claimable_after_window(self, db):
        payout = PayoutFactory(expires_at=timezone.now() - timedelta(seconds=1))

        assert payout.is_past_expiry is True
        assert payout.is_claimable is False

    def test_not_claimable_when_claimed(self, db):
        payout = PayoutFactory(status=PayoutStatus.CLAIMED)

        assert payout.is_claimable is False
        assert payout.is_claimed is True

    def test_str(self, db):
        payout = PayoutFactory(amount=Decimal("12.50"))

        assert str(payout) == f"Payout({payout.id}, sent, 12.50 USDC)"


class TestVersionFieldBehavior:
    """Tests for the version field used for optimistic locking."""

    def test_new_payout_starts_at_version_1(self, db):
        assert PayoutFactory().version == 1

    def test_save_increments_version(self, db):
        payout = PayoutFactory()

        payout.memo = "updated"
        payout.save()

        assert payout.version == 2
        assert Payout.objects.get(pk=payout.pk).version == 2

    def test_update_fields_includes_version(self, db):
        payout = PayoutFactory()

        payout.memo = "updated"
        payout.save(update_fields=["memo", "updated_at"])

        assert payout.version == 2


class TestPayoutConstraints:
    def test_amount_must_be_positive(self, db):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                PayoutFactory(amount=Decimal("0.00"))

    def test_fee_cannot_be_negative(self, db):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                PayoutFactory(fee=Decimal("-0.01"))

    def test_claim_token_is_unique(self, db):
        payout = PayoutFactory()

        with pytest.raises(IntegrityError):
            with transaction.atomic():
                PayoutFactory(claim_token=payout.claim_token)
