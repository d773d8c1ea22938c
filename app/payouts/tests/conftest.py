"""
Pytest fixtures for payout tests.

Usage:
    def test_claim(sent_payout):
        result = PayoutLifecycle.settle_payout(sent_payout.claim_token, "Wallet", "sig")
"""

from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from merchants.services import MerchantService
from merchants.tests.factories import MerchantFactory
from payouts.services import PayoutLifecycle
from treasury.services import TreasuryLedger


@pytest.fixture
def merchant(db):
    """A merchant with 1000.00 USDC in its treasury."""
    merchant = MerchantFactory()
    TreasuryLedger.credit(merchant.merchant_id, Decimal("1000.00"), tx_signature="sig_deposit_1")
    return merchant


@pytest.fixture
def other_merchant(db):
    merchant = MerchantFactory()
    TreasuryLedger.credit(merchant.merchant_id, Decimal("1000.00"), tx_signature="sig_deposit_2")
    return merchant


@pytest.fixture
def create_payout(merchant):
    """Create a treasury-funded payout for `merchant`."""

    def _create(email="alice@example.com", amount=Decimal("100.00"), **kwargs):
        result = PayoutLifecycle.create_payout(
            merchant_id=merchant.merchant_id,
            merchant_wallet=merchant.wallet_address,
            email=email,
            amount=amount,
            **kwargs,
        )
        assert result.success, result.error
        return result.data

    return _create


@pytest.fixture
def sent_payout(create_payout):
    """A SENT payout of 100.00 (fee 1.00) to alice@example.com."""
    return create_payout()


# =============================================================================
# API Fixtures
# =============================================================================


@pytest.fixture
def api_client(merchant):
    """APIClient authenticated with an API key for `merchant`."""
    _, raw_key = MerchantService.create_api_key(merchant)
    client = APIClient()
    client.credentials(HTTP_X_API_KEY=raw_key)
    return client


@pytest.fixture
def anonymous_client():
    return APIClient()
