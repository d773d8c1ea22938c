"""
Pytest fixtures for treasury tests.

Usage:
    def test_reserve(funded_merchant_id):
        result = TreasuryLedger.reserve(funded_merchant_id, Decimal("100"), Decimal("1"), uuid.uuid4())
"""

import uuid
from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from merchants.services import MerchantService
from merchants.tests.factories import MerchantFactory
from treasury.services import TreasuryLedger


@pytest.fixture
def merchant_id():
    """A merchant identifier with no balance yet."""
    return f"merchant_{uuid.uuid4().hex[:12]}"


@pytest.fixture
def funded_merchant_id(db, merchant_id):
    """A merchant with 1000.00 USDC deposited."""
    TreasuryLedger.credit(merchant_id, Decimal("1000.00"), tx_signature="sig_deposit_1")
    return merchant_id


@pytest.fixture
def payout_id():
    return uuid.uuid4()


# =============================================================================
# API Fixtures
# =============================================================================


@pytest.fixture
def merchant(db):
    return MerchantFactory()


@pytest.fixture
def api_client(db, merchant):
    """APIClient authenticated with a fresh API key for `merchant`."""
    _, raw_key = MerchantService.create_api_key(merchant)
    client = APIClient()
    client.credentials(HTTP_X_API_KEY=raw_key)
    return client
