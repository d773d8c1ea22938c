"""
Pytest fixtures for merchant tests.
"""

import pytest

from merchants.services import MerchantService
from merchants.tests.factories import MerchantFactory


@pytest.fixture
def merchant(db):
    """Create an active merchant."""
    return MerchantFactory()


@pytest.fixture
def issued_key(db, merchant):
    """Issue a live API key; returns (ApiKey, raw_key)."""
    return MerchantService.create_api_key(merchant, name="Server")
