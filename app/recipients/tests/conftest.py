"""
Pytest fixtures for recipient tests.
"""

import pytest
from rest_framework.test import APIClient

from recipients.tests.factories import RecipientFactory


@pytest.fixture
def recipient(db):
    """A recipient with a wallet on file and auto-withdraw enabled."""
    return RecipientFactory(email="alice@example.com")


@pytest.fixture
def api_client():
    """Unauthenticated API client (recipient endpoints are public)."""
    return APIClient()
