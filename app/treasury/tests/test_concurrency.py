"""
Concurrency tests for treasury balance creation.

These need real row locks, so they only run against PostgreSQL
(DATABASE_URL=postgres://...). On SQLite they are skipped.
"""

import pytest
from django.db import connection

from core.tests.concurrency import run_concurrently
from treasury.models import MerchantBalance
from treasury.services import TreasuryLedger

pytestmark = [
    pytest.mark.postgres,
    pytest.mark.skipif(
        connection.vendor != "postgresql",
        reason="Row locking needs PostgreSQL",
    ),
]


@pytest.mark.django_db(transaction=True)
class TestConcurrentBalanceCreation:
    def test_one_row_per_merchant_and_currency(self):
        results = run_concurrently(
            lambda i: TreasuryLedger.get_or_create_balance("merchant_race", "USDC"),
            count=8,
        )

        assert MerchantBalance.objects.filter(merchant_id="merchant_race", currency="USDC").count() == 1
        assert len({balance.pk for balance in results}) == 1
