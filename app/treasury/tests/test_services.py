"""
Tests for TreasuryLedger.

Covers deposits, withdrawals, the reserve/release/refund lifecycle, replay
handling, and the conservation of funds across balance buckets.
"""

import uuid
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from freezegun import freeze_time

from treasury.exceptions import (
    InvalidAmount,
    ReservationAlreadySettled,
    ReservationConflict,
    ReservationMismatch,
    ReservationNotFound,
)
from treasury.models import MerchantBalance, TreasuryTransaction, TreasuryTransactionType
from treasury.services import INSUFFICIENT_BALANCE, TreasuryLedger


def assert_conserved(balance: MerchantBalance):
    """Every deposited cent is available, reserved, paid out, charged or withdrawn."""
    assert (
        balance.available
        + balance.reserved
        + balance.total_payouts
        + balance.total_fees
        + balance.total_withdrawn
        == balance.total_deposited
    )


# =============================================================================
# Balance lookup
# =============================================================================


class TestGetOrCreateBalance:
    def test_creates_zero_balance(self, db, merchant_id):
        """A new merchant starts with every bucket at zero."""
        balance = TreasuryLedger.get_or_create_balance(merchant_id)

        assert balance.currency == "USDC"
        assert balance.available == Decimal("0")
        assert balance.reserved == Decimal("0")
        assert balance.pending == Decimal("0")

    def test_returns_existing_row(self, db, merchant_id):
        first = TreasuryLedger.get_or_create_balance(merchant_id)
        second = TreasuryLedger.get_or_create_balance(merchant_id)

        assert first.pk == second.pk
        assert MerchantBalance.objects.filter(merchant_id=merchant_id).count() == 1

    def test_one_balance_per_currency(self, db, merchant_id):
        usdc = TreasuryLedger.get_or_create_balance(merchant_id, "USDC")
        eurc = TreasuryLedger.get_or_create_balance(merchant_id, "EURC")

        assert usdc.pk != eurc.pk

    def test_get_balance_does_not_create(self, db, merchant_id):
        assert TreasuryLedger.get_balance(merchant_id) is None
        assert not MerchantBalance.objects.filter(merchant_id=merchant_id).exists()


# =============================================================================
# Deposits & withdrawals
# =============================================================================


class TestCredit:
    def test_credit_increases_available_and_total(self, db, merchant_id):
        balance = TreasuryLedger.credit(merchant_id, Decimal("250.00"), tx_signature="sig_1")

        assert balance.available == Decimal("250.00")
        assert balance.total_deposited == Decimal("250.00")

    def test_credit_writes_deposit_row(self, db, merchant_id):
        TreasuryLedger.credit(merchant_id, Decimal("250.00"), tx_signature="sig_1")

        row = TreasuryTransaction.objects.get(merchant_id=merchant_id)
        assert row.type == TreasuryTransactionType.DEPOSIT
        assert row.amount == Decimal("250.00")
        assert row.tx_signature == "sig_1"
        assert row.balance_after == Decimal("250.00")
        assert row.description == "USDC deposit"

    def test_credit_from_pending(self, db, merchant_id):
        """A confirmed deposit leaves the pending bucket."""
        TreasuryLedger.add_pending(merchant_id, Decimal("40.00"))

        balance = TreasuryLedger.credit(merchant_id, Decimal("40.00"), from_pending=True)

        assert balance.pending == Decimal("0")
        assert balance.available == Decimal("40.00")

    def test_add_pending_writes_no_row(self, db, merchant_id):
        balance = TreasuryLedger.add_pending(merchant_id, Decimal("40.00"))

        assert balance.pending == Decimal("40.00")
        assert balance.available == Decimal("0")
        assert not TreasuryTransaction.objects.filter(merchant_id=merchant_id).exists()

    def test_negative_credit_rejected(self, db, merchant_id):
        with pytest.raises(InvalidAmount):
            TreasuryLedger.credit(merchant_id, Decimal("-5.00"))

        assert not TreasuryTransaction.objects.filter(merchant_id=merchant_id).exists()


class TestWithdraw:
    def test_withdraw_moves_available_to_withdrawn(self, db, funded_merchant_id):
        result = TreasuryLedger.withdraw(funded_merchant_id, Decimal("300.00"), "sig_out")

        assert result.success
        assert result.data.available == Decimal("700.00")
        assert result.data.total_withdrawn == Decimal("300.00")
        assert_conserved(result.data)

    def test_withdraw_insufficient(self, db, funded_merchant_id):
        """Overdrawing fails without changing the balance."""
        result = TreasuryLedger.withdraw(funded_merchant_id, Decimal("1000.01"), "sig_out")

        assert not result.success
        assert result.error == "Insufficient balance"
        assert result.error_code == INSUFFICIENT_BALANCE
        balance = TreasuryLedger.get_balance(funded_merchant_id)
        assert balance.available == Decimal("1000.00")
        assert not TreasuryTransaction.objects.filter(
            merchant_id=funded_merchant_id, type=TreasuryTransactionType.WITHDRAWAL
        ).exists()


# =============================================================================
# Reservation lifecycle
# =============================================================================


class TestReserveReleaseRefund:
    def test_reserve_then_release(self, db, funded_merchant_id, payout_id):
        """Reserve 100 + 1 fee, then release it."""
        result = TreasuryLedger.reserve(
            funded_merchant_id, Decimal("100"), Decimal("1"), payout_id
        )

        assert result.success
        assert result.data.available == Decimal("899.00")
        assert result.data.reserved == Decimal("101.00")

        balance = TreasuryLedger.release(
            funded_merchant_id, Decimal("100"), Decimal("1"), payout_id
        )

        assert balance.reserved == Decimal("0")
        assert balance.total_payouts == Decimal("100.00")
        assert balance.total_fees == Decimal("1.00")
        assert balance.available == Decimal("899.00")
        assert_conserved(balance)

    def test_reserve_then_refund_restores_balance(self, db, funded_merchant_id, payout_id):
        """Refunding a reservation puts every bucket back where it started."""
        TreasuryLedger.reserve(funded_merchant_id, Decimal("100"), Decimal("1"), payout_id)

        balance = TreasuryLedger.refund(
            funded_merchant_id, Decimal("100"), Decimal("1"), payout_id
        )

        assert balance.reserved == Decimal("0")
        assert balance.available == Decimal("1000.00")
        assert balance.total_payouts == Decimal("0")
        assert balance.total_fees == Decimal("0")
        assert_conserved(balance)

    def test_reserve_insufficient(self, db, merchant_id, payout_id):
        """Reserving more than available fails and changes nothing."""
        TreasuryLedger.credit(merchant_id, Decimal("10.00"))

        result = TreasuryLedger.reserve(merchant_id, Decimal("500"), Decimal("5"), payout_id)

        assert not result.success
        assert result.error == "Insufficient balance"
        assert result.error_code == INSUFFICIENT_BALANCE
        balance = TreasuryLedger.get_balance(merchant_id)
        assert balance.available == Decimal("10.00")
        assert balance.reserved == Decimal("0")
        assert TreasuryLedger.get_reservation(payout_id) is None

    def test_reserve_exactly_available(self, db, merchant_id, payout_id):
        """amount + fee equal to available is allowed."""
        TreasuryLedger.credit(merchant_id, Decimal("25.25"))

        result = TreasuryLedger.reserve(merchant_id, Decimal("25.00"), Decimal("0.25"), payout_id)

        assert result.success
        assert result.data.available == Decimal("0")

    def test_fee_counts_against_available(self, db, merchant_id, payout_id):
        """A payout equal to available fails once the fee is added."""
        TreasuryLedger.credit(merchant_id, Decimal("25.00"))

        result = TreasuryLedger.reserve(merchant_id, Decimal("25.00"), Decimal("0.25"), payout_id)

        assert not result.success

    def test_release_writes_principal_and_fee_rows(self, db, funded_merchant_id, payout_id):
        TreasuryLedger.reserve(funded_merchant_id, Decimal("100"), Decimal("1"), payout_id)
        TreasuryLedger.release(funded_merchant_id, Decimal("100"), Decimal("1"), payout_id)

        rows = {
            row.type: row.amount
            for row in TreasuryTransaction.objects.filter(payout_id=payout_id)
        }
        assert rows == {
            TreasuryTransactionType.PAYOUT_RESERVED: Decimal("101.00"),
            TreasuryTransactionType.PAYOUT_RELEASED: Decimal("100.00"),
            TreasuryTransactionType.FEE_DEDUCTED: Decimal("1.00"),
        }

    def test_reservations_for_separate_payouts_accumulate(self, db, funded_merchant_id):
        TreasuryLedger.reserve(funded_merchant_id, Decimal("100"), Decimal("1"), uuid.uuid4())
        result = TreasuryLedger.reserve(
            funded_merchant_id, Decimal("200"), Decimal("2"), uuid.uuid4()
        )

        assert result.data.reserved == Decimal("303.00")
        assert result.data.available == Decimal("697.00")
        assert_conserved(result.data)


class TestReplayRules:
    """A payout is reserved at most once and settled at most once."""

    def test_reserve_replay_is_noop(self, db, funded_merchant_id, payout_id):
        TreasuryLedger.reserve(funded_merchant_id, Decimal("100"), Decimal("1"), payout_id)

        result = TreasuryLedger.reserve(
            funded_merchant_id, Decimal("100"), Decimal("1"), payout_id
        )

        assert result.success
        assert result.data.reserved == Decimal("101.00")
        assert TreasuryTransaction.objects.filter(
            payout_id=payout_id, type=TreasuryTransactionType.PAYOUT_RESERVED
        ).count() == 1

    def test_reserve_with_other_amounts_conflicts(self, db, funded_merchant_id, payout_id):
        TreasuryLedger.reserve(funded_merchant_id, Decimal("100"), Decimal("1"), payout_id)

        with pytest.raises(ReservationConflict):
            TreasuryLedger.reserve(funded_merchant_id, Decimal("200"), Decimal("2"), payout_id)

    def test_release_without_reservation(self, db, funded_merchant_id, payout_id):
        with pytest.raises(ReservationNotFound):
            TreasuryLedger.release(funded_merchant_id, Decimal("100"), Decimal("1"), payout_id)

        balance = TreasuryLedger.get_balance(funded_merchant_id)
        assert balance.total_payouts == Decimal("0")

    def test_refund_without_reservation(self, db, funded_merchant_id, payout_id):
        with pytest.raises(ReservationNotFound):
            TreasuryLedger.refund(funded_merchant_id, Decimal("100"), Decimal("1"), payout_id)

        assert TreasuryLedger.get_balance(funded_merchant_id).available == Decimal("1000.00")

    def test_release_by_another_merchant(self, db, funded_merchant_id, payout_id):
        """A reservation can only be settled by the merchant that made it."""
        TreasuryLedger.reserve(funded_merchant_id, Decimal("100"), Decimal("1"), payout_id)

        with pytest.raises(ReservationNotFound):
            TreasuryLedger.release("someone_else", Decimal("100"), Decimal("1"), payout_id)

    def test_release_with_mismatched_amount(self, db, funded_merchant_id, payout_id):
        TreasuryLedger.reserve(funded_merchant_id, Decimal("100"), Decimal("1"), payout_id)

        with pytest.raises(ReservationMismatch):
            TreasuryLedger.release(funded_merchant_id, Decimal("150"), Decimal("1"), payout_id)

        assert TreasuryLedger.get_balance(funded_merchant_id).reserved == Decimal("101.00")

    def test_release_twice_is_noop(self, db, funded_merchant_id, payout_id):
        TreasuryLedger.reserve(funded_merchant_id, Decimal("100"), Decimal("1"), payout_id)
        TreasuryLedger.release(funded_merchant_id, Decimal("100"), Decimal("1"), payout_id)

        balance = TreasuryLedger.release(
            funded_merchant_id, Decimal("100"), Decimal("1"), payout_id
        )

        assert balance.total_payouts == Decimal("100.00")
        assert balance.total_fees == Decimal("1.00")
        assert_conserved(balance)

    def test_refund_twice_is_noop(self, db, funded_merchant_id, payout_id):
        TreasuryLedger.reserve(funded_merchant_id, Decimal("100"), Decimal("1"), payout_id)
        TreasuryLedger.refund(funded_merchant_id, Decimal("100"), Decimal("1"), payout_id)

        balance = TreasuryLedger.refund(
            funded_merchant_id, Decimal("100"), Decimal("1"), payout_id
        )

        assert balance.available == Decimal("1000.00")
        assert_conserved(balance)

    def test_refund_after_release(self, db, funded_merchant_id, payout_id):
        TreasuryLedger.reserve(funded_merchant_id, Decimal("100"), Decimal("1"), payout_id)
        TreasuryLedger.release(funded_merchant_id, Decimal("100"), Decimal("1"), payout_id)

        with pytest.raises(ReservationAlreadySettled) as exc_info:
            TreasuryLedger.refund(funded_merchant_id, Decimal("100"), Decimal("1"), payout_id)

        assert exc_info.value.http_status == 409
        assert TreasuryLedger.get_balance(funded_merchant_id).available == Decimal("899.00")

    def test_release_after_refund(self, db, funded_merchant_id, payout_id):
        TreasuryLedger.reserve(funded_merchant_id, Decimal("100"), Decimal("1"), payout_id)
        TreasuryLedger.refund(funded_merchant_id, Decimal("100"), Decimal("1"), payout_id)

        with pytest.raises(ReservationAlreadySettled):
            TreasuryLedger.release(funded_merchant_id, Decimal("100"), Decimal("1"), payout_id)

        balance = TreasuryLedger.get_balance(funded_merchant_id)
        assert balance.total_payouts == Decimal("0")

    def test_get_settlement_type(self, db, funded_merchant_id, payout_id):
        TreasuryLedger.reserve(funded_merchant_id, Decimal("100"), Decimal("1"), payout_id)
        assert TreasuryLedger.get_settlement_type(payout_id) is None

        TreasuryLedger.refund(funded_merchant_id, Decimal("100"), Decimal("1"), payout_id)

        assert TreasuryLedger.get_settlement_type(payout_id) == TreasuryTransactionType.PAYOUT_REFUND


# =============================================================================
# History
# =============================================================================


class TestGetTransactions:
    def test_newest_first(self, db, funded_merchant_id, payout_id):
        with freeze_time(timezone.now() + timedelta(seconds=1)):
            TreasuryLedger.reserve(funded_merchant_id, Decimal("100"), Decimal("1"), payout_id)

        transactions = TreasuryLedger.get_transactions(funded_merchant_id)

        assert [t.type for t in transactions] == [
            TreasuryTransactionType.PAYOUT_RESERVED,
            TreasuryTransactionType.DEPOSIT,
        ]

    def test_release_rows_with_equal_timestamps(self, db, funded_merchant_id, payout_id):
        now = timezone.now()
        with freeze_time(now + timedelta(seconds=1)):
            TreasuryLedger.reserve(funded_merchant_id, Decimal("100"), Decimal("1"), payout_id)
        with freeze_time(now + timedelta(seconds=2)):
            TreasuryLedger.release(funded_merchant_id, Decimal("100"), Decimal("1"), payout_id)

        transactions = TreasuryLedger.get_transactions(funded_merchant_id)

        assert transactions[0].created_at == transactions[1].created_at
        assert [t.type for t in transactions] == [
            TreasuryTransactionType.FEE_DEDUCTED,
            TreasuryTransactionType.PAYOUT_RELEASED,
            TreasuryTransactionType.PAYOUT_RESERVED,
            TreasuryTransactionType.DEPOSIT,
        ]

    def test_filter_by_type(self, db, funded_merchant_id, payout_id):
        TreasuryLedger.reserve(funded_merchant_id, Decimal("100"), Decimal("1"), payout_id)

        deposits = TreasuryLedger.get_transactions(
            funded_merchant_id, type=TreasuryTransactionType.DEPOSIT
        )
        both = TreasuryLedger.get_transactions(
            funded_merchant_id,
            type=[TreasuryTransactionType.DEPOSIT, TreasuryTransactionType.PAYOUT_RESERVED],
        )

        assert len(deposits) == 1
        assert len(both) == 2

    def test_limit_and_offset(self, db, merchant_id):
        for index in range(5):
            TreasuryLedger.credit(merchant_id, Decimal("1.00"), tx_signature=f"sig_{index}")

        assert len(TreasuryLedger.get_transactions(merchant_id, limit=2)) == 2
        assert len(TreasuryLedger.get_transactions(merchant_id, limit=2, offset=4)) == 1
        assert len(TreasuryLedger.get_transactions(merchant_id, limit=0)) == 1

    def test_other_merchants_excluded(self, db, funded_merchant_id):
        TreasuryLedger.credit("other_merchant", Decimal("5.00"))

        transactions = TreasuryLedger.get_transactions(funded_merchant_id)

        assert all(t.merchant_id == funded_merchant_id for t in transactions)
