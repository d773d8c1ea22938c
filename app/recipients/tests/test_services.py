"""
Tests for RecipientDirectory, RecipientLedger and AuthTokenService.
"""

import uuid
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from freezegun import freeze_time

from core.exceptions import ValidationError
from recipients.exceptions import InsufficientBalance, RecipientNotFound
from recipients.models import BalanceTransaction, BalanceTransactionType, Recipient
from recipients.services import (
    AUTH_TOKEN_LENGTH,
    AuthTokenService,
    RecipientDirectory,
    RecipientLedger,
)
from recipients.signals import auth_token_issued
from recipients.tests.factories import RecipientFactory
from treasury.exceptions import InvalidAmount


# =============================================================================
# RecipientDirectory
# =============================================================================


class TestRegisterRecipient:
    def test_creates_with_normalized_email(self, db):
        recipient, created = RecipientDirectory.register_recipient(
            "  Alice@Example.COM ", "AliceWallet"
        )

        assert created is True
        assert recipient.email == "alice@example.com"
        assert recipient.wallet_address == "AliceWallet"

    def test_register_if_absent_keeps_existing_wallet(self, db, recipient):
        """Registering again never overwrites the wallet on file."""
        original_wallet = recipient.wallet_address

        found, created = RecipientDirectory.register_recipient(
            "ALICE@example.com", "SomeOtherWallet"
        )

        assert created is False
        assert found.pk == recipient.pk
        found.refresh_from_db()
        assert found.wallet_address == original_wallet
        assert Recipient.objects.count() == 1

    @pytest.mark.parametrize("email", ["", "   "])
    def test_empty_email_rejected(self, db, email):
        with pytest.raises(ValidationError):
            RecipientDirectory.register_recipient(email, "SomeWallet")

        assert Recipient.objects.count() == 0

    def test_lookup_is_case_insensitive(self, db, recipient):
        assert RecipientDirectory.get_recipient_by_email(" ALICE@EXAMPLE.COM").pk == recipient.pk
        assert RecipientDirectory.get_recipient_by_email("nobody@example.com") is None

    def test_get_by_id(self, db, recipient):
        assert RecipientDirectory.get_recipient_by_id(recipient.id).pk == recipient.pk
        assert RecipientDirectory.get_recipient_by_id(uuid.uuid4()) is None


class TestUpdateRecipient:
    def test_partial_update(self, db, recipient):
        updated = RecipientDirectory.update_recipient(
            "alice@example.com", auto_withdraw=False, display_name="Alice"
        )

        assert updated.auto_withdraw is False
        assert updated.display_name == "Alice"
        recipient.refresh_from_db()
        assert recipient.auto_withdraw is False
        assert recipient.notifications_enabled is True

    def test_false_values_are_applied(self, db, recipient):
        """None means unchanged; False is a real value."""
        RecipientDirectory.update_recipient("alice@example.com", notifications_enabled=False)

        recipient.refresh_from_db()
        assert recipient.notifications_enabled is False

    def test_unknown_email(self, db):
        assert RecipientDirectory.update_recipient("ghost@example.com", wallet_address="W") is None


class TestUpdateRecipientStats:
    def test_increments_totals(self, db, recipient):
        RecipientDirectory.update_recipient_stats("alice@example.com", Decimal("25.00"))
        updated = RecipientDirectory.update_recipient_stats("alice@example.com", Decimal("10.50"))

        assert updated.total_received == Decimal("35.50")
        assert updated.total_payouts == 2
        assert updated.last_payout_at is not None

    def test_unknown_email(self, db):
        assert RecipientDirectory.update_recipient_stats("ghost@example.com", Decimal("1")) is None


class TestAutoDeliveryWallet:
    def test_returns_wallet_when_auto_withdraw(self, db, recipient):
        assert RecipientDirectory.get_auto_delivery_wallet("alice@example.com") == (
            recipient.wallet_address
        )

    def test_none_when_auto_withdraw_disabled(self, db):
        RecipientFactory(email="manual@example.com", auto_withdraw=False)

        assert RecipientDirectory.get_auto_delivery_wallet("manual@example.com") is None

    def test_none_without_wallet(self, db):
        RecipientFactory(email="nowallet@example.com", wallet_address="")

        assert RecipientDirectory.get_auto_delivery_wallet("nowallet@example.com") is None

    def test_none_for_unknown_recipient(self, db):
        assert RecipientDirectory.get_auto_delivery_wallet("ghost@example.com") is None


# =============================================================================
# RecipientLedger
# =============================================================================


class TestRecipientLedger:
    def test_credit_balance(self, db, recipient):
        payout_id = uuid.uuid4()

        balance = RecipientLedger.credit_balance(recipient.id, Decimal("25.00"), payout_id)

        assert balance.balance == Decimal("25.00")
        row = BalanceTransaction.objects.get(recipient=recipient)
        assert row.type == BalanceTransactionType.CREDIT
        assert row.payout_id == payout_id
        assert row.description == f"Payout {payout_id} received"

    def test_credit_same_payout_twice_is_noop(self, db, recipient):
        payout_id = uuid.uuid4()
        RecipientLedger.credit_balance(recipient.id, Decimal("25.00"), payout_id)

        balance = RecipientLedger.credit_balance(recipient.id, Decimal("25.00"), payout_id)

        assert balance.balance == Decimal("25.00")
        assert BalanceTransaction.objects.filter(recipient=recipient).count() == 1

    def test_credit_unknown_recipient(self, db):
        with pytest.raises(RecipientNotFound):
            RecipientLedger.credit_balance(uuid.uuid4(), Decimal("1.00"), uuid.uuid4())

    def test_debit_insufficient_leaves_balance(self, db, recipient):
        """Debiting 50 from a balance of 10 fails and the balance stays 10."""
        RecipientLedger.credit_balance(recipient.id, Decimal("10.00"), uuid.uuid4())

        with pytest.raises(InsufficientBalance) as exc_info:
            RecipientLedger.debit_balance(recipient.id, Decimal("50.00"), "sig")

        assert exc_info.value.required == Decimal("50.00")
        assert exc_info.value.available == Decimal("10.00")
        assert exc_info.value.http_status == 402
        assert RecipientLedger.get_or_create_balance(recipient.id).balance == Decimal("10.00")
        assert not BalanceTransaction.objects.filter(
            recipient=recipient, type=BalanceTransactionType.WITHDRAWAL
        ).exists()

    def test_debit(self, db, recipient):
        RecipientLedger.credit_balance(recipient.id, Decimal("30.00"), uuid.uuid4())

        balance = RecipientLedger.debit_balance(recipient.id, Decimal("12.50"), "sig_w")

        assert balance.balance == Decimal("17.50")
        row = BalanceTransaction.objects.get(type=BalanceTransactionType.WITHDRAWAL)
        assert row.tx_signature == "sig_w"
        assert row.description == "Withdrawal to wallet"

    def test_debit_rejects_negative(self, db, recipient):
        with pytest.raises(InvalidAmount):
            RecipientLedger.debit_balance(recipient.id, Decimal("-1.00"), "sig")

    def test_balances_per_currency(self, db, recipient):
        RecipientLedger.credit_balance(recipient.id, Decimal("1.00"), uuid.uuid4(), "USDC")
        RecipientLedger.credit_balance(recipient.id, Decimal("2.00"), uuid.uuid4(), "EURC")

        balances = RecipientLedger.get_balances(recipient.id)

        assert [(b.currency, b.balance) for b in balances] == [
            ("EURC", Decimal("2.00")),
            ("USDC", Decimal("1.00")),
        ]

    def test_balance_transactions_paging(self, db, recipient):
        for _ in range(3):
            RecipientLedger.credit_balance(recipient.id, Decimal("1.00"), uuid.uuid4())

        assert len(RecipientLedger.get_balance_transactions(recipient.id)) == 3
        assert len(RecipientLedger.get_balance_transactions(recipient.id, limit=2)) == 2
        assert len(RecipientLedger.get_balance_transactions(recipient.id, offset=2)) == 1

    def test_withdrawal_listed_before_credit_with_equal_timestamps(self, db, recipient):
        with freeze_time(timezone.now()):
            RecipientLedger.credit_balance(recipient.id, Decimal("5.00"), uuid.uuid4())
            RecipientLedger.debit_balance(recipient.id, Decimal("2.00"), "sig_w")

        history = RecipientLedger.get_balance_transactions(recipient.id)

        assert [row.type for row in history] == [
            BalanceTransactionType.WITHDRAWAL,
            BalanceTransactionType.CREDIT,
        ]


# =============================================================================
# AuthTokenService
# =============================================================================


class TestAuthTokens:
    def test_create_for_unknown_email(self, db):
        assert AuthTokenService.create_auth_token("ghost@example.com") is None

    def test_create_stores_token(self, db, recipient):
        token = AuthTokenService.create_auth_token("Alice@Example.com")

        assert len(token) == AUTH_TOKEN_LENGTH
        assert token.isalnum() and token == token.lower()
        recipient.refresh_from_db()
        assert recipient.auth_token == token
        assert recipient.auth_token_expires_at > timezone.now()

    def test_new_token_replaces_previous(self, db, recipient):
        first = AuthTokenService.create_auth_token("alice@example.com")
        second = AuthTokenService.create_auth_token("alice@example.com")

        assert AuthTokenService.validate_auth_token(first) is None
        assert AuthTokenService.validate_auth_token(second).pk == recipient.pk

    def test_validate_consumes_token(self, db, recipient):
        token = AuthTokenService.create_auth_token("alice@example.com")

        assert AuthTokenService.validate_auth_token(token).pk == recipient.pk
        assert AuthTokenService.validate_auth_token(token) is None
        recipient.refresh_from_db()
        assert recipient.auth_token is None

    def test_expired_token_rejected_and_cleared(self, db, recipient, settings):
        settings.RECIPIENT_AUTH_TOKEN_TTL_MINUTES = 15
        token = AuthTokenService.create_auth_token("alice@example.com")

        with freeze_time(timezone.now() + timedelta(minutes=16)):
            assert AuthTokenService.validate_auth_token(token) is None

        recipient.refresh_from_db()
        assert recipient.auth_token is None

    def test_wrong_length_rejected(self, db, recipient):
        AuthTokenService.create_auth_token("alice@example.com")

        assert AuthTokenService.validate_auth_token("short") is None
        assert AuthTokenService.validate_auth_token("") is None

    def test_signal_sent_on_commit(self, db, recipient, django_capture_on_commit_callbacks):
        received = []

        def receiver(sender, recipient, token, **kwargs):
            received.append((recipient.pk, token))

        auth_token_issued.connect(receiver)
        try:
            with django_capture_on_commit_callbacks(execute=True):
                token = AuthTokenService.create_auth_token("alice@example.com")
        finally:
            auth_token_issued.disconnect(receiver)

        assert received == [(recipient.pk, token)]
