"""
Recipient service layer.

This module provides three services:
- RecipientDirectory: Recipient identity (email -> wallet), preferences,
  delivery stats, and the auto-delivery decision
- RecipientLedger: Held balances for payouts credited instead of
  delivered on-chain, and withdrawals from them
- AuthTokenService: One-time magic-link tokens for recipients

Every email-keyed path normalizes the address first.

Usage:
    from recipients.services import AuthTokenService, RecipientDirectory, RecipientLedger

    recipient, created = RecipientDirectory.register_recipient(
        "Alice@Example.com ", wallet_address="7xKX...",
    )
    wallet = RecipientDirectory.get_auto_delivery_wallet("alice@example.com")

    RecipientLedger.credit_balance(recipient.id, Decimal("25.00"), payout.id)
    RecipientLedger.debit_balance(recipient.id, Decimal("10.00"), tx_signature="3Yx...")

    token = AuthTokenService.create_auth_token("alice@example.com")
    recipient = AuthTokenService.validate_auth_token(token)  # consumes it
"""

from __future__ import annotations

import string
import uuid
from datetime import timedelta
from decimal import Decimal
from functools import partial

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone
from django.utils.crypto import get_random_string

from core.exceptions import ValidationError
from core.helpers import clamp_limit, normalize_email
from core.services import BaseService
from treasury.fees import to_amount

from .exceptions import InsufficientBalance, RecipientNotFound
from .models import BalanceTransaction, BalanceTransactionType, Recipient, RecipientBalance
from .signals import auth_token_issued

AUTH_TOKEN_LENGTH = 48
AUTH_TOKEN_ALPHABET = string.ascii_lowercase + string.digits

DEFAULT_TRANSACTION_LIMIT = 50
MAX_TRANSACTION_LIMIT = 200


# =============================================================================
# Recipient Directory
# =============================================================================


class RecipientDirectory(BaseService):
    """
    Service for recipient identity and preferences.

    register_recipient is the only way recipients are created, and it is
    register-if-absent: callers do not need to look the recipient up
    first, and calling it again never overwrites the wallet on file.
    """

    @classmethod
    def register_recipient(
        cls,
        email: str,
        wallet_address: str,
        display_name: str | None = None,
    ) -> tuple[Recipient, bool]:
        """
        Create a recipient unless one already exists for the email.

        Args:
            email: Recipient email (normalized before use)
            wallet_address: Wallet to record on creation
            display_name: Optional display name used on creation

        Returns:
            Tuple of (recipient, created). An existing recipient is
            returned unchanged.

        Raises:
            ValidationError: If email is empty after normalization
        """
        email = normalize_email(email)
        if not email:
            raise ValidationError("Recipient email is required", details={"field": "email"})
        recipient, created = Recipient.objects.get_or_create(
            email=email,
            defaults={
                "wallet_address": wallet_address or "",
                "display_name": display_name,
            },
        )
        if created:
            cls.get_logger().info(
                "Registered recipient",
                extra={"recipient_id": str(recipient.id)},
            )
        return recipient, created

    @classmethod
    def get_recipient_by_email(cls, email: str) -> Recipient | None:
        return Recipient.objects.filter(email=normalize_email(email)).first()

    @classmethod
    def get_recipient_by_id(cls, recipient_id: uuid.UUID) -> Recipient | None:
        return Recipient.objects.filter(pk=recipient_id).first()

    @classmethod
    def update_recipient(
        cls,
        email: str,
        wallet_address: str | None = None,
        display_name: str | None = None,
        auto_withdraw: bool | None = None,
        notifications_enabled: bool | None = None,
    ) -> Recipient | None:
        """
        Partially update a recipient's wallet and preferences.

        Only arguments that are not None are changed.

        Returns:
            The updated Recipient, or None if no recipient has this email
        """
        changes = {
            "wallet_address": wallet_address,
            "display_name": display_name,
            "auto_withdraw": auto_withdraw,
            "notifications_enabled": notifications_enabled,
        }
        changes = {field: value for field, value in changes.items() if value is not None}

        with cls.atomic():
            recipient = (
                Recipient.objects.select_for_update()
                .filter(email=normalize_email(email))
                .first()
            )
            if recipient is None:
                return None
            if changes:
                for field, value in changes.items():
                    setattr(recipient, field, value)
                recipient.save(update_fields=[*changes, "updated_at"])

        cls.get_logger().info(
            "Updated recipient",
            extra={"recipient_id": str(recipient.id), "fields": sorted(changes)},
        )
        return recipient

    @classmethod
    def update_recipient_stats(cls, email: str, amount: Decimal) -> Recipient | None:
        """
        Count one delivered payout for a recipient.

        total_received += amount; total_payouts += 1; last_payout_at = now.
        Call once per delivered payout; the payout lifecycle only calls it
        after a claim that actually changed the payout's state.

        Returns:
            The refreshed Recipient, or None if no recipient has this email
        """
        amount = to_amount(amount)
        email = normalize_email(email)
        updated = Recipient.objects.filter(email=email).update(
            total_received=F("total_received") + amount,
            total_payouts=F("total_payouts") + 1,
            last_payout_at=timezone.now(),
            updated_at=timezone.now(),
        )
        if not updated:
            cls.get_logger().warning(
                "Stats update for unknown recipient",
                extra={"amount": str(amount)},
            )
            return None
        return Recipient.objects.get(email=email)

    @classmethod
    def get_auto_delivery_wallet(cls, email: str) -> str | None:
        """
        Decide whether a payout to this email can be delivered directly.

        Returns:
            The wallet on file when the recipient exists, has a wallet and
            has auto_withdraw enabled; otherwise None (manual claim link)
        """
        recipient = cls.get_recipient_by_email(email)
        if recipient is None or not recipient.auto_withdraw or not recipient.wallet_address:
            return None
        return recipient.wallet_address


# =============================================================================
# Recipient Ledger
# =============================================================================


class RecipientLedger(BaseService):
    """
    Service for recipient held balances.

    Mirrors TreasuryLedger: every change locks the (recipient, currency)
    row and writes one BalanceTransaction in the same transaction.
    """

    @staticmethod
    def _currency(currency: str | None) -> str:
        return currency or settings.PAYOUTS_DEFAULT_CURRENCY

    @classmethod
    def get_or_create_balance(
        cls,
        recipient_id: uuid.UUID,
        currency: str | None = None,
    ) -> RecipientBalance:
        """
        Get the recipient's balance, creating a zeroed one if absent.

        Raises:
            RecipientNotFound: If the recipient does not exist
        """
        if not Recipient.objects.filter(pk=recipient_id).exists():
            raise RecipientNotFound(
                f"Recipient {recipient_id} not found",
                details={"recipient_id": str(recipient_id)},
            )
        balance, _ = RecipientBalance.objects.get_or_create(
            recipient_id=recipient_id,
            currency=cls._currency(currency),
        )
        return balance

    @classmethod
    def get_balances(cls, recipient_id: uuid.UUID) -> list[RecipientBalance]:
        return list(RecipientBalance.objects.filter(recipient_id=recipient_id).order_by("currency"))

    @classmethod
    def _lock_balance(cls, recipient_id: uuid.UUID, currency: str) -> RecipientBalance:
        balance = cls.get_or_create_balance(recipient_id, currency)
        return RecipientBalance.objects.select_for_update().get(pk=balance.pk)

    @classmethod
    def credit_balance(
        cls,
        recipient_id: uuid.UUID,
        amount: Decimal,
        payout_id: uuid.UUID,
        currency: str | None = None,
    ) -> RecipientBalance:
        """
        Credit a payout to the recipient's held balance.

        A payout is credited at most once; crediting it again returns the
        balance unchanged.

        Args:
            recipient_id: Recipient to credit
            amount: Payout amount
            payout_id: Payout being credited
            currency: Currency code

        Returns:
            The updated RecipientBalance

        Raises:
            RecipientNotFound: If the recipient does not exist
            InvalidAmount: If amount is negative or not whole cents
        """
        amount = to_amount(amount)
        currency = cls._currency(currency)

        with cls.atomic():
            balance = cls._lock_balance(recipient_id, currency)
            already_credited = BalanceTransaction.objects.filter(
                payout_id=payout_id,
                type=BalanceTransactionType.CREDIT,
            ).exists()
            if already_credited:
                cls.get_logger().info(
                    "Payout already credited, skipping",
                    extra={"recipient_id": str(recipient_id), "payout_id": str(payout_id)},
                )
                return balance

            balance.balance += amount
            balance.save(update_fields=["balance", "updated_at"])
            BalanceTransaction.objects.create(
                recipient_id=recipient_id,
                type=BalanceTransactionType.CREDIT,
                amount=amount,
                currency=currency,
                payout_id=payout_id,
                description=f"Payout {payout_id} received",
            )

        cls.get_logger().info(
            "Credited recipient balance",
            extra={
                "recipient_id": str(recipient_id),
                "payout_id": str(payout_id),
                "amount": str(amount),
                "currency": currency,
            },
        )
        return balance

    @classmethod
    def debit_balance(
        cls,
        recipient_id: uuid.UUID,
        amount: Decimal,
        tx_signature: str,
        currency: str | None = None,
    ) -> RecipientBalance:
        """
        Withdraw held funds to the recipient's wallet.

        Args:
            recipient_id: Recipient withdrawing
            amount: Amount to withdraw
            tx_signature: Signature of the on-chain withdrawal
            currency: Currency code

        Returns:
            The updated RecipientBalance

        Raises:
            InsufficientBalance: If the balance is lower than amount
                (nothing is changed)
            RecipientNotFound: If the recipient does not exist
        """
        amount = to_amount(amount)
        currency = cls._currency(currency)

        with cls.atomic():
            balance = cls._lock_balance(recipient_id, currency)
            if balance.balance < amount:
                cls.get_logger().warning(
                    "Recipient withdrawal rejected: insufficient balance",
                    extra={
                        "recipient_id": str(recipient_id),
                        "amount": str(amount),
                        "available": str(balance.balance),
                    },
                )
                raise InsufficientBalance(
                    recipient_id,
                    required=amount,
                    available=balance.balance,
                )

            balance.balance -= amount
            balance.save(update_fields=["balance", "updated_at"])
            BalanceTransaction.objects.create(
                recipient_id=recipient_id,
                type=BalanceTransactionType.WITHDRAWAL,
                amount=amount,
                currency=currency,
                tx_signature=tx_signature,
                description="Withdrawal to wallet",
            )

        cls.get_logger().info(
            "Debited recipient balance",
            extra={"recipient_id": str(recipient_id), "amount": str(amount), "currency": currency},
        )
        return balance

    @classmethod
    def get_balance_transactions(
        cls,
        recipient_id: uuid.UUID,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[BalanceTransaction]:
        """Return the recipient's balance history, newest first."""
        limit = clamp_limit(limit, DEFAULT_TRANSACTION_LIMIT, MAX_TRANSACTION_LIMIT)
        offset = max(0, int(offset))
        queryset = BalanceTransaction.objects.filter(recipient_id=recipient_id).order_by(
            "-created_at", "-type"
        )
        return list(queryset[offset : offset + limit])


# =============================================================================
# Magic-link tokens
# =============================================================================


class AuthTokenService(BaseService):
    """
    Service for one-time recipient login tokens.

    A recipient holds at most one token; issuing a new one replaces the
    previous. Validation consumes the token whether or not it has expired.
    """

    @classmethod
    def create_auth_token(cls, email: str) -> str | None:
        """
        Issue a magic-link token for an existing recipient.

        Does not create recipients. Sends auth_token_issued on commit so
        the email collaborator can deliver the link.

        Args:
            email: Recipient email

        Returns:
            The 48-character token, or None if no recipient has this email
        """
        recipient = RecipientDirectory.get_recipient_by_email(email)
        if recipient is None:
            return None

        token = get_random_string(AUTH_TOKEN_LENGTH, allowed_chars=AUTH_TOKEN_ALPHABET)
        recipient.auth_token = token
        recipient.auth_token_expires_at = timezone.now() + timedelta(
            minutes=settings.RECIPIENT_AUTH_TOKEN_TTL_MINUTES
        )
        recipient.save(update_fields=["auth_token", "auth_token_expires_at", "updated_at"])

        transaction.on_commit(
            partial(auth_token_issued.send, sender=cls, recipient=recipient, token=token)
        )
        cls.get_logger().info(
            "Issued recipient auth token",
            extra={"recipient_id": str(recipient.id)},
        )
        return token

    @classmethod
    def validate_auth_token(cls, token: str) -> Recipient | None:
        """
        Validate and consume a magic-link token.

        The token is cleared with a conditional update, so when two
        requests present the same token only one of them gets the
        recipient back.

        Args:
            token: Token from the magic link

        Returns:
            The Recipient, or None if the token is unknown, already used,
            or expired
        """
        if not token or len(token) != AUTH_TOKEN_LENGTH:
            return None

        recipient = Recipient.objects.filter(auth_token=token).first()
        if recipient is None:
            return None

        now = timezone.now()
        consumed = Recipient.objects.filter(pk=recipient.pk, auth_token=token).update(
            auth_token=None,
            auth_token_expires_at=None,
            updated_at=now,
        )
        if not consumed:
            return None

        expires_at = recipient.auth_token_expires_at
        recipient.auth_token = None
        recipient.auth_token_expires_at = None
        if expires_at is None or expires_at <= now:
            cls.get_logger().info(
                "Rejected expired recipient auth token",
                extra={"recipient_id": str(recipient.id)},
            )
            return None
        return recipient


__all__ = [
    "AuthTokenService",
    "RecipientDirectory",
    "RecipientLedger",
]
