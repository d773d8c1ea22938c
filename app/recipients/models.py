"""
Recipient models: identity, held balances, and balance history.

- Recipient: One per normalized email; wallet on file and preferences
- RecipientBalance: Funds credited to a recipient instead of delivered
  on-chain, per currency
- BalanceTransaction: Append-only log of RecipientBalance changes

Usage:
    from recipients.models import Recipient, RecipientBalance

    recipient = Recipient.objects.get(email="alice@example.com")
    balances = recipient.balances.all()
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q

from core.helpers import normalize_email
from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


def default_currency() -> str:
    return settings.PAYOUTS_DEFAULT_CURRENCY


class BalanceTransactionType(models.TextChoices):
    """
    Types of recipient balance transactions.

    Values:
        CREDIT: Payout credited to the held balance
        DEBIT: Internal deduction from the held balance
        WITHDRAWAL: Held funds sent to the recipient's wallet
    """

    CREDIT = "credit", "Credit"
    DEBIT = "debit", "Debit"
    WITHDRAWAL = "withdrawal", "Withdrawal"


class Recipient(UUIDPrimaryKeyMixin, BaseModel):
    """
    A payout recipient, identified by normalized email.

    Created on first successful claim or explicit registration, updated
    by preference changes and by stats increments after each delivered
    payout, never deleted.

    Fields:
        email: Normalized email (unique identity key)
        wallet_address: Wallet that receives auto-delivered payouts
        display_name: Optional display name
        auth_token: Current one-time magic-link token, if any
        auth_token_expires_at: When auth_token stops being valid
        notifications_enabled: Whether to email on new payouts
        auto_withdraw: Deliver payouts straight to wallet_address
        total_received: Lifetime amount of delivered payouts
        total_payouts: Lifetime number of delivered payouts
        last_payout_at: When the last payout was delivered
    """

    email = models.EmailField(
        max_length=254,
        unique=True,
        help_text="Normalized (lowercase, trimmed) email address",
    )
    wallet_address = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text="Wallet receiving auto-delivered payouts",
    )
    display_name = models.CharField(
        max_length=200,
        null=True,
        blank=True,
        help_text="Optional display name",
    )

    auth_token = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        unique=True,
        help_text="One-time magic-link token",
    )
    auth_token_expires_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the magic-link token expires",
    )

    notifications_enabled = models.BooleanField(
        default=True,
        help_text="Email the recipient about new payouts",
    )
    auto_withdraw = models.BooleanField(
        default=True,
        help_text="Deliver payouts directly to the wallet on file",
    )

    total_received = models.DecimalField(
        max_digits=20,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Lifetime amount of delivered payouts",
    )
    total_payouts = models.PositiveIntegerField(
        default=0,
        help_text="Lifetime number of delivered payouts",
    )
    last_payout_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the last payout was delivered",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Recipient"
        verbose_name_plural = "Recipients"

    def __str__(self) -> str:
        return f"Recipient({self.email})"

    def save(self, *args, **kwargs):
        self.email = normalize_email(self.email)
        super().save(*args, **kwargs)


class RecipientBalance(UUIDPrimaryKeyMixin, BaseModel):
    """
    Funds held for a recipient in one currency.

    Constraints:
        - Unique (recipient, currency)
        - balance is never negative
    """

    recipient = models.ForeignKey(
        Recipient,
        on_delete=models.PROTECT,
        related_name="balances",
        help_text="Recipient owning this balance",
    )
    currency = models.CharField(
        max_length=10,
        default=default_currency,
        help_text="Currency code (e.g. USDC)",
    )
    balance = models.DecimalField(
        max_digits=20,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Funds held for the recipient",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Recipient Balance"
        verbose_name_plural = "Recipient Balances"
        constraints = [
            models.UniqueConstraint(
                fields=["recipient", "currency"],
                name="unique_recipient_balance_per_currency",
            ),
            models.CheckConstraint(
                condition=Q(balance__gte=0),
                name="recipient_balance_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"RecipientBalance({self.recipient_id}, {self.balance} {self.currency})"


class BalanceTransaction(UUIDPrimaryKeyMixin, models.Model):
    """
    An immutable record of one RecipientBalance change.

    Constraints:
        - amount is never negative
        - At most one row per (payout_id, type), so a payout is credited once
    """

    recipient = models.ForeignKey(
        Recipient,
        on_delete=models.PROTECT,
        related_name="balance_transactions",
        help_text="Recipient whose balance changed",
    )
    type = models.CharField(
        max_length=20,
        choices=BalanceTransactionType.choices,
        help_text="Kind of balance change",
    )
    amount = models.DecimalField(
        max_digits=20,
        decimal_places=2,
        help_text="Size of the change",
    )
    currency = models.CharField(
        max_length=10,
        default=default_currency,
        help_text="Currency code",
    )
    payout_id = models.UUIDField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Payout credited by this change",
    )
    tx_signature = models.CharField(
        max_length=128,
        null=True,
        blank=True,
        help_text="On-chain signature of a withdrawal",
    )
    description = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Human-readable description",
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="When this change was recorded",
    )

    class Meta:
        ordering = ["-created_at", "-type"]
        verbose_name = "Balance Transaction"
        verbose_name_plural = "Balance Transactions"
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gte=0),
                name="balance_transaction_amount_non_negative",
            ),
            models.UniqueConstraint(
                fields=["payout_id", "type"],
                condition=Q(payout_id__isnull=False),
                name="unique_balance_transaction_per_payout_type",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.get_type_display()}: {self.amount} {self.currency}"
