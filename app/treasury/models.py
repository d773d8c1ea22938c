"""
Treasury models for merchant balances.

This module defines the models that hold a merchant's prepaid funds:
- MerchantBalance: Running balance buckets per (merchant, currency)
- TreasuryTransaction: Append-only audit log of every balance change

Funds move between buckets rather than between accounts:

    deposit          -> available += amount
    payout_reserved  -> available -= amount+fee, reserved += amount+fee
    payout_released  -> reserved -= amount, total_payouts += amount
    fee_deducted     -> reserved -= fee, total_fees += fee
    payout_refund    -> reserved -= amount+fee, available += amount+fee
    withdrawal       -> available -= amount, total_withdrawn += amount

Usage:
    from treasury.models import MerchantBalance, TreasuryTransaction

    balance = MerchantBalance.objects.get(merchant_id="m_1", currency="USDC")
    history = TreasuryTransaction.objects.filter(merchant_id="m_1")
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


def default_currency() -> str:
    return settings.PAYOUTS_DEFAULT_CURRENCY


class TreasuryTransactionType(models.TextChoices):
    """
    Types of treasury transactions.

    Values:
        DEPOSIT: Confirmed deposit credited to available funds
        PAYOUT_RESERVED: Payout amount plus fee held for a payout
        PAYOUT_RELEASED: Payout principal paid out of the reservation
        PAYOUT_REFUND: Reservation returned to available funds
        FEE_DEDUCTED: Platform fee taken out of the reservation
        WITHDRAWAL: Merchant withdrew excess funds
    """

    DEPOSIT = "deposit", "Deposit"
    PAYOUT_RESERVED = "payout_reserved", "Payout Reserved"
    PAYOUT_RELEASED = "payout_released", "Payout Released"
    PAYOUT_REFUND = "payout_refund", "Payout Refund"
    FEE_DEDUCTED = "fee_deducted", "Fee Deducted"
    WITHDRAWAL = "withdrawal", "Withdrawal"


class MerchantBalance(UUIDPrimaryKeyMixin, BaseModel):
    """
    A merchant's treasury balance in one currency.

    Created lazily on first access and never deleted. Mutated only by
    TreasuryLedger, which locks the row for the duration of each change.

    Fields:
        merchant_id: Identifier of the owning merchant
        currency: Currency code (e.g. "USDC")
        available: Funds that can be reserved or withdrawn
        pending: Deposits detected but not yet confirmed
        reserved: Funds held for payouts that have not settled
        total_deposited: Lifetime confirmed deposits
        total_withdrawn: Lifetime withdrawals
        total_payouts: Lifetime payout principal released
        total_fees: Lifetime platform fees released

    Constraints:
        - Unique (merchant_id, currency)
        - available, pending and reserved are never negative
    """

    merchant_id = models.CharField(
        max_length=64,
        db_index=True,
        help_text="Identifier of the merchant owning this balance",
    )
    currency = models.CharField(
        max_length=10,
        default=default_currency,
        help_text="Currency code (e.g. USDC)",
    )

    available = models.DecimalField(
        max_digits=20,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Funds available to reserve or withdraw",
    )
    pending = models.DecimalField(
        max_digits=20,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Deposits detected but not yet confirmed",
    )
    reserved = models.DecimalField(
        max_digits=20,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Funds held for unsettled payouts",
    )

    total_deposited = models.DecimalField(
        max_digits=20,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Lifetime confirmed deposits",
    )
    total_withdrawn = models.DecimalField(
        max_digits=20,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Lifetime withdrawals",
    )
    total_payouts = models.DecimalField(
        max_digits=20,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Lifetime payout principal released",
    )
    total_fees = models.DecimalField(
        max_digits=20,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Lifetime platform fees released",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Merchant Balance"
        verbose_name_plural = "Merchant Balances"
        constraints = [
            models.UniqueConstraint(
                fields=["merchant_id", "currency"],
                name="unique_merchant_balance_per_currency",
            ),
            models.CheckConstraint(
                condition=Q(available__gte=0),
                name="merchant_balance_available_non_negative",
            ),
            models.CheckConstraint(
                condition=Q(pending__gte=0),
                name="merchant_balance_pending_non_negative",
            ),
            models.CheckConstraint(
                condition=Q(reserved__gte=0),
                name="merchant_balance_reserved_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return (
            f"MerchantBalance({self.merchant_id}, {self.currency}: "
            f"available={self.available}, reserved={self.reserved})"
        )


class TreasuryTransaction(UUIDPrimaryKeyMixin, models.Model):
    """
    An immutable record of one treasury balance change.

    Every mutation of MerchantBalance writes exactly one row (two for a
    release: principal and fee), in the same database transaction.

    Fields:
        merchant_id: Merchant whose balance changed
        currency: Currency of the balance
        type: Kind of change (see TreasuryTransactionType)
        amount: Size of the change (never negative)
        payout_id: Payout the change belongs to, if any
        tx_signature: On-chain signature for deposits/withdrawals
        description: Human-readable description
        balance_after: Available funds immediately after the change
        created_at: When the change was recorded

    Constraints:
        - amount is never negative
        - At most one row per (payout_id, type): a payout is reserved,
          released, refunded and charged a fee at most once
    """

    merchant_id = models.CharField(
        max_length=64,
        db_index=True,
        help_text="Merchant whose balance changed",
    )
    currency = models.CharField(
        max_length=10,
        default=default_currency,
        help_text="Currency code of the balance",
    )
    type = models.CharField(
        max_length=32,
        choices=TreasuryTransactionType.choices,
        help_text="Kind of balance change",
    )
    amount = models.DecimalField(
        max_digits=20,
        decimal_places=2,
        help_text="Size of the change",
    )
    payout_id = models.UUIDField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Payout this change belongs to",
    )
    tx_signature = models.CharField(
        max_length=128,
        null=True,
        blank=True,
        help_text="On-chain transaction signature",
    )
    description = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Human-readable description",
    )
    balance_after = models.DecimalField(
        max_digits=20,
        decimal_places=2,
        help_text="Available funds immediately after this change",
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="When this change was recorded",
    )

    class Meta:
        ordering = ["-created_at", "type"]
        verbose_name = "Treasury Transaction"
        verbose_name_plural = "Treasury Transactions"
        indexes = [
            models.Index(
                fields=["merchant_id", "currency", "-created_at"],
                name="treasury_tx_recent_idx",
            ),
            models.Index(fields=["merchant_id", "type"], name="treasury_tx_type_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gte=0),
                name="treasury_transaction_amount_non_negative",
            ),
            models.UniqueConstraint(
                fields=["payout_id", "type"],
                condition=Q(payout_id__isnull=False),
                name="unique_treasury_transaction_per_payout_type",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.get_type_display()}: {self.amount} {self.currency}"
