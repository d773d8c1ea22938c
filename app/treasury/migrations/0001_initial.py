import uuid
from decimal import Decimal

from django.db import migrations, models

import treasury.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="MerchantBalance",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier (UUID4)",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "merchant_id",
                    models.CharField(
                        db_index=True,
                        help_text="Identifier of the merchant owning this balance",
                        max_length=64,
                    ),
                ),
                (
                    "currency",
                    models.CharField(
                        default=treasury.models.default_currency,
                        help_text="Currency code (e.g. USDC)",
                        max_length=10,
                    ),
                ),
                (
                    "available",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Funds available to reserve or withdraw",
                        max_digits=20,
                    ),
                ),
                (
                    "pending",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Deposits detected but not yet confirmed",
                        max_digits=20,
                    ),
                ),
                (
                    "reserved",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Funds held for unsettled payouts",
                        max_digits=20,
                    ),
                ),
                (
                    "total_deposited",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Lifetime confirmed deposits",
                        max_digits=20,
                    ),
                ),
                (
                    "total_withdrawn",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Lifetime withdrawals",
                        max_digits=20,
                    ),
                ),
                (
                    "total_payouts",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Lifetime payout principal released",
                        max_digits=20,
                    ),
                ),
                (
                    "total_fees",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Lifetime platform fees released",
                        max_digits=20,
                    ),
                ),
            ],
            options={
                "verbose_name": "Merchant Balance",
                "verbose_name_plural": "Merchant Balances",
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("merchant_id", "currency"),
                        name="unique_merchant_balance_per_currency",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("available__gte", 0)),
                        name="merchant_balance_available_non_negative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("pending__gte", 0)),
                        name="merchant_balance_pending_non_negative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("reserved__gte", 0)),
                        name="merchant_balance_reserved_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="TreasuryTransaction",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier (UUID4)",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "merchant_id",
                    models.CharField(
                        db_index=True,
                        help_text="Merchant whose balance changed",
                        max_length=64,
                    ),
                ),
                (
                    "currency",
                    models.CharField(
                        default=treasury.models.default_currency,
                        help_text="Currency code of the balance",
                        max_length=10,
                    ),
                ),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("deposit", "Deposit"),
                            ("payout_reserved", "Payout Reserved"),
                            ("payout_released", "Payout Released"),
                            ("payout_refund", "Payout Refund"),
                            ("fee_deducted", "Fee Deducted"),
                            ("withdrawal", "Withdrawal"),
                        ],
                        help_text="Kind of balance change",
                        max_length=32,
                    ),
                ),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Size of the change",
                        max_digits=20,
                    ),
                ),
                (
                    "payout_id",
                    models.UUIDField(
                        blank=True,
                        db_index=True,
                        help_text="Payout this change belongs to",
                        null=True,
                    ),
                ),
                (
                    "tx_signature",
                    models.CharField(
                        blank=True,
                        help_text="On-chain transaction signature",
                        max_length=128,
                        null=True,
                    ),
                ),
                (
                    "description",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Human-readable description",
                        max_length=255,
                    ),
                ),
                (
                    "balance_after",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Available funds immediately after this change",
                        max_digits=20,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="When this change was recorded",
                    ),
                ),
            ],
            options={
                "verbose_name": "Treasury Transaction",
                "verbose_name_plural": "Treasury Transactions",
                "ordering": ["-created_at", "type"],
                "indexes": [
                    models.Index(
                        fields=["merchant_id", "currency", "-created_at"],
                        name="treasury_tx_recent_idx",
                    ),
                    models.Index(
                        fields=["merchant_id", "type"],
                        name="treasury_tx_type_idx",
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount__gte", 0)),
                        name="treasury_transaction_amount_non_negative",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("payout_id__isnull", False)),
                        fields=("payout_id", "type"),
                        name="unique_treasury_transaction_per_payout_type",
                    ),
                ],
            },
        ),
    ]
