import uuid
from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models

import recipients.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Recipient",
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
                    "email",
                    models.EmailField(
                        help_text="Normalized (lowercase, trimmed) email address",
                        max_length=254,
                        unique=True,
                    ),
                ),
                (
                    "wallet_address",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Wallet receiving auto-delivered payouts",
                        max_length=64,
                    ),
                ),
                (
                    "display_name",
                    models.CharField(
                        blank=True,
                        help_text="Optional display name",
                        max_length=200,
                        null=True,
                    ),
                ),
                (
                    "auth_token",
                    models.CharField(
                        blank=True,
                        help_text="One-time magic-link token",
                        max_length=64,
                        null=True,
                        unique=True,
                    ),
                ),
                (
                    "auth_token_expires_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the magic-link token expires",
                        null=True,
                    ),
                ),
                (
                    "notifications_enabled",
                    models.BooleanField(
                        default=True,
                        help_text="Email the recipient about new payouts",
                    ),
                ),
                (
                    "auto_withdraw",
                    models.BooleanField(
                        default=True,
                        help_text="Deliver payouts directly to the wallet on file",
                    ),
                ),
                (
                    "total_received",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Lifetime amount of delivered payouts",
                        max_digits=20,
                    ),
                ),
                (
                    "total_payouts",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Lifetime number of delivered payouts",
                    ),
                ),
                (
                    "last_payout_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the last payout was delivered",
                        null=True,
                    ),
                ),
            ],
            options={
                "verbose_name": "Recipient",
                "verbose_name_plural": "Recipients",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="RecipientBalance",
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
                    "currency",
                    models.CharField(
                        default=recipients.models.default_currency,
                        help_text="Currency code (e.g. USDC)",
                        max_length=10,
                    ),
                ),
                (
                    "balance",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Funds held for the recipient",
                        max_digits=20,
                    ),
                ),
                (
                    "recipient",
                    models.ForeignKey(
                        help_text="Recipient owning this balance",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="balances",
                        to="recipients.recipient",
                    ),
                ),
            ],
            options={
                "verbose_name": "Recipient Balance",
                "verbose_name_plural": "Recipient Balances",
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("recipient", "currency"),
                        name="unique_recipient_balance_per_currency",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("balance__gte", 0)),
                        name="recipient_balance_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="BalanceTransaction",
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
                    "type",
                    models.CharField(
                        choices=[
                            ("credit", "Credit"),
                            ("debit", "Debit"),
                            ("withdrawal", "Withdrawal"),
                        ],
                        help_text="Kind of balance change",
                        max_length=20,
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
                    "currency",
                    models.CharField(
                        default=recipients.models.default_currency,
                        help_text="Currency code",
                        max_length=10,
                    ),
                ),
                (
                    "payout_id",
                    models.UUIDField(
                        blank=True,
                        db_index=True,
                        help_text="Payout credited by this change",
                        null=True,
                    ),
                ),
                (
                    "tx_signature",
                    models.CharField(
                        blank=True,
                        help_text="On-chain signature of a withdrawal",
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
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="When this change was recorded",
                    ),
                ),
                (
                    "recipient",
                    models.ForeignKey(
                        help_text="Recipient whose balance changed",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="balance_transactions",
                        to="recipients.recipient",
                    ),
                ),
            ],
            options={
                "verbose_name": "Balance Transaction",
                "verbose_name_plural": "Balance Transactions",
                "ordering": ["-created_at", "-type"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount__gte", 0)),
                        name="balance_transaction_amount_non_negative",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("payout_id__isnull", False)),
                        fields=("payout_id", "type"),
                        name="unique_balance_transaction_per_payout_type",
                    ),
                ],
            },
        ),
    ]
