import uuid
from decimal import Decimal

import django.db.models.deletion
import django_fsm
from django.db import migrations, models

import payouts.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="PayoutBatch",
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
                        help_text="Merchant that created the batch",
                        max_length=64,
                    ),
                ),
                (
                    "merchant_wallet",
                    models.CharField(
                        help_text="Merchant wallet funding the batch",
                        max_length=64,
                    ),
                ),
                (
                    "currency",
                    models.CharField(
                        default=payouts.models.default_currency,
                        help_text="Currency of every payout in the batch",
                        max_length=10,
                    ),
                ),
                (
                    "total_amount",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Sum of created payout amounts",
                        max_digits=20,
                    ),
                ),
                (
                    "count",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Number of created payouts",
                    ),
                ),
                (
                    "failed_count",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Number of rejected items",
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("processing", "Processing"),
                            ("completed", "Completed"),
                            ("partial", "Partial"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="processing",
                        help_text="Aggregate status of the batch (managed by FSM)",
                        max_length=50,
                        protected=True,
                    ),
                ),
                (
                    "completed_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When every item had been processed",
                        null=True,
                    ),
                ),
            ],
            options={
                "verbose_name": "Payout Batch",
                "verbose_name_plural": "Payout Batches",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Payout",
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
                        help_text="Merchant paying out",
                        max_length=64,
                    ),
                ),
                (
                    "merchant_wallet",
                    models.CharField(
                        help_text="Merchant wallet the funds originate from",
                        max_length=64,
                    ),
                ),
                (
                    "email",
                    models.EmailField(
                        db_index=True,
                        help_text="Normalized recipient email",
                        max_length=254,
                    ),
                ),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Payout principal",
                        max_digits=20,
                    ),
                ),
                (
                    "fee",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Platform fee reserved with the payout",
                        max_digits=20,
                    ),
                ),
                (
                    "currency",
                    models.CharField(
                        default=payouts.models.default_currency,
                        help_text="Currency code (e.g. USDC)",
                        max_length=10,
                    ),
                ),
                (
                    "memo",
                    models.CharField(
                        blank=True,
                        help_text="Optional note shown to the recipient",
                        max_length=500,
                        null=True,
                    ),
                ),
                (
                    "metadata",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Arbitrary merchant-supplied JSON",
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("pending", "Pending"),
                            ("funded", "Funded"),
                            ("sent", "Sent"),
                            ("claimed", "Claimed"),
                            ("expired", "Expired"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Current state of the payout (managed by FSM)",
                        max_length=50,
                        protected=True,
                    ),
                ),
                (
                    "claim_token",
                    models.CharField(
                        help_text="Unguessable token that grants the right to claim",
                        max_length=64,
                        unique=True,
                    ),
                ),
                (
                    "recipient_wallet",
                    models.CharField(
                        blank=True,
                        help_text="Wallet the payout was delivered to",
                        max_length=64,
                        null=True,
                    ),
                ),
                (
                    "tx_signature",
                    models.CharField(
                        blank=True,
                        help_text="On-chain signature of the delivery",
                        max_length=128,
                        null=True,
                    ),
                ),
                (
                    "version",
                    models.PositiveIntegerField(
                        default=1,
                        help_text="Version for optimistic locking - incremented on each save",
                    ),
                ),
                (
                    "expires_at",
                    models.DateTimeField(
                        db_index=True,
                        help_text="End of the claim window",
                    ),
                ),
                ("funded_at", models.DateTimeField(blank=True, null=True)),
                ("claimed_at", models.DateTimeField(blank=True, null=True)),
                ("expired_at", models.DateTimeField(blank=True, null=True)),
                ("failed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "failure_reason",
                    models.TextField(
                        blank=True,
                        help_text="Why the payout failed",
                        null=True,
                    ),
                ),
                (
                    "batch",
                    models.ForeignKey(
                        blank=True,
                        help_text="Batch the payout was created in",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payouts",
                        to="payouts.payoutbatch",
                    ),
                ),
            ],
            options={
                "verbose_name": "Payout",
                "verbose_name_plural": "Payouts",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["merchant_id", "-created_at"],
                        name="payout_merchant_recent_idx",
                    ),
                    models.Index(
                        fields=["email", "-created_at"],
                        name="payout_email_recent_idx",
                    ),
                    models.Index(
                        fields=["status", "expires_at"],
                        name="payout_status_expiry_idx",
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", 0)),
                        name="payout_amount_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("fee__gte", 0)),
                        name="payout_fee_non_negative",
                    ),
                ],
            },
        ),
    ]
