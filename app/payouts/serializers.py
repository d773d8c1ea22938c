"""
Serializers for payout endpoints.

Request serializers enforce the API-layer amount bounds
(PAYOUTS_MIN_AMOUNT..PAYOUTS_MAX_AMOUNT); the lifecycle service itself
only requires a positive whole-cent amount.
"""

from __future__ import annotations

from django.conf import settings
from drf_spectacular.utils import OpenApiExample, extend_schema_field, extend_schema_serializer
from rest_framework import serializers

from .models import Payout, PayoutBatch
from .state_machines import PayoutStatus


class PayoutAmountField(serializers.DecimalField):
    """Payout amount in whole cents, within the configured bounds."""

    def __init__(self, **kwargs):
        kwargs.setdefault("max_digits", 20)
        kwargs.setdefault("decimal_places", 2)
        super().__init__(**kwargs)

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        if value < settings.PAYOUTS_MIN_AMOUNT:
            raise serializers.ValidationError(
                f"Amount must be at least {settings.PAYOUTS_MIN_AMOUNT}."
            )
        if value > settings.PAYOUTS_MAX_AMOUNT:
            raise serializers.ValidationError(
                f"Amount cannot exceed {settings.PAYOUTS_MAX_AMOUNT}."
            )
        return value


@extend_schema_serializer(
    examples=[
        OpenApiExample(
            "Sent payout",
            value={
                "id": "a1b2c3d4-e5f6-7890-abcd-ef1234567890",
                "email": "alice@example.com",
                "amount": "25.00",
                "fee": "0.25",
                "currency": "USDC",
                "memo": "March invoice",
                "metadata": {},
                "status": "sent",
                "claim_url": "https://settlr.dev/claim/Zk3...",
                "recipient_wallet": None,
                "tx_signature": None,
                "batch_id": None,
                "expires_at": "2024-01-22T10:30:00Z",
                "funded_at": "2024-01-15T10:30:00Z",
                "claimed_at": None,
                "expired_at": None,
                "failed_at": None,
                "created_at": "2024-01-15T10:30:00Z",
            },
            response_only=True,
        ),
    ]
)
class PayoutSerializer(serializers.ModelSerializer):
    """Read-only serializer for a merchant's view of a payout."""

    claim_url = serializers.CharField(read_only=True)
    batch_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = Payout
        fields = [
            "id",
            "email",
            "amount",
            "fee",
            "currency",
            "memo",
            "metadata",
            "status",
            "claim_url",
            "recipient_wallet",
            "tx_signature",
            "batch_id",
            "expires_at",
            "funded_at",
            "claimed_at",
            "expired_at",
            "failed_at",
            "created_at",
        ]
        read_only_fields = fields


class PublicPayoutSerializer(serializers.ModelSerializer):
    """What the holder of a claim link may see about the payout."""

    class Meta:
        model = Payout
        fields = [
            "amount",
            "currency",
            "memo",
            "status",
            "expires_at",
            "claimed_at",
        ]
        read_only_fields = fields


class CreatePayoutSerializer(serializers.Serializer):
    """Request body for creating a single payout."""

    email = serializers.EmailField()
    amount = PayoutAmountField()
    currency = serializers.CharField(max_length=10, required=False)
    memo = serializers.CharField(max_length=500, required=False, allow_blank=True)
    metadata = serializers.JSONField(required=False)


class BatchItemSerializer(serializers.Serializer):
    email = serializers.EmailField()
    amount = PayoutAmountField()
    memo = serializers.CharField(max_length=500, required=False, allow_blank=True)
    metadata = serializers.JSONField(required=False)


@extend_schema_serializer(
    examples=[
        OpenApiExample(
            "Two payouts",
            value={
                "payouts": [
                    {"email": "alice@example.com", "amount": "25.00"},
                    {"email": "bob@example.com", "amount": "40.00", "memo": "Bounty"},
                ],
            },
            request_only=True,
        ),
    ]
)
class CreateBatchSerializer(serializers.Serializer):
    """Request body for creating a batch of payouts."""

    payouts = BatchItemSerializer(many=True, allow_empty=False)
    currency = serializers.CharField(max_length=10, required=False)


class PayoutBatchSerializer(serializers.ModelSerializer):
    class Meta:
        model = PayoutBatch
        fields = [
            "id",
            "status",
            "currency",
            "total_amount",
            "count",
            "failed_count",
            "completed_at",
            "created_at",
        ]
        read_only_fields = fields


class BatchFailureSerializer(serializers.Serializer):
    index = serializers.IntegerField()
    email = serializers.CharField()
    error = serializers.CharField()
    error_code = serializers.CharField(allow_null=True)


class BatchResultSerializer(serializers.Serializer):
    """Serializes payouts.services.BatchResult."""

    batch = PayoutBatchSerializer()
    payouts = PayoutSerializer(many=True)
    failures = BatchFailureSerializer(many=True)


class ClaimPayoutSerializer(serializers.Serializer):
    """Request body for settling a payout delivered on-chain."""

    claim_token = serializers.CharField(max_length=64)
    recipient_wallet = serializers.CharField(max_length=64)
    tx_signature = serializers.CharField(max_length=128)


class PayoutListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=PayoutStatus.choices, required=False)
    limit = serializers.IntegerField(min_value=1, required=False)
    offset = serializers.IntegerField(min_value=0, required=False, default=0)


class CreatedPayoutSerializer(PayoutSerializer):
    """Payout plus the auto-delivery decision for the new payout."""

    auto_delivery_wallet = serializers.SerializerMethodField()

    class Meta(PayoutSerializer.Meta):
        fields = [*PayoutSerializer.Meta.fields, "auto_delivery_wallet"]
        read_only_fields = fields

    @extend_schema_field(serializers.CharField(allow_null=True))
    def get_auto_delivery_wallet(self, obj: Payout) -> str | None:
        return self.context.get("auto_delivery_wallet")
