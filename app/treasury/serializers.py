"""
Serializers for treasury endpoints.

Amounts are serialized as strings with two decimal places so no precision
is lost between the ledger and API clients.
"""

from __future__ import annotations

from django.conf import settings
from drf_spectacular.utils import OpenApiExample, extend_schema_serializer
from rest_framework import serializers

from .models import MerchantBalance, TreasuryTransaction, TreasuryTransactionType


class MerchantBalanceSerializer(serializers.ModelSerializer):
    """Read-only serializer for a merchant's treasury balance."""

    class Meta:
        model = MerchantBalance
        fields = [
            "merchant_id",
            "currency",
            "available",
            "pending",
            "reserved",
            "total_deposited",
            "total_withdrawn",
            "total_payouts",
            "total_fees",
            "updated_at",
        ]
        read_only_fields = fields


class TreasuryTransactionSerializer(serializers.ModelSerializer):
    """Read-only serializer for treasury audit log entries."""

    class Meta:
        model = TreasuryTransaction
        fields = [
            "id",
            "type",
            "amount",
            "currency",
            "payout_id",
            "tx_signature",
            "description",
            "balance_after",
            "created_at",
        ]
        read_only_fields = fields


class AmountField(serializers.DecimalField):
    """Positive money amount in whole cents."""

    def __init__(self, **kwargs):
        kwargs.setdefault("max_digits", 20)
        kwargs.setdefault("decimal_places", 2)
        super().__init__(**kwargs)


@extend_schema_serializer(
    examples=[
        OpenApiExample(
            "Confirmed deposit",
            value={"amount": "1000.00", "tx_signature": "5KtP9...xQ"},
            request_only=True,
        ),
    ]
)
class DepositSerializer(serializers.Serializer):
    """Request body for recording a confirmed deposit."""

    amount = AmountField()
    tx_signature = serializers.CharField(max_length=128)
    currency = serializers.CharField(max_length=10, required=False)

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Amount must be greater than zero.")
        if value > settings.TREASURY_MAX_DEPOSIT:
            raise serializers.ValidationError(
                f"Amount cannot exceed {settings.TREASURY_MAX_DEPOSIT}."
            )
        return value


class WithdrawalSerializer(serializers.Serializer):
    """Request body for withdrawing available funds."""

    amount = AmountField()
    tx_signature = serializers.CharField(max_length=128)
    currency = serializers.CharField(max_length=10, required=False)

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Amount must be greater than zero.")
        return value


class TransactionQuerySerializer(serializers.Serializer):
    """Query parameters for the treasury transaction list."""

    type = serializers.ChoiceField(choices=TreasuryTransactionType.choices, required=False)
    currency = serializers.CharField(max_length=10, required=False)
    limit = serializers.IntegerField(min_value=1, required=False)
    offset = serializers.IntegerField(min_value=0, required=False, default=0)
