"""
Serializers for recipient endpoints.
"""

from rest_framework import serializers

from .models import Recipient, RecipientBalance


class RecipientBalanceSerializer(serializers.ModelSerializer):
    class Meta:
        model = RecipientBalance
        fields = ["currency", "balance", "updated_at"]
        read_only_fields = fields


class RecipientSerializer(serializers.ModelSerializer):
    """Recipient profile returned after a magic-link sign-in."""

    balances = RecipientBalanceSerializer(many=True, read_only=True)

    class Meta:
        model = Recipient
        fields = [
            "id",
            "email",
            "wallet_address",
            "display_name",
            "notifications_enabled",
            "auto_withdraw",
            "total_received",
            "total_payouts",
            "last_payout_at",
            "balances",
            "created_at",
        ]
        read_only_fields = fields


class AuthTokenRequestSerializer(serializers.Serializer):
    email = serializers.EmailField()
