"""
Merchant and API key models.

A Merchant funds a treasury and sends payouts. API clients authenticate
with an ApiKey; only a SHA-256 hash of the key is stored, the raw key is
shown once at creation.

Usage:
    from merchants.models import ApiKey, Merchant

    merchant = Merchant.objects.get(wallet_address=wallet)
    keys = merchant.api_keys.filter(is_active=True)
"""

from __future__ import annotations

from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class Merchant(UUIDPrimaryKeyMixin, BaseModel):
    """
    A business sending payouts.

    The merchant's UUID (as a string) is the merchant_id used by the
    treasury and payout ledgers.

    Fields:
        name: Display name
        wallet_address: Merchant wallet, recorded on each payout
        is_active: Inactive merchants cannot authenticate
    """

    name = models.CharField(
        max_length=200,
        help_text="Merchant display name",
    )
    wallet_address = models.CharField(
        max_length=64,
        unique=True,
        help_text="Merchant wallet address",
    )
    is_active = models.BooleanField(
        default=True,
        help_text="Whether the merchant may use the API",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Merchant"
        verbose_name_plural = "Merchants"

    def __str__(self) -> str:
        return f"Merchant({self.name}, {self.wallet_address})"

    @property
    def merchant_id(self) -> str:
        """Identifier used as the ledger key."""
        return str(self.id)

    @property
    def is_authenticated(self) -> bool:
        """Lets DRF permission classes treat a merchant as request.user."""
        return True


class ApiKey(UUIDPrimaryKeyMixin, BaseModel):
    """
    An API key belonging to a merchant.

    Fields:
        merchant: Owning merchant
        name: Label chosen by the merchant
        key_prefix: First characters of the raw key, for display
        key_hash: SHA-256 of the raw key
        is_test: Whether this is a sk_test_ key
        is_active: False once revoked
        expires_at: Optional expiry
        last_used_at: Last successful authentication
        request_count: Number of successful authentications
    """

    merchant = models.ForeignKey(
        Merchant,
        on_delete=models.CASCADE,
        related_name="api_keys",
        help_text="Merchant owning this key",
    )
    name = models.CharField(
        max_length=100,
        default="Default",
        help_text="Label for this key",
    )
    key_prefix = models.CharField(
        max_length=20,
        help_text="Displayable prefix of the raw key",
    )
    key_hash = models.CharField(
        max_length=64,
        unique=True,
        help_text="SHA-256 hash of the raw key",
    )
    is_test = models.BooleanField(
        default=False,
        help_text="Whether this is a test-mode key",
    )
    is_active = models.BooleanField(
        default=True,
        help_text="False once the key is revoked",
    )
    expires_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the key stops working",
    )
    last_used_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Last successful authentication",
    )
    request_count = models.PositiveBigIntegerField(
        default=0,
        help_text="Number of successful authentications",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "API Key"
        verbose_name_plural = "API Keys"

    def __str__(self) -> str:
        return f"ApiKey({self.key_prefix}, {'active' if self.is_active else 'revoked'})"
