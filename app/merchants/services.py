"""
Merchant service layer: merchant records and API keys.

Raw API keys look like ``sk_live_<32 chars>`` or ``sk_test_<32 chars>``.
Only their SHA-256 hash is persisted.

Usage:
    from merchants.services import MerchantService

    merchant = MerchantService.create_merchant("Acme", wallet_address)
    api_key, raw_key = MerchantService.create_api_key(merchant, name="Server")

    api_key = MerchantService.validate_api_key(raw_key)
    if api_key is not None:
        merchant_id = api_key.merchant.merchant_id
"""

from __future__ import annotations

import uuid

from django.db.models import F
from django.utils import timezone
from django.utils.crypto import get_random_string

from core.helpers import hash_string
from core.services import BaseService

from .models import ApiKey, Merchant

API_KEY_RANDOM_LENGTH = 32
API_KEY_DISPLAY_PREFIX_LENGTH = 12


class MerchantService(BaseService):
    """Service for merchant and API key management."""

    @classmethod
    def create_merchant(cls, name: str, wallet_address: str) -> Merchant:
        merchant = Merchant.objects.create(name=name, wallet_address=wallet_address)
        cls.get_logger().info(
            "Created merchant",
            extra={"merchant_id": merchant.merchant_id},
        )
        return merchant

    @classmethod
    def get_or_create_by_wallet(cls, wallet_address: str, name: str = "") -> Merchant:
        """
        Get the merchant for a wallet, creating one on first sight.

        Args:
            wallet_address: Merchant wallet
            name: Display name used only when creating

        Returns:
            The Merchant
        """
        merchant, created = Merchant.objects.get_or_create(
            wallet_address=wallet_address,
            defaults={"name": name or f"Merchant {wallet_address[:8]}"},
        )
        if created:
            cls.get_logger().info(
                "Created merchant from wallet",
                extra={"merchant_id": merchant.merchant_id},
            )
        return merchant

    @classmethod
    def create_api_key(
        cls,
        merchant: Merchant,
        name: str = "Default",
        is_test: bool = False,
    ) -> tuple[ApiKey, str]:
        """
        Issue a new API key for a merchant.

        Args:
            merchant: Owning merchant
            name: Label for the key
            is_test: Issue a sk_test_ key instead of sk_live_

        Returns:
            Tuple of (ApiKey, raw_key). The raw key cannot be recovered later.
        """
        prefix = "sk_test" if is_test else "sk_live"
        raw_key = f"{prefix}_{get_random_string(API_KEY_RANDOM_LENGTH)}"
        api_key = ApiKey.objects.create(
            merchant=merchant,
            name=name,
            key_prefix=raw_key[:API_KEY_DISPLAY_PREFIX_LENGTH] + "...",
            key_hash=hash_string(raw_key),
            is_test=is_test,
        )
        cls.get_logger().info(
            "Issued API key",
            extra={"merchant_id": merchant.merchant_id, "api_key_id": str(api_key.id)},
        )
        return api_key, raw_key

    @classmethod
    def validate_api_key(cls, raw_key: str) -> ApiKey | None:
        """
        Resolve a raw API key to its active ApiKey.

        Records usage on success.

        Returns:
            The ApiKey (with merchant loaded), or None if the key is
            unknown, revoked, expired, or its merchant is inactive
        """
        if not raw_key:
            return None

        api_key = (
            ApiKey.objects.select_related("merchant")
            .filter(key_hash=hash_string(raw_key), is_active=True)
            .first()
        )
        if api_key is None or not api_key.merchant.is_active:
            return None

        now = timezone.now()
        if api_key.expires_at and api_key.expires_at <= now:
            cls.get_logger().info(
                "Rejected expired API key",
                extra={"api_key_id": str(api_key.id)},
            )
            return None

        ApiKey.objects.filter(pk=api_key.pk).update(
            last_used_at=now,
            request_count=F("request_count") + 1,
        )
        return api_key

    @classmethod
    def revoke_api_key(cls, key_id: uuid.UUID) -> bool:
        """
        Deactivate an API key.

        Returns:
            True if an active key was revoked
        """
        revoked = ApiKey.objects.filter(pk=key_id, is_active=True).update(
            is_active=False, updated_at=timezone.now()
        )
        if revoked:
            cls.get_logger().info("Revoked API key", extra={"api_key_id": str(key_id)})
        return bool(revoked)


__all__ = ["MerchantService"]
