"""
Django admin configuration for treasury models.

Balances and their audit log are read-only in the admin: every change
must go through TreasuryLedger so that it is locked and audited.
"""

from django.contrib import admin

from .models import MerchantBalance, TreasuryTransaction


class ReadOnlyAdminMixin:
    """Disable add/change/delete for ledger-managed models."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(MerchantBalance)
class MerchantBalanceAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = [
        "merchant_id",
        "currency",
        "available",
        "pending",
        "reserved",
        "total_payouts",
        "total_fees",
        "updated_at",
    ]
    list_filter = ["currency"]
    search_fields = ["merchant_id"]
    ordering = ["-updated_at"]


@admin.register(TreasuryTransaction)
class TreasuryTransactionAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = [
        "created_at",
        "merchant_id",
        "type",
        "amount",
        "currency",
        "payout_id",
        "balance_after",
    ]
    list_filter = ["type", "currency"]
    search_fields = ["merchant_id", "payout_id", "tx_signature"]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]
