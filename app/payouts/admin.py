"""
Django admin configuration for payout models.

Payouts change state only through PayoutLifecycle, so status and money
fields are read-only here.
"""

from django.contrib import admin

from .models import Payout, PayoutBatch


@admin.register(Payout)
class PayoutAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "merchant_id",
        "email",
        "amount",
        "fee",
        "currency",
        "status",
        "expires_at",
        "created_at",
    ]
    list_filter = ["status", "currency"]
    search_fields = ["id", "merchant_id", "email", "tx_signature"]
    date_hierarchy = "created_at"
    exclude = ["claim_token"]
    readonly_fields = [
        "id",
        "merchant_id",
        "merchant_wallet",
        "email",
        "amount",
        "fee",
        "currency",
        "status",
        "recipient_wallet",
        "tx_signature",
        "batch",
        "version",
        "expires_at",
        "funded_at",
        "claimed_at",
        "expired_at",
        "failed_at",
        "failure_reason",
        "created_at",
        "updated_at",
    ]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(PayoutBatch)
class PayoutBatchAdmin(admin.ModelAdmin):
    list_display = ["id", "merchant_id", "status", "count", "failed_count", "total_amount", "created_at"]
    list_filter = ["status"]
    search_fields = ["id", "merchant_id"]
    readonly_fields = ["status", "total_amount", "count", "failed_count", "completed_at"]

    def has_add_permission(self, request):
        return False
