"""
Django admin configuration for recipient models.
"""

from django.contrib import admin

from .models import BalanceTransaction, Recipient, RecipientBalance


class RecipientBalanceInline(admin.TabularInline):
    model = RecipientBalance
    extra = 0
    can_delete = False
    readonly_fields = ["currency", "balance", "updated_at"]

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Recipient)
class RecipientAdmin(admin.ModelAdmin):
    list_display = [
        "email",
        "wallet_address",
        "auto_withdraw",
        "total_payouts",
        "total_received",
        "last_payout_at",
    ]
    list_filter = ["auto_withdraw", "notifications_enabled"]
    search_fields = ["email", "wallet_address", "display_name"]
    readonly_fields = [
        "id",
        "total_received",
        "total_payouts",
        "last_payout_at",
        "created_at",
        "updated_at",
    ]
    exclude = ["auth_token", "auth_token_expires_at"]
    inlines = [RecipientBalanceInline]


@admin.register(BalanceTransaction)
class BalanceTransactionAdmin(admin.ModelAdmin):
    list_display = ["created_at", "recipient", "type", "amount", "currency", "payout_id"]
    list_filter = ["type", "currency"]
    search_fields = ["recipient__email", "payout_id", "tx_signature"]
    date_hierarchy = "created_at"

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
