"""
Django admin configuration for merchants and API keys.

Key hashes are never editable; keys are issued through MerchantService.
"""

from django.contrib import admin

from .models import ApiKey, Merchant


class ApiKeyInline(admin.TabularInline):
    model = ApiKey
    extra = 0
    fields = ["name", "key_prefix", "is_test", "is_active", "last_used_at", "request_count"]
    readonly_fields = ["key_prefix", "is_test", "last_used_at", "request_count"]
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Merchant)
class MerchantAdmin(admin.ModelAdmin):
    list_display = ["name", "wallet_address", "is_active", "created_at"]
    list_filter = ["is_active"]
    search_fields = ["name", "wallet_address", "id"]
    inlines = [ApiKeyInline]
