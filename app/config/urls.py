"""
URL configuration for the settlement engine.

The `urlpatterns` list routes URLs to views. This is the root URL configuration
that includes all app-specific routes.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/treasury/              - Merchant treasury (X-API-Key)
        balance/                   - Current balance
        deposits/                  - Record an on-chain deposit
        withdrawals/               - Withdraw available funds
        transactions/              - Transaction history
    /api/v1/payouts/               - Payouts (X-API-Key)
        ""                         - List/create payouts
        batch/                     - Create a batch of payouts
        claim/                     - Claim lookup (public GET) / settle (POST)
        {id}/                      - Payout detail
    /api/v1/recipients/            - Recipients (public)
        auth/                      - Request (POST) / redeem (GET) a magic link

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    # Treasury
    path("treasury/", include("treasury.urls")),
    # Payouts
    path("payouts/", include("payouts.urls")),
    # Recipients
    path("recipients/", include("recipients.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Settlement Admin"
admin.site.site_title = "Settlement Admin Portal"
admin.site.index_title = "Treasury & Payouts"
