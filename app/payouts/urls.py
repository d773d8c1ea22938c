"""
URL configuration for the payouts app.

All routes are prefixed with /api/v1/payouts/ in config/urls.py.
"""

from django.urls import path

from .views import PayoutBatchView, PayoutClaimView, PayoutDetailView, PayoutListCreateView

app_name = "payouts"

urlpatterns = [
    path("", PayoutListCreateView.as_view(), name="list"),
    path("batch/", PayoutBatchView.as_view(), name="batch"),
    path("claim/", PayoutClaimView.as_view(), name="claim"),
    path("<uuid:payout_id>/", PayoutDetailView.as_view(), name="detail"),
]
