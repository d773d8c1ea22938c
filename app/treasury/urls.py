"""
URL configuration for the treasury app.

All routes are prefixed with /api/v1/treasury/ in config/urls.py.
"""

from django.urls import path

from .views import (
    TreasuryBalanceView,
    TreasuryDepositView,
    TreasuryTransactionListView,
    TreasuryWithdrawalView,
)

app_name = "treasury"

urlpatterns = [
    path("balance/", TreasuryBalanceView.as_view(), name="balance"),
    path("deposits/", TreasuryDepositView.as_view(), name="deposits"),
    path("withdrawals/", TreasuryWithdrawalView.as_view(), name="withdrawals"),
    path("transactions/", TreasuryTransactionListView.as_view(), name="transactions"),
]
