"""
URL configuration for the recipients app.

All routes are prefixed with /api/v1/recipients/ in config/urls.py.
"""

from django.urls import path

from .views import RecipientAuthView

app_name = "recipients"

urlpatterns = [
    path("auth/", RecipientAuthView.as_view(), name="auth"),
]
