"""
Treasury app configuration.
"""

from django.apps import AppConfig


class TreasuryConfig(AppConfig):
    """Configuration for the treasury application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "treasury"
    verbose_name = "Treasury"
