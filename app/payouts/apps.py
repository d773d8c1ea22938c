"""
Payouts app configuration.

This app provides the payout settlement engine:
- Payout state machine (django-fsm)
- Payout batches
- Expiry sweeper (Celery)
"""

from django.apps import AppConfig


class PayoutsConfig(AppConfig):
    """Configuration for the payouts application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payouts"
    verbose_name = "Payouts"
