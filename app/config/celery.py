"""
Celery configuration for the settlement engine.

Celery runs the periodic expiry sweep (payouts.tasks.expire_unclaimed_payouts),
scheduled by django-celery-beat's DatabaseScheduler. The schedule row is
created by a data migration in the payouts app, so it can be changed from
the admin without a deploy.

Tasks are auto-discovered from all installed Django apps.

Usage:
    # Run the sweep once, outside the schedule:
    from payouts.tasks import expire_unclaimed_payouts

    expire_unclaimed_payouts.delay()

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Celery will look for a tasks.py module in each installed app
app.autodiscover_tasks()
