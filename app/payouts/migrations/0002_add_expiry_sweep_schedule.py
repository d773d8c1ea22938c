"""
Add celery-beat schedule for expiring unclaimed payouts.

This migration creates the periodic task that runs
payouts.tasks.expire_unclaimed_payouts every
PAYOUTS_EXPIRY_SWEEP_INTERVAL_MINUTES minutes.
"""

from django.conf import settings
from django.db import migrations

TASK_NAME = "Expire Unclaimed Payouts"


def create_periodic_task(apps, schema_editor):
    """Create the periodic task for the expiry sweep."""
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    schedule, _ = IntervalSchedule.objects.get_or_create(
        every=settings.PAYOUTS_EXPIRY_SWEEP_INTERVAL_MINUTES,
        period="minutes",
    )

    PeriodicTask.objects.get_or_create(
        name=TASK_NAME,
        defaults={
            "task": "payouts.tasks.expire_unclaimed_payouts",
            "interval": schedule,
            "enabled": True,
            "description": (
                "Expires SENT payouts past their claim window and refunds "
                "their treasury reservations."
            ),
        },
    )


def remove_periodic_task(apps, schema_editor):
    """Remove the periodic task on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(name=TASK_NAME).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("payouts", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]
