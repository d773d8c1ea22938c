"""
Celery tasks for the payout lifecycle.

This module provides:
- expire_unclaimed_payouts: periodic sweep that expires SENT payouts
  past their claim window and refunds their treasury reservations

The sweep is scheduled by django-celery-beat (see migration
0002_add_expiry_sweep_schedule).

Usage:
    from payouts.tasks import expire_unclaimed_payouts

    expire_unclaimed_payouts.delay()
"""

from __future__ import annotations

import logging

from celery import shared_task

from payouts.services import PayoutLifecycle

logger = logging.getLogger(__name__)

MAX_SWEEP_RETRIES = 3


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_kwargs={"max_retries": MAX_SWEEP_RETRIES},
    acks_late=True,
)
def expire_unclaimed_payouts(self, limit: int | None = None) -> dict:
    """
    Expire payouts whose claim window has closed.

    Idempotent: every payout is re-checked under its row lock, so
    overlapping runs never expire or refund a payout twice.

    Args:
        limit: Maximum payouts to expire in this run
            (PAYOUTS_EXPIRY_SWEEP_BATCH_SIZE if None)

    Returns:
        Dict with expired_count
    """
    logger.info("Starting unclaimed payout sweep")
    expired_count = PayoutLifecycle.expire_overdue_payouts(limit=limit)
    logger.info(
        "Finished unclaimed payout sweep",
        extra={"expired_count": expired_count},
    )
    return {"expired_count": expired_count}
