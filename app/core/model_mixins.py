"""
Reusable model mixins.

Mixins:
    UUIDPrimaryKeyMixin: UUID primary key generated in Python

Usage:
    from core.model_mixins import UUIDPrimaryKeyMixin
    from core.models import BaseModel

    class Payout(UUIDPrimaryKeyMixin, BaseModel):
        ...
"""

from __future__ import annotations

import uuid

from django.db import models


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use UUID as primary key instead of auto-increment integer.

    IDs are non-guessable and can be allocated before the row is
    written. The payout lifecycle relies on the latter: the treasury
    reservation is keyed by the payout ID, so the ID must exist before
    the payout row does.

    Fields:
        id: UUIDField as primary key (auto-generated)

    Usage:
        payout_id = uuid.uuid4()
        TreasuryLedger.reserve(merchant_id, amount, fee, payout_id)
        Payout.objects.create(id=payout_id, ...)
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier (UUID4)",
    )

    class Meta:
        abstract = True
