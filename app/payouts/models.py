"""
Payout models for email-addressed stablecoin payouts.

A Payout is a merchant's intent to pay an amount to an email address.
The recipient claims it with an unguessable claim token; funds come from
a TreasuryLedger reservation made before the payout is sent.

Usage:
    from payouts.models import Payout
    from payouts.state_machines import PayoutStatus

    payout = Payout.objects.get(claim_token=token)

    # State transitions using django-fsm
    payout.claim(recipient_wallet="7xKX...", tx_signature="3Yx...")
    payout.save()

Payouts are never deleted; they are kept for audit and history queries.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from payouts.state_machines import PayoutBatchStatus, PayoutStatus


def default_currency() -> str:
    return settings.PAYOUTS_DEFAULT_CURRENCY


class PayoutBatch(UUIDPrimaryKeyMixin, BaseModel):
    """
    A group of payouts created in one request.

    total_amount and count describe the payouts that were created;
    failed_count is the number of items that were rejected.

    State Flow:
        PROCESSING -> COMPLETED (every item created)
        PROCESSING -> PARTIAL (some items created)
        PROCESSING -> FAILED (no item created)
    """

    merchant_id = models.CharField(
        max_length=64,
        db_index=True,
        help_text="Merchant that created the batch",
    )
    merchant_wallet = models.CharField(
        max_length=64,
        help_text="Merchant wallet funding the batch",
    )
    currency = models.CharField(
        max_length=10,
        default=default_currency,
        help_text="Currency of every payout in the batch",
    )
    total_amount = models.DecimalField(
        max_digits=20,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Sum of created payout amounts",
    )
    count = models.PositiveIntegerField(
        default=0,
        help_text="Number of created payouts",
    )
    failed_count = models.PositiveIntegerField(
        default=0,
        help_text="Number of rejected items",
    )
    status = FSMField(
        default=PayoutBatchStatus.PROCESSING,
        choices=PayoutBatchStatus.choices,
        db_index=True,
        protected=True,
        help_text="Aggregate status of the batch (managed by FSM)",
    )
    completed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When every item had been processed",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payout Batch"
        verbose_name_plural = "Payout Batches"

    def __str__(self) -> str:
        return f"PayoutBatch({self.id}, {self.status}, {self.count} payouts)"

    @transition(
        field=status,
        source=PayoutBatchStatus.PROCESSING,
        target=PayoutBatchStatus.COMPLETED,
    )
    def complete(self):
        """Every item was created."""
        self.completed_at = timezone.now()

    @transition(
        field=status,
        source=PayoutBatchStatus.PROCESSING,
        target=PayoutBatchStatus.PARTIAL,
    )
    def mark_partial(self):
        """Some items were created and some rejected."""
        self.completed_at = timezone.now()

    @transition(
        field=status,
        source=PayoutBatchStatus.PROCESSING,
        target=PayoutBatchStatus.FAILED,
    )
    def mark_failed(self):
        """No item was created."""
        self.completed_at = timezone.now()


class Payout(UUIDPrimaryKeyMixin, BaseModel):
    """
    A payout from a merchant to an email address.

    State Flow:
        PENDING -> FUNDED -> SENT -> CLAIMED
        PENDING -> SENT -> CLAIMED (funded outside the treasury)
        SENT -> EXPIRED
        PENDING/FUNDED/SENT -> FAILED

    Fields:
        merchant_id: Merchant paying out
        merchant_wallet: Merchant wallet the funds originate from
        email: Normalized recipient email
        amount: Payout principal
        fee: Platform fee reserved with the payout
        currency: Currency code
        memo: Optional note shown to the recipient
        metadata: Merchant-supplied JSON
        status: Current FSM state
        claim_token: Unguessable capability for claiming the payout
        recipient_wallet: Wallet the payout was delivered to (set on claim)
        tx_signature: On-chain signature of the delivery (set on claim)
        batch: Batch the payout was created in, if any
        funded_at / claimed_at / expired_at / failed_at: Transition times
        expires_at: End of the claim window
        failure_reason: Why the payout failed
        version: Optimistic locking version

    Note:
        claim_token is random and independent of id, so it cannot be
        derived from anything the API exposes publicly.
    """

    # ==========================================================================
    # Parties
    # ==========================================================================

    merchant_id = models.CharField(
        max_length=64,
        db_index=True,
        help_text="Merchant paying out",
    )
    merchant_wallet = models.CharField(
        max_length=64,
        help_text="Merchant wallet the funds originate from",
    )
    email = models.EmailField(
        max_length=254,
        db_index=True,
        help_text="Normalized recipient email",
    )

    # ==========================================================================
    # Amount & Currency
    # ==========================================================================

    amount = models.DecimalField(
        max_digits=20,
        decimal_places=2,
        help_text="Payout principal",
    )
    fee = models.DecimalField(
        max_digits=20,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Platform fee reserved with the payout",
    )
    currency = models.CharField(
        max_length=10,
        default=default_currency,
        help_text="Currency code (e.g. USDC)",
    )
    memo = models.CharField(
        max_length=500,
        null=True,
        blank=True,
        help_text="Optional note shown to the recipient",
    )
    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Arbitrary merchant-supplied JSON",
    )

    # ==========================================================================
    # State
    # ==========================================================================

    status = FSMField(
        default=PayoutStatus.PENDING,
        choices=PayoutStatus.choices,
        db_index=True,
        protected=True,
        help_text="Current state of the payout (managed by FSM)",
    )

    # ==========================================================================
    # Claim
    # ==========================================================================

    claim_token = models.CharField(
        max_length=64,
        unique=True,
        help_text="Unguessable token that grants the right to claim",
    )
    recipient_wallet = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        help_text="Wallet the payout was delivered to",
    )
    tx_signature = models.CharField(
        max_length=128,
        null=True,
        blank=True,
        help_text="On-chain signature of the delivery",
    )

    batch = models.ForeignKey(
        PayoutBatch,
        on_delete=models.PROTECT,
        related_name="payouts",
        null=True,
        blank=True,
        help_text="Batch the payout was created in",
    )

    # ==========================================================================
    # Concurrency Control
    # ==========================================================================

    version = models.PositiveIntegerField(
        default=1,
        help_text="Version for optimistic locking - incremented on each save",
    )

    # ==========================================================================
    # Timestamps
    # ==========================================================================

    expires_at = models.DateTimeField(
        db_index=True,
        help_text="End of the claim window",
    )
    funded_at = models.DateTimeField(null=True, blank=True)
    claimed_at = models.DateTimeField(null=True, blank=True)
    expired_at = models.DateTimeField(null=True, blank=True)
    failed_at = models.DateTimeField(null=True, blank=True)

    failure_reason = models.TextField(
        null=True,
        blank=True,
        help_text="Why the payout failed",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payout"
        verbose_name_plural = "Payouts"
        indexes = [
            models.Index(fields=["merchant_id", "-created_at"], name="payout_merchant_recent_idx"),
            models.Index(fields=["email", "-created_at"], name="payout_email_recent_idx"),
            models.Index(fields=["status", "expires_at"], name="payout_status_expiry_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="payout_amount_positive",
            ),
            models.CheckConstraint(
                condition=Q(fee__gte=0),
                name="payout_fee_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"Payout({self.id}, {self.status}, {self.amount} {self.currency})"

    def save(self, *args, **kwargs):
        """
        Save with version auto-increment for optimistic locking.
        """
        is_update = not self._state.adding and not kwargs.get("force_insert", False)
        if is_update:
            self.version = F("version") + 1
            update_fields = kwargs.get("update_fields")
            if update_fields is not None and "version" not in update_fields:
                kwargs["update_fields"] = [*update_fields, "version"]
        super().save(*args, **kwargs)
        if is_update:
            self.refresh_from_db(fields=["version"])

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=PayoutStatus.PENDING,
        target=PayoutStatus.FUNDED,
    )
    def fund(self):
        """
        Mark the payout as backed by a treasury reservation.

        Transition: PENDING -> FUNDED
        """
        self.funded_at = timezone.now()

    @transition(
        field=status,
        source=[PayoutStatus.PENDING, PayoutStatus.FUNDED],
        target=PayoutStatus.SENT,
    )
    def send(self):
        """
        Open the claim window.

        Transition: PENDING/FUNDED -> SENT
        """

    @transition(
        field=status,
        source=PayoutStatus.SENT,
        target=PayoutStatus.CLAIMED,
    )
    def claim(self, recipient_wallet: str | None = None, tx_signature: str | None = None):
        """
        Record that the payout was delivered.

        Transition: SENT -> CLAIMED

        Called after a collaborator has executed (or observed) the
        on-chain transfer; nothing is verified here. Both fields are
        left empty when the payout is credited to a held balance.

        Args:
            recipient_wallet: Wallet the funds were sent to
            tx_signature: Signature of the on-chain transfer
        """
        self.recipient_wallet = recipient_wallet
        self.tx_signature = tx_signature
        self.claimed_at = timezone.now()

    @transition(
        field=status,
        source=PayoutStatus.SENT,
        target=PayoutStatus.EXPIRED,
    )
    def expire(self):
        """
        Close an unclaimed payout after its claim window.

        Transition: SENT -> EXPIRED
        """
        self.expired_at = timezone.now()

    @transition(
        field=status,
        source=[PayoutStatus.PENDING, PayoutStatus.FUNDED, PayoutStatus.SENT],
        target=PayoutStatus.FAILED,
    )
    def fail(self, reason: str | None = None):
        """
        Mark the payout as failed.

        Transition: PENDING/FUNDED/SENT -> FAILED

        Args:
            reason: Optional failure reason for debugging
        """
        self.failed_at = timezone.now()
        if reason:
            self.failure_reason = reason

    # ==========================================================================
    # Properties
    # ==========================================================================

    @property
    def claim_url(self) -> str:
        """Public link the recipient opens to claim the payout."""
        base_url = settings.PAYOUTS_CLAIM_BASE_URL.rstrip("/")
        return f"{base_url}/claim/{self.claim_token}"

    @property
    def is_past_expiry(self) -> bool:
        return self.expires_at is not None and self.expires_at <= timezone.now()

    @property
    def is_claimable(self) -> bool:
        """Check if the payout can be claimed right now."""
        return self.status == PayoutStatus.SENT and not self.is_past_expiry

    @property
    def is_claimed(self) -> bool:
        return self.status == PayoutStatus.CLAIMED
