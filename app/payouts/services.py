"""
Payout lifecycle service.

This module provides PayoutLifecycle, which ties a merchant's intent to
pay ("send $X to email Y") to a claim token, to the recipient directory,
and to TreasuryLedger reservations.

Money flow:
1. create_payout: fee = calculate_fee(amount); the treasury reserves
   amount + fee under the payout's id; the payout is stored FUNDED -> SENT
2. settle_payout / credit_payout_to_balance: the payout is CLAIMED and
   the reservation released (principal and fee), in one transaction
3. expire_payout / fail_payout: the reservation is refunded and the
   payout moves to EXPIRED / FAILED, in one transaction

The engine never builds or verifies blockchain transactions. Callers
pass the signature of a transfer they already executed or observed.

Usage:
    from payouts.services import PayoutLifecycle

    result = PayoutLifecycle.create_payout(
        merchant_id=merchant.merchant_id,
        merchant_wallet=merchant.wallet_address,
        email="alice@example.com",
        amount=Decimal("25.00"),
    )
    if not result.success:
        return Response(result.to_response(), status=402)

    result = PayoutLifecycle.settle_payout(token, recipient_wallet, tx_signature)
    if result.error_code == PAYOUT_ALREADY_CLAIMED:
        existing = result.data  # never overwritten
"""

from __future__ import annotations

import logging
import re
import secrets
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from functools import partial
from typing import Any

from django.conf import settings
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from django_fsm import TransitionNotAllowed

from core.exceptions import BaseApplicationError, PermissionDeniedError, ValidationError
from core.helpers import clamp_limit, normalize_email
from core.services import BaseService, ServiceResult
from recipients.exceptions import RecipientNotFound
from recipients.services import RecipientDirectory, RecipientLedger
from treasury.exceptions import InvalidAmount
from treasury.fees import ZERO, calculate_fee, to_amount
from treasury.services import TreasuryLedger

from .exceptions import BatchTooLarge, InvalidClaimToken, InvalidPayoutTransition, PayoutNotFound
from .models import Payout, PayoutBatch
from .signals import payout_claimed, payout_created, payout_expired, payout_failed
from .state_machines import PayoutStatus


# =============================================================================
# Constants
# =============================================================================

# secrets.token_urlsafe(32) yields 43 URL-safe characters
CLAIM_TOKEN_BYTES = 32
CLAIM_TOKEN_PATTERN = re.compile(r"^[A-Za-z0-9_-]{43}$")

DEFAULT_PAGE_LIMIT = 50
MAX_PAGE_LIMIT = 200

PAYOUT_NOT_FOUND = "PAYOUT_NOT_FOUND"
PAYOUT_ALREADY_CLAIMED = "PAYOUT_ALREADY_CLAIMED"
PAYOUT_EXPIRED = "PAYOUT_EXPIRED"
PAYOUT_NOT_CLAIMABLE = "PAYOUT_NOT_CLAIMABLE"
BATCH_ITEM_ERROR = "BATCH_ITEM_ERROR"


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class BatchFailure:
    """
    One rejected batch item.

    Attributes:
        index: Position of the item in the request
        email: Email of the item, as supplied
        error: Human-readable reason
        error_code: Machine-readable reason
    """

    index: int
    email: str
    error: str
    error_code: str | None = None


@dataclass
class BatchResult:
    """
    Result of a batch creation.

    Attributes:
        batch: The finalized PayoutBatch
        payouts: Payouts that were created
        failures: Items that were rejected
    """

    batch: PayoutBatch
    payouts: list[Payout] = field(default_factory=list)
    failures: list[BatchFailure] = field(default_factory=list)


# =============================================================================
# Payout Lifecycle
# =============================================================================


class PayoutLifecycle(BaseService):
    """
    Service for the payout state machine.

    Every transition locks the payout row, applies the matching treasury
    change and saves the payout in one transaction, then sends the
    corresponding signal once that transaction commits.

    Business rejections on the claim path are returned as ServiceResult
    failures with a stable error_code:
        PAYOUT_NOT_FOUND, PAYOUT_ALREADY_CLAIMED, PAYOUT_EXPIRED,
        PAYOUT_NOT_CLAIMABLE
    """

    # ==========================================================================
    # Helpers
    # ==========================================================================

    @staticmethod
    def generate_claim_token() -> str:
        return secrets.token_urlsafe(CLAIM_TOKEN_BYTES)

    @staticmethod
    def _validate_claim_token(claim_token: str) -> None:
        if not isinstance(claim_token, str) or not CLAIM_TOKEN_PATTERN.match(claim_token):
            raise InvalidClaimToken(
                "Malformed claim token",
                details={"length": len(claim_token) if isinstance(claim_token, str) else None},
            )

    @staticmethod
    def _on_commit(signal, payout: Payout) -> None:
        transaction.on_commit(partial(signal.send, sender=PayoutLifecycle, payout=payout))

    @classmethod
    def _lock_payout(cls, payout_id: uuid.UUID) -> Payout:
        payout = Payout.objects.select_for_update().filter(pk=payout_id).first()
        if payout is None:
            raise PayoutNotFound(
                f"Payout {payout_id} not found",
                details={"payout_id": str(payout_id)},
            )
        return payout

    @classmethod
    def _release_reservation(cls, payout: Payout) -> None:
        if TreasuryLedger.get_reservation(payout.id) is None:
            return
        TreasuryLedger.release(
            payout.merchant_id, payout.amount, payout.fee, payout.id, currency=payout.currency
        )

    @classmethod
    def _refund_reservation(cls, payout: Payout) -> None:
        if TreasuryLedger.get_reservation(payout.id) is None:
            return
        TreasuryLedger.refund(
            payout.merchant_id, payout.amount, payout.fee, payout.id, currency=payout.currency
        )

    @staticmethod
    def _transition(payout: Payout, transition_name: str, *args: Any) -> None:
        """Run a django-fsm transition, raising InvalidPayoutTransition on refusal."""
        try:
            getattr(payout, transition_name)(*args)
        except TransitionNotAllowed as exc:
            raise InvalidPayoutTransition(
                f"Cannot {transition_name} payout in '{payout.status}' state",
                details={
                    "payout_id": str(payout.id),
                    "current_state": payout.status,
                    "transition": transition_name,
                },
            ) from exc

    # ==========================================================================
    # Creation
    # ==========================================================================

    @classmethod
    def create_payout(
        cls,
        merchant_id: str,
        merchant_wallet: str,
        email: str,
        amount: Decimal,
        currency: str | None = None,
        memo: str | None = None,
        metadata: dict | None = None,
        batch: PayoutBatch | None = None,
        fund_from_treasury: bool = True,
    ) -> ServiceResult[Payout]:
        """
        Create a payout and open its claim window.

        The payout id is allocated before the reservation, so the
        treasury's payout_reserved row and the Payout share one id and a
        later release or refund can find the reservation.

        Args:
            merchant_id: Merchant paying out
            merchant_wallet: Merchant wallet the funds originate from
            email: Recipient email (normalized before use)
            amount: Payout principal, greater than zero
            currency: Currency code (PAYOUTS_DEFAULT_CURRENCY if None)
            memo: Optional note for the recipient
            metadata: Optional merchant JSON
            batch: Batch the payout belongs to
            fund_from_treasury: Reserve amount + fee from the merchant's
                treasury balance. When False the payout is funded
                elsewhere and goes straight from PENDING to SENT.

        Returns:
            ServiceResult with the SENT payout, or a failure
            ("Insufficient balance", INSUFFICIENT_BALANCE) when the
            treasury cannot fund it. Nothing is written on failure.

        Raises:
            ValidationError: If email is empty
            InvalidAmount: If amount is not a positive whole-cent amount
        """
        email = normalize_email(email)
        if not email:
            raise ValidationError("Recipient email is required", details={"field": "email"})
        amount = to_amount(amount)
        if amount <= ZERO:
            raise InvalidAmount(
                "amount must be greater than zero",
                error_code="INVALID_AMOUNT",
                details={"amount": str(amount)},
            )
        currency = currency or settings.PAYOUTS_DEFAULT_CURRENCY
        fee = calculate_fee(amount)
        payout_id = uuid.uuid4()

        with cls.atomic():
            if fund_from_treasury:
                reservation = TreasuryLedger.reserve(
                    merchant_id, amount, fee, payout_id, currency=currency
                )
                if not reservation.success:
                    cls.get_logger().warning(
                        "Payout rejected: treasury cannot fund it",
                        extra={
                            "merchant_id": merchant_id,
                            "amount": str(amount),
                            "fee": str(fee),
                            "currency": currency,
                        },
                    )
                    return ServiceResult.failure(
                        reservation.error, error_code=reservation.error_code
                    )

            payout = Payout(
                id=payout_id,
                merchant_id=merchant_id,
                merchant_wallet=merchant_wallet,
                email=email,
                amount=amount,
                fee=fee,
                currency=currency,
                memo=memo,
                metadata=metadata or {},
                claim_token=cls.generate_claim_token(),
                expires_at=timezone.now() + timedelta(days=settings.PAYOUTS_CLAIM_TTL_DAYS),
                batch=batch,
            )
            if fund_from_treasury:
                payout.fund()
            payout.send()
            payout.save(force_insert=True)
            cls._on_commit(payout_created, payout)

        cls.get_logger().info(
            "Created payout",
            extra={
                "payout_id": str(payout.id),
                "merchant_id": merchant_id,
                "amount": str(amount),
                "fee": str(fee),
                "currency": currency,
                "funded": fund_from_treasury,
            },
        )
        return ServiceResult.success(payout)

    @classmethod
    def create_batch(
        cls,
        merchant_id: str,
        merchant_wallet: str,
        items: list[dict[str, Any]],
        currency: str | None = None,
        fund_from_treasury: bool = True,
    ) -> BatchResult:
        """
        Create one payout per item and aggregate the outcome.

        Each payout commits on its own, so a rejected item never rolls
        back the others. Items are dicts with email, amount and an
        optional memo and metadata.
        An unexpected error on one item is logged and reported as a
        BATCH_ITEM_ERROR failure.

        Returns:
            BatchResult with the finalized batch (COMPLETED, PARTIAL or
            FAILED), the created payouts and the rejected items

        Raises:
            BatchTooLarge: If there are more than PAYOUTS_MAX_BATCH_SIZE items
            ValidationError: If there are no items
        """
        max_size = settings.PAYOUTS_MAX_BATCH_SIZE
        if len(items) > max_size:
            raise BatchTooLarge(
                f"Batch has {len(items)} payouts; the maximum is {max_size}",
                details={"count": len(items), "max": max_size},
            )
        if not items:
            raise ValidationError("Batch must contain at least one payout")

        currency = currency or settings.PAYOUTS_DEFAULT_CURRENCY
        batch = PayoutBatch.objects.create(
            merchant_id=merchant_id,
            merchant_wallet=merchant_wallet,
            currency=currency,
        )
        result = BatchResult(batch=batch)

        for index, item in enumerate(items):
            email = item.get("email", "")
            try:
                created = cls.create_payout(
                    merchant_id=merchant_id,
                    merchant_wallet=merchant_wallet,
                    email=email,
                    amount=item.get("amount"),
                    currency=currency,
                    memo=item.get("memo"),
                    metadata=item.get("metadata"),
                    batch=batch,
                    fund_from_treasury=fund_from_treasury,
                )
            except BaseApplicationError as exc:
                rejected = cls.handle_exception(
                    exc, context=f"Batch item {index} rejected", log_level=logging.WARNING
                )
                result.failures.append(
                    BatchFailure(index, email, rejected.error, rejected.error_code)
                )
                continue
            except Exception as exc:
                # Recorded as a failed item so the batch is still finalized
                cls.handle_exception(exc, context=f"Batch item {index} failed unexpectedly")
                result.failures.append(
                    BatchFailure(index, email, "Payout could not be created", BATCH_ITEM_ERROR)
                )
                continue
            if created.success:
                result.payouts.append(created.data)
            else:
                result.failures.append(
                    BatchFailure(index, email, created.error, created.error_code)
                )

        batch.total_amount = sum((p.amount for p in result.payouts), ZERO)
        batch.count = len(result.payouts)
        batch.failed_count = len(result.failures)
        if not result.failures:
            batch.complete()
        elif result.payouts:
            batch.mark_partial()
        else:
            batch.mark_failed()
        batch.save()

        cls.get_logger().info(
            "Created payout batch",
            extra={
                "batch_id": str(batch.id),
                "merchant_id": merchant_id,
                "status": batch.status,
                "count": batch.count,
                "failed_count": batch.failed_count,
                "total_amount": str(batch.total_amount),
            },
        )
        return result

    # ==========================================================================
    # Claim
    # ==========================================================================

    @classmethod
    def get_by_claim_token(cls, claim_token: str) -> Payout | None:
        """
        Look up a payout by its claim token.

        Raises:
            InvalidClaimToken: If the token is not in the issued format
        """
        cls._validate_claim_token(claim_token)
        return Payout.objects.filter(claim_token=claim_token).first()

    @classmethod
    def claim_payout(
        cls,
        claim_token: str,
        recipient_wallet: str | None = None,
        tx_signature: str | None = None,
    ) -> ServiceResult[Payout]:
        """
        Mark a SENT payout as CLAIMED.

        Only records the claim; settle_payout also updates the recipient
        and the treasury. A payout that is already claimed is returned in
        the failure's data and is never modified. A SENT payout past its
        expires_at is expired (and refunded) instead.

        Args:
            claim_token: Token from the claim link
            recipient_wallet: Wallet the funds were sent to
            tx_signature: Signature of the on-chain transfer

        Returns:
            ServiceResult with the claimed payout, or a failure with
            PAYOUT_NOT_FOUND, PAYOUT_ALREADY_CLAIMED, PAYOUT_EXPIRED or
            PAYOUT_NOT_CLAIMABLE

        Raises:
            InvalidClaimToken: If the token is malformed
        """
        cls._validate_claim_token(claim_token)
        logger = cls.get_logger()

        with cls.atomic():
            payout = Payout.objects.select_for_update().filter(claim_token=claim_token).first()
            if payout is None:
                return ServiceResult.failure("Payout not found", error_code=PAYOUT_NOT_FOUND)

            log_extra = {"payout_id": str(payout.id), "status": payout.status}
            if payout.status == PayoutStatus.CLAIMED:
                logger.warning("Payout already claimed", extra=log_extra)
                return ServiceResult.failure(
                    "Payout already claimed", error_code=PAYOUT_ALREADY_CLAIMED, data=payout
                )
            if payout.status == PayoutStatus.EXPIRED:
                logger.warning("Claim on expired payout", extra=log_extra)
                return ServiceResult.failure(
                    "Payout has expired", error_code=PAYOUT_EXPIRED, data=payout
                )
            if payout.status != PayoutStatus.SENT:
                logger.warning("Payout is not claimable", extra=log_extra)
                return ServiceResult.failure(
                    "Payout cannot be claimed", error_code=PAYOUT_NOT_CLAIMABLE, data=payout
                )
            if payout.is_past_expiry:
                cls._expire_locked(payout)
                logger.warning("Claim after claim window, payout expired", extra=log_extra)
                return ServiceResult.failure(
                    "Payout has expired", error_code=PAYOUT_EXPIRED, data=payout
                )

            payout.claim(recipient_wallet, tx_signature)
            payout.save()
            cls._on_commit(payout_claimed, payout)

        logger.info(
            "Claimed payout",
            extra={"payout_id": str(payout.id), "merchant_id": payout.merchant_id},
        )
        return ServiceResult.success(payout)

    @classmethod
    def settle_payout(
        cls,
        claim_token: str,
        recipient_wallet: str,
        tx_signature: str,
    ) -> ServiceResult[Payout]:
        """
        Complete a payout delivered on-chain.

        In one transaction: claim the payout, register the recipient if
        absent, count the payout in the recipient's stats, and release
        the treasury reservation. When the claim is rejected nothing else
        happens, so a replayed settlement never double counts.

        Returns:
            The claim_payout result
        """
        with cls.atomic():
            result = cls.claim_payout(claim_token, recipient_wallet, tx_signature)
            if not result.success:
                return result

            payout = result.data
            RecipientDirectory.register_recipient(payout.email, recipient_wallet)
            RecipientDirectory.update_recipient_stats(payout.email, payout.amount)
            cls._release_reservation(payout)

        cls.get_logger().info(
            "Settled payout",
            extra={
                "payout_id": str(payout.id),
                "merchant_id": payout.merchant_id,
                "amount": str(payout.amount),
                "currency": payout.currency,
            },
        )
        return result

    @classmethod
    def credit_payout_to_balance(
        cls,
        claim_token: str,
        recipient_id: uuid.UUID,
    ) -> ServiceResult[Payout]:
        """
        Claim a payout into the recipient's held balance.

        Used when the recipient wants the funds kept on the platform
        instead of delivered on-chain. The payout is claimed with no
        wallet or signature; RecipientLedger is credited and the
        treasury reservation released in the same transaction.

        Raises:
            RecipientNotFound: If the recipient does not exist
            PermissionDeniedError: If the payout is addressed to another email
        """
        recipient = RecipientDirectory.get_recipient_by_id(recipient_id)
        if recipient is None:
            raise RecipientNotFound(
                f"Recipient {recipient_id} not found",
                details={"recipient_id": str(recipient_id)},
            )

        payout = cls.get_by_claim_token(claim_token)
        if payout is not None and payout.email != recipient.email:
            raise PermissionDeniedError(
                "Payout is addressed to a different recipient",
                details={"payout_id": str(payout.id)},
            )

        with cls.atomic():
            result = cls.claim_payout(claim_token)
            if not result.success:
                return result

            payout = result.data
            RecipientLedger.credit_balance(
                recipient.id, payout.amount, payout.id, currency=payout.currency
            )
            RecipientDirectory.update_recipient_stats(payout.email, payout.amount)
            cls._release_reservation(payout)

        cls.get_logger().info(
            "Credited payout to recipient balance",
            extra={"payout_id": str(payout.id), "recipient_id": str(recipient.id)},
        )
        return result

    # ==========================================================================
    # Expiry & Failure
    # ==========================================================================

    @classmethod
    def _expire_locked(cls, payout: Payout) -> None:
        cls._transition(payout, "expire")
        cls._refund_reservation(payout)
        payout.save()
        cls._on_commit(payout_expired, payout)
        cls.get_logger().info(
            "Expired payout",
            extra={
                "payout_id": str(payout.id),
                "merchant_id": payout.merchant_id,
                "amount": str(payout.amount),
            },
        )

    @classmethod
    def expire_payout(cls, payout_id: uuid.UUID) -> Payout:
        """
        Expire an unclaimed payout and refund its reservation.

        Expiring an already expired payout returns it unchanged.

        Raises:
            PayoutNotFound: If the payout does not exist
            InvalidPayoutTransition: If the payout is not SENT
        """
        with cls.atomic():
            payout = cls._lock_payout(payout_id)
            if payout.status == PayoutStatus.EXPIRED:
                return payout
            cls._expire_locked(payout)
        return payout

    @classmethod
    def fail_payout(cls, payout_id: uuid.UUID, reason: str | None = None) -> Payout:
        """
        Fail a payout and refund its reservation.

        Failing an already failed payout returns it unchanged.

        Raises:
            PayoutNotFound: If the payout does not exist
            InvalidPayoutTransition: If the payout is CLAIMED or EXPIRED
        """
        with cls.atomic():
            payout = cls._lock_payout(payout_id)
            if payout.status == PayoutStatus.FAILED:
                return payout
            cls._transition(payout, "fail", reason)
            cls._refund_reservation(payout)
            payout.save()
            cls._on_commit(payout_failed, payout)

        cls.get_logger().warning(
            "Payout failed",
            extra={
                "payout_id": str(payout.id),
                "merchant_id": payout.merchant_id,
                "reason": reason,
            },
        )
        return payout

    @classmethod
    def expire_overdue_payouts(
        cls,
        now: datetime | None = None,
        limit: int | None = None,
    ) -> int:
        """
        Expire SENT payouts whose claim window has closed.

        Each payout is expired in its own transaction and re-checked under
        its row lock, so a payout claimed while the sweep runs is skipped.
        A payout that cannot be expired is logged and left for the next run.

        Args:
            now: Reference time (defaults to timezone.now())
            limit: Maximum payouts per run (PAYOUTS_EXPIRY_SWEEP_BATCH_SIZE)

        Returns:
            Number of payouts expired
        """
        now = now or timezone.now()
        limit = limit or settings.PAYOUTS_EXPIRY_SWEEP_BATCH_SIZE
        logger = cls.get_logger()

        payout_ids = list(
            Payout.objects.filter(status=PayoutStatus.SENT, expires_at__lte=now)
            .order_by("expires_at")
            .values_list("id", flat=True)[:limit]
        )

        expired = 0
        for payout_id in payout_ids:
            try:
                with cls.atomic():
                    payout = (
                        Payout.objects.select_for_update()
                        .filter(pk=payout_id, status=PayoutStatus.SENT)
                        .first()
                    )
                    if payout is None:
                        continue
                    cls._expire_locked(payout)
            except BaseApplicationError:
                logger.exception(
                    "Could not expire overdue payout",
                    extra={"payout_id": str(payout_id)},
                )
                continue
            expired += 1

        if payout_ids:
            logger.info(
                "Expired overdue payouts",
                extra={"found": len(payout_ids), "expired": expired},
            )
        return expired

    # ==========================================================================
    # Queries
    # ==========================================================================

    @classmethod
    def get_payout(cls, payout_id: uuid.UUID, merchant_id: str | None = None) -> Payout | None:
        """Return a payout by id, optionally restricted to one merchant."""
        queryset = Payout.objects.filter(pk=payout_id)
        if merchant_id is not None:
            queryset = queryset.filter(merchant_id=merchant_id)
        return queryset.first()

    @staticmethod
    def _page(queryset: QuerySet, limit: int | None, offset: int) -> list[Payout]:
        limit = clamp_limit(limit, DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT)
        offset = max(0, int(offset))
        return list(queryset.order_by("-created_at")[offset : offset + limit])

    @classmethod
    def get_payouts_by_merchant(
        cls,
        merchant_id: str,
        status: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Payout]:
        """Return one merchant's payouts, newest first."""
        queryset = Payout.objects.filter(merchant_id=merchant_id)
        if status:
            queryset = queryset.filter(status=status)
        return cls._page(queryset, limit, offset)

    @classmethod
    def get_payouts_by_recipient_email(
        cls,
        email: str,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Payout]:
        """Return payouts to an email from every merchant, newest first."""
        queryset = Payout.objects.filter(email=normalize_email(email))
        return cls._page(queryset, limit, offset)


__all__ = [
    "BatchFailure",
    "BatchResult",
    "PAYOUT_ALREADY_CLAIMED",
    "PAYOUT_EXPIRED",
    "PAYOUT_NOT_CLAIMABLE",
    "PAYOUT_NOT_FOUND",
    "PayoutLifecycle",
]
