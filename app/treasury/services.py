"""
Treasury service layer for merchant balance operations.

This module provides the TreasuryLedger service, which owns every change
to a MerchantBalance. Each operation runs in one database transaction
that locks the (merchant_id, currency) balance row, applies the change,
and appends the matching TreasuryTransaction rows, so a balance change
and its audit entry commit together or not at all.

Reservation lifecycle:
    reserve  -> funds move from available to reserved for one payout
    release  -> payout delivered: reserved funds become payouts + fees
    refund   -> payout expired/failed: reserved funds return to available

A payout can be reserved once and settled (released or refunded) once.
Replaying the same call is a logged no-op; settling the other way after
a settlement raises ReservationAlreadySettled.

Usage:
    from treasury.services import TreasuryLedger

    TreasuryLedger.credit("m_1", Decimal("1000.00"), tx_signature="5Kx...")

    result = TreasuryLedger.reserve("m_1", Decimal("100.00"), Decimal("1.00"), payout.id)
    if not result.success:
        # result.error == "Insufficient balance"
        ...

    TreasuryLedger.release("m_1", Decimal("100.00"), Decimal("1.00"), payout.id)
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from django.conf import settings

from core.helpers import clamp_limit
from core.services import BaseService, ServiceResult

from .exceptions import (
    BalanceNotFound,
    ReservationAlreadySettled,
    ReservationConflict,
    ReservationMismatch,
    ReservationNotFound,
)
from .fees import ZERO, to_amount
from .models import MerchantBalance, TreasuryTransaction, TreasuryTransactionType

if TYPE_CHECKING:
    from collections.abc import Sequence

DEFAULT_TRANSACTION_LIMIT = 50
MAX_TRANSACTION_LIMIT = 200

INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"


class TreasuryLedger(BaseService):
    """
    Service class for merchant treasury operations.

    All balance mutations go through this service. Methods are
    classmethods; no instance state is kept.

    Key features:
    - Row lock per (merchant_id, currency) for every read-modify-write
    - Business rejections (insufficient funds) returned as ServiceResult
    - At most one reservation and one settlement per payout
    - One audit row per balance change, written in the same transaction
    """

    # ==========================================================================
    # Balance lookup
    # ==========================================================================

    @staticmethod
    def _currency(currency: str | None) -> str:
        return currency or settings.PAYOUTS_DEFAULT_CURRENCY

    @classmethod
    def get_or_create_balance(
        cls,
        merchant_id: str,
        currency: str | None = None,
    ) -> MerchantBalance:
        """
        Get the merchant's balance, creating a zeroed one if absent.

        Concurrent callers for the same key get the same row: creation
        relies on the (merchant_id, currency) unique constraint, and
        get_or_create retries the lookup when the insert loses the race.

        Args:
            merchant_id: Merchant identifier
            currency: Currency code (defaults to PAYOUTS_DEFAULT_CURRENCY)

        Returns:
            The existing or newly created MerchantBalance
        """
        balance, created = MerchantBalance.objects.get_or_create(
            merchant_id=merchant_id,
            currency=cls._currency(currency),
        )
        if created:
            cls.get_logger().info(
                "Created merchant balance",
                extra={"merchant_id": merchant_id, "currency": balance.currency},
            )
        return balance

    @classmethod
    def get_balance(
        cls,
        merchant_id: str,
        currency: str | None = None,
    ) -> MerchantBalance | None:
        """
        Get the merchant's balance without creating it.

        Returns:
            The MerchantBalance, or None if the merchant has none yet
        """
        return MerchantBalance.objects.filter(
            merchant_id=merchant_id,
            currency=cls._currency(currency),
        ).first()

    @classmethod
    def _lock_balance(cls, merchant_id: str, currency: str) -> MerchantBalance:
        """
        Lock the balance row for update. Must be called inside atomic().

        Raises:
            BalanceNotFound: If the row disappears between creation and lock
        """
        balance = cls.get_or_create_balance(merchant_id, currency)
        try:
            return MerchantBalance.objects.select_for_update().get(pk=balance.pk)
        except MerchantBalance.DoesNotExist:
            cls.get_logger().error(
                "Merchant balance vanished before it could be locked",
                extra={"merchant_id": merchant_id, "currency": currency},
            )
            raise BalanceNotFound(
                f"Balance for merchant {merchant_id} ({currency}) not found",
                details={"merchant_id": merchant_id, "currency": currency},
            )

    @staticmethod
    def _record(
        balance: MerchantBalance,
        type: TreasuryTransactionType,
        amount: Decimal,
        payout_id: uuid.UUID | None = None,
        tx_signature: str | None = None,
        description: str = "",
    ) -> TreasuryTransaction:
        return TreasuryTransaction.objects.create(
            merchant_id=balance.merchant_id,
            currency=balance.currency,
            type=type,
            amount=amount,
            payout_id=payout_id,
            tx_signature=tx_signature,
            description=description,
            balance_after=balance.available,
        )

    # ==========================================================================
    # Deposits & withdrawals
    # ==========================================================================

    @classmethod
    def credit(
        cls,
        merchant_id: str,
        amount: Decimal,
        currency: str | None = None,
        tx_signature: str | None = None,
        description: str | None = None,
        from_pending: bool = False,
    ) -> MerchantBalance:
        """
        Credit a confirmed deposit to available funds.

        available += amount; total_deposited += amount. When the deposit
        was previously recorded as pending, pass from_pending=True to
        move it out of the pending bucket as well.

        Args:
            merchant_id: Merchant identifier
            amount: Deposit amount (non-negative, whole cents)
            currency: Currency code
            tx_signature: On-chain signature of the deposit
            description: Audit description (default "USDC deposit")
            from_pending: Whether to deduct the amount from pending

        Returns:
            The updated MerchantBalance

        Raises:
            InvalidAmount: If amount is negative or not whole cents
        """
        amount = to_amount(amount)
        currency = cls._currency(currency)

        with cls.atomic():
            balance = cls._lock_balance(merchant_id, currency)
            balance.available += amount
            balance.total_deposited += amount
            update_fields = ["available", "total_deposited", "updated_at"]
            if from_pending:
                balance.pending = max(ZERO, balance.pending - amount)
                update_fields.append("pending")
            balance.save(update_fields=update_fields)

            cls._record(
                balance,
                TreasuryTransactionType.DEPOSIT,
                amount,
                tx_signature=tx_signature,
                description=description or f"{currency} deposit",
            )

        cls.get_logger().info(
            "Credited merchant treasury",
            extra={
                "merchant_id": merchant_id,
                "amount": str(amount),
                "currency": currency,
                "available": str(balance.available),
            },
        )
        return balance

    @classmethod
    def add_pending(
        cls,
        merchant_id: str,
        amount: Decimal,
        currency: str | None = None,
    ) -> MerchantBalance:
        """
        Record a deposit that has been detected but not yet confirmed.

        Only the pending bucket changes, so no audit row is written; the
        deposit row is written when credit(..., from_pending=True) runs.

        Returns:
            The updated MerchantBalance
        """
        amount = to_amount(amount)
        with cls.atomic():
            balance = cls._lock_balance(merchant_id, cls._currency(currency))
            balance.pending += amount
            balance.save(update_fields=["pending", "updated_at"])
        return balance

    @classmethod
    def withdraw(
        cls,
        merchant_id: str,
        amount: Decimal,
        tx_signature: str,
        currency: str | None = None,
    ) -> ServiceResult[MerchantBalance]:
        """
        Withdraw excess funds from available.

        Returns:
            ServiceResult with the updated balance, or a failure with
            error_code INSUFFICIENT_BALANCE and no mutation
        """
        amount = to_amount(amount)
        currency = cls._currency(currency)

        with cls.atomic():
            balance = cls._lock_balance(merchant_id, currency)
            if balance.available < amount:
                cls.get_logger().warning(
                    "Treasury withdrawal rejected: insufficient balance",
                    extra={
                        "merchant_id": merchant_id,
                        "amount": str(amount),
                        "available": str(balance.available),
                    },
                )
                return ServiceResult.failure(
                    "Insufficient balance", error_code=INSUFFICIENT_BALANCE
                )

            balance.available -= amount
            balance.total_withdrawn += amount
            balance.save(update_fields=["available", "total_withdrawn", "updated_at"])
            cls._record(
                balance,
                TreasuryTransactionType.WITHDRAWAL,
                amount,
                tx_signature=tx_signature,
                description="Withdrawal to wallet",
            )

        cls.get_logger().info(
            "Withdrew from merchant treasury",
            extra={"merchant_id": merchant_id, "amount": str(amount), "currency": currency},
        )
        return ServiceResult.success(balance)

    # ==========================================================================
    # Payout reservations
    # ==========================================================================

    @classmethod
    def get_reservation(cls, payout_id: uuid.UUID) -> TreasuryTransaction | None:
        """Return the payout_reserved row for a payout, or None."""
        return TreasuryTransaction.objects.filter(
            payout_id=payout_id,
            type=TreasuryTransactionType.PAYOUT_RESERVED,
        ).first()

    @classmethod
    def get_settlement_type(cls, payout_id: uuid.UUID) -> str | None:
        """Return payout_released or payout_refund if the payout was settled."""
        return (
            TreasuryTransaction.objects.filter(
                payout_id=payout_id,
                type__in=[
                    TreasuryTransactionType.PAYOUT_RELEASED,
                    TreasuryTransactionType.PAYOUT_REFUND,
                ],
            )
            .values_list("type", flat=True)
            .first()
        )

    @classmethod
    def reserve(
        cls,
        merchant_id: str,
        amount: Decimal,
        fee: Decimal,
        payout_id: uuid.UUID,
        currency: str | None = None,
    ) -> ServiceResult[MerchantBalance]:
        """
        Hold amount + fee for a payout.

        The availability check and the mutation run under one row lock,
        so two concurrent reservations can never both succeed when their
        combined total exceeds available funds.

        Reserving the same payout again with the same amounts returns
        success without changing anything.

        Args:
            merchant_id: Merchant identifier
            amount: Payout principal
            fee: Platform fee for the payout
            payout_id: Payout the reservation belongs to
            currency: Currency code

        Returns:
            ServiceResult with the updated balance, or a failure
            ("Insufficient balance", INSUFFICIENT_BALANCE) with no mutation

        Raises:
            InvalidAmount: If amount or fee is negative or not whole cents
            ReservationConflict: If the payout is already reserved with
                different amounts
        """
        amount = to_amount(amount)
        fee = to_amount(fee, field="fee")
        total = amount + fee
        currency = cls._currency(currency)
        log_extra = {
            "merchant_id": merchant_id,
            "payout_id": str(payout_id),
            "amount": str(amount),
            "fee": str(fee),
            "currency": currency,
        }

        with cls.atomic():
            balance = cls._lock_balance(merchant_id, currency)

            existing = cls.get_reservation(payout_id)
            if existing is not None:
                if existing.amount == total and existing.merchant_id == merchant_id:
                    cls.get_logger().info(
                        "Payout already reserved, skipping", extra=log_extra
                    )
                    return ServiceResult.success(balance)
                cls.get_logger().error(
                    "Payout already reserved with different amounts",
                    extra={**log_extra, "reserved_total": str(existing.amount)},
                )
                raise ReservationConflict(
                    f"Payout {payout_id} is already reserved",
                    details={
                        "payout_id": str(payout_id),
                        "reserved": str(existing.amount),
                        "requested": str(total),
                    },
                )

            if balance.available < total:
                cls.get_logger().warning(
                    f"Insufficient balance. Required: ${total} "
                    f"(payout: ${amount} + fee: ${fee}). Available: ${balance.available}",
                    extra=log_extra,
                )
                return ServiceResult.failure(
                    "Insufficient balance", error_code=INSUFFICIENT_BALANCE
                )

            balance.available -= total
            balance.reserved += total
            balance.save(update_fields=["available", "reserved", "updated_at"])
            cls._record(
                balance,
                TreasuryTransactionType.PAYOUT_RESERVED,
                total,
                payout_id=payout_id,
                description=f"Reserved for payout {payout_id} (${amount} + ${fee} fee)",
            )

        cls.get_logger().info("Reserved payout funds", extra=log_extra)
        return ServiceResult.success(balance)

    @classmethod
    def _check_settleable(
        cls,
        merchant_id: str,
        currency: str,
        total: Decimal,
        payout_id: uuid.UUID,
        settling_as: TreasuryTransactionType,
    ) -> bool:
        """
        Validate that a reservation exists and has not been settled.

        Returns:
            True if the settlement should be applied, False if the same
            settlement was already applied (replay)

        Raises:
            ReservationNotFound, ReservationMismatch, ReservationAlreadySettled
        """
        reservation = cls.get_reservation(payout_id)
        if reservation is None or reservation.merchant_id != merchant_id or reservation.currency != currency:
            cls.get_logger().error(
                "Settlement without a matching reservation",
                extra={"merchant_id": merchant_id, "payout_id": str(payout_id)},
            )
            raise ReservationNotFound(
                f"No reservation for payout {payout_id}",
                details={"payout_id": str(payout_id), "merchant_id": merchant_id},
            )
        if reservation.amount != total:
            cls.get_logger().error(
                "Settlement amounts differ from reservation",
                extra={
                    "payout_id": str(payout_id),
                    "reserved": str(reservation.amount),
                    "requested": str(total),
                },
            )
            raise ReservationMismatch(
                f"Payout {payout_id} reserved {reservation.amount}, not {total}",
                details={
                    "payout_id": str(payout_id),
                    "reserved": str(reservation.amount),
                    "requested": str(total),
                },
            )

        settled = cls.get_settlement_type(payout_id)
        if settled is None:
            return True
        if settled == settling_as:
            cls.get_logger().info(
                f"Payout reservation already settled as {settled}, skipping",
                extra={"merchant_id": merchant_id, "payout_id": str(payout_id)},
            )
            return False
        cls.get_logger().error(
            "Payout reservation already settled the other way",
            extra={"payout_id": str(payout_id), "settled_as": settled},
        )
        raise ReservationAlreadySettled(
            f"Payout {payout_id} reservation was already settled as {settled}",
            details={"payout_id": str(payout_id), "settled_as": settled},
        )

    @classmethod
    def release(
        cls,
        merchant_id: str,
        amount: Decimal,
        fee: Decimal,
        payout_id: uuid.UUID,
        currency: str | None = None,
    ) -> MerchantBalance:
        """
        Settle a reservation after the payout was delivered.

        reserved -= amount + fee; total_payouts += amount; total_fees += fee.
        Writes payout_released (amount) and fee_deducted (fee).

        Returns:
            The updated MerchantBalance (unchanged on replay)

        Raises:
            ReservationNotFound: If the payout was never reserved
            ReservationMismatch: If amount + fee differs from the reservation
            ReservationAlreadySettled: If the reservation was refunded
        """
        amount = to_amount(amount)
        fee = to_amount(fee, field="fee")
        currency = cls._currency(currency)

        with cls.atomic():
            balance = cls._lock_balance(merchant_id, currency)
            if not cls._check_settleable(
                merchant_id, currency, amount + fee, payout_id,
                TreasuryTransactionType.PAYOUT_RELEASED,
            ):
                return balance

            balance.reserved -= amount + fee
            balance.total_payouts += amount
            balance.total_fees += fee
            balance.save(
                update_fields=["reserved", "total_payouts", "total_fees", "updated_at"]
            )
            cls._record(
                balance,
                TreasuryTransactionType.PAYOUT_RELEASED,
                amount,
                payout_id=payout_id,
                description=f"Payout {payout_id} completed",
            )
            cls._record(
                balance,
                TreasuryTransactionType.FEE_DEDUCTED,
                fee,
                payout_id=payout_id,
                description=f"Platform fee for payout {payout_id}",
            )

        cls.get_logger().info(
            "Released payout reservation",
            extra={
                "merchant_id": merchant_id,
                "payout_id": str(payout_id),
                "amount": str(amount),
                "fee": str(fee),
            },
        )
        return balance

    @classmethod
    def refund(
        cls,
        merchant_id: str,
        amount: Decimal,
        fee: Decimal,
        payout_id: uuid.UUID,
        currency: str | None = None,
    ) -> MerchantBalance:
        """
        Unwind a reservation for an expired or failed payout.

        reserved -= amount + fee; available += amount + fee.
        Writes payout_refund. reserve followed by refund leaves every
        balance field where it started.

        Returns:
            The updated MerchantBalance (unchanged on replay)

        Raises:
            ReservationNotFound: If the payout was never reserved
            ReservationMismatch: If amount + fee differs from the reservation
            ReservationAlreadySettled: If the reservation was released
        """
        amount = to_amount(amount)
        fee = to_amount(fee, field="fee")
        total = amount + fee
        currency = cls._currency(currency)

        with cls.atomic():
            balance = cls._lock_balance(merchant_id, currency)
            if not cls._check_settleable(
                merchant_id, currency, total, payout_id,
                TreasuryTransactionType.PAYOUT_REFUND,
            ):
                return balance

            balance.reserved -= total
            balance.available += total
            balance.save(update_fields=["reserved", "available", "updated_at"])
            cls._record(
                balance,
                TreasuryTransactionType.PAYOUT_REFUND,
                total,
                payout_id=payout_id,
                description=f"Refund for expired/failed payout {payout_id}",
            )

        cls.get_logger().info(
            "Refunded payout reservation",
            extra={
                "merchant_id": merchant_id,
                "payout_id": str(payout_id),
                "amount": str(total),
            },
        )
        return balance

    # ==========================================================================
    # History
    # ==========================================================================

    @classmethod
    def get_transactions(
        cls,
        merchant_id: str,
        type: str | Sequence[str] | None = None,
        currency: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[TreasuryTransaction]:
        """
        Return the merchant's audit log, newest first.

        Args:
            merchant_id: Merchant identifier
            type: Optional transaction type (or list of types) to filter by
            currency: Optional currency filter (all currencies if None)
            limit: Page size, clamped to [1, 200], default 50
            offset: Number of rows to skip

        Returns:
            List of TreasuryTransaction
        """
        queryset = TreasuryTransaction.objects.filter(merchant_id=merchant_id)
        if type:
            if isinstance(type, str):
                queryset = queryset.filter(type=type)
            else:
                queryset = queryset.filter(type__in=list(type))
        if currency:
            queryset = queryset.filter(currency=currency)

        limit = clamp_limit(limit, DEFAULT_TRANSACTION_LIMIT, MAX_TRANSACTION_LIMIT)
        offset = max(0, int(offset))
        # A release writes payout_released then fee_deducted, possibly with
        # equal timestamps; fee_deducted sorts first
        return list(queryset.order_by("-created_at", "type")[offset : offset + limit])


__all__ = [
    "INSUFFICIENT_BALANCE",
    "TreasuryLedger",
]
