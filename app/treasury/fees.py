"""
Fee calculation and money arithmetic for the settlement engine.

All amounts in the engine are Decimal values in whole cents. This module
owns the conversion rules so every ledger applies them the same way.

Usage:
    from treasury.fees import calculate_fee, to_amount

    fee = calculate_fee(Decimal("100.00"))   # Decimal("1.00")
    fee = calculate_fee(Decimal("10.00"))    # Decimal("0.25") (minimum)
    amount = to_amount("12.50")              # Decimal("12.50")
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings

from .exceptions import InvalidAmount

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize(value: Decimal) -> Decimal:
    """Round a Decimal to cents, half up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_amount(value, field: str = "amount") -> Decimal:
    """
    Convert a caller-supplied amount to a non-negative Decimal in cents.

    Floats are converted through their string form so 0.1 stays 0.10.

    Args:
        value: Decimal, int, str, or float amount
        field: Name used in the error details

    Returns:
        The amount as a Decimal with two decimal places

    Raises:
        InvalidAmount: If the value is not a number, is negative,
            or has fractions of a cent
    """
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmount(
            f"{field} is not a valid amount",
            error_code="INVALID_AMOUNT",
            details={field: str(value)},
        )

    if not amount.is_finite() or amount < 0:
        raise InvalidAmount(
            f"{field} must be a non-negative amount",
            error_code="INVALID_AMOUNT",
            details={field: str(value)},
        )
    if amount != amount.quantize(CENT):
        raise InvalidAmount(
            f"{field} must be a whole number of cents",
            error_code="INVALID_AMOUNT",
            details={field: str(value)},
        )
    return amount.quantize(CENT)


def calculate_fee(amount: Decimal) -> Decimal:
    """
    Compute the platform fee for a payout amount.

    fee = max(amount * PAYOUTS_FEE_RATE, PAYOUTS_MINIMUM_FEE), rounded to
    cents. With the default settings that is 1% with a $0.25 floor.

    Args:
        amount: Payout amount (non-negative)

    Returns:
        The fee as a Decimal with two decimal places

    Example:
        calculate_fee(Decimal("1000.00"))  # Decimal("10.00")
        calculate_fee(Decimal("12.34"))    # Decimal("0.25")
        calculate_fee(Decimal("33.35"))    # Decimal("0.33")
    """
    rate = Decimal(str(settings.PAYOUTS_FEE_RATE))
    minimum = Decimal(str(settings.PAYOUTS_MINIMUM_FEE))
    return quantize(max(Decimal(amount) * rate, minimum))
