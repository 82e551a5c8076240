"""
precision.py - Fixed-point helpers and pure solvency math

Everything here is a pure function over int mantissas:
    precision_scalar(decimals)          -> 10 ** (18 - decimals)
    scale_up(amount, scalar)            -> canonical amount
    is_underwater(locked, scalar, price, debt, ratio) -> bool
    collateralization_ratio(...)        -> ratio mantissa

Solvency never divides: both sides are compared at 36 decimals

    locked * collateral_scalar * price  <  debt * required_ratio

so there is no rounding at the boundary and a vault sitting exactly at the
required ratio is not underwater.
"""

from __future__ import annotations
from decimal import Decimal, ROUND_DOWN, localcontext
from typing import Union

from .core import CANONICAL_DECIMALS, SCALE


def check_amount(value: int, name: str = "amount") -> int:
    """
    Validate an unsigned integer amount.

    Raises:
        ValueError: If value is not an int (bools are rejected) or is negative
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an int mantissa, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} cannot be negative, got {value}")
    return value


def precision_scalar(decimals: int) -> int:
    """
    Scalar that lifts a native amount with ``decimals`` places to 18 places.

    Raises:
        ValueError: If decimals is outside [0, 18]
    """
    if isinstance(decimals, bool) or not isinstance(decimals, int):
        raise ValueError(f"decimals must be an int, got {type(decimals).__name__}")
    if decimals < 0 or decimals > CANONICAL_DECIMALS:
        raise ValueError(f"decimals must be within [0, {CANONICAL_DECIMALS}], got {decimals}")
    return 10 ** (CANONICAL_DECIMALS - decimals)


def scale_up(amount: int, scalar: int) -> int:
    """Convert a native-precision amount into canonical precision."""
    return check_amount(amount) * scalar


def to_fixed(value: Union[Decimal, str, int], decimals: int = CANONICAL_DECIMALS) -> int:
    """
    Convert a human-readable quantity into a fixed-point mantissa.

    Digits beyond ``decimals`` are truncated toward zero.

    Example:
        to_fixed("1.5")       -> 1_500_000_000_000_000_000
        to_fixed("100", 6)    -> 100_000_000
    """
    if isinstance(value, float):
        raise ValueError("Use Decimal or str, not float, for fixed-point conversion")
    with localcontext() as ctx:
        ctx.prec = 50
        quantized = (Decimal(value) * (Decimal(10) ** decimals)).quantize(
            Decimal(1), rounding=ROUND_DOWN
        )
    return int(quantized)


def from_fixed(amount: int, decimals: int = CANONICAL_DECIMALS) -> Decimal:
    """Convert a mantissa back into a Decimal for display."""
    with localcontext() as ctx:
        ctx.prec = 50
        return Decimal(amount) / (Decimal(10) ** decimals)


# ============================================================================
# SOLVENCY
# ============================================================================

def collateral_value(locked_collateral: int, collateral_scalar: int, price: int) -> int:
    """Value of locked collateral at 36 decimals (canonical amount x canonical price)."""
    return locked_collateral * collateral_scalar * price


def required_collateral_value(debt: int, ratio: int) -> int:
    """Debt valued at one price unit per claim token, times the required ratio (36 decimals)."""
    return debt * ratio


def is_underwater(
    locked_collateral: int,
    collateral_scalar: int,
    price: int,
    debt: int,
    ratio: int,
) -> bool:
    """
    True when the locked collateral is worth strictly less than debt x ratio.

    Zero debt is never underwater, whatever the collateral or price.
    """
    if debt == 0:
        return False
    return (
        collateral_value(locked_collateral, collateral_scalar, price)
        < required_collateral_value(debt, ratio)
    )


def collateralization_ratio(
    locked_collateral: int,
    collateral_scalar: int,
    price: int,
    debt: int,
) -> int:
    """
    Current ratio mantissa (150% == 1.5e18), truncated.

    Returns 0 when there is no debt.
    """
    if debt == 0:
        return 0
    return collateral_value(locked_collateral, collateral_scalar, price) // debt
