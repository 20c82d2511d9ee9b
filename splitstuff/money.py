"""Helpers for monetary amounts."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

# One minor currency unit. Balances within this of zero count as settled.
EPSILON = Decimal("0.01")

CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Normalize a numeric value to Decimal without rounding it."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError("Cannot convert value to Decimal")
    if isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError("Cannot convert value to Decimal") from None
        if not result.is_finite():
            raise ValueError("Amount must be finite")
        return result
    raise ValueError("Cannot convert value to Decimal")


def quantize_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def amounts_close(a: Decimal, b: Decimal, tolerance: Decimal = EPSILON) -> bool:
    return abs(a - b) <= tolerance


def to_display(value: Decimal) -> float:
    """Round to cents for JSON output."""
    return float(quantize_cents(value))


__all__ = [
    "CENT",
    "EPSILON",
    "amounts_close",
    "quantize_cents",
    "to_decimal",
    "to_display",
]
