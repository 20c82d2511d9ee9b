"""UPI payment deep links for suggested transfers."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional
from urllib.parse import quote, urlencode

from .errors import ValidationError
from .models import Member, Transfer
from .money import quantize_cents, to_decimal

UPI_SCHEME = "upi://pay"


def build_upi_link(
    payee_vpa: str,
    payee_name: str,
    amount: Optional[Any] = None,
    note: Optional[str] = None,
    currency: str = "INR",
) -> str:
    """Build a ``upi://pay`` URI.

    Args:
        payee_vpa: Virtual payment address of the person being paid.
        payee_name: Name shown by the payment app.
        amount: Optional amount, rendered with two decimals when positive.
        note: Optional transaction note.
        currency: ISO currency code.

    Returns:
        str: The deep link.
    """
    vpa = (payee_vpa or "").strip()
    if not vpa:
        raise ValidationError("missing_upi_id")

    params = [("pa", vpa), ("pn", payee_name or vpa), ("cu", currency)]
    if amount is not None:
        value = to_decimal(amount)
        if value > 0:
            params.append(("am", f"{quantize_cents(value):.2f}"))
    if note:
        params.append(("tn", note))

    return f"{UPI_SCHEME}?{urlencode(params, quote_via=quote)}"


def upi_link_for_transfer(
    transfer: Transfer,
    payee: Member,
    note: Optional[str] = None,
    currency: str = "INR",
) -> str:
    """Deep link paying ``transfer.amount`` to ``payee``."""
    if payee.id != transfer.to_member:
        raise ValidationError("payee_mismatch")
    if not payee.upi_id:
        raise ValidationError("missing_upi_id")
    amount: Decimal = transfer.amount
    return build_upi_link(payee.upi_id, payee.name, amount=amount, note=note, currency=currency)


__all__ = ["UPI_SCHEME", "build_upi_link", "upi_link_for_transfer"]
