from __future__ import annotations

from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any, List, Tuple

from .errors import ValidationError
from .models import ExpenseSplit, MemberId
from .money import quantize_cents, to_decimal

PERCENT_TOLERANCE = Decimal("0.5")


def equal_shares(amount: Decimal, member_ids: Sequence[MemberId]) -> List[ExpenseSplit]:
    """Give every member the same rounded share of ``amount``.

    The rounded shares are not adjusted to add back up to ``amount``.
    """
    count = len(member_ids)
    if count == 0:
        raise ValidationError("no_members_to_split")

    per_person = quantize_cents(amount / count)
    return [ExpenseSplit(member_id=member_id, share_amount=per_person) for member_id in member_ids]


def percentage_shares(amount: Decimal, percents: Mapping[MemberId, Any]) -> List[ExpenseSplit]:
    """Split ``amount`` by percentage; members at zero or below are left out."""
    positive: List[Tuple[MemberId, Decimal]] = []
    for member_id, raw in percents.items():
        if raw is None or raw == "":
            continue
        try:
            percent = to_decimal(raw)
        except ValueError:
            raise ValidationError("invalid_percent") from None
        if percent > 0:
            positive.append((member_id, percent))

    total_percent = sum((percent for _, percent in positive), Decimal("0"))
    if total_percent <= 0:
        raise ValidationError("no_percentages")
    if abs(total_percent - 100) > PERCENT_TOLERANCE:
        raise ValidationError("percent_total_mismatch", total=float(total_percent))

    return [
        ExpenseSplit(member_id=member_id, share_amount=quantize_cents(amount * percent / 100))
        for member_id, percent in positive
    ]


__all__ = ["equal_shares", "percentage_shares", "PERCENT_TOLERANCE"]
