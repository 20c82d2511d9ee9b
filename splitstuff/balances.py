"""Net balance computation for a group."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal
from typing import Dict, List

from .models import Expense, MemberId, MemberPosition, Settlement
from .money import to_decimal

logger = logging.getLogger(__name__)


def compute_balances(
    members: Iterable[MemberId],
    expenses: Iterable[Expense],
    settlements: Iterable[Settlement],
) -> Dict[MemberId, Decimal]:
    """Fold expenses and settled settlements into a signed balance per member.

    Positive means the group owes the member, negative means the member owes
    the group. Every adjustment is applied as a matched debit/credit pair, so
    the values always sum to zero. References to ids outside ``members`` are
    dropped rather than reported.

    Args:
        members: Ids of the group's members, in display order.
        expenses: Expenses with their splits.
        settlements: Recorded settlements; only settled ones count.

    Returns:
        Dict[MemberId, Decimal]: Unrounded balance for every member.
    """
    balances: Dict[MemberId, Decimal] = {member_id: Decimal("0") for member_id in members}

    for expense in expenses:
        for split in expense.splits:
            if split.member_id not in balances or expense.paid_by not in balances:
                logger.debug(
                    "Skipping split of expense %s for unknown member %s (payer %s)",
                    expense.id,
                    split.member_id,
                    expense.paid_by,
                )
                continue
            share = to_decimal(split.share_amount)
            balances[split.member_id] -= share
            balances[expense.paid_by] += share

    for settlement in settlements:
        if not settlement.is_settled:
            continue
        if settlement.payer_id not in balances or settlement.receiver_id not in balances:
            logger.debug("Skipping settlement %s with unknown member", settlement.id)
            continue
        amount = to_decimal(settlement.amount)
        balances[settlement.payer_id] += amount
        balances[settlement.receiver_id] -= amount

    return balances


def summarize_member_position(
    member_id: MemberId,
    expenses: Iterable[Expense],
    settlements: Iterable[Settlement],
) -> MemberPosition:
    """Total what ``member_id`` owes and is owed across all given groups."""
    total_owed = Decimal("0")
    total_owed_to_you = Decimal("0")

    for expense in expenses:
        for split in expense.splits:
            share = to_decimal(split.share_amount)
            if split.member_id == member_id and expense.paid_by != member_id:
                total_owed += share
            if expense.paid_by == member_id and split.member_id != member_id:
                total_owed_to_you += share

    for settlement in settlements:
        if not settlement.is_settled:
            continue
        amount = to_decimal(settlement.amount)
        if settlement.payer_id == member_id:
            total_owed -= amount
        if settlement.receiver_id == member_id:
            total_owed_to_you -= amount

    return MemberPosition(
        member_id=member_id,
        total_owed=total_owed,
        total_owed_to_you=total_owed_to_you,
    )


def summarize_member_position_by_group(
    member_id: MemberId,
    expenses: Iterable[Expense],
    settlements: Iterable[Settlement],
) -> Dict[str, MemberPosition]:
    """Per-group version of :func:`summarize_member_position`.

    Every group that has an expense or a settled settlement gets an entry,
    even when the member's net there is zero.
    """
    expenses_by_group: Dict[str, List[Expense]] = {}
    settlements_by_group: Dict[str, List[Settlement]] = {}

    for expense in expenses:
        expenses_by_group.setdefault(expense.group_id, []).append(expense)
    for settlement in settlements:
        if not settlement.is_settled:
            continue
        expenses_by_group.setdefault(settlement.group_id, [])
        settlements_by_group.setdefault(settlement.group_id, []).append(settlement)

    return {
        group_id: summarize_member_position(
            member_id,
            group_expenses,
            settlements_by_group.get(group_id, []),
        )
        for group_id, group_expenses in expenses_by_group.items()
    }


__all__ = [
    "compute_balances",
    "summarize_member_position",
    "summarize_member_position_by_group",
]
