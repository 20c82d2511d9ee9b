"""Suggested payments that settle a group's balances."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any, Dict, List, Tuple

from .models import MemberId, Transfer
from .money import EPSILON, to_decimal

logger = logging.getLogger(__name__)


def plan_transfers(balances: Mapping[MemberId, Any]) -> List[Transfer]:
    """Match debtors to creditors, largest remaining amounts first.

    This is the greedy heuristic, not a minimum-cardinality solution. Members
    within ``EPSILON`` of zero are treated as settled. Equal amounts keep the
    iteration order of ``balances``. If credits and debits do not balance the
    sweep just stops when one side runs out.

    Args:
        balances: Signed balance per member (positive = owed money).

    Returns:
        List[Transfer]: Payments from debtors to creditors, in sweep order.
    """
    creditors: List[Dict[str, Any]] = []
    debtors: List[Dict[str, Any]] = []

    for member_id, value in balances.items():
        amount = to_decimal(value)
        if amount > EPSILON:
            creditors.append({"member_id": member_id, "amount": amount})
        elif amount < -EPSILON:
            debtors.append({"member_id": member_id, "amount": -amount})

    # sorted() is stable, which keeps ties in input order.
    creditors = sorted(creditors, key=lambda item: item["amount"], reverse=True)
    debtors = sorted(debtors, key=lambda item: item["amount"], reverse=True)

    transfers: List[Transfer] = []
    debtor_idx = 0
    creditor_idx = 0

    while debtor_idx < len(debtors) and creditor_idx < len(creditors):
        debtor = debtors[debtor_idx]
        creditor = creditors[creditor_idx]

        amount = min(debtor["amount"], creditor["amount"])
        transfers.append(
            Transfer(
                from_member=debtor["member_id"],
                to_member=creditor["member_id"],
                amount=amount,
            )
        )

        debtor["amount"] -= amount
        creditor["amount"] -= amount

        if debtor["amount"] < EPSILON:
            debtor_idx += 1
        if creditor["amount"] < EPSILON:
            creditor_idx += 1

    if debtor_idx < len(debtors) or creditor_idx < len(creditors):
        logger.debug(
            "Unbalanced input: %d debtor(s) and %d creditor(s) left unmatched",
            len(debtors) - debtor_idx,
            len(creditors) - creditor_idx,
        )

    return transfers


def transfers_for_member(
    transfers: Iterable[Transfer],
    member_id: MemberId,
) -> Tuple[List[Transfer], List[Transfer]]:
    """Split a plan into what ``member_id`` pays and what they receive."""
    to_pay: List[Transfer] = []
    to_receive: List[Transfer] = []
    for transfer in transfers:
        if transfer.from_member == member_id:
            to_pay.append(transfer)
        elif transfer.to_member == member_id:
            to_receive.append(transfer)
    return to_pay, to_receive


def total_transferred(transfers: Iterable[Transfer]) -> Decimal:
    return sum((transfer.amount for transfer in transfers), Decimal("0"))


__all__ = ["plan_transfers", "transfers_for_member", "total_transferred"]
