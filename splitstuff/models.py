"""Typed records for groups, expenses and settlements."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional, Tuple

MemberId = str


class SettlementStatus(str, enum.Enum):
    PENDING = "pending"
    SETTLED = "settled"


@dataclass(frozen=True)
class Member:
    """A group member.

    Attributes:
        id: Opaque stable identifier (the auth user id).
        name: Display name, falls back to the id when the profile has none.
        upi_id: Optional UPI virtual payment address used for deep links.
    """

    id: MemberId
    name: str
    upi_id: Optional[str] = None


@dataclass(frozen=True)
class ExpenseSplit:
    """One member's share of a single expense."""

    member_id: MemberId
    share_amount: Decimal


@dataclass(frozen=True)
class Expense:
    """An expense paid by one member and split across several.

    ``amount`` is the headline total shown to users; balances are computed
    from the splits alone, which are not required to add up to it.
    """

    id: str
    group_id: str
    title: str
    amount: Decimal
    paid_by: MemberId
    splits: Tuple[ExpenseSplit, ...] = field(default_factory=tuple)
    expense_date: Optional[date] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class Settlement:
    """A recorded real-world repayment from ``payer_id`` to ``receiver_id``."""

    id: str
    group_id: str
    payer_id: MemberId
    receiver_id: MemberId
    amount: Decimal
    status: SettlementStatus = SettlementStatus.PENDING

    @property
    def is_settled(self) -> bool:
        return self.status is SettlementStatus.SETTLED


@dataclass(frozen=True)
class Transfer:
    """A suggested payment that moves balances towards zero."""

    from_member: MemberId
    to_member: MemberId
    amount: Decimal


@dataclass(frozen=True)
class MemberPosition:
    """What one member owes and is owed across every group they are in."""

    member_id: MemberId
    total_owed: Decimal
    total_owed_to_you: Decimal

    @property
    def net(self) -> Decimal:
        """Positive when the member is owed money overall."""
        return self.total_owed_to_you - self.total_owed


__all__ = [
    "MemberId",
    "SettlementStatus",
    "Member",
    "ExpenseSplit",
    "Expense",
    "Settlement",
    "Transfer",
    "MemberPosition",
]
