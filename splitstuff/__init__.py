"""Shared-expense balances and settle-up suggestions."""

from .balances import (
    compute_balances,
    summarize_member_position,
    summarize_member_position_by_group,
)
from .models import (
    Expense,
    ExpenseSplit,
    Member,
    MemberPosition,
    Settlement,
    SettlementStatus,
    Transfer,
)
from .money import EPSILON
from .transfers import plan_transfers, transfers_for_member

__all__ = [
    "EPSILON",
    "Expense",
    "ExpenseSplit",
    "Member",
    "MemberPosition",
    "Settlement",
    "SettlementStatus",
    "Transfer",
    "compute_balances",
    "plan_transfers",
    "summarize_member_position",
    "summarize_member_position_by_group",
    "transfers_for_member",
]
