"""Data access for groups, expenses and settlements.

Rows coming back from MySQL are loosely typed dicts; this module is the only
place they are turned into the records the balance code works with.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .errors import ValidationError
from .models import (
    Expense,
    ExpenseSplit,
    Member,
    MemberId,
    Settlement,
    SettlementStatus,
)
from .money import to_decimal

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


def _as_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def member_from_row(row: Dict[str, Any]) -> Member:
    member_id = str(row["user_id"])
    return Member(
        id=member_id,
        name=row.get("full_name") or member_id,
        upi_id=row.get("upi_id") or None,
    )


def expense_from_row(row: Dict[str, Any], split_rows: Iterable[Dict[str, Any]] = ()) -> Expense:
    splits = tuple(
        ExpenseSplit(
            member_id=str(split["user_id"]),
            share_amount=to_decimal(split["share_amount"]),
        )
        for split in split_rows
    )
    return Expense(
        id=str(row["id"]),
        group_id=str(row["group_id"]),
        title=row.get("title") or "",
        amount=to_decimal(row["amount"]),
        paid_by=str(row["paid_by"]),
        splits=splits,
        expense_date=_as_date(row.get("expense_date")),
        notes=row.get("notes"),
    )


def settlement_from_row(row: Dict[str, Any]) -> Settlement:
    return Settlement(
        id=str(row["id"]),
        group_id=str(row["group_id"]),
        payer_id=str(row["payer_id"]),
        receiver_id=str(row["receiver_id"]),
        amount=to_decimal(row["amount"]),
        status=SettlementStatus(row.get("status") or SettlementStatus.PENDING.value),
    )


class GroupRepository:
    """Queries scoped to groups and their members."""

    def __init__(self, database) -> None:
        self.db = database

    def is_member(self, group_id: str, member_id: MemberId) -> bool:
        record = self.db.fetch_one(
            "SELECT id FROM group_members WHERE group_id=%s AND user_id=%s",
            (group_id, member_id),
        )
        return record is not None

    def list_groups(self, member_id: MemberId) -> List[Dict[str, Any]]:
        return self.db.fetch_all(
            """
            SELECT g.id, g.name, g.created_by, g.created_at
            FROM `groups` g
            JOIN group_members gm ON gm.group_id = g.id
            WHERE gm.user_id = %s
            ORDER BY g.created_at DESC
            """,
            (member_id,),
        )

    def get_group(self, group_id: str) -> Optional[Dict[str, Any]]:
        return self.db.fetch_one(
            "SELECT id, name, created_by FROM `groups` WHERE id=%s",
            (group_id,),
        )

    def create_group(self, name: str, created_by: MemberId) -> str:
        group_id = _new_id()
        with self.db.transaction() as cursor:
            cursor.execute(
                "INSERT INTO `groups` (id, name, created_by) VALUES (%s, %s, %s)",
                (group_id, name, created_by),
            )
            cursor.execute(
                "INSERT INTO group_members (id, group_id, user_id) VALUES (%s, %s, %s)",
                (_new_id(), group_id, created_by),
            )
        logger.info("Group %s created by %s", group_id, created_by)
        return group_id

    def remove_member(self, group_id: str, member_id: MemberId) -> bool:
        """Delete a membership. Expenses and settlements that mention the
        member stay in place; balances skip them from then on."""
        removed = self.db.execute(
            "DELETE FROM group_members WHERE group_id=%s AND user_id=%s",
            (group_id, member_id),
        )
        if removed:
            logger.info("Member %s removed from group %s", member_id, group_id)
        return bool(removed)

    def get_members(self, group_id: str) -> List[Member]:
        rows = self.db.fetch_all(
            """
            SELECT gm.user_id, p.full_name, p.upi_id
            FROM group_members gm
            LEFT JOIN profiles p ON p.id = gm.user_id
            WHERE gm.group_id=%s
            ORDER BY gm.joined_at
            """,
            (group_id,),
        )
        return [member_from_row(row) for row in rows]

    def get_expenses(self, group_id: str) -> List[Expense]:
        rows = self.db.fetch_all(
            """
            SELECT id, group_id, title, amount, paid_by, expense_date, notes
            FROM expenses
            WHERE group_id=%s
            ORDER BY expense_date DESC, created_at DESC
            """,
            (group_id,),
        )
        return self._attach_splits(rows)

    def get_member_expenses(self, member_id: MemberId) -> List[Expense]:
        rows = self.db.fetch_all(
            """
            SELECT e.id, e.group_id, e.title, e.amount, e.paid_by, e.expense_date, e.notes
            FROM expenses e
            JOIN group_members gm ON gm.group_id = e.group_id
            WHERE gm.user_id=%s
            """,
            (member_id,),
        )
        return self._attach_splits(rows)

    def get_settlements(self, group_id: str) -> List[Settlement]:
        rows = self.db.fetch_all(
            """
            SELECT id, group_id, payer_id, receiver_id, amount, status
            FROM settlements
            WHERE group_id=%s
            ORDER BY created_at
            """,
            (group_id,),
        )
        return [settlement_from_row(row) for row in rows]

    def get_member_settlements(self, member_id: MemberId) -> List[Settlement]:
        rows = self.db.fetch_all(
            """
            SELECT s.id, s.group_id, s.payer_id, s.receiver_id, s.amount, s.status
            FROM settlements s
            JOIN group_members gm ON gm.group_id = s.group_id
            WHERE gm.user_id=%s
            """,
            (member_id,),
        )
        return [settlement_from_row(row) for row in rows]

    def add_expense(
        self,
        group_id: str,
        title: str,
        amount,
        paid_by: MemberId,
        splits: Sequence[ExpenseSplit],
        expense_date: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> str:
        if not splits:
            raise ValidationError("no_members_to_split")

        expense_id = _new_id()
        with self.db.transaction() as cursor:
            cursor.execute(
                """
                INSERT INTO expenses (id, group_id, title, amount, paid_by, expense_date, notes)
                VALUES (%s, %s, %s, %s, %s, COALESCE(%s, CURRENT_DATE), %s)
                """,
                (
                    expense_id,
                    group_id,
                    title,
                    str(amount),
                    paid_by,
                    expense_date.isoformat() if expense_date else None,
                    notes,
                ),
            )
            for split in splits:
                cursor.execute(
                    """
                    INSERT INTO expense_splits (id, expense_id, user_id, share_amount)
                    VALUES (%s, %s, %s, %s)
                    """,
                    (_new_id(), expense_id, split.member_id, str(split.share_amount)),
                )
        logger.info(
            "Expense %s recorded in group %s (%s split(s))",
            expense_id,
            group_id,
            len(splits),
        )
        return expense_id

    def record_settlement(
        self,
        group_id: str,
        payer_id: MemberId,
        receiver_id: MemberId,
        amount,
        status: SettlementStatus = SettlementStatus.SETTLED,
    ) -> str:
        settlement_id = _new_id()
        self.db.execute(
            """
            INSERT INTO settlements (id, group_id, payer_id, receiver_id, amount, status, settled_at)
            VALUES (%s, %s, %s, %s, %s, %s, IF(%s = 'settled', CURRENT_TIMESTAMP, NULL))
            """,
            (
                settlement_id,
                group_id,
                payer_id,
                receiver_id,
                str(amount),
                status.value,
                status.value,
            ),
        )
        logger.info(
            "Settlement %s of %s from %s to %s recorded in group %s",
            settlement_id,
            amount,
            payer_id,
            receiver_id,
            group_id,
        )
        return settlement_id

    def _attach_splits(self, rows: List[Dict[str, Any]]) -> List[Expense]:
        expense_ids = [row["id"] for row in rows]
        splits_map: Dict[str, List[Dict[str, Any]]] = {}

        if expense_ids:
            placeholders = ", ".join(["%s"] * len(expense_ids))
            split_rows = self.db.fetch_all(
                f"""
                SELECT expense_id, user_id, share_amount
                FROM expense_splits
                WHERE expense_id IN ({placeholders})
                """,
                expense_ids,
            )
            for split in split_rows:
                splits_map.setdefault(str(split["expense_id"]), []).append(split)

        return [expense_from_row(row, splits_map.get(str(row["id"]), [])) for row in rows]


__all__ = [
    "GroupRepository",
    "expense_from_row",
    "member_from_row",
    "settlement_from_row",
]
