"""Tests for the data-access boundary."""

from datetime import date, datetime
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from splitstuff.errors import ValidationError
from splitstuff.models import ExpenseSplit, SettlementStatus
from splitstuff.repository import (
    GroupRepository,
    expense_from_row,
    member_from_row,
    settlement_from_row,
)


def _build_db(fetch_all_results=None, fetch_one_result=None):
    database = MagicMock()
    database.fetch_all.side_effect = list(fetch_all_results or [])
    database.fetch_one.return_value = fetch_one_result
    cursor = MagicMock()
    database.transaction.return_value.__enter__.return_value = cursor
    database.transaction.return_value.__exit__.return_value = False
    return database, cursor


def test_member_from_row_falls_back_to_id():
    member = member_from_row({"user_id": "u-1", "full_name": None, "upi_id": ""})

    assert member.id == "u-1"
    assert member.name == "u-1"
    assert member.upi_id is None


def test_expense_from_row_builds_typed_record():
    row = {
        "id": "e1",
        "group_id": "g1",
        "title": "Dinner",
        "amount": Decimal("90.00"),
        "paid_by": "A",
        "expense_date": datetime(2025, 12, 27, 10, 30),
        "notes": None,
    }
    splits = [
        {"expense_id": "e1", "user_id": "A", "share_amount": Decimal("30.00")},
        {"expense_id": "e1", "user_id": "B", "share_amount": "60.00"},
    ]

    expense = expense_from_row(row, splits)

    assert expense.amount == Decimal("90.00")
    assert expense.expense_date == date(2025, 12, 27)
    assert expense.splits == (
        ExpenseSplit("A", Decimal("30.00")),
        ExpenseSplit("B", Decimal("60.00")),
    )


def test_settlement_from_row_reads_status():
    row = {
        "id": "s1",
        "group_id": "g1",
        "payer_id": "B",
        "receiver_id": "A",
        "amount": Decimal("12.00"),
        "status": "settled",
    }

    settlement = settlement_from_row(row)

    assert settlement.status is SettlementStatus.SETTLED
    assert settlement.is_settled
    assert not settlement_from_row({**row, "status": None}).is_settled


def test_is_member():
    database, _ = _build_db(fetch_one_result={"id": "gm1"})
    repository = GroupRepository(database)

    assert repository.is_member("g1", "A") is True
    database.fetch_one.assert_called_once()
    assert database.fetch_one.call_args[0][1] == ("g1", "A")

    database.fetch_one.return_value = None
    assert repository.is_member("g1", "Z") is False


def test_get_members_preserves_join_order():
    rows = [
        {"user_id": "B", "full_name": "Bilal", "upi_id": None},
        {"user_id": "A", "full_name": "Asha", "upi_id": "asha@okbank"},
    ]
    database, _ = _build_db(fetch_all_results=[rows])

    members = GroupRepository(database).get_members("g1")

    assert [member.id for member in members] == ["B", "A"]
    assert members[1].upi_id == "asha@okbank"


def test_get_expenses_attaches_splits():
    expense_rows = [
        {"id": "e2", "group_id": "g1", "title": "Taxi", "amount": Decimal("40"), "paid_by": "B"},
        {"id": "e1", "group_id": "g1", "title": "Hotel", "amount": Decimal("90"), "paid_by": "A"},
    ]
    split_rows = [
        {"expense_id": "e1", "user_id": "A", "share_amount": Decimal("45")},
        {"expense_id": "e1", "user_id": "B", "share_amount": Decimal("45")},
        {"expense_id": "e2", "user_id": "A", "share_amount": Decimal("40")},
    ]
    database, _ = _build_db(fetch_all_results=[expense_rows, split_rows])

    expenses = GroupRepository(database).get_expenses("g1")

    assert [expense.id for expense in expenses] == ["e2", "e1"]
    assert len(expenses[0].splits) == 1
    assert len(expenses[1].splits) == 2
    split_query, split_params = database.fetch_all.call_args_list[1][0]
    assert "IN (%s, %s)" in split_query
    assert split_params == ["e2", "e1"]


def test_get_expenses_without_rows_skips_split_query():
    database, _ = _build_db(fetch_all_results=[[]])

    assert GroupRepository(database).get_expenses("g1") == []
    assert database.fetch_all.call_count == 1


def test_get_settlements():
    rows = [
        {
            "id": "s1",
            "group_id": "g1",
            "payer_id": "B",
            "receiver_id": "A",
            "amount": Decimal("5"),
            "status": "pending",
        }
    ]
    database, _ = _build_db(fetch_all_results=[rows])

    settlements = GroupRepository(database).get_settlements("g1")

    assert settlements[0].status is SettlementStatus.PENDING


def test_add_expense_writes_expense_and_splits_together():
    database, cursor = _build_db()
    splits = [ExpenseSplit("A", Decimal("50.00")), ExpenseSplit("B", Decimal("50.00"))]

    expense_id = GroupRepository(database).add_expense(
        "g1",
        "Groceries",
        Decimal("100.00"),
        "A",
        splits,
        expense_date=date(2025, 12, 29),
        notes="weekly",
    )

    assert cursor.execute.call_count == 3
    expense_params = cursor.execute.call_args_list[0][0][1]
    assert expense_params[0] == expense_id
    assert expense_params[3] == "100.00"
    assert expense_params[5] == "2025-12-29"
    split_params = cursor.execute.call_args_list[2][0][1]
    assert split_params[1:] == (expense_id, "B", "50.00")


def test_add_expense_requires_splits():
    database, cursor = _build_db()

    with pytest.raises(ValidationError):
        GroupRepository(database).add_expense("g1", "Nothing", Decimal("1"), "A", [])
    cursor.execute.assert_not_called()


def test_create_group_adds_creator_as_member():
    database, cursor = _build_db()

    group_id = GroupRepository(database).create_group("Goa Trip", "A")

    membership_params = cursor.execute.call_args_list[1][0][1]
    assert membership_params[1:] == (group_id, "A")


def test_record_settlement_defaults_to_settled():
    database, _ = _build_db()

    settlement_id = GroupRepository(database).record_settlement("g1", "B", "A", Decimal("25.00"))

    params = database.execute.call_args[0][1]
    assert params[0] == settlement_id
    assert params[1:6] == ("g1", "B", "A", "25.00", "settled")


def test_get_group():
    database, _ = _build_db(fetch_one_result={"id": "g1", "name": "Flat", "created_by": "A"})
    repository = GroupRepository(database)

    assert repository.get_group("g1")["created_by"] == "A"
    assert database.fetch_one.call_args[0][1] == ("g1",)


@pytest.mark.parametrize("rowcount, expected", [(1, True), (0, False)])
def test_remove_member(rowcount, expected):
    database, _ = _build_db()
    database.execute.return_value = rowcount
    repository = GroupRepository(database)

    assert repository.remove_member("g1", "C") is expected
    query, params = database.execute.call_args[0]
    assert query.startswith("DELETE FROM group_members")
    assert params == ("g1", "C")
