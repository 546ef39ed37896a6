"""Tests for domain entities."""

import pytest
from datetime import datetime, date, UTC

from budgetbook.domain.entities import (
    Category,
    Goal,
    LedgerSnapshot,
    MonthRecord,
    Theme,
    Transaction,
    TransactionType,
)
from budgetbook.domain.errors import DomainError, InsufficientFundsError, ValidationError

CREATED = datetime(2024, 1, 15, 12, 0, tzinfo=UTC)


class TestCategory:
    """Tests for the Category enum."""

    @pytest.mark.parametrize("text", ["Food", "food", " FOOD "])
    def test_parse_case_insensitive(self, text):
        assert Category.parse(text) is Category.FOOD

    def test_parse_passes_through_category(self):
        assert Category.parse(Category.BILLS) is Category.BILLS

    def test_parse_unknown(self):
        with pytest.raises(ValidationError, match="Unknown category 'Rent'"):
            Category.parse("Rent")

    def test_every_category_has_icon(self):
        assert all(category.icon for category in Category)
        assert Category.FOOD.icon == "🍔"

    def test_fixed_set(self):
        assert [c.value for c in Category] == [
            "Food",
            "Transport",
            "Shopping",
            "Bills",
            "Entertainment",
            "Health",
            "Other",
        ]


class TestTransaction:
    """Tests for Transaction entity."""

    def test_expense(self):
        txn = Transaction(
            id=1,
            type=TransactionType.EXPENSE,
            amount=250.0,
            date=date(2024, 1, 15),
            created_at=CREATED,
            category=Category.FOOD,
            note="Lunch",
        )
        assert txn.is_expense
        assert txn.goal_id is None

    def test_goal_contribution(self):
        txn = Transaction(
            id=2,
            type=TransactionType.GOAL_CONTRIBUTION,
            amount=500.0,
            date=date(2024, 1, 15),
            created_at=CREATED,
            goal_id=7,
        )
        assert not txn.is_expense
        assert txn.category is None

    def test_transaction_immutability(self):
        txn = Transaction(
            id=1, type=TransactionType.EXPENSE, amount=1.0, date=date(2024, 1, 1), created_at=CREATED
        )
        with pytest.raises(Exception):  # dataclass frozen raises FrozenInstanceError
            txn.amount = 2.0


class TestMonthRecord:
    def test_find_transaction(self):
        txn = Transaction(
            id=3, type=TransactionType.EXPENSE, amount=5.0, date=date(2024, 1, 2), created_at=CREATED
        )
        month = MonthRecord(key="2024-01", income=0.0, transactions=(txn,), is_open=True, started_at=CREATED)
        assert month.find_transaction(3) is txn
        assert month.find_transaction(4) is None


class TestLedgerSnapshot:
    def make_snapshot(self, months):
        goal = Goal(id=9, name="Car", target_amount=100.0, collected_amount=0.0, created_at=CREATED)
        return LedgerSnapshot(
            months=months,
            current_month="2024-01",
            global_savings=0.0,
            savings_history=(),
            expense_templates=(),
            goals=(goal,),
            theme=Theme.LIGHT,
        )

    def test_months_are_read_only_and_detached(self):
        month = MonthRecord(key="2024-01", income=10.0, transactions=(), is_open=True, started_at=CREATED)
        source = {"2024-01": month}
        snapshot = self.make_snapshot(source)

        source["2024-02"] = month
        assert list(snapshot.months) == ["2024-01"]
        with pytest.raises(TypeError):
            snapshot.months["2024-03"] = month
        assert snapshot.active_month is month

    def test_goal_lookup(self):
        snapshot = self.make_snapshot({})
        assert snapshot.goal(9).name == "Car"
        assert snapshot.goal(10) is None
        assert not snapshot.is_pending_deletion(1)


def test_error_hierarchy():
    assert issubclass(InsufficientFundsError, ValidationError)
    assert issubclass(ValidationError, DomainError)
    assert issubclass(DomainError, ValueError)
