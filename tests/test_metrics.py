"""Tests for derived metrics."""

from datetime import date, datetime, UTC
import pytest

from budgetbook.domain import metrics
from budgetbook.domain.entities import (
    Category,
    Goal,
    MonthRecord,
    Transaction,
    TransactionType,
)

CREATED = datetime(2024, 1, 15, 12, 0, tzinfo=UTC)
TODAY = date(2024, 1, 15)


def expense(txn_id, amount, category, day=TODAY):
    return Transaction(
        id=txn_id,
        type=TransactionType.EXPENSE,
        amount=amount,
        date=day,
        created_at=CREATED,
        category=category,
    )


def contribution(txn_id, amount, goal_id, day=TODAY):
    return Transaction(
        id=txn_id,
        type=TransactionType.GOAL_CONTRIBUTION,
        amount=amount,
        date=day,
        created_at=CREATED,
        goal_id=goal_id,
    )


def make_month(income, transactions):
    return MonthRecord(
        key="2024-01",
        income=income,
        transactions=tuple(transactions),
        is_open=True,
        started_at=CREATED,
    )


def make_goal(goal_id, name, target, collected):
    return Goal(
        id=goal_id,
        name=name,
        target_amount=target,
        collected_amount=collected,
        created_at=CREATED,
    )


@pytest.fixture
def month():
    return make_month(
        5000,
        [
            expense(6, 200, Category.FOOD, date(2024, 1, 15)),
            contribution(5, 500, goal_id=1),
            expense(4, 1200, Category.BILLS, date(2024, 1, 14)),
            expense(3, 300, Category.FOOD, date(2024, 1, 14)),
            expense(2, 90, Category.TRANSPORT, date(2024, 1, 9)),
            expense(1, 700, Category.SHOPPING, date(2024, 1, 2)),
        ],
    )


def test_totals_and_leftover(month):
    assert metrics.total_expenses(month) == 2490
    assert metrics.total_goal_contributions(month) == 500
    assert metrics.leftover(month) == 5000 - 2490 - 500


def test_empty_month():
    empty = make_month(1000, [])
    assert metrics.total_expenses(empty) == 0
    assert metrics.leftover(empty) == 1000
    assert metrics.category_breakdown(empty) == []
    assert metrics.top_category(empty) is None
    assert metrics.average_daily_spend(empty, TODAY) == 0


def test_category_breakdown_sorted_descending(month):
    assert metrics.category_breakdown(month) == [
        (Category.BILLS, 1200),
        (Category.SHOPPING, 700),
        (Category.FOOD, 500),
        (Category.TRANSPORT, 90),
    ]


def test_category_breakdown_excludes_contributions():
    only_goal = make_month(1000, [contribution(1, 100, goal_id=9)])
    assert metrics.category_breakdown(only_goal) == []
    assert metrics.top_category(only_goal) is None


def test_category_breakdown_ties_keep_first_appearance():
    tied = make_month(
        0,
        [
            expense(3, 50, Category.HEALTH),
            expense(2, 50, Category.FOOD),
            expense(1, 50, Category.OTHER),
        ],
    )
    assert [c for c, _ in metrics.category_breakdown(tied)] == [
        Category.HEALTH,
        Category.FOOD,
        Category.OTHER,
    ]


def test_top_category(month):
    assert metrics.top_category(month) == (Category.BILLS, 1200)


def test_trailing_daily_spend(month):
    series = metrics.trailing_daily_spend(month, TODAY)

    assert [d.day for d in series] == [date(2024, 1, d) for d in range(9, 16)]
    assert [d.amount for d in series] == [90, 0, 0, 0, 0, 1500, 200]
    assert series[-1].label == "Mon"


def test_average_daily_spend_divides_by_seven(month):
    assert metrics.average_daily_spend(month, TODAY) == pytest.approx(1790 / 7)


def test_metrics_are_idempotent(month):
    first = metrics.summarize_month(month, [], TODAY)
    second = metrics.summarize_month(month, [], TODAY)
    assert first == second


def test_summarize_month(month):
    goals = [make_goal(1, "Laptop", 80000, 500)]
    summary = metrics.summarize_month(month, goals, TODAY)

    assert summary.month_key == "2024-01"
    assert summary.income == 5000
    assert summary.total_expenses == 2490
    assert summary.total_goal_contributions == 500
    assert summary.leftover == 2010
    assert summary.top_category == (Category.BILLS, 1200)
    assert summary.expense_count == 5
    assert summary.average_daily_spend == pytest.approx(1790 / 7)
    assert [c.goal_name for c in summary.contributions] == ["Laptop"]


def test_contributions_to_deleted_goal_do_not_resolve(month):
    lines = metrics.resolve_contributions(month, goals=[])
    assert len(lines) == 1
    assert lines[0].goal_name is None
    assert lines[0].transaction.goal_id == 1


@pytest.mark.parametrize(
    "target,collected,percent,remaining",
    [
        (1000, 0, 0.0, 1000),
        (1000, 250, 25.0, 750),
        (1000, 1000, 100.0, 0),
        (1000, 1500, 100.0, 0),
    ],
)
def test_goal_progress(target, collected, percent, remaining):
    progress = metrics.goal_progress(make_goal(1, "Goal", target, collected))
    assert progress.percent == percent
    assert progress.remaining == remaining
    assert progress.is_complete == (collected >= target)
