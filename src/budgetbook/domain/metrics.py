"""Derived metrics computed from month records and goals.

All functions here are pure: they read entities and never store anything,
so totals are always recomputed from the transaction list.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional

from budgetbook.domain.entities import (
    Category,
    Goal,
    MonthRecord,
    Transaction,
    TransactionType,
)

TRAILING_DAYS = 7


@dataclass(frozen=True)
class DailySpend:
    """Expense total for one calendar day."""

    day: date
    amount: float

    @property
    def label(self) -> str:
        return self.day.strftime("%a")


@dataclass(frozen=True)
class GoalProgress:
    """Goal with its completion figures."""

    goal: Goal
    percent: float
    remaining: float

    @property
    def is_complete(self) -> bool:
        return self.goal.collected_amount >= self.goal.target_amount


@dataclass(frozen=True)
class ContributionLine:
    """Goal contribution with its goal name, if the goal still exists."""

    transaction: Transaction
    goal_name: Optional[str]


@dataclass(frozen=True)
class MonthSummary:
    """Every derived figure for one month, as shown by the stats view."""

    month_key: str
    income: float
    total_expenses: float
    total_goal_contributions: float
    leftover: float
    category_breakdown: tuple[tuple[Category, float], ...]
    daily_series: tuple[DailySpend, ...]
    top_category: Optional[tuple[Category, float]]
    average_daily_spend: float
    expense_count: int
    contributions: tuple[ContributionLine, ...]


def _sum_of_type(month: MonthRecord, txn_type: TransactionType) -> float:
    return sum((t.amount for t in month.transactions if t.type is txn_type), 0.0)


def total_expenses(month: MonthRecord) -> float:
    return _sum_of_type(month, TransactionType.EXPENSE)


def total_goal_contributions(month: MonthRecord) -> float:
    return _sum_of_type(month, TransactionType.GOAL_CONTRIBUTION)


def leftover(month: MonthRecord) -> float:
    """Income minus expenses minus goal contributions."""
    return month.income - total_expenses(month) - total_goal_contributions(month)


def category_breakdown(month: MonthRecord) -> list[tuple[Category, float]]:
    """Expense totals per category, largest first.

    Categories with equal totals keep the order in which they first appear
    in the transaction list.
    """
    totals: dict[Category, float] = {}
    for txn in month.transactions:
        if txn.is_expense:
            totals[txn.category] = totals.get(txn.category, 0.0) + txn.amount
    return sorted(totals.items(), key=lambda item: -item[1])


def top_category(month: MonthRecord) -> Optional[tuple[Category, float]]:
    breakdown = category_breakdown(month)
    return breakdown[0] if breakdown else None


def trailing_daily_spend(month: MonthRecord, today: date, days: int = TRAILING_DAYS) -> list[DailySpend]:
    """Expense totals for the last ``days`` calendar days, oldest first."""
    per_day: dict[date, float] = {}
    for txn in month.transactions:
        if txn.is_expense:
            per_day[txn.date] = per_day.get(txn.date, 0.0) + txn.amount
    series = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        series.append(DailySpend(day=day, amount=per_day.get(day, 0.0)))
    return series


def average_daily_spend(month: MonthRecord, today: date, days: int = TRAILING_DAYS) -> float:
    """Trailing total divided by the window length, zero days included."""
    return sum(d.amount for d in trailing_daily_spend(month, today, days)) / days


def goal_progress(goal: Goal) -> GoalProgress:
    percent = min(goal.collected_amount / goal.target_amount * 100, 100.0)
    remaining = max(goal.target_amount - goal.collected_amount, 0.0)
    return GoalProgress(goal=goal, percent=percent, remaining=remaining)


def resolve_contributions(month: MonthRecord, goals: Iterable[Goal]) -> list[ContributionLine]:
    """Pair goal contributions with their goal names.

    Contributions whose goal has since been deleted get a goal_name of None.
    """
    names = {goal.id: goal.name for goal in goals}
    return [
        ContributionLine(transaction=txn, goal_name=names.get(txn.goal_id))
        for txn in month.transactions
        if txn.type is TransactionType.GOAL_CONTRIBUTION
    ]


def summarize_month(month: MonthRecord, goals: Iterable[Goal], today: date) -> MonthSummary:
    """Compute every derived figure for a month."""
    breakdown = category_breakdown(month)
    series = trailing_daily_spend(month, today)
    expenses = total_expenses(month)
    contributions = total_goal_contributions(month)
    return MonthSummary(
        month_key=month.key,
        income=month.income,
        total_expenses=expenses,
        total_goal_contributions=contributions,
        leftover=month.income - expenses - contributions,
        category_breakdown=tuple(breakdown),
        daily_series=tuple(series),
        top_category=breakdown[0] if breakdown else None,
        average_daily_spend=sum(d.amount for d in series) / TRAILING_DAYS,
        expense_count=sum(1 for t in month.transactions if t.is_expense),
        contributions=tuple(resolve_contributions(month, goals)),
    )
