"""Domain model entities for budgetbook.

These are pure data classes representing ledger concepts, independent of how
they are serialized. Records are immutable; the ledger replaces a record
with an updated copy instead of mutating it in place, so any snapshot handed
to a reader stays valid after later mutations.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from budgetbook.domain.errors import ValidationError


class Category(str, Enum):
    """Fixed, closed set of expense categories."""

    FOOD = "Food"
    TRANSPORT = "Transport"
    SHOPPING = "Shopping"
    BILLS = "Bills"
    ENTERTAINMENT = "Entertainment"
    HEALTH = "Health"
    OTHER = "Other"

    @property
    def icon(self) -> str:
        return _CATEGORY_ICONS[self]

    @classmethod
    def parse(cls, value: "str | Category") -> "Category":
        """Resolve a category name case-insensitively.

        Raises:
            ValidationError: If the value is not one of the fixed categories
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for category in cls:
                if category.value.lower() == value.strip().lower():
                    return category
        names = ", ".join(c.value for c in cls)
        raise ValidationError(f"Unknown category '{value}'. Expected one of: {names}")


_CATEGORY_ICONS = {
    Category.FOOD: "🍔",
    Category.TRANSPORT: "🚗",
    Category.SHOPPING: "🛍️",
    Category.BILLS: "💡",
    Category.ENTERTAINMENT: "🎮",
    Category.HEALTH: "⚕️",
    Category.OTHER: "📦",
}


class TransactionType(str, Enum):
    EXPENSE = "expense"
    GOAL_CONTRIBUTION = "goal-contribution"


class ContributionSource(str, Enum):
    LEFTOVER = "leftover"
    SAVINGS = "savings"


class SavingsAction(str, Enum):
    MANUAL_EDIT = "manual-edit"
    BORROW = "borrow"
    GOAL_CONTRIBUTION = "goal-contribution"
    MONTH_END_CARRYOVER = "month-end-carryover"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


@dataclass(frozen=True)
class Transaction:
    """Entry in a month's transaction list.

    Expenses carry a category and optional note; goal contributions carry a
    goal_id. The goal_id is a lookup key only: the goal may have been deleted
    since, in which case it no longer resolves.
    """

    id: int
    type: TransactionType
    amount: float
    date: date
    created_at: datetime
    category: Optional[Category] = None
    note: Optional[str] = None
    goal_id: Optional[int] = None

    @property
    def is_expense(self) -> bool:
        return self.type is TransactionType.EXPENSE


@dataclass(frozen=True)
class MonthRecord:
    """One calendar month of income and transactions, keyed by YYYY-MM."""

    key: str
    income: float
    transactions: tuple[Transaction, ...]
    is_open: bool
    started_at: datetime
    closing_leftover: Optional[float] = None

    def find_transaction(self, transaction_id: int) -> Optional[Transaction]:
        for txn in self.transactions:
            if txn.id == transaction_id:
                return txn
        return None


@dataclass(frozen=True)
class Goal:
    """Savings target with accumulated progress."""

    id: int
    name: str
    target_amount: float
    collected_amount: float
    created_at: datetime
    image: Optional[str] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class SavingsHistoryEntry:
    """Immutable record of one change to the global savings pool."""

    old_value: float
    new_value: float
    difference: float
    note: str
    action: SavingsAction
    timestamp: datetime


@dataclass(frozen=True)
class ExpenseTemplate:
    """Saved expense preset used to pre-fill new entries."""

    id: int
    category: Category
    amount: float
    note: Optional[str] = None


@dataclass(frozen=True)
class PendingDeletion:
    """Expense scheduled for removal once expires_at has passed."""

    transaction_id: int
    month_key: str
    expires_at: datetime


@dataclass(frozen=True)
class LedgerSnapshot:
    """Read-only view of the whole ledger at one point in time."""

    months: Mapping[str, MonthRecord]
    current_month: str
    global_savings: float
    savings_history: tuple[SavingsHistoryEntry, ...]
    expense_templates: tuple[ExpenseTemplate, ...]
    goals: tuple[Goal, ...]
    theme: Theme
    pending_deletions: tuple[PendingDeletion, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "months", MappingProxyType(dict(self.months)))

    @property
    def active_month(self) -> MonthRecord:
        return self.months[self.current_month]

    def goal(self, goal_id: int) -> Optional[Goal]:
        for goal in self.goals:
            if goal.id == goal_id:
                return goal
        return None

    def is_pending_deletion(self, transaction_id: int) -> bool:
        return any(p.transaction_id == transaction_id for p in self.pending_deletions)
