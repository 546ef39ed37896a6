"""Ledger aggregate: months, savings pool, goals and templates.

LedgerState owns every mutation. Each operation validates its input before
touching any state, so a rejected call leaves both memory and storage
unchanged. After a successful change every affected top-level slice is
written through to the store on its own; there is no transaction spanning
several keys, so a crash between two writes can leave the stored slices
out of step with each other.
"""

import logging
import math
from dataclasses import replace
from datetime import datetime, date, timedelta, UTC
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional

from budgetbook.database import mappers
from budgetbook.database.base import Store, StorageError
from budgetbook.domain import errors
from budgetbook.domain.deletion import DeletionQueue, UNDO_WINDOW
from budgetbook.domain.entities import (
    Category,
    ContributionSource,
    ExpenseTemplate,
    Goal,
    LedgerSnapshot,
    MonthRecord,
    PendingDeletion,
    SavingsAction,
    SavingsHistoryEntry,
    Theme,
    Transaction,
    TransactionType,
)
from budgetbook.domain.errors import InsufficientFundsError, NotFoundError, ValidationError
from budgetbook.domain.metrics import leftover
from budgetbook.utils.month import month_key, month_label, next_month_key, parse_month_key

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


def _require_number(value: Any, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValidationError(f"{what} must be a finite number (got {value!r})")
    return float(value)


def _require_positive(value: Any, what: str = "Amount") -> float:
    amount = _require_number(value, what)
    if amount <= 0:
        raise ValidationError(errors.amount_not_positive(amount))
    return amount


def _clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class LedgerState:
    """In-memory ledger mirrored to a key-value store.

    Use ``LedgerState.load(store)`` to build an instance from stored data.
    """

    def __init__(self, store: Store, clock: Optional[Clock] = None, undo_window: timedelta = UNDO_WINDOW):
        """Initialize an empty ledger.

        Args:
            store: Store that every mutation is written through to
            clock: Callable returning the current aware datetime
            undo_window: How long a deleted expense can still be restored
        """
        self.store = store
        self.clock = clock or utc_now
        self._months: dict[str, MonthRecord] = {}
        self._current_month = month_key(self.today())
        self._global_savings = 0.0
        self._savings_history: list[SavingsHistoryEntry] = []
        self._templates: list[ExpenseTemplate] = []
        self._goals: list[Goal] = []
        self._theme = Theme.LIGHT
        self._deletions = DeletionQueue(window=undo_window)
        self._last_id = 0

    # Loading
    @classmethod
    def load(cls, store: Store, clock: Optional[Clock] = None, undo_window: timedelta = UNDO_WINDOW) -> "LedgerState":
        """Build a ledger from stored slices.

        Missing or corrupt slices fall back to their defaults: empty
        collections, zero savings, light theme, and a fresh open month for
        the current calendar month.
        """
        ledger = cls(store, clock=clock, undo_window=undo_window)
        ledger._theme = ledger._read(mappers.THEME_KEY, Theme, Theme.LIGHT)
        ledger._months = ledger._read(mappers.MONTHS_KEY, mappers.months_from_json, {})
        ledger._current_month = ledger._read(
            mappers.CURRENT_MONTH_KEY,
            lambda value: month_key(parse_month_key(value)),
            month_key(ledger.today()),
        )
        ledger._global_savings = max(
            ledger._read(mappers.GLOBAL_SAVINGS_KEY, mappers.number_from_json, 0.0), 0.0
        )
        ledger._savings_history = ledger._read(
            mappers.SAVINGS_HISTORY_KEY,
            lambda data: mappers.list_from_json(data, mappers.history_entry_from_json),
            [],
        )
        ledger._templates = ledger._read(
            mappers.EXPENSE_TEMPLATES_KEY,
            lambda data: mappers.list_from_json(data, mappers.template_from_json),
            [],
        )
        ledger._goals = ledger._read(
            mappers.GOALS_KEY,
            lambda data: mappers.list_from_json(data, mappers.goal_from_json),
            [],
        )
        pending = ledger._read(
            mappers.PENDING_DELETIONS_KEY,
            lambda data: mappers.list_from_json(data, mappers.pending_deletion_from_json),
            [],
        )
        ledger._deletions = DeletionQueue(pending, window=undo_window)
        ledger._last_id = ledger._highest_known_id()
        ledger._ensure_active_month()
        ledger.process_due_deletions()
        return ledger

    def _read(self, key: str, convert: Callable[[Any], Any], default: Any) -> Any:
        try:
            text = self.store.get(key)
        except StorageError:
            logger.exception("Could not read '%s' from store, using default", key)
            return default
        if text is None:
            return default
        try:
            return convert(mappers.decode(text))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Stored '%s' is corrupt (%s), using default", key, e)
            return default

    def _highest_known_id(self) -> int:
        ids = [t.id for m in self._months.values() for t in m.transactions]
        ids.extend(g.id for g in self._goals)
        ids.extend(t.id for t in self._templates)
        return max(ids, default=0)

    def _ensure_active_month(self) -> None:
        record = self._months.get(self._current_month)
        if record is not None and record.is_open:
            return
        if record is not None:
            logger.warning("Active month %s is already closed, opening a new month", self._current_month)
            self._current_month = self._free_month_key(self.today())
        self._months[self._current_month] = self._fresh_month(self._current_month)
        self._save_months()
        self._save_current_month()

    # Persistence
    def _write(self, key: str, data: Any) -> None:
        try:
            self.store.set(key, mappers.encode(data))
        except (StorageError, TypeError, ValueError):
            logger.exception("Failed to persist '%s'; in-memory state kept", key)

    def _save_months(self) -> None:
        self._write(mappers.MONTHS_KEY, mappers.months_to_json(self._months))

    def _save_current_month(self) -> None:
        self._write(mappers.CURRENT_MONTH_KEY, self._current_month)

    def _save_savings(self) -> None:
        self._write(mappers.GLOBAL_SAVINGS_KEY, self._global_savings)
        self._write(
            mappers.SAVINGS_HISTORY_KEY,
            [mappers.history_entry_to_json(e) for e in self._savings_history],
        )

    def _save_goals(self) -> None:
        self._write(mappers.GOALS_KEY, [mappers.goal_to_json(g) for g in self._goals])

    def _save_templates(self) -> None:
        self._write(
            mappers.EXPENSE_TEMPLATES_KEY,
            [mappers.template_to_json(t) for t in self._templates],
        )

    def _save_pending(self) -> None:
        self._write(
            mappers.PENDING_DELETIONS_KEY,
            [mappers.pending_deletion_to_json(p) for p in self._deletions.entries()],
        )

    # Clock and identifiers
    def now(self) -> datetime:
        return self.clock()

    def today(self) -> date:
        return self.now().date()

    def _new_id(self) -> int:
        """Millisecond timestamp id, bumped when needed to stay strictly increasing."""
        candidate = int(self.now().timestamp() * 1000)
        self._last_id = max(candidate, self._last_id + 1)
        return self._last_id

    # Read side
    @property
    def current_month(self) -> str:
        return self._current_month

    @property
    def active_month(self) -> MonthRecord:
        return self._months[self._current_month]

    @property
    def months(self) -> Mapping[str, MonthRecord]:
        return MappingProxyType(self._months)

    @property
    def global_savings(self) -> float:
        return self._global_savings

    @property
    def savings_history(self) -> tuple[SavingsHistoryEntry, ...]:
        return tuple(self._savings_history)

    @property
    def expense_templates(self) -> tuple[ExpenseTemplate, ...]:
        return tuple(self._templates)

    @property
    def goals(self) -> tuple[Goal, ...]:
        return tuple(self._goals)

    @property
    def theme(self) -> Theme:
        return self._theme

    @property
    def undo_window(self) -> timedelta:
        return self._deletions.window

    @property
    def pending_deletions(self) -> tuple[PendingDeletion, ...]:
        return self._deletions.entries()

    def get_month(self, key: str) -> MonthRecord:
        """Get a month by identifier.

        Raises:
            NotFoundError: If no record exists for the month
        """
        record = self._months.get(key)
        if record is None:
            raise NotFoundError(errors.month_not_found(key))
        return record

    def get_goal(self, goal_id: int) -> Goal:
        """Get a goal by ID.

        Raises:
            NotFoundError: If goal doesn't exist
        """
        for goal in self._goals:
            if goal.id == goal_id:
                return goal
        raise NotFoundError(errors.goal_not_found(goal_id))

    def get_template(self, template_id: int) -> ExpenseTemplate:
        for template in self._templates:
            if template.id == template_id:
                return template
        raise NotFoundError(errors.template_not_found(template_id))

    def snapshot(self) -> LedgerSnapshot:
        """Return an immutable view of the current state."""
        self.process_due_deletions()
        return LedgerSnapshot(
            months=self._months,
            current_month=self._current_month,
            global_savings=self._global_savings,
            savings_history=tuple(self._savings_history),
            expense_templates=tuple(self._templates),
            goals=tuple(self._goals),
            theme=self._theme,
            pending_deletions=self._deletions.entries(),
        )

    # Income
    def set_income(self, amount: float) -> MonthRecord:
        """Replace the active month's income.

        Raises:
            ValidationError: If amount is negative or not a number
        """
        value = _require_number(amount, "Income")
        if value < 0:
            raise ValidationError(f"Income cannot be negative (got {value:g})")
        return self._replace_active(income=value)

    def adjust_income(self, delta: float) -> MonthRecord:
        """Add delta to the active month's income, never going below zero."""
        change = _require_number(delta, "Income change")
        return self._replace_active(income=max(0.0, self.active_month.income + change))

    def _replace_active(self, **changes) -> MonthRecord:
        self.process_due_deletions()
        updated = replace(self.active_month, **changes)
        self._months[updated.key] = updated
        self._save_months()
        return updated

    # Expenses
    def add_expense(
        self,
        amount: float,
        category: "Category | str",
        day: Optional[date] = None,
        note: Optional[str] = None,
        save_as_template: bool = False,
    ) -> Transaction:
        """Record an expense at the front of the active month.

        Args:
            amount: Positive expense amount
            category: One of the fixed categories (name or Category)
            day: Expense date (defaults to today)
            note: Optional note
            save_as_template: Also store a template, when a note is given

        Returns:
            The created transaction

        Raises:
            ValidationError: If amount is not positive or category is unknown
        """
        value = _require_positive(amount)
        resolved = Category.parse(category)
        note = _clean_text(note)
        self.process_due_deletions()

        txn = Transaction(
            id=self._new_id(),
            type=TransactionType.EXPENSE,
            amount=value,
            date=day or self.today(),
            created_at=self.now(),
            category=resolved,
            note=note,
        )
        month = self.active_month
        self._months[month.key] = replace(month, transactions=(txn,) + month.transactions)
        self._save_months()

        if save_as_template and note:
            self._templates.append(
                ExpenseTemplate(id=self._new_id(), category=resolved, amount=value, note=note)
            )
            self._save_templates()
        return txn

    def add_expense_from_template(
        self, template_id: int, day: Optional[date] = None, amount: Optional[float] = None
    ) -> Transaction:
        """Record an expense pre-filled from a template, optionally overriding the amount."""
        template = self.get_template(template_id)
        return self.add_expense(
            amount=template.amount if amount is None else amount,
            category=template.category,
            day=day,
            note=template.note,
        )

    def delete_expense(self, transaction_id: int) -> PendingDeletion:
        """Schedule an expense of the active month for removal.

        The expense stays in the month until the undo window has passed and
        the deletion is processed. Scheduling the same id twice returns the
        entry that is already pending.

        Raises:
            NotFoundError: If the active month has no expense with this id
        """
        self.process_due_deletions()
        month = self.active_month
        txn = month.find_transaction(transaction_id)
        if txn is None or not txn.is_expense:
            raise NotFoundError(errors.expense_not_found(transaction_id, month.key))
        pending, created = self._deletions.schedule(transaction_id, month.key, self.now())
        if created:
            self._save_pending()
        return pending

    def undo_delete(self, transaction_id: int) -> bool:
        """Cancel a pending deletion.

        Returns:
            True if a pending deletion was cancelled, False if there was none
            (including when the deletion has already been carried out)
        """
        self.process_due_deletions()
        if self._deletions.cancel(transaction_id) is None:
            return False
        self._save_pending()
        return True

    def process_due_deletions(self) -> list[int]:
        """Carry out deletions whose undo window has elapsed.

        Returns:
            IDs of the transactions that were removed
        """
        due = self._deletions.pop_due(self.now())
        if not due:
            return []
        removed = self._remove_transactions(due)
        self._save_pending()
        return removed

    def _remove_transactions(self, pending: list[PendingDeletion]) -> list[int]:
        month = self.active_month
        targets = {p.transaction_id for p in pending if p.month_key == month.key}
        kept = tuple(t for t in month.transactions if t.id not in targets)
        removed = [t.id for t in month.transactions if t.id in targets]
        if removed:
            self._months[month.key] = replace(month, transactions=kept)
            self._save_months()
            logger.info("Removed %d expense(s) from %s: %s", len(removed), month.key, removed)
        return removed

    # Templates
    def add_template(self, category: "Category | str", amount: float, note: Optional[str] = None) -> ExpenseTemplate:
        """Store an expense preset.

        Raises:
            ValidationError: If amount is not positive or category is unknown
        """
        resolved = Category.parse(category)
        value = _require_positive(amount)
        template = ExpenseTemplate(
            id=self._new_id(), category=resolved, amount=value, note=_clean_text(note)
        )
        self._templates.append(template)
        self._save_templates()
        return template

    def delete_template(self, template_id: int) -> None:
        template = self.get_template(template_id)
        self._templates.remove(template)
        self._save_templates()

    # Goals
    def add_goal(
        self,
        name: str,
        target_amount: float,
        note: Optional[str] = None,
        image: Optional[str] = None,
    ) -> Goal:
        """Create a goal with nothing collected yet.

        Raises:
            ValidationError: If name is empty or target is not positive
        """
        clean_name = _clean_text(name)
        if not clean_name:
            raise ValidationError("Goal name is required")
        target = _require_positive(target_amount, "Target amount")
        goal = Goal(
            id=self._new_id(),
            name=clean_name,
            target_amount=target,
            collected_amount=0.0,
            created_at=self.now(),
            image=_clean_text(image),
            note=_clean_text(note),
        )
        self._goals.append(goal)
        self._save_goals()
        return goal

    def edit_goal(
        self,
        goal_id: int,
        name: Optional[str] = None,
        target_amount: Optional[float] = None,
        note: Optional[str] = None,
        image: Optional[str] = None,
    ) -> Goal:
        """Update goal fields in place; collected_amount is never touched.

        Fields left as None are unchanged. An empty string clears the note
        or image.

        Raises:
            NotFoundError: If goal doesn't exist
            ValidationError: If the new name is empty or target not positive
        """
        goal = self.get_goal(goal_id)
        changes: dict[str, Any] = {}
        if name is not None:
            clean_name = _clean_text(name)
            if not clean_name:
                raise ValidationError("Goal name is required")
            changes["name"] = clean_name
        if target_amount is not None:
            changes["target_amount"] = _require_positive(target_amount, "Target amount")
        if note is not None:
            changes["note"] = _clean_text(note)
        if image is not None:
            changes["image"] = _clean_text(image)
        updated = replace(goal, **changes)
        self._replace_goal(updated)
        self._save_goals()
        return updated

    def delete_goal(self, goal_id: int) -> Goal:
        """Remove a goal. Contributions already recorded stay in their months."""
        goal = self.get_goal(goal_id)
        self._goals.remove(goal)
        self._save_goals()
        return goal

    def _replace_goal(self, updated: Goal) -> None:
        self._goals = [updated if g.id == updated.id else g for g in self._goals]

    def available_balance(self, source: "ContributionSource | str") -> float:
        """Balance a goal contribution can draw from."""
        resolved = self._parse_source(source)
        if resolved is ContributionSource.LEFTOVER:
            return leftover(self.active_month)
        return self._global_savings

    @staticmethod
    def _parse_source(source: "ContributionSource | str") -> ContributionSource:
        try:
            return ContributionSource(source)
        except ValueError:
            raise ValidationError(
                f"Unknown contribution source '{source}'. Expected 'leftover' or 'savings'"
            )

    def contribute_to_goal(self, goal_id: int, amount: float, source: "ContributionSource | str") -> Goal:
        """Move money towards a goal from this month's leftover or from savings.

        Leftover contributions are recorded as a goal-contribution
        transaction in the active month; savings contributions reduce the
        savings pool and are logged in its history. Either way the goal's
        collected amount grows by the same amount.

        Raises:
            NotFoundError: If goal doesn't exist
            ValidationError: If amount is not positive or source is unknown
            InsufficientFundsError: If the source cannot cover the amount
        """
        self.process_due_deletions()
        goal = self.get_goal(goal_id)
        value = _require_positive(amount)
        resolved = self._parse_source(source)
        available = self.available_balance(resolved)
        if value > available:
            raise InsufficientFundsError(errors.insufficient_funds(value, available, resolved.value))

        if resolved is ContributionSource.LEFTOVER:
            txn = Transaction(
                id=self._new_id(),
                type=TransactionType.GOAL_CONTRIBUTION,
                amount=value,
                date=self.today(),
                created_at=self.now(),
                goal_id=goal.id,
            )
            month = self.active_month
            self._months[month.key] = replace(month, transactions=(txn,) + month.transactions)
        else:
            self._change_savings(
                self._global_savings - value,
                note=f"Contribution to goal '{goal.name}'",
                action=SavingsAction.GOAL_CONTRIBUTION,
            )
        updated = replace(goal, collected_amount=goal.collected_amount + value)
        self._replace_goal(updated)

        if resolved is ContributionSource.LEFTOVER:
            self._save_months()
        else:
            self._save_savings()
        self._save_goals()
        return updated

    # Savings pool
    def _change_savings(self, new_value: float, note: str, action: SavingsAction) -> Optional[SavingsHistoryEntry]:
        old_value = self._global_savings
        if new_value == old_value:
            return None
        entry = SavingsHistoryEntry(
            old_value=old_value,
            new_value=new_value,
            difference=new_value - old_value,
            note=note,
            action=action,
            timestamp=self.now(),
        )
        self._global_savings = new_value
        self._savings_history.insert(0, entry)
        return entry

    def adjust_savings(self, delta: float, note: str = "") -> Optional[SavingsHistoryEntry]:
        """Add delta to savings, clamping the result at zero.

        Returns:
            The history entry, or None when the balance did not change
        """
        change = _require_number(delta, "Savings change")
        entry = self._change_savings(
            max(0.0, self._global_savings + change),
            note=note.strip() or "Manual adjustment",
            action=SavingsAction.MANUAL_EDIT,
        )
        if entry is not None:
            self._save_savings()
        return entry

    def set_savings(self, new_value: float, note: str = "") -> Optional[SavingsHistoryEntry]:
        """Replace the savings balance.

        Raises:
            ValidationError: If new_value is negative
        """
        value = _require_number(new_value, "Savings")
        if value < 0:
            raise ValidationError(f"Savings cannot be negative (got {value:g})")
        entry = self._change_savings(
            value, note=note.strip() or "Manual edit", action=SavingsAction.MANUAL_EDIT
        )
        if entry is not None:
            self._save_savings()
        return entry

    def borrow_from_savings(self, amount: float, note: str = "") -> SavingsHistoryEntry:
        """Move money from savings into the active month's income.

        Raises:
            ValidationError: If amount is not positive
            InsufficientFundsError: If amount exceeds the savings balance
        """
        value = _require_positive(amount)
        if value > self._global_savings:
            raise InsufficientFundsError(
                errors.insufficient_funds(value, self._global_savings, "savings")
            )
        self.process_due_deletions()
        month = self.active_month
        entry = self._change_savings(
            self._global_savings - value,
            note=note.strip() or f"Borrowed for {month_label(month.key)}",
            action=SavingsAction.BORROW,
        )
        self._months[month.key] = replace(month, income=month.income + value)
        self._save_savings()
        self._save_months()
        return entry

    # Month rollover
    def close_month_and_advance(self, carryover_leftover_to_savings: bool = True) -> MonthRecord:
        """Close the active month and open the next one.

        Pending deletions against the closing month are carried out first.
        A positive leftover is moved to savings when requested. The new
        month is the current calendar month, or the first later month that
        has no record yet, so an existing record is never overwritten.

        Returns:
            The newly opened month
        """
        self.process_due_deletions()
        flushed = self._deletions.pop_month(self._current_month)
        if flushed:
            self._remove_transactions(flushed)
            self._save_pending()

        closing = self.active_month
        remaining = leftover(closing)
        carried = None
        if carryover_leftover_to_savings and remaining > 0:
            carried = self._change_savings(
                self._global_savings + remaining,
                note=f"Leftover from {month_label(closing.key)}",
                action=SavingsAction.MONTH_END_CARRYOVER,
            )

        self._months[closing.key] = replace(closing, is_open=False, closing_leftover=remaining)
        new_key = self._free_month_key(self.today())
        opened = self._fresh_month(new_key)
        self._months[new_key] = opened
        self._current_month = new_key
        logger.info(
            "Closed %s with leftover %.2f (carried over: %s), opened %s",
            closing.key,
            remaining,
            carried is not None,
            new_key,
        )

        if carried is not None:
            self._save_savings()
        self._save_months()
        self._save_current_month()
        return opened

    def projected_closing_leftover(self) -> float:
        """Leftover the active month would close with right now.

        Expenses still pending deletion are left out, since closing carries
        those deletions out first.
        """
        self.process_due_deletions()
        month = self.active_month
        pending = {p.transaction_id for p in self._deletions.entries() if p.month_key == month.key}
        kept = tuple(t for t in month.transactions if t.id not in pending)
        return leftover(replace(month, transactions=kept))

    def _free_month_key(self, today: date) -> str:
        key = month_key(today)
        while key in self._months:
            key = next_month_key(key)
        return key

    def _fresh_month(self, key: str) -> MonthRecord:
        return MonthRecord(
            key=key,
            income=0.0,
            transactions=(),
            is_open=True,
            started_at=self.now(),
        )

    # Theme
    def set_theme(self, theme: "Theme | str") -> Theme:
        try:
            resolved = Theme(theme)
        except ValueError:
            raise ValidationError(f"Unknown theme '{theme}'. Expected 'light' or 'dark'")
        self._theme = resolved
        self._write(mappers.THEME_KEY, resolved.value)
        return resolved

    def toggle_theme(self) -> Theme:
        return self.set_theme(Theme.DARK if self._theme is Theme.LIGHT else Theme.LIGHT)
