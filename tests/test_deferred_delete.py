"""Tests for deferred expense deletion with undo."""

from datetime import datetime, timedelta, UTC
import pytest

from budgetbook.domain.deletion import DeletionQueue, UNDO_WINDOW
from budgetbook.domain.errors import NotFoundError
from budgetbook.domain.ledger import LedgerState
from budgetbook.domain.metrics import total_expenses

NOW = datetime(2024, 1, 15, 12, 0, tzinfo=UTC)


class TestDeletionQueue:
    """Tests for the DeletionQueue on its own."""

    def test_schedule_sets_expiry(self):
        queue = DeletionQueue()
        pending, created = queue.schedule(1, "2024-01", NOW)
        assert created
        assert pending.expires_at == NOW + UNDO_WINDOW
        assert 1 in queue

    def test_schedule_twice_keeps_first_entry(self):
        queue = DeletionQueue()
        first, _ = queue.schedule(1, "2024-01", NOW)
        second, created = queue.schedule(1, "2024-01", NOW + timedelta(seconds=2))
        assert not created
        assert second == first
        assert len(queue) == 1

    def test_pop_due_only_returns_expired(self):
        queue = DeletionQueue()
        queue.schedule(1, "2024-01", NOW)
        queue.schedule(2, "2024-01", NOW + timedelta(seconds=2))

        assert queue.pop_due(NOW + timedelta(seconds=2)) == []
        due = queue.pop_due(NOW + timedelta(seconds=3))
        assert [p.transaction_id for p in due] == [1]
        assert 2 in queue

    def test_cancel(self):
        queue = DeletionQueue()
        queue.schedule(1, "2024-01", NOW)
        assert queue.cancel(1) is not None
        assert queue.cancel(1) is None
        assert queue.pop_due(NOW + timedelta(minutes=1)) == []


def test_delete_then_undo_leaves_list_unchanged(ledger, clock, reload):
    keep = ledger.add_expense(100, "Food")
    target = ledger.add_expense(200, "Bills")
    before = ledger.active_month.transactions

    ledger.delete_expense(target.id)
    assert ledger.snapshot().is_pending_deletion(target.id)
    clock.advance(seconds=2)
    assert ledger.undo_delete(target.id) is True

    clock.advance(seconds=10)
    assert ledger.process_due_deletions() == []
    assert ledger.active_month.transactions == before
    assert reload().active_month.transactions == before
    assert keep in ledger.active_month.transactions


def test_pending_expense_still_counts_until_removed(ledger, clock):
    txn = ledger.add_expense(200, "Bills")
    ledger.delete_expense(txn.id)
    assert total_expenses(ledger.active_month) == 200

    clock.advance(seconds=3)
    assert ledger.process_due_deletions() == [txn.id]
    assert total_expenses(ledger.active_month) == 0


def test_delete_runs_to_completion(ledger, clock, reload):
    first = ledger.add_expense(100, "Food")
    second = ledger.add_expense(200, "Bills")
    third = ledger.add_expense(300, "Health")

    ledger.delete_expense(second.id)
    clock.advance(seconds=2.9)
    assert ledger.process_due_deletions() == []
    clock.advance(seconds=0.1)
    assert ledger.process_due_deletions() == [second.id]

    assert ledger.active_month.transactions == (third, first)
    assert ledger.pending_deletions == ()
    assert reload().active_month.transactions == (third, first)


def test_due_deletion_applied_on_next_mutation(ledger, clock):
    txn = ledger.add_expense(100, "Food")
    ledger.delete_expense(txn.id)
    clock.advance(seconds=5)

    ledger.set_income(1000)

    assert ledger.active_month.transactions == ()
    assert ledger.active_month.income == 1000


def test_due_deletion_applied_on_load(ledger, clock, reload):
    """The undo window survives a restart and expires on the next load."""
    txn = ledger.add_expense(100, "Food")
    ledger.delete_expense(txn.id)

    reloaded = reload()
    assert reloaded.active_month.transactions == (txn,)
    assert [p.transaction_id for p in reloaded.pending_deletions] == [txn.id]

    clock.advance(seconds=3)
    later = reload()
    assert later.active_month.transactions == ()
    assert later.pending_deletions == ()


def test_undo_after_restart(ledger, clock, reload):
    txn = ledger.add_expense(100, "Food")
    ledger.delete_expense(txn.id)

    clock.advance(seconds=1)
    assert reload().undo_delete(txn.id) is True

    clock.advance(seconds=10)
    assert reload().active_month.transactions == (txn,)


def test_delete_twice_does_not_double_schedule(ledger, clock):
    txn = ledger.add_expense(100, "Food")
    first = ledger.delete_expense(txn.id)
    clock.advance(seconds=2)
    second = ledger.delete_expense(txn.id)

    assert second == first
    assert len(ledger.pending_deletions) == 1

    clock.advance(seconds=1)
    assert ledger.process_due_deletions() == [txn.id]
    assert ledger.process_due_deletions() == []


def test_cancel_after_fire_is_noop(ledger, clock):
    txn = ledger.add_expense(100, "Food")
    ledger.delete_expense(txn.id)
    clock.advance(seconds=3)

    assert ledger.undo_delete(txn.id) is False
    assert ledger.active_month.transactions == ()


def test_cancel_without_pending_is_noop(ledger):
    assert ledger.undo_delete(12345) is False


def test_delete_unknown_expense(ledger):
    with pytest.raises(NotFoundError, match="Expense 5 not found in 2024-01"):
        ledger.delete_expense(5)
    assert ledger.pending_deletions == ()


def test_custom_undo_window(temp_store, clock):
    ledger = LedgerState.load(temp_store, clock=clock, undo_window=timedelta(seconds=10))
    txn = ledger.add_expense(100, "Food")
    ledger.delete_expense(txn.id)

    clock.advance(seconds=5)
    assert ledger.process_due_deletions() == []
    clock.advance(seconds=5)
    assert ledger.process_due_deletions() == [txn.id]
