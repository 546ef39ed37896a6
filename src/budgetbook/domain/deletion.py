"""Deferred deletion with an undo window."""

from datetime import datetime, timedelta
from typing import Iterable, Optional

from budgetbook.domain.entities import PendingDeletion

UNDO_WINDOW = timedelta(seconds=3)


class DeletionQueue:
    """Pending deletions keyed by transaction id.

    Nothing runs on a timer. Callers ask for the entries that are due at a
    given instant and apply them; an entry that is cancelled before that
    simply disappears from the queue.
    """

    def __init__(self, pending: Iterable[PendingDeletion] = (), window: timedelta = UNDO_WINDOW):
        self.window = window
        self._pending: dict[int, PendingDeletion] = {p.transaction_id: p for p in pending}

    def __contains__(self, transaction_id: int) -> bool:
        return transaction_id in self._pending

    def __len__(self) -> int:
        return len(self._pending)

    def entries(self) -> tuple[PendingDeletion, ...]:
        return tuple(self._pending.values())

    def schedule(self, transaction_id: int, month_key: str, now: datetime) -> tuple[PendingDeletion, bool]:
        """Schedule a deletion unless one is already pending.

        Returns:
            Tuple of (pending entry, whether a new entry was created)
        """
        existing = self._pending.get(transaction_id)
        if existing is not None:
            return existing, False
        pending = PendingDeletion(
            transaction_id=transaction_id,
            month_key=month_key,
            expires_at=now + self.window,
        )
        self._pending[transaction_id] = pending
        return pending, True

    def cancel(self, transaction_id: int) -> Optional[PendingDeletion]:
        """Cancel a pending deletion. Returns None when nothing was pending."""
        return self._pending.pop(transaction_id, None)

    def pop_due(self, now: datetime) -> list[PendingDeletion]:
        """Remove and return entries whose undo window has elapsed."""
        due = [p for p in self._pending.values() if p.expires_at <= now]
        for pending in due:
            del self._pending[pending.transaction_id]
        return due

    def pop_month(self, month_key: str) -> list[PendingDeletion]:
        """Remove and return every entry scheduled against month_key."""
        matching = [p for p in self._pending.values() if p.month_key == month_key]
        for pending in matching:
            del self._pending[pending.transaction_id]
        return matching
