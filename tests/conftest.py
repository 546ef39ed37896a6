"""Shared pytest fixtures for budgetbook tests."""

import tempfile
import os
from datetime import datetime, timedelta, UTC
import pytest

from budgetbook.database.base import StorageError
from budgetbook.database.factories import create_sqlite_store
from budgetbook.domain.ledger import LedgerState


class FakeClock:
    """Controllable clock passed to LedgerState."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)

    def set(self, moment: datetime) -> None:
        self.current = moment


@pytest.fixture
def temp_store():
    """Create a temporary SQLite store for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    store = create_sqlite_store(database_path=db_path)
    # Store the path for tests that need it
    store.database_path = db_path
    store.connect()
    store.initialize_schema()

    yield store

    store.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def clock():
    """Clock fixed at 2024-01-15 12:00 UTC until advanced."""
    return FakeClock(datetime(2024, 1, 15, 12, 0, tzinfo=UTC))


@pytest.fixture
def ledger(temp_store, clock):
    """Create a LedgerState over an empty temporary store."""
    return LedgerState.load(temp_store, clock=clock)


@pytest.fixture
def reload(temp_store, clock):
    """Return a function that loads a fresh ledger from the same store."""
    return lambda: LedgerState.load(temp_store, clock=clock)


@pytest.fixture
def funded_ledger(ledger):
    """Ledger with income 5000 in the active month and 2000 in savings."""
    ledger.set_income(5000)
    ledger.set_savings(2000)
    return ledger


@pytest.fixture
def sample_goal(ledger):
    """Create a sample goal for testing."""
    return ledger.add_goal(name="New Laptop", target_amount=80000, note="For work")


class FailingWrites:
    """Wraps a store so that every write fails."""

    def __init__(self, store):
        self.store = store

    def __getattr__(self, name):
        return getattr(self.store, name)

    def set(self, key, value):
        raise StorageError(f"Could not write '{key}': quota exceeded")


@pytest.fixture
def failing_store(temp_store):
    """Store whose reads work and whose writes always fail."""
    return FailingWrites(temp_store)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
