#!/usr/bin/env python3
"""Migration script to convert the legacy flat layout to monthly records.

Early versions kept a single running month in four flat keys:
- income (number)
- expenses (list of {id, amount, category, date, note, timestamp})
- savings (number)
- goals (list of {id, name, targetAmount, image, createdDate})

This migration folds them into the month-based layout:
- one open month for the current calendar month holding the legacy
  income and expenses, newest first
- globalSavings taken from savings
- goals rewritten with collectedAmount = 0 and createdAt

The legacy keys income, expenses and savings are removed afterwards, so
running the migration twice is a no-op.

Usage:
    python migrations/migrate_legacy_flat_ledger.py [--db-path PATH]
"""

import sys
from datetime import datetime, date, UTC
from pathlib import Path

# Add src to path so we can import budgetbook modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from budgetbook.database import mappers
from budgetbook.database.base import Store
from budgetbook.database.factories import create_sqlite_store
from budgetbook.domain.entities import (
    Category,
    Goal,
    MonthRecord,
    Transaction,
    TransactionType,
)
from budgetbook.utils.month import month_key

LEGACY_KEYS = ("income", "expenses", "savings")


def _legacy_value(store: Store, key: str, default):
    text = store.get(key)
    if text is None:
        return default
    try:
        return mappers.decode(text)
    except ValueError:
        print(f"  Warning: legacy '{key}' is not valid JSON, using {default!r}")
        return default


def _legacy_timestamp(text: str) -> datetime:
    """Parse a legacy ISO timestamp; ones without an offset are taken as UTC."""
    moment = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment


def convert_expense(raw: dict, now: datetime) -> Transaction:
    """Convert a legacy expense dict to an expense transaction."""
    timestamp = raw.get("timestamp")
    return Transaction(
        id=int(raw["id"]),
        type=TransactionType.EXPENSE,
        amount=float(raw["amount"]),
        date=date.fromisoformat(raw["date"]),
        created_at=_legacy_timestamp(timestamp) if timestamp else now,
        category=Category.parse(raw["category"]),
        note=raw.get("note") or None,
    )


def convert_goal(raw: dict, now: datetime) -> Goal:
    """Convert a legacy goal dict, which has no progress field, to a Goal."""
    created = raw.get("createdAt") or raw.get("createdDate")
    return Goal(
        id=int(raw["id"]),
        name=str(raw["name"]),
        target_amount=float(raw["targetAmount"]),
        collected_amount=float(raw.get("collectedAmount", 0)),
        created_at=_legacy_timestamp(created) if created else now,
        image=raw.get("image") or None,
        note=raw.get("note") or None,
    )


def is_legacy_layout(store: Store) -> bool:
    keys = set(store.keys())
    return mappers.MONTHS_KEY not in keys and any(key in keys for key in LEGACY_KEYS)


def migrate_store(store: Store, now: datetime | None = None) -> bool:
    """Migrate a store from the flat layout.

    Args:
        store: Connected store to migrate
        now: Timestamp used for the new month and missing creation times

    Returns:
        True if data was migrated, False if the store was already migrated
    """
    if not is_legacy_layout(store):
        print("Migration already applied: no legacy flat keys found")
        return False

    now = now or datetime.now(UTC)
    print("Starting migration: converting flat ledger to monthly records...")

    income = float(_legacy_value(store, "income", 0) or 0)
    expenses = [convert_expense(e, now) for e in _legacy_value(store, "expenses", [])]
    savings = float(_legacy_value(store, "savings", 0) or 0)
    goals = [convert_goal(g, now) for g in _legacy_value(store, "goals", [])]
    expenses.sort(key=lambda txn: txn.id, reverse=True)

    key = month_key(now.date())
    month = MonthRecord(
        key=key,
        income=max(income, 0.0),
        transactions=tuple(expenses),
        is_open=True,
        started_at=now,
    )

    store.set(mappers.MONTHS_KEY, mappers.encode(mappers.months_to_json({key: month})))
    store.set(mappers.CURRENT_MONTH_KEY, mappers.encode(key))
    store.set(mappers.GLOBAL_SAVINGS_KEY, mappers.encode(max(savings, 0.0)))
    store.set(mappers.GOALS_KEY, mappers.encode([mappers.goal_to_json(g) for g in goals]))
    print(f"  Created month {key} with {len(expenses)} expense(s)")
    print(f"  Savings pool: {max(savings, 0.0):,.2f}")
    print(f"  Goals converted: {len(goals)}")

    for legacy_key in LEGACY_KEYS:
        store.delete(legacy_key)
    print("Migration completed successfully")
    return True


def migrate_database(database_path: str | None = None) -> None:
    """Run the migration against a SQLite store.

    Args:
        database_path: Path to database file. If None, uses default location.
    """
    store = create_sqlite_store(database_path=database_path)
    store.connect()
    try:
        migrate_store(store)
    finally:
        store.disconnect()


def main():
    """Main entry point for migration script."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Migrate legacy flat ledger data to monthly records"
    )
    parser.add_argument(
        "--db-path",
        type=str,
        help="Path to database file (overrides BUDGETBOOK_DB_PATH environment variable)",
    )
    args = parser.parse_args()

    try:
        migrate_database(database_path=args.db_path)
        return 0
    except Exception as e:
        print(f"\nMigration failed: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
