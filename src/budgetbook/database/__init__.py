"""Storage layer for budgetbook application."""

from budgetbook.database.base import Store, StorageError
from budgetbook.database.factories import create_sqlite_store

__all__ = ["Store", "StorageError", "create_sqlite_store"]
