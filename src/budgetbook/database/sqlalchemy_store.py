"""Generic SQLAlchemy store implementation."""

from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from budgetbook.database.base import Store, StorageError
from budgetbook.database.models import StoreEntry, create_session_factory


class SQLAlchemyStore(Store):
    """SQLAlchemy-based implementation of the Store interface."""

    def __init__(self, database_url: str):
        """Initialize SQLAlchemy store.

        Args:
            database_url: SQLAlchemy database URL (e.g., 'sqlite:///path/to.db')
        """
        self.database_url = database_url
        self.session_factory = create_session_factory(database_url)
        self._session: Optional[Session] = None

    def _get_session(self) -> Session:
        """Get current session, creating one if needed."""
        if self._session is None:
            self._session = self.session_factory()
        return self._session

    def connect(self) -> None:
        """Connect to the store."""
        # Connection is lazy, so this is a no-op
        pass

    def disconnect(self) -> None:
        """Disconnect from the store."""
        if self._session is not None:
            self._session.close()
            self._session = None

    def initialize_schema(self) -> None:
        """Initialize storage schema (create tables)."""
        # Schema is created automatically by create_session_factory
        pass

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get the stored text for key, or default if absent."""
        session = self._get_session()
        try:
            entry = session.get(StoreEntry, key)
        except SQLAlchemyError as e:
            raise StorageError(f"Could not read '{key}': {e}") from e
        if entry is None:
            return default
        return entry.value

    def set(self, key: str, value: str) -> None:
        """Store text under key, replacing any previous value."""
        session = self._get_session()
        try:
            entry = session.get(StoreEntry, key)
            if entry is None:
                session.add(StoreEntry(key=key, value=value))
            else:
                entry.value = value
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise StorageError(f"Could not write '{key}': {e}") from e

    def delete(self, key: str) -> None:
        """Remove key if present."""
        session = self._get_session()
        try:
            entry = session.get(StoreEntry, key)
            if entry is not None:
                session.delete(entry)
                session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise StorageError(f"Could not delete '{key}': {e}") from e

    def keys(self) -> list[str]:
        """List all stored keys."""
        session = self._get_session()
        return [row.key for row in session.query(StoreEntry.key).order_by(StoreEntry.key).all()]
