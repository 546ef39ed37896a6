"""Abstract key-value store interface."""

from abc import ABC, abstractmethod
from typing import Optional


class StorageError(Exception):
    """Raised when the underlying storage cannot read or write a value."""


class Store(ABC):
    """Durable key to text storage backing the ledger.

    Values are already-serialized text; encoding and decoding of ledger
    entities lives in ``budgetbook.database.mappers``.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the store."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the store."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize storage schema (create tables)."""
        pass

    @abstractmethod
    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get the stored text for key, or default if absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store text under key, replacing any previous value."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key if present."""
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """List all stored keys."""
        pass
