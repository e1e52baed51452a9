"""
Base storage interface for the knowledge graph.
"""

from abc import ABC, abstractmethod


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Raised when an operation references a row that does not exist."""
    pass


class BackendUnavailableError(StorageError):
    """
    Raised by a durable backend that cannot serve a call.

    Never escapes the fallback adapter.
    """
    pass


class StorageBackend(ABC):
    """
    Abstract base class for storage backends.

    Implementations may use PostgreSQL, SQLite, plain dicts, etc.
    """

    @abstractmethod
    async def connect(self) -> None:
        """Establish connection to storage backend."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close connection to storage backend."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if storage is healthy and accessible."""
        pass

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Check if currently connected."""
        pass
