"""
Storage backends for the knowledge graph.

Provides the abstract storage contract, the in-memory and relational
implementations, and the adapter that falls back from one to the other.
"""

from .base import (
    StorageBackend,
    StorageError,
    NotFoundError,
    BackendUnavailableError,
)
from .graph import GraphStorage
from .memory import MemoryStorage
from .database import DatabaseStorage
from .fallback import FallbackStorage, with_fallback
from .factory import connect_database, create_storage

__all__ = [
    "StorageBackend",
    "StorageError",
    "NotFoundError",
    "BackendUnavailableError",
    "GraphStorage",
    "MemoryStorage",
    "DatabaseStorage",
    "FallbackStorage",
    "with_fallback",
    "connect_database",
    "create_storage",
]
