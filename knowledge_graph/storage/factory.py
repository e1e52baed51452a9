"""
Backend selection.

The storage backend is chosen once, when the process starts:

- no database URL, or memory mode: ``MemoryStorage``
- otherwise: ``FallbackStorage`` over ``DatabaseStorage``; if the engine
  cannot be created or the schema cannot be initialized, the durable
  side stays unavailable for the life of the process.
"""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from ..config import MEMORY_MODE, StorageSettings
from .database import DatabaseStorage
from .fallback import FallbackStorage
from .graph import GraphStorage
from .memory import MemoryStorage


logger = logging.getLogger(__name__)


def connect_database(settings: StorageSettings) -> Optional[DatabaseStorage]:
    """Build the durable client, or ``None`` when it cannot be built."""
    if not settings.database_url:
        logger.info("No database URL configured, durable storage disabled")
        return None
    try:
        return DatabaseStorage.from_url(settings.database_url, pool_size=settings.pool_size)
    except (SQLAlchemyError, ImportError, ValueError) as exc:
        logger.error(f"Could not create database client, durable storage disabled: {exc}")
        return None


async def create_storage(settings: Optional[StorageSettings] = None) -> GraphStorage:
    """
    Create the storage backend for this process.

    Args:
        settings: Storage settings; read from the environment when omitted

    Returns:
        ``MemoryStorage`` in memory mode, else a ``FallbackStorage``
    """
    settings = settings or StorageSettings.from_env()

    if settings.effective_mode == MEMORY_MODE:
        logger.info("Storage initialized in 'memory' mode")
        return MemoryStorage(seed=settings.seed)

    database = connect_database(settings)
    if database is not None:
        try:
            await database.initialize(seed=settings.seed)
        except Exception:
            logger.error(
                "Database initialization failed, durable storage disabled",
                exc_info=True,
            )
            await database.disconnect()
            database = None

    storage = FallbackStorage(primary=database, fallback=MemoryStorage(seed=settings.seed))
    logger.info(
        f"Storage initialized in 'production' mode "
        f"(durable {'available' if database is not None else 'unavailable'})"
    )
    return storage
