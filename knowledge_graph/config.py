"""
Configuration for the knowledge graph storage layer.

Read from environment variables:
- KNOWLEDGE_GRAPH_DATABASE_URL: SQLAlchemy connection string
  (DATABASE_URL is used when unset)
- KNOWLEDGE_GRAPH_MODE: 'memory' for the in-memory store only,
  'production' for the database with in-memory fallback
- KNOWLEDGE_GRAPH_SEED: load the seed graph into empty stores (default true)
- KNOWLEDGE_GRAPH_POOL_SIZE: connection pool size (default 5)
"""

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field, field_validator


MEMORY_MODE = "memory"
PRODUCTION_MODE = "production"

_TRUTHY = {"1", "true", "yes", "on"}


class StorageSettings(BaseModel):
    """Settings that select and configure the storage backend."""

    database_url: Optional[str] = None
    mode: Optional[str] = Field(None, description="'memory' or 'production'")
    seed: bool = True
    pool_size: int = Field(5, ge=1)

    @field_validator("database_url")
    @classmethod
    def blank_url_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value

    @field_validator("mode")
    @classmethod
    def check_mode(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        value = value.strip().lower()
        if value not in (MEMORY_MODE, PRODUCTION_MODE):
            raise ValueError(f"mode must be '{MEMORY_MODE}' or '{PRODUCTION_MODE}'")
        return value

    @property
    def effective_mode(self) -> str:
        """Explicit mode, else 'production' when a database URL is configured."""
        if self.mode:
            return self.mode
        return PRODUCTION_MODE if self.database_url else MEMORY_MODE

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "StorageSettings":
        env = os.environ if environ is None else environ
        return cls(
            database_url=env.get("KNOWLEDGE_GRAPH_DATABASE_URL") or env.get("DATABASE_URL"),
            mode=env.get("KNOWLEDGE_GRAPH_MODE"),
            seed=env.get("KNOWLEDGE_GRAPH_SEED", "true").strip().lower() in _TRUTHY,
            pool_size=int(env.get("KNOWLEDGE_GRAPH_POOL_SIZE", "5")),
        )
