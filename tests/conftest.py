"""
Pytest configuration for knowledge graph tests.

Provides storage fixtures shared by the unit tests and BDD step
definitions.
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from knowledge_graph import (
    ConceptCreate,
    ConceptRelationshipCreate,
    Difficulty,
    FallbackStorage,
    MemoryStorage,
    DatabaseStorage,
    RelationshipType,
)


class FlakyStorage(MemoryStorage):
    """
    Memory store whose named operations raise ``ConnectionError``.

    Stands in for a durable backend that is reachable for some calls
    and down for others.
    """

    def __init__(self, failing=(), seed: bool = False):
        super().__init__(seed=seed)
        self.failing = set(failing)

    def __getattribute__(self, name):
        failing = object.__getattribute__(self, "__dict__").get("failing", ())
        if name in failing:
            async def broken(*args, **kwargs):
                raise ConnectionError(f"{name}: connection refused")
            return broken
        return super().__getattribute__(name)


def make_concept(name: str, domain: str = "Physics", difficulty=Difficulty.BEGINNER) -> ConceptCreate:
    return ConceptCreate(
        name=name,
        domain=domain,
        difficulty=difficulty,
        description=f"About {name}",
    )


def prerequisite(source_id: int, target_id: int, strength: int = 5) -> ConceptRelationshipCreate:
    return ConceptRelationshipCreate(
        source_id=source_id,
        target_id=target_id,
        relationship_type=RelationshipType.PREREQUISITE,
        strength=strength,
    )


def related(source_id: int, target_id: int, strength: int = 5) -> ConceptRelationshipCreate:
    return ConceptRelationshipCreate(
        source_id=source_id,
        target_id=target_id,
        relationship_type=RelationshipType.RELATED,
        strength=strength,
    )


@pytest.fixture
def memory_storage():
    """Seeded in-memory store for each test."""
    return MemoryStorage()


@pytest.fixture
def empty_storage():
    """In-memory store without the seed graph."""
    return MemoryStorage(seed=False)


@pytest.fixture
def sqlite_engine():
    """Single-connection in-memory SQLite engine shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


@pytest.fixture
async def database_storage(sqlite_engine):
    """Seeded relational store on SQLite."""
    storage = DatabaseStorage(sqlite_engine)
    await storage.initialize(seed=True)
    yield storage
    await storage.disconnect()


@pytest.fixture
async def empty_database_storage(sqlite_engine):
    """Relational store with tables but no seed graph."""
    storage = DatabaseStorage(sqlite_engine)
    await storage.initialize(seed=False)
    yield storage
    await storage.disconnect()


@pytest.fixture
def degraded_storage():
    """Fallback adapter whose durable side was never available."""
    return FallbackStorage(primary=None, fallback=MemoryStorage())
