"""
Relational graph storage using SQLAlchemy.

The durable backend. Queries are parameterized SQLAlchemy Core
statements run on a pooled engine; blocking calls are moved off the
event loop with ``asyncio.to_thread``.

This class does not catch backend faults: ``FallbackStorage`` decides
what happens when a call raises.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, TypeVar

from sqlalchemy import create_engine, distinct, func, insert, select, update
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import IntegrityError

from ..models import (
    ChatMessage,
    ChatMessageCreate,
    Concept,
    ConceptCreate,
    ConceptRelationship,
    ConceptRelationshipCreate,
    KnowledgeGraph,
    User,
    UserCreate,
    UserProgress,
    UserProgressCreate,
    UserProgressUpdate,
    apply_progress_update,
    initial_progress_fields,
    utcnow,
)
from .base import BackendUnavailableError, NotFoundError
from .graph import GraphStorage
from .schema import (
    chat_messages,
    concept_relationships,
    concepts,
    metadata,
    user_progress,
    users,
)
from .seed import SEED_CONCEPTS, SEED_TIMESTAMP, resolve_seed_relationships


logger = logging.getLogger(__name__)

T = TypeVar("T")


def _values(row) -> Dict[str, Any]:
    values = dict(row._mapping)
    if "created_at" in values and values["created_at"] is None:
        del values["created_at"]
    return values


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class DatabaseStorage(GraphStorage):
    """
    SQLAlchemy-backed ``GraphStorage``.

    Build with ``DatabaseStorage.from_url`` for a pooled engine, or pass
    an existing ``Engine``.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine: Optional[Engine] = engine

    @classmethod
    def from_url(cls, connection_string: str, pool_size: int = 5) -> "DatabaseStorage":
        """
        Create the engine for ``connection_string``.

        Raises SQLAlchemy ``ArgumentError`` for a malformed URL and
        ``ImportError`` when the DBAPI driver is not installed.
        """
        url = make_url(connection_string)
        options: Dict[str, Any] = {"pool_pre_ping": True}
        if url.get_backend_name() != "sqlite":
            options.update(pool_size=pool_size, max_overflow=10)
        engine = create_engine(url, **options)
        logger.info(f"Database engine initialized for {url.get_backend_name()}")
        return cls(engine)

    # =========================================================
    # CONNECTION MANAGEMENT
    # =========================================================

    async def connect(self) -> None:
        await self._run(self._ping)

    async def disconnect(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.info("Database engine disposed")

    async def health_check(self) -> bool:
        try:
            await self._run(self._ping)
        except Exception as exc:
            logger.warning(f"Database health check failed: {exc}")
            return False
        return True

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    async def initialize(self, seed: bool = True) -> None:
        """Create missing tables and load the seed graph into an empty database."""
        await self._run(self._initialize, seed)

    # =========================================================
    # USERS
    # =========================================================

    async def get_user(self, user_id: int) -> Optional[User]:
        return await self._run(self._fetch_one, User, select(users).where(users.c.id == user_id))

    async def get_user_by_username(self, username: str) -> Optional[User]:
        return await self._run(
            self._fetch_one, User, select(users).where(users.c.username == username)
        )

    async def create_user(self, user: UserCreate) -> User:
        return await self._run(self._create_user, user)

    # =========================================================
    # CONCEPTS
    # =========================================================

    async def get_concept(self, concept_id: int) -> Optional[Concept]:
        return await self._run(
            self._fetch_one, Concept, select(concepts).where(concepts.c.id == concept_id)
        )

    async def get_concept_by_name(self, name: str) -> Optional[Concept]:
        return await self._run(
            self._fetch_one, Concept, select(concepts).where(concepts.c.name == name)
        )

    async def get_concepts(self) -> List[Concept]:
        return await self._run(self._fetch_all, Concept, select(concepts).order_by(concepts.c.id))

    async def get_concepts_by_domain(self, domain: str) -> List[Concept]:
        query = select(concepts).where(concepts.c.domain == domain).order_by(concepts.c.id)
        return await self._run(self._fetch_all, Concept, query)

    async def search_concepts(self, query: str) -> List[Concept]:
        if not query or not query.strip():
            return []
        statement = (
            select(concepts)
            .where(concepts.c.name.ilike(f"%{_escape_like(query)}%", escape="\\"))
            .order_by(concepts.c.id)
        )
        return await self._run(self._fetch_all, Concept, statement)

    async def create_concept(self, concept: ConceptCreate) -> Concept:
        return await self._run(self._create_concept, concept)

    # =========================================================
    # RELATIONSHIPS
    # =========================================================

    async def get_concept_relationship(
        self, relationship_id: int
    ) -> Optional[ConceptRelationship]:
        query = select(concept_relationships).where(concept_relationships.c.id == relationship_id)
        return await self._run(self._fetch_one, ConceptRelationship, query)

    async def get_concept_relationships(self, concept_id: int) -> List[ConceptRelationship]:
        query = (
            select(concept_relationships)
            .where(
                (concept_relationships.c.source_id == concept_id)
                | (concept_relationships.c.target_id == concept_id)
            )
            .order_by(concept_relationships.c.id)
        )
        return await self._run(self._fetch_all, ConceptRelationship, query)

    async def get_all_concept_relationships(self) -> List[ConceptRelationship]:
        query = select(concept_relationships).order_by(concept_relationships.c.id)
        return await self._run(self._fetch_all, ConceptRelationship, query)

    async def create_concept_relationship(
        self, relationship: ConceptRelationshipCreate
    ) -> Optional[ConceptRelationship]:
        return await self._run(self._create_relationship, relationship)

    # =========================================================
    # USER PROGRESS
    # =========================================================

    async def get_user_progress(self, user_id: int) -> List[UserProgress]:
        query = (
            select(user_progress)
            .where(user_progress.c.user_id == user_id)
            .order_by(user_progress.c.id)
        )
        return await self._run(self._fetch_all, UserProgress, query)

    async def get_user_progress_for_concept(
        self, user_id: int, concept_id: int
    ) -> Optional[UserProgress]:
        return await self._run(self._fetch_one, UserProgress, self._progress_pair(user_id, concept_id))

    async def create_user_progress(self, progress: UserProgressCreate) -> UserProgress:
        return await self._run(self._create_user_progress, progress)

    async def update_user_progress(
        self, progress_id: int, update: UserProgressUpdate
    ) -> UserProgress:
        return await self._run(self._update_user_progress, progress_id, update)

    # =========================================================
    # CHAT
    # =========================================================

    async def get_chat_messages(self, user_id: int, concept_id: int) -> List[ChatMessage]:
        query = (
            select(chat_messages)
            .where(
                (chat_messages.c.user_id == user_id)
                & (chat_messages.c.concept_id == concept_id)
            )
            .order_by(chat_messages.c.created_at, chat_messages.c.id)
        )
        return await self._run(self._fetch_all, ChatMessage, query)

    async def create_chat_message(self, message: ChatMessageCreate) -> ChatMessage:
        values = {**message.model_dump(), "created_at": utcnow()}
        new_id = await self._run(self._insert, chat_messages, values)
        return ChatMessage(id=new_id, **values)

    # =========================================================
    # GRAPH QUERIES
    # =========================================================

    async def get_domains(self) -> List[str]:
        return await self._run(self._fetch_domains)

    async def get_knowledge_graph(self) -> KnowledgeGraph:
        nodes = await self.get_concepts()
        relationships = await self.get_all_concept_relationships()
        return KnowledgeGraph.from_parts(nodes, relationships)

    # =========================================================
    # BLOCKING HELPERS (run in a worker thread)
    # =========================================================

    async def _run(self, fn: Callable[..., T], *args) -> T:
        if self._engine is None:
            raise BackendUnavailableError("Database engine is not available")
        return await asyncio.to_thread(fn, *args)

    def _ping(self) -> None:
        with self._engine.connect() as conn:
            conn.execute(select(1))

    def _fetch_one(self, model, query):
        with self._engine.connect() as conn:
            row = conn.execute(query).first()
        return model(**_values(row)) if row is not None else None

    def _fetch_all(self, model, query) -> list:
        with self._engine.connect() as conn:
            rows = conn.execute(query).all()
        return [model(**_values(row)) for row in rows]

    def _fetch_domains(self) -> List[str]:
        with self._engine.connect() as conn:
            rows = conn.execute(select(distinct(concepts.c.domain))).scalars().all()
        return sorted(rows)

    def _insert(self, table, values: Dict[str, Any]) -> int:
        with self._engine.begin() as conn:
            result = conn.execute(insert(table).values(**values))
        return result.inserted_primary_key[0]

    def _create_user(self, user: UserCreate) -> User:
        query = select(users).where(users.c.username == user.username)
        existing = self._fetch_one(User, query)
        if existing is not None:
            logger.warning(f"Username already taken, returning existing user: {user.username}")
            return existing

        values = {**user.model_dump(), "created_at": utcnow()}
        try:
            new_id = self._insert(users, values)
        except IntegrityError:
            # Lost a race against a concurrent insert of the same username.
            existing = self._fetch_one(User, query)
            if existing is None:
                raise
            return existing
        return User(id=new_id, **values)

    def _create_concept(self, concept: ConceptCreate) -> Concept:
        query = select(concepts).where(concepts.c.name == concept.name)
        existing = self._fetch_one(Concept, query)
        if existing is not None:
            logger.warning(f"Concept name already exists, returning existing: {concept.name}")
            return existing

        values = {**concept.model_dump(mode="json"), "created_at": utcnow()}
        try:
            new_id = self._insert(concepts, values)
        except IntegrityError:
            existing = self._fetch_one(Concept, query)
            if existing is None:
                raise
            return existing
        return Concept(id=new_id, **values)

    def _create_relationship(
        self, relationship: ConceptRelationshipCreate
    ) -> Optional[ConceptRelationship]:
        endpoints = {relationship.source_id, relationship.target_id}
        with self._engine.connect() as conn:
            found = set(
                conn.execute(select(concepts.c.id).where(concepts.c.id.in_(endpoints))).scalars()
            )
        missing = endpoints - found
        if missing:
            logger.warning(f"Relationship not created, unknown concept ID {min(missing)}")
            return None

        values = {**relationship.model_dump(mode="json"), "created_at": utcnow()}
        new_id = self._insert(concept_relationships, values)
        return ConceptRelationship(id=new_id, **values)

    @staticmethod
    def _progress_pair(user_id: int, concept_id: int):
        return select(user_progress).where(
            (user_progress.c.user_id == user_id)
            & (user_progress.c.concept_id == concept_id)
        )

    def _create_user_progress(self, progress: UserProgressCreate) -> UserProgress:
        try:
            return self._upsert_progress(progress)
        except IntegrityError:
            # unique(user_id, concept_id) rejected a concurrent insert; the row exists now
            logger.warning(
                f"Progress row for user {progress.user_id} concept {progress.concept_id} "
                f"created concurrently, retrying as update"
            )
            return self._upsert_progress(progress)

    def _upsert_progress(self, progress: UserProgressCreate) -> UserProgress:
        with self._engine.begin() as conn:
            row = conn.execute(self._progress_pair(progress.user_id, progress.concept_id)).first()
            if row is not None:
                change = UserProgressUpdate(
                    is_learned=progress.is_learned,
                    learned_at=progress.learned_at,
                )
                return self._write_progress(conn, UserProgress(**_values(row)), change)

            values = initial_progress_fields(progress)
            result = conn.execute(insert(user_progress).values(**values))
            return UserProgress(id=result.inserted_primary_key[0], **values)

    def _update_user_progress(self, progress_id: int, change: UserProgressUpdate) -> UserProgress:
        with self._engine.begin() as conn:
            row = conn.execute(select(user_progress).where(user_progress.c.id == progress_id)).first()
            if row is None:
                raise NotFoundError(f"User progress with ID {progress_id} not found")
            return self._write_progress(conn, UserProgress(**_values(row)), change)

    @staticmethod
    def _write_progress(conn, current: UserProgress, change: UserProgressUpdate) -> UserProgress:
        updated = apply_progress_update(current, change)
        conn.execute(
            update(user_progress)
            .where(user_progress.c.id == current.id)
            .values(is_learned=updated.is_learned, learned_at=updated.learned_at)
        )
        return updated

    def _initialize(self, seed: bool) -> None:
        metadata.create_all(self._engine)
        if not seed:
            return

        with self._engine.begin() as conn:
            count = conn.execute(select(func.count()).select_from(concepts)).scalar_one()
            if count:
                logger.info(f"Database already has {count} concepts, skipping seed")
                return

            name_to_id = {}
            for concept in SEED_CONCEPTS:
                values = {**concept.model_dump(mode="json"), "created_at": SEED_TIMESTAMP}
                result = conn.execute(insert(concepts).values(**values))
                name_to_id[concept.name] = result.inserted_primary_key[0]

            relationships = resolve_seed_relationships(name_to_id)
            for relationship in relationships:
                values = {**relationship.model_dump(mode="json"), "created_at": SEED_TIMESTAMP}
                conn.execute(insert(concept_relationships).values(**values))

        logger.info(
            f"Seeded database with {len(SEED_CONCEPTS)} concepts "
            f"and {len(relationships)} relationships"
        )
