"""
In-memory graph storage.

Deterministic, always available, and pre-populated with the seed graph.
Used as the only backend when no database is configured and as the
fallback target of ``FallbackStorage``.

No method awaits while mutating state, so each call is atomic with
respect to other coroutines in the process.
"""

import itertools
import logging
from datetime import datetime
from typing import Dict, List, Optional

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
from .base import NotFoundError
from .graph import GraphStorage
from .seed import SEED_CONCEPTS, SEED_TIMESTAMP, resolve_seed_relationships


logger = logging.getLogger(__name__)


class MemoryStorage(GraphStorage):
    """
    Dict-backed ``GraphStorage``.

    Ids are assigned from a per-entity counter starting at 1. Dicts keep
    insertion order, which is the enumeration order of every listing.
    """

    def __init__(self, seed: bool = True) -> None:
        self._users: Dict[int, User] = {}
        self._concepts: Dict[int, Concept] = {}
        self._relationships: Dict[int, ConceptRelationship] = {}
        self._progress: Dict[int, UserProgress] = {}
        self._messages: Dict[int, ChatMessage] = {}

        self._user_ids = itertools.count(1)
        self._concept_ids = itertools.count(1)
        self._relationship_ids = itertools.count(1)
        self._progress_ids = itertools.count(1)
        self._message_ids = itertools.count(1)

        self._connected = True

        if seed:
            self._seed()

    # =========================================================
    # CONNECTION MANAGEMENT
    # =========================================================

    async def connect(self) -> None:
        self._connected = True

    async def disconnect(self) -> None:
        self._connected = False

    async def health_check(self) -> bool:
        return True

    @property
    def is_connected(self) -> bool:
        return self._connected

    # =========================================================
    # USERS
    # =========================================================

    async def get_user(self, user_id: int) -> Optional[User]:
        return self._users.get(user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        return self._find_user(username)

    async def create_user(self, user: UserCreate) -> User:
        existing = self._find_user(user.username)
        if existing is not None:
            logger.warning(f"Username already taken, returning existing user: {user.username}")
            return existing
        created = User(id=next(self._user_ids), created_at=utcnow(), **user.model_dump())
        self._users[created.id] = created
        logger.info(f"Created user: {created.id}")
        return created

    # =========================================================
    # CONCEPTS
    # =========================================================

    async def get_concept(self, concept_id: int) -> Optional[Concept]:
        return self._concepts.get(concept_id)

    async def get_concept_by_name(self, name: str) -> Optional[Concept]:
        return self._find_concept_by_name(name)

    async def get_concepts(self) -> List[Concept]:
        return list(self._concepts.values())

    async def get_concepts_by_domain(self, domain: str) -> List[Concept]:
        return [c for c in self._concepts.values() if c.domain == domain]

    async def search_concepts(self, query: str) -> List[Concept]:
        if not query or not query.strip():
            return []
        needle = query.lower()
        return [c for c in self._concepts.values() if needle in c.name.lower()]

    async def create_concept(self, concept: ConceptCreate) -> Concept:
        return self._insert_concept(concept, utcnow())

    # =========================================================
    # RELATIONSHIPS
    # =========================================================

    async def get_concept_relationship(
        self, relationship_id: int
    ) -> Optional[ConceptRelationship]:
        return self._relationships.get(relationship_id)

    async def get_concept_relationships(self, concept_id: int) -> List[ConceptRelationship]:
        return [r for r in self._relationships.values() if r.touches(concept_id)]

    async def get_all_concept_relationships(self) -> List[ConceptRelationship]:
        return list(self._relationships.values())

    async def create_concept_relationship(
        self, relationship: ConceptRelationshipCreate
    ) -> Optional[ConceptRelationship]:
        return self._insert_relationship(relationship, utcnow())

    # =========================================================
    # USER PROGRESS
    # =========================================================

    async def get_user_progress(self, user_id: int) -> List[UserProgress]:
        return [p for p in self._progress.values() if p.user_id == user_id]

    async def get_user_progress_for_concept(
        self, user_id: int, concept_id: int
    ) -> Optional[UserProgress]:
        return self._find_progress(user_id, concept_id)

    async def create_user_progress(self, progress: UserProgressCreate) -> UserProgress:
        existing = self._find_progress(progress.user_id, progress.concept_id)
        if existing is not None:
            # One row per (user, concept): creating again updates in place.
            update = UserProgressUpdate(
                is_learned=progress.is_learned,
                learned_at=progress.learned_at,
            )
            return self._replace_progress(existing, update)

        created = UserProgress(id=next(self._progress_ids), **initial_progress_fields(progress))
        self._progress[created.id] = created
        logger.info(
            f"Created progress {created.id}: user {created.user_id} "
            f"concept {created.concept_id} learned={created.is_learned}"
        )
        return created

    async def update_user_progress(
        self, progress_id: int, update: UserProgressUpdate
    ) -> UserProgress:
        existing = self._progress.get(progress_id)
        if existing is None:
            raise NotFoundError(f"User progress with ID {progress_id} not found")
        return self._replace_progress(existing, update)

    # =========================================================
    # CHAT
    # =========================================================

    async def get_chat_messages(self, user_id: int, concept_id: int) -> List[ChatMessage]:
        messages = [
            m for m in self._messages.values()
            if m.user_id == user_id and m.concept_id == concept_id
        ]
        return sorted(messages, key=lambda m: (m.created_at, m.id))

    async def create_chat_message(self, message: ChatMessageCreate) -> ChatMessage:
        created = ChatMessage(id=next(self._message_ids), created_at=utcnow(), **message.model_dump())
        self._messages[created.id] = created
        return created

    # =========================================================
    # GRAPH QUERIES
    # =========================================================

    async def get_domains(self) -> List[str]:
        return sorted({c.domain for c in self._concepts.values()})

    async def get_knowledge_graph(self) -> KnowledgeGraph:
        return KnowledgeGraph.from_parts(
            list(self._concepts.values()),
            list(self._relationships.values()),
        )

    # =========================================================
    # INTERNALS
    # =========================================================

    def _find_user(self, username: str) -> Optional[User]:
        return next((u for u in self._users.values() if u.username == username), None)

    def _find_concept_by_name(self, name: str) -> Optional[Concept]:
        return next((c for c in self._concepts.values() if c.name == name), None)

    def _find_progress(self, user_id: int, concept_id: int) -> Optional[UserProgress]:
        return next(
            (
                p for p in self._progress.values()
                if p.user_id == user_id and p.concept_id == concept_id
            ),
            None,
        )

    def _insert_concept(self, concept: ConceptCreate, created_at: datetime) -> Concept:
        existing = self._find_concept_by_name(concept.name)
        if existing is not None:
            logger.warning(f"Concept name already exists, returning existing: {concept.name}")
            return existing
        created = Concept(id=next(self._concept_ids), created_at=created_at, **concept.model_dump())
        self._concepts[created.id] = created
        logger.debug(f"Created concept: {created.id} - {created.name}")
        return created

    def _insert_relationship(
        self,
        relationship: ConceptRelationshipCreate,
        created_at: datetime,
    ) -> Optional[ConceptRelationship]:
        endpoints = (relationship.source_id, relationship.target_id)
        missing = [e for e in endpoints if e not in self._concepts]
        if missing:
            logger.warning(f"Relationship not created, unknown concept ID {missing[0]}")
            return None
        created = ConceptRelationship(
            id=next(self._relationship_ids),
            created_at=created_at,
            **relationship.model_dump(),
        )
        self._relationships[created.id] = created
        logger.debug(
            f"Created relationship: {created.source_id} -[{created.relationship_type.value}]-> "
            f"{created.target_id}"
        )
        return created

    def _replace_progress(
        self,
        existing: UserProgress,
        update: UserProgressUpdate,
    ) -> UserProgress:
        updated = apply_progress_update(existing, update)
        self._progress[updated.id] = updated
        logger.info(f"Updated progress {updated.id}: learned={updated.is_learned}")
        return updated

    def _seed(self) -> None:
        """Load the seed graph with a fixed timestamp."""
        name_to_id = {}
        for concept in SEED_CONCEPTS:
            created = self._insert_concept(concept, SEED_TIMESTAMP)
            name_to_id[created.name] = created.id
        for relationship in resolve_seed_relationships(name_to_id):
            self._insert_relationship(relationship, SEED_TIMESTAMP)
        logger.info(
            f"Seeded in-memory graph with {len(self._concepts)} concepts "
            f"and {len(self._relationships)} relationships"
        )
