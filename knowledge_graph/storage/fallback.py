"""
Durable storage with in-memory fallback.

``FallbackStorage`` routes every call to the durable backend first and
re-issues the identical call on the memory backend when the durable
backend is missing or raises. The decision is made per call; there is
no global mode switch and no reconnection.

Writes accepted by the fallback are not copied back to the durable
store once it recovers.
"""

import functools
import logging
from typing import List, Optional

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
)
from .base import NotFoundError
from .graph import GraphStorage
from .memory import MemoryStorage


logger = logging.getLogger(__name__)


def with_fallback(method):
    """
    Route a ``FallbackStorage`` method to the primary, then the fallback.

    The decorated body is never executed; the method's name selects the
    operation on both backends. ``NotFoundError`` from the primary is a
    result, not a fault, and is re-raised.
    """
    name = method.__name__

    @functools.wraps(method)
    async def wrapper(self: "FallbackStorage", *args, **kwargs):
        primary = self.primary
        if primary is None:
            logger.warning(f"{name}: durable storage unavailable, using in-memory storage")
            return await getattr(self.fallback, name)(*args, **kwargs)

        try:
            return await getattr(primary, name)(*args, **kwargs)
        except NotFoundError:
            raise
        except Exception:
            logger.error(
                f"{name}: durable storage failed, falling back to in-memory storage",
                exc_info=True,
            )
            self.fallback_count += 1
            return await getattr(self.fallback, name)(*args, **kwargs)

    return wrapper


class FallbackStorage(GraphStorage):
    """
    ``GraphStorage`` adapter over a durable backend and a memory backend.

    ``primary`` is fixed at construction. ``None`` means the durable
    store could not be set up and every call goes to ``fallback``.
    """

    def __init__(
        self,
        primary: Optional[GraphStorage],
        fallback: Optional[MemoryStorage] = None,
    ):
        self.primary = primary
        self.fallback = fallback if fallback is not None else MemoryStorage()
        self.fallback_count = 0

    @property
    def durable_available(self) -> bool:
        return self.primary is not None

    # =========================================================
    # CONNECTION MANAGEMENT
    # =========================================================

    async def connect(self) -> None:
        await self.fallback.connect()
        if self.primary is None:
            return
        try:
            await self.primary.connect()
        except Exception:
            logger.error("Durable storage did not connect, serving from memory", exc_info=True)

    async def disconnect(self) -> None:
        if self.primary is not None:
            await self.primary.disconnect()
        await self.fallback.disconnect()

    async def health_check(self) -> bool:
        # Always servable: the memory backend answers when the database cannot.
        return await self.fallback.health_check()

    @property
    def is_connected(self) -> bool:
        return self.fallback.is_connected

    # =========================================================
    # USERS
    # =========================================================

    @with_fallback
    async def get_user(self, user_id: int) -> Optional[User]: ...

    @with_fallback
    async def get_user_by_username(self, username: str) -> Optional[User]: ...

    @with_fallback
    async def create_user(self, user: UserCreate) -> User: ...

    # =========================================================
    # CONCEPTS
    # =========================================================

    @with_fallback
    async def get_concept(self, concept_id: int) -> Optional[Concept]: ...

    @with_fallback
    async def get_concept_by_name(self, name: str) -> Optional[Concept]: ...

    @with_fallback
    async def get_concepts(self) -> List[Concept]: ...

    @with_fallback
    async def get_concepts_by_domain(self, domain: str) -> List[Concept]: ...

    @with_fallback
    async def search_concepts(self, query: str) -> List[Concept]: ...

    @with_fallback
    async def create_concept(self, concept: ConceptCreate) -> Concept: ...

    # =========================================================
    # RELATIONSHIPS
    # =========================================================

    @with_fallback
    async def get_concept_relationship(
        self, relationship_id: int
    ) -> Optional[ConceptRelationship]: ...

    @with_fallback
    async def get_concept_relationships(self, concept_id: int) -> List[ConceptRelationship]: ...

    @with_fallback
    async def get_all_concept_relationships(self) -> List[ConceptRelationship]: ...

    @with_fallback
    async def create_concept_relationship(
        self, relationship: ConceptRelationshipCreate
    ) -> Optional[ConceptRelationship]: ...

    # =========================================================
    # USER PROGRESS
    # =========================================================

    @with_fallback
    async def get_user_progress(self, user_id: int) -> List[UserProgress]: ...

    @with_fallback
    async def get_user_progress_for_concept(
        self, user_id: int, concept_id: int
    ) -> Optional[UserProgress]: ...

    @with_fallback
    async def create_user_progress(self, progress: UserProgressCreate) -> UserProgress: ...

    @with_fallback
    async def update_user_progress(
        self, progress_id: int, update: UserProgressUpdate
    ) -> UserProgress: ...

    # =========================================================
    # CHAT
    # =========================================================

    @with_fallback
    async def get_chat_messages(self, user_id: int, concept_id: int) -> List[ChatMessage]: ...

    @with_fallback
    async def create_chat_message(self, message: ChatMessageCreate) -> ChatMessage: ...

    # =========================================================
    # GRAPH QUERIES
    # =========================================================

    @with_fallback
    async def get_domains(self) -> List[str]: ...

    async def get_knowledge_graph(self) -> KnowledgeGraph:
        """
        Assemble nodes and links, each from whichever backend answers.

        Durable nodes can end up paired with fallback links. Links whose
        endpoints are not among the returned nodes are dropped.
        """
        if self.primary is None:
            logger.warning("get_knowledge_graph: durable storage unavailable, using in-memory storage")
            return await self.fallback.get_knowledge_graph()

        try:
            nodes = await self.primary.get_concepts()
        except Exception:
            logger.error(
                "get_knowledge_graph: durable nodes failed, using in-memory graph",
                exc_info=True,
            )
            self.fallback_count += 1
            return await self.fallback.get_knowledge_graph()

        try:
            relationships = await self.primary.get_all_concept_relationships()
        except Exception:
            logger.error(
                "get_knowledge_graph: durable links failed, pairing durable nodes with in-memory links",
                exc_info=True,
            )
            self.fallback_count += 1
            relationships = await self.fallback.get_all_concept_relationships()
            return self._drop_orphan_links(KnowledgeGraph.from_parts(nodes, relationships))

        return KnowledgeGraph.from_parts(nodes, relationships)

    @staticmethod
    def _drop_orphan_links(graph: KnowledgeGraph) -> KnowledgeGraph:
        orphans = graph.orphan_links()
        if not orphans:
            return graph
        logger.warning(
            f"Mixed-provenance graph: dropping {len(orphans)} of {len(graph.links)} links "
            f"that reference nodes absent from the durable node set"
        )
        return KnowledgeGraph(
            nodes=graph.nodes,
            links=[link for link in graph.links if link not in orphans],
        )
