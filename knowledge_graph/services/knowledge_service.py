"""
Knowledge Service - main facade for knowledge graph operations.

Built once at process start and handed to the route layer. Exposes the
storage operations plus connection classification, recommendations and
the learning context used by the explanation service.
"""

from typing import Dict, List, Optional

from ..config import StorageSettings
from ..models import (
    ChatMessage,
    ChatMessageCreate,
    Concept,
    ConceptConnections,
    ConceptCreate,
    ConceptRelationship,
    ConceptRelationshipCreate,
    KnowledgeGraph,
    LearningContext,
    Recommendation,
    User,
    UserCreate,
    UserProgress,
    UserProgressCreate,
    UserProgressUpdate,
)
from ..storage import GraphStorage, create_storage
from .connection_service import ConnectionService
from .recommendation_service import RecommendationService


class KnowledgeService:
    """
    Main facade for knowledge graph operations.

    Wraps a single ``GraphStorage`` chosen at construction. The only
    error it lets through is ``NotFoundError``.
    """

    def __init__(self, graph_storage: GraphStorage):
        self._graph = graph_storage
        self._connections = ConnectionService(graph_storage)
        self._recommendations = RecommendationService(graph_storage)

    @classmethod
    async def from_settings(cls, settings: Optional[StorageSettings] = None) -> "KnowledgeService":
        """Select the backend from settings (or the environment) and wrap it."""
        return cls(await create_storage(settings))

    @property
    def storage(self) -> GraphStorage:
        return self._graph

    # =========================================================
    # USERS
    # =========================================================

    async def get_user(self, user_id: int) -> Optional[User]:
        return await self._graph.get_user(user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        return await self._graph.get_user_by_username(username)

    async def create_user(self, user: UserCreate) -> User:
        return await self._graph.create_user(user)

    # =========================================================
    # CONCEPTS
    # =========================================================

    async def get_concept(self, concept_id: int) -> Optional[Concept]:
        return await self._graph.get_concept(concept_id)

    async def get_concept_by_name(self, name: str) -> Optional[Concept]:
        return await self._graph.get_concept_by_name(name)

    async def get_concepts(self) -> List[Concept]:
        return await self._graph.get_concepts()

    async def get_concepts_by_domain(self, domain: str) -> List[Concept]:
        return await self._graph.get_concepts_by_domain(domain)

    async def search_concepts(self, query: str) -> List[Concept]:
        """Case-insensitive name search. A blank query returns nothing."""
        if not query or not query.strip():
            return []
        return await self._graph.search_concepts(query)

    async def create_concept(self, concept: ConceptCreate) -> Concept:
        return await self._graph.create_concept(concept)

    async def get_domains(self) -> List[str]:
        return await self._graph.get_domains()

    # =========================================================
    # RELATIONSHIPS
    # =========================================================

    async def get_concept_relationship(
        self, relationship_id: int
    ) -> Optional[ConceptRelationship]:
        return await self._graph.get_concept_relationship(relationship_id)

    async def get_concept_relationships(self, concept_id: int) -> List[ConceptRelationship]:
        return await self._graph.get_concept_relationships(concept_id)

    async def create_concept_relationship(
        self, relationship: ConceptRelationshipCreate
    ) -> Optional[ConceptRelationship]:
        return await self._graph.create_concept_relationship(relationship)

    async def get_knowledge_graph(self) -> KnowledgeGraph:
        return await self._graph.get_knowledge_graph()

    async def get_connections(self, concept_id: int) -> ConceptConnections:
        """Prerequisites and related concepts of a concept."""
        return await self._connections.get_connections(concept_id)

    # =========================================================
    # PROGRESS
    # =========================================================

    async def get_user_progress(self, user_id: int) -> List[UserProgress]:
        return await self._graph.get_user_progress(user_id)

    async def get_user_progress_for_concept(
        self, user_id: int, concept_id: int
    ) -> Optional[UserProgress]:
        return await self._graph.get_user_progress_for_concept(user_id, concept_id)

    async def create_user_progress(self, progress: UserProgressCreate) -> UserProgress:
        return await self._graph.create_user_progress(progress)

    async def update_user_progress(
        self, progress_id: int, update: UserProgressUpdate
    ) -> UserProgress:
        """
        Update a progress row.

        Raises:
            NotFoundError: If ``progress_id`` does not exist
        """
        return await self._graph.update_user_progress(progress_id, update)

    async def set_concept_learned(
        self,
        user_id: int,
        concept_id: int,
        is_learned: bool = True,
    ) -> UserProgress:
        """Mark a concept learned or unlearned, creating the row on first use."""
        existing = await self._graph.get_user_progress_for_concept(user_id, concept_id)
        if existing is not None:
            return await self._graph.update_user_progress(
                existing.id, UserProgressUpdate(is_learned=is_learned)
            )
        return await self._graph.create_user_progress(
            UserProgressCreate(user_id=user_id, concept_id=concept_id, is_learned=is_learned)
        )

    async def get_recommendations(self, user_id: int) -> List[Recommendation]:
        """Up to five concepts the user can learn next."""
        return await self._recommendations.recommend(user_id)

    # =========================================================
    # EXPLANATION CONTEXT
    # =========================================================

    async def get_learning_context(
        self,
        user_id: int,
        concept_id: int,
    ) -> Optional[LearningContext]:
        """
        Gather the concept, its connections and the user's learned concepts.

        Returns None if the concept does not exist.
        """
        concept = await self._graph.get_concept(concept_id)
        if concept is None:
            return None

        connections = await self._connections.get_connections(concept_id)

        known: List[Concept] = []
        for learned_id in await self._recommendations.learned_concept_ids(user_id):
            learned = await self._graph.get_concept(learned_id)
            if learned is not None:
                known.append(learned)

        return LearningContext(
            concept=concept,
            prerequisites=connections.prerequisites,
            related=connections.related,
            known_concepts=known,
        )

    # =========================================================
    # CHAT
    # =========================================================

    async def get_chat_messages(self, user_id: int, concept_id: int) -> List[ChatMessage]:
        return await self._graph.get_chat_messages(user_id, concept_id)

    async def create_chat_message(self, message: ChatMessageCreate) -> ChatMessage:
        return await self._graph.create_chat_message(message)

    # =========================================================
    # CONNECTION MANAGEMENT
    # =========================================================

    async def connect(self) -> None:
        await self._graph.connect()

    async def disconnect(self) -> None:
        await self._graph.disconnect()

    async def health_check(self) -> Dict[str, bool]:
        """Check health of the storage backend."""
        return {"graph": await self._graph.health_check()}
