"""
Graph storage interface for the knowledge graph.

Every component above the storage layer talks to a ``GraphStorage``.
Apart from ``NotFoundError`` no operation raises: backend faults are
absorbed by the fallback adapter.
"""

from abc import ABC, abstractmethod
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
from .base import StorageBackend


class GraphStorage(StorageBackend, ABC):
    """
    Abstract interface for knowledge graph storage operations.

    Implemented by the in-memory store, the relational store and
    the adapter that routes between them.
    """

    # =========================================================
    # USERS
    # =========================================================

    @abstractmethod
    async def get_user(self, user_id: int) -> Optional[User]:
        """Get a user by ID."""
        pass

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[User]:
        """Get a user by username."""
        pass

    @abstractmethod
    async def create_user(self, user: UserCreate) -> User:
        """Create a user. An existing username returns the stored user."""
        pass

    # =========================================================
    # CONCEPTS
    # =========================================================

    @abstractmethod
    async def get_concept(self, concept_id: int) -> Optional[Concept]:
        """Get a concept by ID."""
        pass

    @abstractmethod
    async def get_concept_by_name(self, name: str) -> Optional[Concept]:
        """Get a concept by its exact name."""
        pass

    @abstractmethod
    async def get_concepts(self) -> List[Concept]:
        """List all concepts in creation order."""
        pass

    @abstractmethod
    async def get_concepts_by_domain(self, domain: str) -> List[Concept]:
        """List concepts whose domain equals ``domain``."""
        pass

    @abstractmethod
    async def search_concepts(self, query: str) -> List[Concept]:
        """Case-insensitive substring match on name. Blank query matches nothing."""
        pass

    @abstractmethod
    async def create_concept(self, concept: ConceptCreate) -> Concept:
        """Create a concept. An existing name returns the stored concept."""
        pass

    # =========================================================
    # RELATIONSHIPS
    # =========================================================

    @abstractmethod
    async def get_concept_relationship(
        self, relationship_id: int
    ) -> Optional[ConceptRelationship]:
        """Get a relationship by ID."""
        pass

    @abstractmethod
    async def get_concept_relationships(self, concept_id: int) -> List[ConceptRelationship]:
        """Get every edge where the concept is the source or the target."""
        pass

    @abstractmethod
    async def get_all_concept_relationships(self) -> List[ConceptRelationship]:
        """List all edges in creation order."""
        pass

    @abstractmethod
    async def create_concept_relationship(
        self, relationship: ConceptRelationshipCreate
    ) -> Optional[ConceptRelationship]:
        """
        Create an edge.

        Returns None, without storing anything, if either endpoint
        concept does not exist.
        """
        pass

    # =========================================================
    # USER PROGRESS
    # =========================================================

    @abstractmethod
    async def get_user_progress(self, user_id: int) -> List[UserProgress]:
        """List all progress rows for a user."""
        pass

    @abstractmethod
    async def get_user_progress_for_concept(
        self, user_id: int, concept_id: int
    ) -> Optional[UserProgress]:
        """Get the progress row for a (user, concept) pair."""
        pass

    @abstractmethod
    async def create_user_progress(self, progress: UserProgressCreate) -> UserProgress:
        """Create progress for a pair, or update the existing row for it."""
        pass

    @abstractmethod
    async def update_user_progress(
        self, progress_id: int, update: UserProgressUpdate
    ) -> UserProgress:
        """
        Apply a partial update to a progress row.

        Raises:
            NotFoundError: If no row has ``progress_id``
        """
        pass

    # =========================================================
    # CHAT
    # =========================================================

    @abstractmethod
    async def get_chat_messages(self, user_id: int, concept_id: int) -> List[ChatMessage]:
        """List messages for a (user, concept) pair, oldest first."""
        pass

    @abstractmethod
    async def create_chat_message(self, message: ChatMessageCreate) -> ChatMessage:
        """Store a chat message."""
        pass

    # =========================================================
    # GRAPH QUERIES
    # =========================================================

    @abstractmethod
    async def get_domains(self) -> List[str]:
        """Distinct concept domains, sorted."""
        pass

    @abstractmethod
    async def get_knowledge_graph(self) -> KnowledgeGraph:
        """All concepts plus all edges as id-based links."""
        pass
