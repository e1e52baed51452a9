"""
Knowledge Graph Core.

Stores concepts and their prerequisite/related relationships, tracks
learner progress, and recommends what to learn next.

Storage is a relational database (via SQLAlchemy) with an in-memory
fallback, behind a single interface. Without a configured database the
in-memory store is used on its own.

Quick Start:
    from knowledge_graph import KnowledgeService

    service = await KnowledgeService.from_settings()
    graph = await service.get_knowledge_graph()
    recommendations = await service.get_recommendations(user_id=1)

For a database, set environment variables:
    KNOWLEDGE_GRAPH_DATABASE_URL=postgresql://...
"""

from .config import StorageSettings

from .models import (
    Difficulty,
    RelationshipType,
    User,
    UserCreate,
    Concept,
    ConceptCreate,
    ConceptRelationship,
    ConceptRelationshipCreate,
    UserProgress,
    UserProgressCreate,
    UserProgressUpdate,
    ChatMessage,
    ChatMessageCreate,
    GraphLink,
    KnowledgeGraph,
    ConceptConnections,
    Recommendation,
    LearningContext,
)

from .storage import (
    StorageBackend,
    StorageError,
    NotFoundError,
    BackendUnavailableError,
    GraphStorage,
    MemoryStorage,
    DatabaseStorage,
    FallbackStorage,
    create_storage,
)

from .services import (
    KnowledgeService,
    ConnectionService,
    RecommendationService,
    recommend_concepts,
)

__all__ = [
    # Config
    "StorageSettings",
    # Models
    "Difficulty",
    "RelationshipType",
    "User",
    "UserCreate",
    "Concept",
    "ConceptCreate",
    "ConceptRelationship",
    "ConceptRelationshipCreate",
    "UserProgress",
    "UserProgressCreate",
    "UserProgressUpdate",
    "ChatMessage",
    "ChatMessageCreate",
    "GraphLink",
    "KnowledgeGraph",
    "ConceptConnections",
    "Recommendation",
    "LearningContext",
    # Storage
    "StorageBackend",
    "StorageError",
    "NotFoundError",
    "BackendUnavailableError",
    "GraphStorage",
    "MemoryStorage",
    "DatabaseStorage",
    "FallbackStorage",
    "create_storage",
    # Services
    "KnowledgeService",
    "ConnectionService",
    "RecommendationService",
    "recommend_concepts",
]
