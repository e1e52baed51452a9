"""
Knowledge Graph Domain Models.

These are storage-agnostic Pydantic models representing
the core entities in the knowledge graph.
"""

from .base import (
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
    apply_progress_update,
    initial_progress_fields,
    utcnow,
)

from .insights import (
    READY_TO_LEARN,
    ConceptConnections,
    Recommendation,
    LearningContext,
)

__all__ = [
    # Enums
    "Difficulty",
    "RelationshipType",
    # Entities
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
    # Graph view
    "GraphLink",
    "KnowledgeGraph",
    # Progress rules
    "apply_progress_update",
    "initial_progress_fields",
    "utcnow",
    # Derived views
    "READY_TO_LEARN",
    "ConceptConnections",
    "Recommendation",
    "LearningContext",
]
