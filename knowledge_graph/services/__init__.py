"""
Services layer for the knowledge graph.

Provides high-level operations that coordinate the storage backend.
"""

from .knowledge_service import KnowledgeService
from .connection_service import ConnectionService, classify_connections
from .recommendation_service import RecommendationService, recommend_concepts

__all__ = [
    "KnowledgeService",
    "ConnectionService",
    "RecommendationService",
    "classify_connections",
    "recommend_concepts",
]
