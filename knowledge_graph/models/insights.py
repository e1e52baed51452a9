"""
Derived views computed from the graph.

These are produced by the services layer, never stored.
"""

from typing import List

from pydantic import BaseModel, Field

from .base import Concept


READY_TO_LEARN = "Ready to learn"


class ConceptConnections(BaseModel):
    """Neighbors of a concept split by how they relate to it."""

    prerequisites: List[Concept] = Field(default_factory=list)
    related: List[Concept] = Field(default_factory=list)


class Recommendation(BaseModel):
    """A concept the learner can start next, with a short justification."""

    concept: Concept
    reason: str = READY_TO_LEARN

    @staticmethod
    def connected_to(neighbor: Concept) -> str:
        return f"Connected to your {neighbor.name} knowledge"


class LearningContext(BaseModel):
    """
    Everything the explanation service needs about one concept
    for one learner.
    """

    concept: Concept
    prerequisites: List[Concept] = Field(default_factory=list)
    related: List[Concept] = Field(default_factory=list)
    known_concepts: List[Concept] = Field(default_factory=list)
