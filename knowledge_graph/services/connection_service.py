"""
Connection Service - classifies the neighbors of a concept.

A neighbor is a prerequisite when a prerequisite edge points from it to
the concept, and related when a related edge joins the two in either
direction. Both can hold at once.
"""

from typing import Dict, Iterable, List

from ..models import Concept, ConceptConnections, ConceptRelationship, RelationshipType
from ..storage import GraphStorage


def neighbor_ids(concept_id: int, relationships: Iterable[ConceptRelationship]) -> List[int]:
    """Distinct ids on the far side of each edge, in first-seen order."""
    seen: Dict[int, None] = {}
    for rel in relationships:
        if rel.touches(concept_id):
            seen.setdefault(rel.other_end(concept_id), None)
    return list(seen)


def classify_connections(
    concept_id: int,
    relationships: List[ConceptRelationship],
    neighbors: List[Concept],
) -> ConceptConnections:
    """
    Partition resolved neighbors into prerequisites and related concepts.

    Args:
        concept_id: The concept being inspected
        relationships: Edges touching the concept
        neighbors: Resolved neighbor concepts, in the order to report them

    Returns:
        ConceptConnections with both lists in ``neighbors`` order
    """
    prerequisite_ids = {
        rel.source_id
        for rel in relationships
        if rel.relationship_type == RelationshipType.PREREQUISITE
        and rel.target_id == concept_id
    }
    related_ids = {
        rel.other_end(concept_id)
        for rel in relationships
        if rel.relationship_type == RelationshipType.RELATED and rel.touches(concept_id)
    }
    return ConceptConnections(
        prerequisites=[c for c in neighbors if c.id in prerequisite_ids],
        related=[c for c in neighbors if c.id in related_ids],
    )


class ConnectionService:
    """Looks up and classifies the neighbors of concepts."""

    def __init__(self, graph_storage: GraphStorage):
        self._graph = graph_storage

    async def get_connections(self, concept_id: int) -> ConceptConnections:
        """
        Get the prerequisites and related concepts of a concept.

        Unknown concepts, and neighbors that no longer resolve, yield
        empty results rather than errors.
        """
        relationships = await self._graph.get_concept_relationships(concept_id)

        neighbors: List[Concept] = []
        for neighbor_id in neighbor_ids(concept_id, relationships):
            concept = await self._graph.get_concept(neighbor_id)
            if concept is not None:
                neighbors.append(concept)

        return classify_connections(concept_id, relationships, neighbors)
