"""
Recommendation Service - what a learner can study next.

``recommend_concepts`` is a pure function of the graph and a learned-id
set. It is recomputed on every call and is deterministic for identical
inputs in identical enumeration order.
"""

from typing import Dict, Iterable, List, Set

from ..models import (
    READY_TO_LEARN,
    Concept,
    ConceptRelationship,
    Recommendation,
    RelationshipType,
)
from ..storage import GraphStorage


DEFAULT_LIMIT = 5


def prerequisite_ids(concept_id: int, relationships: Iterable[ConceptRelationship]) -> Set[int]:
    """Sources of prerequisite edges that target ``concept_id``."""
    return {
        rel.source_id
        for rel in relationships
        if rel.relationship_type == RelationshipType.PREREQUISITE and rel.target_id == concept_id
    }


def _reason(
    concept: Concept,
    relationships: List[ConceptRelationship],
    learned: Set[int],
    by_id: Dict[int, Concept],
) -> str:
    # First related edge, in enumeration order, whose other end is learned.
    for rel in relationships:
        if rel.relationship_type != RelationshipType.RELATED or not rel.touches(concept.id):
            continue
        neighbor_id = rel.other_end(concept.id)
        if neighbor_id in learned:
            neighbor = by_id.get(neighbor_id)
            if neighbor is not None:
                return Recommendation.connected_to(neighbor)
            break
    return READY_TO_LEARN


def recommend_concepts(
    concepts: List[Concept],
    relationships: List[ConceptRelationship],
    learned_ids: Iterable[int],
    limit: int = DEFAULT_LIMIT,
) -> List[Recommendation]:
    """
    Rank unlearned concepts whose prerequisites are all learned.

    Args:
        concepts: Every concept, in enumeration order
        relationships: Every edge, in enumeration order
        learned_ids: Ids of concepts the learner has learned
        limit: Maximum number of recommendations

    Returns:
        Candidates from domains the learner has started come first;
        order is otherwise the order of ``concepts``.
    """
    learned = set(learned_ids)
    by_id = {c.id: c for c in concepts}

    candidates: List[Recommendation] = []
    for concept in concepts:
        if concept.id in learned:
            continue
        if not prerequisite_ids(concept.id, relationships) <= learned:
            continue
        candidates.append(
            Recommendation(
                concept=concept,
                reason=_reason(concept, relationships, learned, by_id),
            )
        )

    started_domains = {by_id[cid].domain for cid in learned if cid in by_id}
    # Stable partition, not a comparator sort.
    started = [r for r in candidates if r.concept.domain in started_domains]
    fresh = [r for r in candidates if r.concept.domain not in started_domains]
    return (started + fresh)[:limit]


class RecommendationService:
    """Builds recommendations for a user from the stored graph and progress."""

    def __init__(self, graph_storage: GraphStorage, limit: int = DEFAULT_LIMIT):
        self._graph = graph_storage
        self._limit = limit

    async def learned_concept_ids(self, user_id: int) -> List[int]:
        progress = await self._graph.get_user_progress(user_id)
        return [p.concept_id for p in progress if p.is_learned]

    async def recommend(self, user_id: int) -> List[Recommendation]:
        """Recommendations for ``user_id`` against the current graph."""
        learned = await self.learned_concept_ids(user_id)
        concepts = await self._graph.get_concepts()
        relationships = await self._graph.get_all_concept_relationships()
        return recommend_concepts(concepts, relationships, learned, limit=self._limit)
