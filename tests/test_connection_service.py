"""
Tests for prerequisite/related classification of concept neighbors.
"""

import pytest

from knowledge_graph import Concept, ConceptRelationship, ConnectionService
from knowledge_graph.services import classify_connections
from knowledge_graph.services.connection_service import neighbor_ids

from conftest import make_concept, prerequisite, related


class TestConnectionService:

    @pytest.mark.asyncio
    async def test_seed_connections(self, memory_storage):
        service = ConnectionService(memory_storage)
        mechanics = await memory_storage.get_concept_by_name("Classical Mechanics")

        connections = await service.get_connections(mechanics.id)

        assert [c.name for c in connections.prerequisites] == ["Vector Calculus", "Basic Calculus"]
        assert [c.name for c in connections.related] == [
            "Newton's Laws",
            "Conservation Laws",
            "Kinematics",
            "Rotational Motion",
            "Differential Equations",
        ]

    @pytest.mark.asyncio
    async def test_dependents_are_not_prerequisites(self, memory_storage):
        service = ConnectionService(memory_storage)
        calculus = await memory_storage.get_concept_by_name("Basic Calculus")

        connections = await service.get_connections(calculus.id)

        # Basic Calculus is the source of every prerequisite edge it touches.
        assert connections.prerequisites == []
        assert connections.related == []

    @pytest.mark.asyncio
    async def test_neighbor_can_be_both(self, empty_storage):
        a = await empty_storage.create_concept(make_concept("A"))
        b = await empty_storage.create_concept(make_concept("B"))
        await empty_storage.create_concept_relationship(prerequisite(a.id, b.id))
        await empty_storage.create_concept_relationship(related(a.id, b.id))

        connections = await ConnectionService(empty_storage).get_connections(b.id)

        assert connections.prerequisites == [a]
        assert connections.related == [a]

    @pytest.mark.asyncio
    async def test_related_edge_read_from_target_side(self, empty_storage):
        a = await empty_storage.create_concept(make_concept("A"))
        b = await empty_storage.create_concept(make_concept("B"))
        await empty_storage.create_concept_relationship(related(a.id, b.id))

        connections = await ConnectionService(empty_storage).get_connections(b.id)

        assert connections.related == [a]
        assert connections.prerequisites == []

    @pytest.mark.asyncio
    async def test_unknown_concept_is_empty(self, memory_storage):
        connections = await ConnectionService(memory_storage).get_connections(999)
        assert connections.prerequisites == []
        assert connections.related == []


class TestClassification:

    def _edge(self, edge_id, source, target, kind):
        return ConceptRelationship(
            id=edge_id, source_id=source, target_id=target, relationship_type=kind, strength=5
        )

    def test_neighbor_ids_deduplicated_in_first_seen_order(self):
        edges = [
            self._edge(1, 5, 1, "related"),
            self._edge(2, 1, 3, "related"),
            self._edge(3, 5, 1, "prerequisite"),
        ]
        assert neighbor_ids(1, edges) == [5, 3]

    def test_unresolved_neighbors_are_skipped(self):
        edges = [self._edge(1, 2, 1, "prerequisite"), self._edge(2, 9, 1, "prerequisite")]
        resolved = [Concept(id=2, **make_concept("Two").model_dump())]

        connections = classify_connections(1, edges, resolved)

        assert [c.id for c in connections.prerequisites] == [2]
        assert connections.related == []
