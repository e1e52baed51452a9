"""
Storage contract tests.

Every test runs against both the in-memory store and the relational
store (on SQLite), so the two backends are held to the same behavior.
"""

import logging

import pytest

from knowledge_graph import (
    BackendUnavailableError,
    ChatMessageCreate,
    DatabaseStorage,
    MemoryStorage,
    NotFoundError,
    UserCreate,
    UserProgressCreate,
    UserProgressUpdate,
)

from conftest import make_concept, prerequisite, related


SEED_DOMAINS = [
    "Computer Science",
    "Economics",
    "Human Science",
    "Mathematics",
    "Physics",
    "Psychology",
    "Sociology",
]


@pytest.fixture(params=["memory", "database"])
async def storage(request, sqlite_engine):
    if request.param == "memory":
        yield MemoryStorage()
        return
    database = DatabaseStorage(sqlite_engine)
    await database.initialize(seed=True)
    yield database
    await database.disconnect()


class TestSeedGraph:
    """Both backends start from the same seed graph."""

    @pytest.mark.asyncio
    async def test_seed_counts(self, storage):
        assert len(await storage.get_concepts()) == 22
        assert len(await storage.get_all_concept_relationships()) == 24

    @pytest.mark.asyncio
    async def test_domains_sorted_and_distinct(self, storage):
        assert await storage.get_domains() == SEED_DOMAINS

    @pytest.mark.asyncio
    async def test_enumeration_follows_insertion_order(self, storage):
        concepts = await storage.get_concepts()
        assert concepts[0].name == "Classical Mechanics"
        assert concepts[-1].name == "Human Geography"
        assert [c.id for c in concepts] == list(range(1, 23))

    @pytest.mark.asyncio
    async def test_graph_links_reference_nodes(self, storage):
        graph = await storage.get_knowledge_graph()
        node_ids = {node.id for node in graph.nodes}
        assert len(graph.nodes) == 22
        assert len(graph.links) == len(await storage.get_all_concept_relationships())
        assert all(link.source in node_ids and link.target in node_ids for link in graph.links)


class TestConcepts:

    @pytest.mark.asyncio
    async def test_get_concept(self, storage):
        concept = await storage.get_concept(1)
        assert concept.name == "Classical Mechanics"
        assert await storage.get_concept(999) is None

    @pytest.mark.asyncio
    async def test_get_concept_by_name(self, storage):
        concept = await storage.get_concept_by_name("Kinematics")
        assert concept.domain == "Physics"
        assert await storage.get_concept_by_name("kinematics") is None

    @pytest.mark.asyncio
    async def test_domain_filter(self, storage):
        physics = await storage.get_concepts_by_domain("Physics")
        assert [c.name for c in physics] == [
            "Classical Mechanics",
            "Newton's Laws",
            "Conservation Laws",
            "Kinematics",
            "Rotational Motion",
        ]
        assert await storage.get_concepts_by_domain("Astrology") == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["calc", "CALC", "Calculus", " Calculus"])
    async def test_search_is_case_insensitive_substring(self, storage, query):
        results = await storage.search_concepts(query)
        assert [c.name for c in results] == ["Vector Calculus", "Basic Calculus"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   ", "%", "_"])
    async def test_search_blank_or_wildcard_finds_nothing(self, storage, query):
        assert await storage.search_concepts(query) == []

    @pytest.mark.asyncio
    async def test_search_keeps_surrounding_spaces(self, storage):
        assert await storage.search_concepts(" Kinematics") == []
        assert await storage.search_concepts("Kinematics ") == []
        assert [c.name for c in await storage.search_concepts(" Mechanics")] == ["Classical Mechanics"]

    @pytest.mark.asyncio
    async def test_create_concept_round_trip(self, storage):
        created = await storage.create_concept(make_concept("Optics", domain="Physics"))
        assert created.id == 23
        assert await storage.get_concept(created.id) == created

    @pytest.mark.asyncio
    async def test_new_domain_appears_in_domains(self, storage):
        await storage.create_concept(make_concept("Topology", domain="Geometry"))
        assert "Geometry" in await storage.get_domains()

    @pytest.mark.asyncio
    async def test_duplicate_name_returns_existing(self, storage):
        first = await storage.create_concept(make_concept("Optics"))
        second = await storage.create_concept(make_concept("Optics", domain="Art"))
        assert second.id == first.id
        assert second.domain == "Physics"
        assert len(await storage.get_concepts()) == 23


class TestRelationships:

    @pytest.mark.asyncio
    async def test_retrieval_matches_source_or_target(self, storage):
        mechanics = await storage.get_concept_by_name("Classical Mechanics")
        relationships = await storage.get_concept_relationships(mechanics.id)
        assert len(relationships) == 7
        incoming = [r for r in relationships if r.target_id == mechanics.id]
        assert {r.relationship_type.value for r in incoming} == {"prerequisite"}
        assert len(incoming) == 2

    @pytest.mark.asyncio
    async def test_unknown_concept_has_no_relationships(self, storage):
        assert await storage.get_concept_relationships(999) == []

    @pytest.mark.asyncio
    async def test_create_relationship(self, storage):
        a = await storage.create_concept(make_concept("Optics"))
        b = await storage.create_concept(make_concept("Lasers"))
        created = await storage.create_concept_relationship(prerequisite(a.id, b.id, strength=9))
        assert await storage.get_concept_relationship(created.id) == created
        assert created in await storage.get_concept_relationships(b.id)
        assert len(await storage.get_all_concept_relationships()) == 25

    @pytest.mark.asyncio
    async def test_relationship_to_missing_concept_not_created(self, storage, caplog):
        with caplog.at_level(logging.WARNING):
            created = await storage.create_concept_relationship(related(1, 999))

        assert created is None
        assert "unknown concept ID 999" in caplog.text
        assert len(await storage.get_all_concept_relationships()) == 24
        assert await storage.get_concept_relationships(999) == []


class TestUsers:

    @pytest.mark.asyncio
    async def test_create_and_lookup(self, storage):
        user = await storage.create_user(UserCreate(username="ada", password="secret"))
        assert await storage.get_user(user.id) == user
        assert await storage.get_user_by_username("ada") == user
        assert await storage.get_user_by_username("grace") is None

    @pytest.mark.asyncio
    async def test_duplicate_username_returns_existing(self, storage):
        first = await storage.create_user(UserCreate(username="ada", password="secret"))
        second = await storage.create_user(UserCreate(username="ada", password="other"))
        assert second.id == first.id


class TestUserProgress:

    @pytest.mark.asyncio
    async def test_create_and_fetch(self, storage):
        user = await storage.create_user(UserCreate(username="ada", password="secret"))
        progress = await storage.create_user_progress(
            UserProgressCreate(user_id=user.id, concept_id=4, is_learned=True)
        )
        assert progress.learned_at is not None
        assert await storage.get_user_progress_for_concept(user.id, 4) == progress
        assert await storage.get_user_progress(user.id) == [progress]
        assert await storage.get_user_progress_for_concept(user.id, 5) is None

    @pytest.mark.asyncio
    async def test_create_twice_keeps_one_row(self, storage):
        user = await storage.create_user(UserCreate(username="ada", password="secret"))
        first = await storage.create_user_progress(
            UserProgressCreate(user_id=user.id, concept_id=4, is_learned=False)
        )
        second = await storage.create_user_progress(
            UserProgressCreate(user_id=user.id, concept_id=4, is_learned=True)
        )
        assert second.id == first.id
        assert second.is_learned is True
        assert len(await storage.get_user_progress(user.id)) == 1

    @pytest.mark.asyncio
    async def test_update_toggles_learned(self, storage):
        user = await storage.create_user(UserCreate(username="ada", password="secret"))
        progress = await storage.create_user_progress(
            UserProgressCreate(user_id=user.id, concept_id=4, is_learned=True)
        )
        updated = await storage.update_user_progress(progress.id, UserProgressUpdate(is_learned=False))
        assert updated.is_learned is False
        assert updated.learned_at is None
        assert await storage.get_user_progress_for_concept(user.id, 4) == updated

    @pytest.mark.asyncio
    async def test_update_missing_row_fails_without_creating(self, storage):
        with pytest.raises(NotFoundError):
            await storage.update_user_progress(999, UserProgressUpdate(is_learned=True))
        assert await storage.get_user_progress(1) == []

    @pytest.mark.asyncio
    async def test_progress_is_per_user(self, storage):
        ada = await storage.create_user(UserCreate(username="ada", password="secret"))
        grace = await storage.create_user(UserCreate(username="grace", password="secret"))
        await storage.create_user_progress(UserProgressCreate(user_id=ada.id, concept_id=4, is_learned=True))
        assert await storage.get_user_progress(grace.id) == []


class TestChatMessages:

    @pytest.mark.asyncio
    async def test_messages_listed_in_order_per_concept(self, storage):
        user = await storage.create_user(UserCreate(username="ada", password="secret"))
        question = await storage.create_chat_message(
            ChatMessageCreate(user_id=user.id, concept_id=4, message="What is velocity?", is_user=True)
        )
        answer = await storage.create_chat_message(
            ChatMessageCreate(user_id=user.id, concept_id=4, message="Rate of change of position.", is_user=False)
        )
        await storage.create_chat_message(
            ChatMessageCreate(user_id=user.id, concept_id=5, message="Torque?", is_user=True)
        )
        assert await storage.get_chat_messages(user.id, 4) == [question, answer]


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_health_check(self, storage):
        assert await storage.health_check() is True
        assert storage.is_connected


@pytest.mark.asyncio
async def test_freshly_seeded_backends_agree(database_storage):
    memory = MemoryStorage()
    assert await database_storage.get_knowledge_graph() == await memory.get_knowledge_graph()


class TestDatabaseLifecycle:

    @pytest.mark.asyncio
    async def test_disconnected_engine_is_unavailable(self, database_storage):
        await database_storage.disconnect()

        assert not database_storage.is_connected
        assert await database_storage.health_check() is False
        with pytest.raises(BackendUnavailableError):
            await database_storage.get_concepts()

    @pytest.mark.asyncio
    async def test_from_url(self, tmp_path):
        database = DatabaseStorage.from_url(f"sqlite:///{tmp_path / 'graph.db'}")
        try:
            await database.initialize(seed=False)
            await database.connect()
            assert await database.get_concepts() == []
        finally:
            await database.disconnect()

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, database_storage):
        await database_storage.initialize(seed=True)
        assert len(await database_storage.get_concepts()) == 22
