"""Tests for CollectionAdmin."""

from dataclasses import replace

import pytest

from synapse_memory.exceptions import BackendError, ConfirmationRequiredError
from synapse_memory.memory.admin import (
    DEFAULT_LINKS,
    CollectionAdmin,
    CollectionLink,
    LinkType,
)
from synapse_memory.memory.backend import CollectionStatus, Distance, VectorPoint
from synapse_memory.memory.providers.in_memory import InMemoryVectorBackend


class ReportingBackend(InMemoryVectorBackend):
    """In-memory backend whose reported collection metadata can be overridden."""

    def __init__(self):
        super().__init__()
        self.reported: dict[str, dict] = {}

    async def get_collection_info(self, name):
        info = await super().get_collection_info(name)
        return replace(info, **self.reported.get(name, {}))


@pytest.fixture
def backend():
    return ReportingBackend()


@pytest.fixture
async def admin(backend):
    await backend.create_collection("synapse_neuro_thoughts", 768)
    await backend.create_collection("synapse_skills", 1536, Distance.DOT)
    await backend.upsert(
        "synapse_skills",
        [VectorPoint(id=f"p{i}", vector=[0.1] * 1536, payload={}) for i in range(3)],
    )
    admin = CollectionAdmin(backend)
    await admin.initialize()
    return admin


class TestInventory:
    @pytest.mark.asyncio
    async def test_initialize_seeds_links(self, admin):
        assert admin.links == list(DEFAULT_LINKS)

        await admin.initialize()
        assert len(admin.links) == len(DEFAULT_LINKS)

    @pytest.mark.asyncio
    async def test_collection_info(self, admin):
        info = await admin.get_collection_info("synapse_skills")

        assert info.vector_size == 1536
        assert info.points_count == 3
        assert info.distance == Distance.DOT
        assert info.purpose == "Learned skills and capabilities"
        assert info.linked_collections == ["synapse_tool_patterns"]

        assert await admin.get_collection_info("missing") is None

    @pytest.mark.asyncio
    async def test_list_collections(self, admin):
        names = [info.name for info in await admin.list_collections()]
        assert names == ["synapse_neuro_thoughts", "synapse_skills"]

    @pytest.mark.asyncio
    async def test_create_and_ensure(self, admin, backend):
        assert await admin.create_collection("notes", 384, purpose="Scratch notes")
        assert not await admin.create_collection("notes", 384)

        info = await admin.ensure_collection("notes", 384)
        assert info.vector_size == 384
        assert info.purpose == "Scratch notes"

        info = await admin.ensure_collection("fresh", 64)
        assert await backend.collection_exists("fresh")
        assert info.points_count == 0

    @pytest.mark.asyncio
    async def test_delete_drops_links(self, admin):
        assert await admin.delete_collection("synapse_neuro_thoughts")
        assert not await admin.delete_collection("synapse_neuro_thoughts")

        assert admin.get_linked_collections("synapse_neuro_thoughts") == []
        assert len(admin.links) == len(DEFAULT_LINKS) - 4

    @pytest.mark.asyncio
    async def test_recreate_keeps_size_distance_and_links(self, admin, backend):
        assert await admin.recreate_collection("synapse_skills")

        info = await backend.get_collection_info("synapse_skills")
        assert (info.vector_size, info.points_count, info.distance) == (1536, 0, Distance.DOT)
        assert admin.get_linked_collections("synapse_skills")
        assert not await admin.recreate_collection("missing")

    @pytest.mark.asyncio
    async def test_statistics(self, admin, backend):
        backend.reported["synapse_skills"] = {"status": CollectionStatus.YELLOW}

        stats = await admin.get_statistics()

        assert stats.total_collections == 2
        assert stats.total_vectors == 3
        assert stats.healthy_collections == 1
        assert stats.unhealthy_collections == 1
        assert stats.link_count == len(DEFAULT_LINKS)
        assert stats.dimension_distribution == {768: 1, 1536: 1}


class TestHealth:
    @pytest.mark.asyncio
    async def test_dimension_mismatch(self, admin):
        reports = {r.collection_name: r for r in await admin.health_check(768)}

        assert reports["synapse_neuro_thoughts"].is_healthy
        skills = reports["synapse_skills"]
        assert not skills.is_healthy
        assert skills.dimension_mismatch
        assert skills.actual_dimension == 1536
        assert "expected 768, got 1536" in skills.issue
        assert skills.recommendation

    @pytest.mark.asyncio
    async def test_unreported_size_is_not_a_mismatch(self, admin, backend):
        backend.reported["synapse_skills"] = {"vector_size": 0}

        reports = {r.collection_name: r for r in await admin.health_check(768)}

        assert not reports["synapse_skills"].dimension_mismatch
        assert reports["synapse_skills"].is_healthy

    @pytest.mark.asyncio
    async def test_non_green_status_is_unhealthy(self, admin, backend):
        backend.reported["synapse_neuro_thoughts"] = {"status": CollectionStatus.RED}

        reports = {r.collection_name: r for r in await admin.health_check(768)}

        thoughts = reports["synapse_neuro_thoughts"]
        assert not thoughts.is_healthy
        assert not thoughts.dimension_mismatch

    @pytest.mark.asyncio
    async def test_auto_heal_requires_confirmation(self, admin, backend):
        with pytest.raises(ConfirmationRequiredError):
            await admin.auto_heal(768)
        assert await backend.count("synapse_skills") == 3

    @pytest.mark.asyncio
    async def test_auto_heal(self, admin, backend):
        report = await admin.auto_heal(768, confirmed=True)

        assert report.healed == ["synapse_skills"]
        assert report.failed == {}
        info = await backend.get_collection_info("synapse_skills")
        assert (info.vector_size, info.points_count, info.distance) == (768, 0, Distance.DOT)
        assert admin.get_linked_collections("synapse_skills")
        assert all(r.is_healthy for r in await admin.health_check(768))

    @pytest.mark.asyncio
    async def test_auto_heal_records_failures(self, admin, backend):
        async def refuse(name, vector_size, distance=Distance.COSINE):
            raise BackendError("disk full", name)

        backend.create_collection = refuse

        report = await admin.auto_heal(768, confirmed=True)

        assert report.healed == []
        assert "disk full" in report.failed["synapse_skills"]


class TestLinks:
    @pytest.mark.asyncio
    async def test_add_link_dedupes(self, admin):
        link = CollectionLink("synapse_skills", "synapse_neuro_thoughts", LinkType.MIRRORS)

        assert await admin.add_link(link)
        assert not await admin.add_link(replace(link, strength=0.2))
        info = await admin.get_collection_info("synapse_skills")
        assert "synapse_neuro_thoughts" in info.linked_collections

    @pytest.mark.asyncio
    async def test_remove_link(self, admin):
        assert await admin.remove_link("core", "fullcore", "part_of")
        assert not await admin.remove_link("core", "fullcore", LinkType.PART_OF)

    @pytest.mark.asyncio
    async def test_collections_by_relation(self, admin):
        assert admin.get_collections_by_relation("fullcore", LinkType.PART_OF) == ["core", "codebase"]
        assert admin.get_collections_by_relation("synapse_neuro_thoughts", "indexes") == [
            "synapse_thought_relations"
        ]
        assert admin.get_collections_by_relation("synapse_neuro_thoughts", "mirrors") == []


class TestMemoryMap:
    @pytest.mark.asyncio
    async def test_sections_and_links(self, admin, backend):
        await backend.create_collection("misc", 768)
        backend.reported["synapse_skills"] = {"status": CollectionStatus.YELLOW}

        text = await admin.generate_memory_map()

        assert "SYNAPSE MEMORY ARCHITECTURE" in text
        assert text.index("THOUGHT SYSTEM") < text.index("synapse_neuro_thoughts")
        assert text.index("SKILLS & TOOLS") < text.index("⚠ synapse_skills")
        assert "OTHER" in text
        assert "✓ misc" in text
        # Empty sections are left out
        assert "KNOWLEDGE BASE" not in text
        assert "COLLECTION LINKS" in text
        assert "more links" not in text
        assert text.endswith("╝\n")

    @pytest.mark.asyncio
    async def test_link_overflow(self, admin):
        for i in range(5):
            await admin.add_link(CollectionLink(f"extra_{i}", "core", LinkType.RELATED_TO))

        text = await admin.generate_memory_map()
        assert "... and 3 more links" in text
