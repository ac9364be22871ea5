"""Tests for InMemoryVectorBackend."""

import pytest

from synapse_memory.exceptions import BackendError, CollectionNotFoundError
from synapse_memory.memory.backend import Distance, FieldMatch, PayloadFilter, VectorPoint
from synapse_memory.memory.providers.in_memory import InMemoryVectorBackend


@pytest.fixture
async def filled():
    backend = InMemoryVectorBackend()
    await backend.create_collection("points", 3)
    await backend.upsert(
        "points",
        [
            VectorPoint(id=f"p{i}", vector=[1.0, float(i), 0.0], payload={"session_id": f"s{i % 2}", "n": i})
            for i in range(5)
        ],
    )
    return backend


class TestCollections:
    @pytest.mark.asyncio
    async def test_lifecycle(self):
        backend = InMemoryVectorBackend()
        assert not await backend.collection_exists("c")

        await backend.create_collection("c", 4, Distance.DOT)
        info = await backend.get_collection_info("c")
        assert (info.vector_size, info.points_count, info.distance) == (4, 0, Distance.DOT)
        assert await backend.list_collections() == ["c"]

        await backend.delete_collection("c")
        assert not await backend.collection_exists("c")

    @pytest.mark.asyncio
    async def test_missing_collection(self):
        backend = InMemoryVectorBackend()
        with pytest.raises(CollectionNotFoundError):
            await backend.get_collection_info("nope")
        with pytest.raises(CollectionNotFoundError):
            await backend.scroll("nope")

    @pytest.mark.asyncio
    async def test_duplicate_create(self):
        backend = InMemoryVectorBackend()
        await backend.create_collection("c", 4)
        with pytest.raises(BackendError):
            await backend.create_collection("c", 4)


class TestPoints:
    @pytest.mark.asyncio
    async def test_upsert_replaces_by_id(self, filled):
        await filled.upsert("points", [VectorPoint(id="p0", vector=[0.0, 0.0, 1.0], payload={"n": 99})])
        assert await filled.count("points") == 5
        [point] = await filled.retrieve("points", ["p0"], with_vectors=True)
        assert point.payload == {"n": 99}
        assert point.vector == [0.0, 0.0, 1.0]

    @pytest.mark.asyncio
    async def test_wrong_dimension_rejected(self, filled):
        with pytest.raises(BackendError, match="dimension"):
            await filled.upsert("points", [VectorPoint(id="x", vector=[1.0])])

    @pytest.mark.asyncio
    async def test_scroll_pages(self, filled):
        page, cursor = await filled.scroll("points", limit=2)
        assert [p.id for p in page] == ["p0", "p1"]
        assert cursor is not None

        ids = [p.id async for p in filled.scroll_all("points", page_size=2)]
        assert ids == ["p0", "p1", "p2", "p3", "p4"]

    @pytest.mark.asyncio
    async def test_filters(self, filled):
        assert await filled.count("points", PayloadFilter.where(session_id="s0")) == 3

        either = PayloadFilter.any_of(FieldMatch("n", 1), FieldMatch("n", 4))
        page, _ = await filled.scroll("points", filter=either)
        assert sorted(p.id for p in page) == ["p1", "p4"]

    @pytest.mark.asyncio
    async def test_search_orders_by_similarity(self, filled):
        results = await filled.search("points", [1.0, 0.0, 0.0], limit=2)
        assert [p.id for p in results] == ["p0", "p1"]
        assert results[0].score == pytest.approx(1.0)

        scoped = await filled.search("points", [1.0, 0.0, 0.0], filter=PayloadFilter.where(session_id="s1"))
        assert {p.id for p in scoped} == {"p1", "p3"}

    @pytest.mark.asyncio
    async def test_delete(self, filled):
        await filled.delete("points", ids=["p0", "missing"])
        await filled.delete("points", filter=PayloadFilter.where(session_id="s1"))
        assert sorted([p.id async for p in filled.scroll_all("points")]) == ["p2", "p4"]

    @pytest.mark.asyncio
    async def test_delete_needs_exactly_one_selector(self, filled):
        with pytest.raises(ValueError):
            await filled.delete("points")
