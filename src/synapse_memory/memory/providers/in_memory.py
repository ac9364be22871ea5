"""In-memory vector backend.

Process-local implementation of VectorBackend for development and tests.
Data is lost when the process exits. Search is brute-force cosine
similarity over the filtered points of a collection.

Example:
    from synapse_memory.memory.providers.in_memory import InMemoryVectorBackend

    backend = InMemoryVectorBackend()
    await backend.create_collection("thoughts", 768)
"""

from dataclasses import dataclass, field
from typing import Any
import copy
import logging

from synapse_memory.exceptions import BackendError, CollectionNotFoundError
from synapse_memory.memory.backend import (
    BackendCollectionInfo,
    CollectionStatus,
    Distance,
    PayloadFilter,
    StoredPoint,
    VectorBackend,
    VectorPoint,
)
from synapse_memory.memory.embedding import cosine_similarity

logger = logging.getLogger(__name__)


@dataclass
class _Collection:
    vector_size: int
    distance: Distance
    # Insertion-ordered; upserts of an existing id keep its position
    points: dict[str, VectorPoint] = field(default_factory=dict)


class InMemoryVectorBackend(VectorBackend):
    """Dict-backed VectorBackend.

    Scroll cursors are stringified positions in insertion order. Upserting a
    vector whose size differs from the collection's raises BackendError, as
    Qdrant would reject it.
    """

    def __init__(self):
        self._collections: dict[str, _Collection] = {}

    def _get(self, name: str) -> _Collection:
        collection = self._collections.get(name)
        if collection is None:
            raise CollectionNotFoundError(name)
        return collection

    @staticmethod
    def _select(
        collection: _Collection, payload_filter: PayloadFilter | None
    ) -> list[VectorPoint]:
        points = list(collection.points.values())
        if payload_filter is None:
            return points
        return [p for p in points if payload_filter.matches(p.payload)]

    @staticmethod
    def _read(point: VectorPoint, with_vectors: bool, score: float | None = None) -> StoredPoint:
        return StoredPoint(
            id=point.id,
            payload=copy.deepcopy(point.payload),
            vector=list(point.vector) if with_vectors else None,
            score=score,
        )

    async def list_collections(self) -> list[str]:
        return list(self._collections)

    async def collection_exists(self, name: str) -> bool:
        return name in self._collections

    async def create_collection(
        self,
        name: str,
        vector_size: int,
        distance: Distance = Distance.COSINE,
    ) -> None:
        if name in self._collections:
            raise BackendError(f"Collection '{name}' already exists", name)
        self._collections[name] = _Collection(vector_size, Distance(distance))
        logger.info(f"Created in-memory collection {name} ({vector_size}d)")

    async def delete_collection(self, name: str) -> None:
        self._get(name)
        del self._collections[name]
        logger.info(f"Deleted in-memory collection {name}")

    async def get_collection_info(self, name: str) -> BackendCollectionInfo:
        collection = self._get(name)
        return BackendCollectionInfo(
            name=name,
            vector_size=collection.vector_size,
            points_count=len(collection.points),
            distance=collection.distance,
            status=CollectionStatus.GREEN,
        )

    async def upsert(self, collection: str, points: list[VectorPoint]) -> None:
        target = self._get(collection)
        for point in points:
            if len(point.vector) != target.vector_size:
                raise BackendError(
                    f"Vector dimension error: expected dim: {target.vector_size}, "
                    f"got {len(point.vector)}",
                    collection,
                )
        for point in points:
            target.points[point.id] = VectorPoint(
                id=point.id,
                vector=list(point.vector),
                payload=copy.deepcopy(point.payload),
            )

    async def search(
        self,
        collection: str,
        vector: list[float],
        *,
        filter: PayloadFilter | None = None,
        limit: int = 10,
        score_threshold: float | None = None,
    ) -> list[StoredPoint]:
        scored: list[tuple[float, VectorPoint]] = []
        for point in self._select(self._get(collection), filter):
            score = cosine_similarity(vector, point.vector)
            if score_threshold is not None and score < score_threshold:
                continue
            scored.append((score, point))

        scored.sort(key=lambda item: item[0], reverse=True)
        return [self._read(point, False, score) for score, point in scored[:limit]]

    async def scroll(
        self,
        collection: str,
        *,
        filter: PayloadFilter | None = None,
        limit: int = 100,
        offset: str | int | None = None,
        with_vectors: bool = False,
    ) -> tuple[list[StoredPoint], str | int | None]:
        points = self._select(self._get(collection), filter)
        start = int(offset) if offset is not None else 0
        end = start + limit
        page = [self._read(p, with_vectors) for p in points[start:end]]
        next_offset = str(end) if end < len(points) else None
        return page, next_offset

    async def retrieve(
        self,
        collection: str,
        ids: list[str],
        *,
        with_vectors: bool = False,
    ) -> list[StoredPoint]:
        target = self._get(collection)
        return [
            self._read(target.points[point_id], with_vectors)
            for point_id in ids
            if point_id in target.points
        ]

    async def delete(
        self,
        collection: str,
        *,
        ids: list[str] | None = None,
        filter: PayloadFilter | None = None,
    ) -> None:
        if (ids is None) == (filter is None):
            raise ValueError("delete() takes exactly one of ids or filter")

        target = self._get(collection)
        if ids is not None:
            doomed = [point_id for point_id in ids if point_id in target.points]
        else:
            doomed = [p.id for p in self._select(target, filter)]

        for point_id in doomed:
            del target.points[point_id]

    async def count(self, collection: str, filter: PayloadFilter | None = None) -> int:
        return len(self._select(self._get(collection), filter))

    def clear(self) -> None:
        """Drop every collection."""
        self._collections.clear()


__all__ = ["InMemoryVectorBackend"]
