"""Qdrant-backed vector backend.

Translates VectorBackend calls into qdrant-client's async API and Qdrant
errors into the synapse-memory exception hierarchy.

Key Features:
- Collection lifecycle (exists/create/delete/info)
- Payload-filtered search via query_points
- Cursor-based scroll
- Delete by id list or by filter
- Exact counts

Requires:
- qdrant-client package
- Running Qdrant instance

Example:
    from synapse_memory.config import VectorStoreConfig
    from synapse_memory.memory.providers.qdrant import QdrantVectorBackend

    backend = QdrantVectorBackend(VectorStoreConfig(url="http://localhost:6333"))
    await backend.create_collection("synapse_neuro_thoughts", 768)
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any
import logging

from qdrant_client import AsyncQdrantClient
from qdrant_client.http import models as qdrant_models
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse
from qdrant_client.http.models import (
    FieldCondition,
    Filter,
    FilterSelector,
    MatchValue,
    PointIdsList,
    PointStruct,
    VectorParams,
)

from synapse_memory.config import VectorStoreConfig
from synapse_memory.exceptions import BackendUnavailableError, CollectionNotFoundError
from synapse_memory.memory.backend import (
    BackendCollectionInfo,
    CollectionStatus,
    Distance,
    PayloadFilter,
    StoredPoint,
    VectorBackend,
    VectorPoint,
)

logger = logging.getLogger(__name__)


_TO_QDRANT_DISTANCE = {
    Distance.COSINE: qdrant_models.Distance.COSINE,
    Distance.DOT: qdrant_models.Distance.DOT,
    Distance.EUCLID: qdrant_models.Distance.EUCLID,
    Distance.MANHATTAN: qdrant_models.Distance.MANHATTAN,
}
_FROM_QDRANT_DISTANCE = {v: k for k, v in _TO_QDRANT_DISTANCE.items()}


class QdrantVectorBackend(VectorBackend):
    """VectorBackend over AsyncQdrantClient.

    Point ids are the UUID strings assigned by the stores, so upserts
    replace by id. Writes wait for Qdrant to apply them so that a read
    issued right after a write observes it.
    """

    def __init__(
        self,
        config: VectorStoreConfig | None = None,
        client: AsyncQdrantClient | None = None,
    ):
        """Initialize the backend.

        Args:
            config: Connection settings (url, api_key, timeout)
            client: Pre-built client; takes precedence over config
        """
        self.config = config or VectorStoreConfig()
        self._client = client or AsyncQdrantClient(
            url=self.config.url,
            api_key=self.config.api_key,
            timeout=int(self.config.timeout),
        )

    @contextmanager
    def _errors(self, collection: str | None = None) -> Iterator[None]:
        """Map Qdrant failures onto BackendError subclasses."""
        try:
            yield
        except UnexpectedResponse as e:
            if e.status_code == 404:
                raise CollectionNotFoundError(collection or "<unknown>", cause=e) from e
            logger.error(f"Qdrant returned {e.status_code} for {collection}: {e}")
            raise BackendUnavailableError(
                f"Qdrant returned HTTP {e.status_code}", collection, e
            ) from e
        except (ResponseHandlingException, ConnectionError, TimeoutError, OSError) as e:
            logger.error(f"Qdrant unreachable at {self.config.url}: {e}")
            raise BackendUnavailableError(
                f"Qdrant unreachable at {self.config.url}", collection, e
            ) from e

    @staticmethod
    def _to_filter(payload_filter: PayloadFilter | None) -> Filter | None:
        if payload_filter is None:
            return None
        must = [
            FieldCondition(key=c.key, match=MatchValue(value=c.value))
            for c in payload_filter.must
        ]
        should = [
            FieldCondition(key=c.key, match=MatchValue(value=c.value))
            for c in payload_filter.should
        ]
        return Filter(must=must or None, should=should or None)

    @staticmethod
    def _to_stored(record: Any) -> StoredPoint:
        vector = record.vector if isinstance(record.vector, list) else None
        return StoredPoint(
            id=str(record.id),
            payload=dict(record.payload or {}),
            vector=vector,
            score=getattr(record, "score", None),
        )

    # =========================================================================
    # Collection lifecycle
    # =========================================================================

    async def list_collections(self) -> list[str]:
        with self._errors():
            response = await self._client.get_collections()
        return [c.name for c in response.collections]

    async def collection_exists(self, name: str) -> bool:
        with self._errors(name):
            return await self._client.collection_exists(collection_name=name)

    async def create_collection(
        self,
        name: str,
        vector_size: int,
        distance: Distance = Distance.COSINE,
    ) -> None:
        with self._errors(name):
            await self._client.create_collection(
                collection_name=name,
                vectors_config=VectorParams(
                    size=vector_size,
                    distance=_TO_QDRANT_DISTANCE[Distance(distance)],
                ),
            )
        logger.info(f"Created Qdrant collection {name} ({vector_size}d, {Distance(distance).value})")

    async def delete_collection(self, name: str) -> None:
        with self._errors(name):
            await self._client.delete_collection(collection_name=name)
        logger.info(f"Deleted Qdrant collection {name}")

    async def get_collection_info(self, name: str) -> BackendCollectionInfo:
        with self._errors(name):
            info = await self._client.get_collection(collection_name=name)

        vectors = info.config.params.vectors
        if isinstance(vectors, dict):
            # Named vectors: report the first one
            vectors = next(iter(vectors.values()), None)

        vector_size = vectors.size if vectors is not None else 0
        distance = (
            _FROM_QDRANT_DISTANCE.get(vectors.distance, Distance.COSINE)
            if vectors is not None
            else Distance.COSINE
        )
        status_value = getattr(info.status, "value", info.status)

        return BackendCollectionInfo(
            name=name,
            vector_size=vector_size,
            points_count=info.points_count or 0,
            distance=distance,
            status=CollectionStatus(str(status_value).lower()),
        )

    # =========================================================================
    # Points
    # =========================================================================

    async def upsert(self, collection: str, points: list[VectorPoint]) -> None:
        if not points:
            return
        structs = [
            PointStruct(id=point.id, vector=point.vector, payload=point.payload)
            for point in points
        ]
        with self._errors(collection):
            await self._client.upsert(collection_name=collection, points=structs, wait=True)
        logger.debug(f"Upserted {len(structs)} points into {collection}")

    async def search(
        self,
        collection: str,
        vector: list[float],
        *,
        filter: PayloadFilter | None = None,
        limit: int = 10,
        score_threshold: float | None = None,
    ) -> list[StoredPoint]:
        with self._errors(collection):
            response = await self._client.query_points(
                collection_name=collection,
                query=vector,
                query_filter=self._to_filter(filter),
                limit=limit,
                score_threshold=score_threshold,
                with_payload=True,
            )
        return [self._to_stored(p) for p in response.points]

    async def scroll(
        self,
        collection: str,
        *,
        filter: PayloadFilter | None = None,
        limit: int = 100,
        offset: str | int | None = None,
        with_vectors: bool = False,
    ) -> tuple[list[StoredPoint], str | int | None]:
        with self._errors(collection):
            records, next_offset = await self._client.scroll(
                collection_name=collection,
                scroll_filter=self._to_filter(filter),
                limit=limit,
                offset=offset,
                with_payload=True,
                with_vectors=with_vectors,
            )
        return [self._to_stored(r) for r in records], next_offset

    async def retrieve(
        self,
        collection: str,
        ids: list[str],
        *,
        with_vectors: bool = False,
    ) -> list[StoredPoint]:
        if not ids:
            return []
        with self._errors(collection):
            records = await self._client.retrieve(
                collection_name=collection,
                ids=ids,
                with_payload=True,
                with_vectors=with_vectors,
            )
        return [self._to_stored(r) for r in records]

    async def delete(
        self,
        collection: str,
        *,
        ids: list[str] | None = None,
        filter: PayloadFilter | None = None,
    ) -> None:
        if (ids is None) == (filter is None):
            raise ValueError("delete() takes exactly one of ids or filter")

        if ids is not None:
            if not ids:
                return
            selector = PointIdsList(points=ids)
        else:
            selector = FilterSelector(filter=self._to_filter(filter))

        with self._errors(collection):
            await self._client.delete(
                collection_name=collection,
                points_selector=selector,
                wait=True,
            )

    async def count(self, collection: str, filter: PayloadFilter | None = None) -> int:
        with self._errors(collection):
            result = await self._client.count(
                collection_name=collection,
                count_filter=self._to_filter(filter),
                exact=True,
            )
        return result.count

    async def close(self) -> None:
        """Close the Qdrant connection."""
        await self._client.close()
