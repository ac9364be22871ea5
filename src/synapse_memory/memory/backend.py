"""Vector backend interface.

The stores never talk to a database client directly; they go through
VectorBackend. Two implementations ship with the package:

- QdrantVectorBackend (providers.qdrant): production backend over
  qdrant-client's AsyncQdrantClient
- InMemoryVectorBackend (providers.in_memory): process-local backend for
  development and tests

Implementations raise CollectionNotFoundError for operations on a missing
collection and BackendUnavailableError when the backend cannot serve the
request. They never retry.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Distance(str, Enum):
    """Vector distance metrics."""

    COSINE = "cosine"
    DOT = "dot"
    EUCLID = "euclid"
    MANHATTAN = "manhattan"


class CollectionStatus(str, Enum):
    """Backend-reported collection health."""

    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"
    GREY = "grey"


@dataclass(frozen=True)
class FieldMatch:
    """Exact match on one payload field."""

    key: str
    value: str | bool | int


@dataclass(frozen=True)
class PayloadFilter:
    """Payload filter.

    All ``must`` conditions have to hold; when ``should`` is non-empty at
    least one of its conditions has to hold as well.
    """

    must: tuple[FieldMatch, ...] = ()
    should: tuple[FieldMatch, ...] = ()

    @classmethod
    def where(cls, **fields: Any) -> "PayloadFilter":
        """Shorthand for a filter of ``must`` equality conditions."""
        return cls(must=tuple(FieldMatch(k, v) for k, v in fields.items()))

    @classmethod
    def any_of(cls, *conditions: FieldMatch) -> "PayloadFilter":
        return cls(should=tuple(conditions))

    def matches(self, payload: dict[str, Any]) -> bool:
        """Evaluate the filter against a payload (used by local backends)."""
        if any(payload.get(c.key) != c.value for c in self.must):
            return False
        if self.should and not any(payload.get(c.key) == c.value for c in self.should):
            return False
        return True


@dataclass
class VectorPoint:
    """A point to upsert."""

    id: str
    vector: list[float]
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass
class StoredPoint:
    """A point read back from the backend."""

    id: str
    payload: dict[str, Any]
    vector: list[float] | None = None
    score: float | None = None


@dataclass
class BackendCollectionInfo:
    """Raw collection metadata as reported by the backend."""

    name: str
    vector_size: int
    points_count: int
    distance: Distance = Distance.COSINE
    status: CollectionStatus = CollectionStatus.GREEN


class VectorBackend(ABC):
    """Collection lifecycle plus point upsert/search/scroll/delete/count."""

    # -------------------------------------------------------------------------
    # Collection lifecycle
    # -------------------------------------------------------------------------

    @abstractmethod
    async def list_collections(self) -> list[str]:
        """Names of all collections."""
        ...

    @abstractmethod
    async def collection_exists(self, name: str) -> bool:
        ...

    @abstractmethod
    async def create_collection(
        self,
        name: str,
        vector_size: int,
        distance: Distance = Distance.COSINE,
    ) -> None:
        """Create a collection. Callers check existence first."""
        ...

    @abstractmethod
    async def delete_collection(self, name: str) -> None:
        ...

    @abstractmethod
    async def get_collection_info(self, name: str) -> BackendCollectionInfo:
        """Metadata for one collection.

        Raises:
            CollectionNotFoundError: If the collection does not exist.
        """
        ...

    # -------------------------------------------------------------------------
    # Points
    # -------------------------------------------------------------------------

    @abstractmethod
    async def upsert(self, collection: str, points: list[VectorPoint]) -> None:
        """Insert or replace points by id."""
        ...

    @abstractmethod
    async def search(
        self,
        collection: str,
        vector: list[float],
        *,
        filter: PayloadFilter | None = None,
        limit: int = 10,
        score_threshold: float | None = None,
    ) -> list[StoredPoint]:
        """Nearest-neighbour search, best match first."""
        ...

    @abstractmethod
    async def scroll(
        self,
        collection: str,
        *,
        filter: PayloadFilter | None = None,
        limit: int = 100,
        offset: str | int | None = None,
        with_vectors: bool = False,
    ) -> tuple[list[StoredPoint], str | int | None]:
        """One page of points plus the opaque cursor of the next page (None at the end)."""
        ...

    @abstractmethod
    async def retrieve(
        self,
        collection: str,
        ids: list[str],
        *,
        with_vectors: bool = False,
    ) -> list[StoredPoint]:
        ...

    @abstractmethod
    async def delete(
        self,
        collection: str,
        *,
        ids: list[str] | None = None,
        filter: PayloadFilter | None = None,
    ) -> None:
        """Delete points by id list or by filter (exactly one of them)."""
        ...

    @abstractmethod
    async def count(self, collection: str, filter: PayloadFilter | None = None) -> int:
        ...

    async def close(self) -> None:
        """Release client resources."""
        return None

    async def scroll_all(
        self,
        collection: str,
        *,
        filter: PayloadFilter | None = None,
        page_size: int = 256,
        with_vectors: bool = False,
    ) -> AsyncIterator[StoredPoint]:
        """Iterate every point matching the filter, following the cursor."""
        offset = None
        while True:
            points, offset = await self.scroll(
                collection,
                filter=filter,
                limit=page_size,
                offset=offset,
                with_vectors=with_vectors,
            )
            for point in points:
                yield point
            if offset is None:
                break
