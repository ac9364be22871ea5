"""Shared plumbing for the session-scoped collections.

Thoughts, relations and results each live in one backend collection whose
points carry a ``session_id`` payload field. SessionCollection owns one such
collection and provides what every store over it needs:

- lazy creation on the first write
- embedding (zero vector when no embedder is configured)
- lenient reads: a missing or unreachable collection reads as empty
- session-scoped scroll and delete
"""

from collections.abc import Awaitable, Callable
from typing import TypeVar
import asyncio
import logging

from synapse_memory.exceptions import (
    BackendError,
    BackendUnavailableError,
    CollectionNotFoundError,
    InvalidInputError,
)
from synapse_memory.memory.backend import (
    Distance,
    FieldMatch,
    PayloadFilter,
    StoredPoint,
    VectorBackend,
    VectorPoint,
)
from synapse_memory.memory.embedding import EmbeddingProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")


def check_session_id(session_id: str) -> str:
    """Reject empty or non-string session ids.

    Raises:
        InvalidInputError: If the session id is unusable.
    """
    if not isinstance(session_id, str) or not session_id.strip():
        raise InvalidInputError(f"Invalid session id: {session_id!r}")
    return session_id


def session_filter(session_id: str, **fields) -> PayloadFilter:
    """Filter on session_id plus optional exact-match fields."""
    return PayloadFilter(
        must=(FieldMatch("session_id", session_id),)
        + tuple(FieldMatch(k, v) for k, v in fields.items())
    )


class SessionCollection:
    """One backend collection of session-tagged points."""

    def __init__(
        self,
        backend: VectorBackend,
        name: str,
        vector_size: int = 768,
        distance: Distance = Distance.COSINE,
        embedding_provider: EmbeddingProvider | None = None,
    ):
        self.backend = backend
        self.name = name
        self.vector_size = vector_size
        self.distance = Distance(distance)
        self.embedding_provider = embedding_provider
        self._ready = False
        self._create_lock = asyncio.Lock()

    async def ensure(self) -> None:
        """Create the collection if it does not exist yet."""
        if self._ready:
            return
        async with self._create_lock:
            if self._ready:
                return
            if not await self.backend.collection_exists(self.name):
                try:
                    await self.backend.create_collection(
                        self.name, self.vector_size, self.distance
                    )
                except BackendError:
                    # Another writer may have created it in the meantime
                    if not await self.backend.collection_exists(self.name):
                        raise
            self._ready = True

    def forget(self) -> None:
        """Mark the collection as unverified (e.g. after it was dropped)."""
        self._ready = False

    async def embed(self, text: str) -> list[float]:
        if self.embedding_provider is None:
            return [0.0] * self.vector_size
        return await self.embedding_provider.embed(text)

    async def write(self, points: list[VectorPoint]) -> None:
        """Upsert points, creating the collection first when needed."""
        if not points:
            return
        await self.ensure()
        try:
            await self.backend.upsert(self.name, points)
        except CollectionNotFoundError:
            # Dropped behind our back (admin recreate, layer clear)
            self.forget()
            await self.ensure()
            await self.backend.upsert(self.name, points)

    async def read(
        self,
        operation: Callable[[], Awaitable[T]],
        default: T,
        what: str,
    ) -> T:
        """Run a read, degrading to ``default`` when the collection is unusable."""
        try:
            return await operation()
        except CollectionNotFoundError:
            logger.debug(f"{what}: collection {self.name} does not exist yet")
            self.forget()
            return default
        except BackendUnavailableError as e:
            logger.warning(f"{what}: backend unavailable for {self.name}, returning empty: {e}")
            return default

    async def scroll_matching(
        self,
        payload_filter: PayloadFilter | None,
        *,
        with_vectors: bool = False,
        what: str = "scroll",
    ) -> list[StoredPoint]:
        """Every point matching the filter, across all scroll pages."""

        async def _collect() -> list[StoredPoint]:
            return [
                point
                async for point in self.backend.scroll_all(
                    self.name, filter=payload_filter, with_vectors=with_vectors
                )
            ]

        return await self.read(_collect, [], what)

    async def delete_session(self, session_id: str) -> None:
        try:
            await self.backend.delete(self.name, filter=session_filter(session_id))
        except CollectionNotFoundError:
            logger.debug(f"Nothing to clear in {self.name}: collection missing")
            self.forget()


__all__ = ["SessionCollection", "check_session_id", "session_filter"]
