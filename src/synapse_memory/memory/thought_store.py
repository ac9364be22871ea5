"""Session-scoped thought persistence.

ThoughtStore writes thoughts as points of the thoughts collection (vector =
embedding of the content, payload = the thought's fields plus session_id)
and answers the read-side queries the agent runtime needs: full session
history, time ranges, by-type, recency, semantic search and parent chains.

Reads are lenient: a collection that does not exist yet or a backend that
cannot be reached reads as empty, and points whose payload cannot be
decoded are skipped and counted. Writes propagate every failure.

Example:
    store = ThoughtStore(backend, embedding_provider=embedder)

    await store.save_thought("session-1", observation)
    recent = await store.get_recent_thoughts("session-1", count=5)
    similar = await store.search_thoughts("session-1", "weather forecast")
"""

from collections import Counter, deque
from datetime import datetime
from uuid import UUID
import logging

from synapse_memory.config import SynapseConfig
from synapse_memory.exceptions import InvalidInputError
from synapse_memory.memory.backend import VectorBackend, VectorPoint
from synapse_memory.memory.base import (
    Thought,
    ThoughtStatistics,
    ThoughtType,
    coerce_tag,
    parse_uuid,
    tag_value,
    utc,
)
from synapse_memory.memory.embedding import EmbeddingProvider
from synapse_memory.memory.locks import KeyedLock
from synapse_memory.memory.payloads import (
    DecodeCounter,
    thought_from_payload,
    thought_to_payload,
)
from synapse_memory.memory.session_collection import (
    SessionCollection,
    check_session_id,
    session_filter,
)

logger = logging.getLogger(__name__)


class ThoughtStore:
    """Thought persistence over a VectorBackend.

    Args:
        backend: Vector backend holding the collections
        embedding_provider: Optional embedder; without one thoughts are
            stored with zero vectors and search falls back to substring
            matching
        config: Collection names, vector size and batch size
        lock: Per-session write lock, shared with the other stores of the
            same engine
    """

    def __init__(
        self,
        backend: VectorBackend,
        embedding_provider: EmbeddingProvider | None = None,
        config: SynapseConfig | None = None,
        lock: KeyedLock | None = None,
    ):
        self.config = config or SynapseConfig()
        self.backend = backend
        self.embedding_provider = embedding_provider
        self.lock = lock or KeyedLock()
        self.decoder = DecodeCounter()

        store_config = self.config.vector_store
        self.collection = SessionCollection(
            backend,
            store_config.thoughts_collection,
            store_config.vector_size,
            store_config.distance,
            embedding_provider,
        )
        # Collections cleared together with the thoughts of a session
        self._companions = [
            SessionCollection(backend, name, store_config.vector_size, store_config.distance)
            for name in (store_config.relations_collection, store_config.results_collection)
        ]

    @property
    def supports_semantic_search(self) -> bool:
        return self.embedding_provider is not None

    @property
    def decode_failures(self) -> int:
        """Number of stored thoughts skipped because they could not be decoded."""
        return self.decoder.failures

    # =========================================================================
    # Writes
    # =========================================================================

    async def _to_point(self, session_id: str, thought: Thought) -> VectorPoint:
        return VectorPoint(
            id=str(thought.id),
            vector=await self.collection.embed(thought.content),
            payload=thought_to_payload(session_id, thought),
        )

    async def save_thought(self, session_id: str, thought: Thought) -> None:
        """Persist one thought (upsert by thought id).

        Raises:
            InvalidInputError: If the session id is empty
            BackendError: If the backend rejects the write
            EmbeddingError: If the embedder fails
        """
        check_session_id(session_id)
        async with self.lock.hold(session_id):
            point = await self._to_point(session_id, thought)
            await self.collection.write([point])
        logger.debug(f"Saved thought {thought.id} ({thought.type_name}) in {session_id}")

    async def save_thoughts(self, session_id: str, thoughts: list[Thought]) -> None:
        """Persist many thoughts in sequential batches.

        Batches already written stay written when a later batch fails.
        """
        check_session_id(session_id)
        if not thoughts:
            return

        batch_size = self.config.inference.batch_size
        async with self.lock.hold(session_id):
            for start in range(0, len(thoughts), batch_size):
                batch = thoughts[start:start + batch_size]
                points = [await self._to_point(session_id, t) for t in batch]
                await self.collection.write(points)
        logger.debug(f"Saved {len(thoughts)} thoughts in {session_id}")

    async def clear_session(self, session_id: str) -> None:
        """Delete every thought, relation and result of a session."""
        check_session_id(session_id)
        async with self.lock.hold(session_id):
            await self.collection.delete_session(session_id)
            for companion in self._companions:
                await companion.delete_session(session_id)
        logger.info(f"Cleared session {session_id}")

    # =========================================================================
    # Reads
    # =========================================================================

    async def load_with_vectors(
        self,
        session_id: str,
        **fields,
    ) -> list[tuple[Thought, list[float] | None]]:
        """Thoughts of a session with their stored vectors, oldest first.

        Args:
            session_id: Session to read
            **fields: Extra exact-match payload conditions
        """
        check_session_id(session_id)
        points = await self.collection.scroll_matching(
            session_filter(session_id, **fields),
            with_vectors=True,
            what="load thoughts",
        )
        pairs = []
        for point in points:
            thought = self.decoder.decode_one(point, thought_from_payload)
            if thought is not None:
                pairs.append((thought, point.vector))
        pairs.sort(key=lambda pair: pair[0].timestamp)
        return pairs

    async def _load(self, session_id: str, **fields) -> list[Thought]:
        check_session_id(session_id)
        points = await self.collection.scroll_matching(
            session_filter(session_id, **fields), what="get thoughts"
        )
        thoughts = self.decoder.decode(points, thought_from_payload)
        thoughts.sort(key=lambda t: t.timestamp)
        return thoughts

    async def get_thoughts(self, session_id: str) -> list[Thought]:
        """All thoughts of a session, oldest first."""
        return await self._load(session_id)

    async def get_thoughts_in_range(
        self,
        session_id: str,
        start: datetime,
        end: datetime,
    ) -> list[Thought]:
        """Thoughts with start <= timestamp <= end, oldest first."""
        start, end = utc(start), utc(end)
        return [t for t in await self._load(session_id) if start <= t.timestamp <= end]

    async def get_thoughts_by_type(
        self,
        session_id: str,
        thought_type: ThoughtType | str,
        limit: int = 100,
    ) -> list[Thought]:
        """Up to ``limit`` thoughts of one type, oldest first."""
        if limit < 1:
            raise InvalidInputError(f"limit must be positive, got {limit}")
        type_name = tag_value(coerce_tag(ThoughtType, thought_type))
        thoughts = await self._load(session_id, type=type_name)
        return thoughts[:limit]

    async def get_recent_thoughts(self, session_id: str, count: int = 10) -> list[Thought]:
        """The ``count`` newest thoughts, newest first."""
        if count < 1:
            raise InvalidInputError(f"count must be positive, got {count}")
        thoughts = await self._load(session_id)
        return list(reversed(thoughts))[:count]

    async def get_thought(self, session_id: str, thought_id: UUID | str) -> Thought | None:
        """Look up one thought of a session; None when absent.

        Raises:
            InvalidInputError: If thought_id is not a UUID
        """
        check_session_id(session_id)
        point_id = str(parse_uuid(thought_id, "thought id"))

        async def _fetch():
            return await self.backend.retrieve(self.collection.name, [point_id])

        points = await self.collection.read(_fetch, [], "get thought")
        for point in points:
            if point.payload.get("session_id") == session_id:
                return self.decoder.decode_one(point, thought_from_payload)
        return None

    async def search_thoughts(
        self,
        session_id: str,
        query: str,
        limit: int = 20,
    ) -> list[Thought]:
        """Semantic search within a session, best match first.

        Without an embedder this is a case-insensitive substring match over
        the session's thoughts in chronological order.
        """
        check_session_id(session_id)
        if limit < 1:
            raise InvalidInputError(f"limit must be positive, got {limit}")

        if self.embedding_provider is None:
            needle = query.casefold()
            matches = [t for t in await self._load(session_id) if needle in t.content.casefold()]
            return matches[:limit]

        vector = await self.embedding_provider.embed(query)

        async def _search():
            return await self.backend.search(
                self.collection.name,
                vector,
                filter=session_filter(session_id),
                limit=limit,
            )

        points = await self.collection.read(_search, [], "search thoughts")
        return self.decoder.decode(points, thought_from_payload)

    async def get_chained_thoughts(
        self,
        session_id: str,
        parent_id: UUID | str,
        max_depth: int | None = None,
    ) -> list[Thought]:
        """All descendants of a thought through parent links, breadth first.

        Args:
            session_id: Session to read
            parent_id: Root of the chain (not included in the result)
            max_depth: Optional cap on generations (1 = direct children)
        """
        root = parse_uuid(parent_id, "parent thought id")
        if max_depth is not None and max_depth < 1:
            raise InvalidInputError(f"max_depth must be positive, got {max_depth}")

        children: dict[UUID, list[Thought]] = {}
        for thought in await self._load(session_id):
            if thought.parent_thought_id is not None:
                children.setdefault(thought.parent_thought_id, []).append(thought)

        chained: list[Thought] = []
        visited = {root}
        queue = deque([(root, 0)])
        while queue:
            current, depth = queue.popleft()
            if max_depth is not None and depth >= max_depth:
                continue
            for child in children.get(current, []):
                if child.id in visited:
                    continue
                visited.add(child.id)
                chained.append(child)
                queue.append((child.id, depth + 1))
        return chained

    # =========================================================================
    # Aggregates
    # =========================================================================

    async def get_statistics(self, session_id: str) -> ThoughtStatistics:
        thoughts = await self._load(session_id)
        if not thoughts:
            return ThoughtStatistics()

        return ThoughtStatistics(
            total_count=len(thoughts),
            count_by_type=dict(Counter(t.type_name for t in thoughts)),
            count_by_origin=dict(Counter(t.origin_name for t in thoughts)),
            average_confidence=sum(t.confidence for t in thoughts) / len(thoughts),
            average_relevance=sum(t.relevance for t in thoughts) / len(thoughts),
            earliest_thought=thoughts[0].timestamp,
            latest_thought=thoughts[-1].timestamp,
            chain_count=sum(1 for t in thoughts if t.parent_thought_id is not None),
        )

    async def list_sessions(self) -> list[str]:
        """Distinct session ids that have at least one thought."""
        points = await self.collection.scroll_matching(None, what="list sessions")
        return sorted({
            p.payload["session_id"]
            for p in points
            if isinstance(p.payload.get("session_id"), str) and p.payload["session_id"]
        })


__all__ = ["ThoughtStore"]
