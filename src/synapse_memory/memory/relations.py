"""Symbolic layer: relations between thoughts and the results thoughts produce.

RelationGraph persists typed, directed edges in the relations collection.
Each edge is a point whose vector embeds the text
``"{relation_type}: {source} -> {target}"``. ResultStore persists outcomes
in the results collection and links each result to its thought with a
``leads_to`` (success) or ``triggers`` (failure) edge.

Both stores share the per-session KeyedLock of the ThoughtStore they sit
next to, so writes to one session never interleave.
"""

from uuid import UUID
import logging

from synapse_memory.config import SynapseConfig
from synapse_memory.memory.backend import FieldMatch, PayloadFilter, VectorBackend, VectorPoint
from synapse_memory.memory.base import Relation, RelationType, Result, parse_uuid
from synapse_memory.memory.embedding import EmbeddingProvider
from synapse_memory.memory.locks import KeyedLock
from synapse_memory.memory.payloads import (
    DecodeCounter,
    relation_from_payload,
    relation_text,
    relation_to_payload,
    result_from_payload,
    result_to_payload,
)
from synapse_memory.memory.session_collection import (
    SessionCollection,
    check_session_id,
    session_filter,
)

logger = logging.getLogger(__name__)


class RelationGraph:
    """Typed edges between thoughts, stored as vector points."""

    def __init__(
        self,
        backend: VectorBackend,
        embedding_provider: EmbeddingProvider | None = None,
        config: SynapseConfig | None = None,
        lock: KeyedLock | None = None,
    ):
        self.config = config or SynapseConfig()
        self.backend = backend
        self.lock = lock or KeyedLock()
        self.decoder = DecodeCounter()

        store_config = self.config.vector_store
        self.collection = SessionCollection(
            backend,
            store_config.relations_collection,
            store_config.vector_size,
            store_config.distance,
            embedding_provider,
        )

    @property
    def decode_failures(self) -> int:
        return self.decoder.failures

    async def _to_point(self, session_id: str, relation: Relation) -> VectorPoint:
        return VectorPoint(
            id=str(relation.id),
            vector=await self.collection.embed(relation_text(relation)),
            payload=relation_to_payload(session_id, relation),
        )

    async def save_relation(self, session_id: str, relation: Relation) -> None:
        """Persist one relation (upsert by relation id)."""
        check_session_id(session_id)
        async with self.lock.hold(session_id):
            await self.collection.write([await self._to_point(session_id, relation)])
        logger.debug(
            f"Saved relation {relation.relation_type.value} "
            f"{relation.source_thought_id} -> {relation.target_thought_id}"
        )

    async def save_relations(self, session_id: str, relations: list[Relation]) -> None:
        """Persist many relations in sequential batches."""
        check_session_id(session_id)
        batch_size = self.config.inference.batch_size
        async with self.lock.hold(session_id):
            for start in range(0, len(relations), batch_size):
                batch = relations[start:start + batch_size]
                await self.collection.write([await self._to_point(session_id, r) for r in batch])

    async def get_session_relations(
        self,
        session_id: str,
        relation_type: RelationType | str | None = None,
    ) -> list[Relation]:
        """Relations of a session, oldest first, optionally of one type."""
        check_session_id(session_id)
        fields = {}
        if relation_type is not None:
            fields["relation_type"] = RelationType(relation_type).value
        points = await self.collection.scroll_matching(
            session_filter(session_id, **fields), what="get relations"
        )
        relations = self.decoder.decode(points, relation_from_payload)
        relations.sort(key=lambda r: r.created_at)
        return relations

    async def get_relations_for_thought(self, thought_id: UUID | str) -> list[Relation]:
        """Incoming and outgoing relations of a thought, across sessions."""
        key = str(parse_uuid(thought_id, "thought id"))
        points = await self.collection.scroll_matching(
            PayloadFilter.any_of(
                FieldMatch("source_thought_id", key),
                FieldMatch("target_thought_id", key),
            ),
            what="get relations for thought",
        )
        relations = self.decoder.decode(points, relation_from_payload)
        relations.sort(key=lambda r: r.created_at)
        return relations

    async def get_outgoing(self, session_id: str) -> dict[UUID, list[Relation]]:
        """Adjacency map source id -> outgoing relations, in insertion order."""
        adjacency: dict[UUID, list[Relation]] = {}
        for relation in await self.get_session_relations(session_id):
            adjacency.setdefault(relation.source_thought_id, []).append(relation)
        return adjacency


class ResultStore:
    """Outcomes of thoughts, each linked back to its thought by a relation."""

    def __init__(
        self,
        backend: VectorBackend,
        graph: RelationGraph,
        embedding_provider: EmbeddingProvider | None = None,
        config: SynapseConfig | None = None,
        lock: KeyedLock | None = None,
    ):
        self.config = config or SynapseConfig()
        self.backend = backend
        self.graph = graph
        self.lock = lock or graph.lock
        self.decoder = DecodeCounter()

        store_config = self.config.vector_store
        self.collection = SessionCollection(
            backend,
            store_config.results_collection,
            store_config.vector_size,
            store_config.distance,
            embedding_provider,
        )

    @property
    def decode_failures(self) -> int:
        return self.decoder.failures

    async def save_result(self, session_id: str, result: Result) -> Relation:
        """Persist a result and the relation linking its thought to it.

        Returns:
            The thought -> result relation that was saved
        """
        check_session_id(session_id)
        relation = Relation(
            source_thought_id=result.thought_id,
            target_thought_id=result.id,
            relation_type=RelationType.LEADS_TO if result.success else RelationType.TRIGGERS,
            strength=result.confidence,
        )

        async with self.lock.hold(session_id):
            point = VectorPoint(
                id=str(result.id),
                vector=await self.collection.embed(result.content),
                payload=result_to_payload(session_id, result),
            )
            await self.collection.write([point])
            await self.graph.save_relation(session_id, relation)

        logger.debug(
            f"Saved {result.result_type.value} result {result.id} for thought {result.thought_id}"
        )
        return relation

    async def get_session_results(self, session_id: str) -> list[Result]:
        check_session_id(session_id)
        points = await self.collection.scroll_matching(
            session_filter(session_id), what="get results"
        )
        results = self.decoder.decode(points, result_from_payload)
        results.sort(key=lambda r: r.created_at)
        return results

    async def get_results_for_thought(self, thought_id: UUID | str) -> list[Result]:
        """Results produced by a thought, oldest first."""
        key = str(parse_uuid(thought_id, "thought id"))
        points = await self.collection.scroll_matching(
            PayloadFilter.where(thought_id=key), what="get results for thought"
        )
        results = self.decoder.decode(points, result_from_payload)
        results.sort(key=lambda r: r.created_at)
        return results


__all__ = ["RelationGraph", "ResultStore"]
