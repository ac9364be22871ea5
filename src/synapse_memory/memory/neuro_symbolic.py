"""Neuro-symbolic thought store.

Combines the neural side (embedded thoughts, semantic search) with the
symbolic side (typed relations, results, causal chains) behind one object.
All components share one backend and one per-session write lock.

Example:
    from synapse_memory.factory import create_thought_store

    store = create_thought_store(SynapseConfig.from_env())

    await store.save_with_relations("session-1", observation)
    await store.save_with_relations("session-1", analysis)
    chains = await store.find_causal_chains("session-1", observation.id)
    stats = await store.get_neuro_symbolic_stats("session-1")
"""

from collections import Counter
from datetime import datetime
from uuid import UUID
import logging

from synapse_memory.config import SynapseConfig
from synapse_memory.exceptions import InvalidInputError
from synapse_memory.memory.backend import VectorBackend
from synapse_memory.memory.base import (
    NeuroSymbolicStats,
    Relation,
    RelationType,
    Result,
    Thought,
    ThoughtStatistics,
    ThoughtType,
    coerce_tag,
    tag_value,
)
from synapse_memory.memory.causal import CausalChainFinder, ChainSummary
from synapse_memory.memory.embedding import EmbeddingProvider
from synapse_memory.memory.inference import RelationInferenceEngine, RelationRuleTable
from synapse_memory.memory.locks import KeyedLock
from synapse_memory.memory.relations import RelationGraph, ResultStore
from synapse_memory.memory.thought_store import ThoughtStore

logger = logging.getLogger(__name__)


class NeuroSymbolicThoughtStore:
    """Thoughts, relations, results and causal reasoning for an agent.

    Args:
        backend: Vector backend shared by all collections
        embedding_provider: Optional embedder; enables semantic search and
            relation inference
        config: Collection names and inference parameters
        rules: Relation type table used by inference
    """

    def __init__(
        self,
        backend: VectorBackend,
        embedding_provider: EmbeddingProvider | None = None,
        config: SynapseConfig | None = None,
        rules: RelationRuleTable | None = None,
    ):
        self.config = config or SynapseConfig()
        self.backend = backend
        self.lock = KeyedLock()

        self.thoughts = ThoughtStore(backend, embedding_provider, self.config, self.lock)
        self.relations = RelationGraph(backend, embedding_provider, self.config, self.lock)
        self.results = ResultStore(
            backend, self.relations, embedding_provider, self.config, self.lock
        )
        self.inference = RelationInferenceEngine(self.thoughts, self.relations, rules)
        self.chains = CausalChainFinder(self.thoughts, self.relations)

    @property
    def supports_semantic_search(self) -> bool:
        return self.thoughts.supports_semantic_search

    @property
    def decode_failures(self) -> int:
        """Undecodable points skipped across thoughts, relations and results."""
        return (
            self.thoughts.decode_failures
            + self.relations.decode_failures
            + self.results.decode_failures
        )

    async def close(self) -> None:
        await self.backend.close()

    # =========================================================================
    # Thoughts
    # =========================================================================

    async def save_thought(self, session_id: str, thought: Thought) -> None:
        await self.thoughts.save_thought(session_id, thought)

    async def save_thoughts(self, session_id: str, thoughts: list[Thought]) -> None:
        await self.thoughts.save_thoughts(session_id, thoughts)

    async def get_thoughts(self, session_id: str) -> list[Thought]:
        return await self.thoughts.get_thoughts(session_id)

    async def get_thoughts_in_range(
        self, session_id: str, start: datetime, end: datetime
    ) -> list[Thought]:
        return await self.thoughts.get_thoughts_in_range(session_id, start, end)

    async def get_thoughts_by_type(
        self, session_id: str, thought_type: ThoughtType | str, limit: int = 100
    ) -> list[Thought]:
        return await self.thoughts.get_thoughts_by_type(session_id, thought_type, limit)

    async def get_recent_thoughts(self, session_id: str, count: int = 10) -> list[Thought]:
        return await self.thoughts.get_recent_thoughts(session_id, count)

    async def get_thought(self, session_id: str, thought_id: UUID | str) -> Thought | None:
        return await self.thoughts.get_thought(session_id, thought_id)

    async def search_thoughts(self, session_id: str, query: str, limit: int = 20) -> list[Thought]:
        return await self.thoughts.search_thoughts(session_id, query, limit)

    async def get_chained_thoughts(
        self, session_id: str, parent_id: UUID | str, max_depth: int | None = None
    ) -> list[Thought]:
        return await self.thoughts.get_chained_thoughts(session_id, parent_id, max_depth)

    async def clear_session(self, session_id: str) -> None:
        await self.thoughts.clear_session(session_id)

    async def get_statistics(self, session_id: str) -> ThoughtStatistics:
        return await self.thoughts.get_statistics(session_id)

    async def list_sessions(self) -> list[str]:
        return await self.thoughts.list_sessions()

    # =========================================================================
    # Symbolic layer
    # =========================================================================

    async def save_with_relations(
        self, session_id: str, thought: Thought, auto_infer: bool = True
    ) -> list[Relation]:
        return await self.inference.save_with_relations(session_id, thought, auto_infer)

    async def save_relation(self, session_id: str, relation: Relation) -> None:
        await self.relations.save_relation(session_id, relation)

    async def save_result(self, session_id: str, result: Result) -> Relation:
        return await self.results.save_result(session_id, result)

    async def get_relations_for_thought(self, thought_id: UUID | str) -> list[Relation]:
        return await self.relations.get_relations_for_thought(thought_id)

    async def get_results_for_thought(self, thought_id: UUID | str) -> list[Result]:
        return await self.results.get_results_for_thought(thought_id)

    async def find_causal_chains(
        self, session_id: str, start_id: UUID | str, max_depth: int | None = None
    ) -> list[list[Thought]]:
        return await self.chains.find_causal_chains(session_id, start_id, max_depth)

    async def query_symbolic(
        self,
        session_id: str,
        relation_type: RelationType | str,
        target_type: ThoughtType | str | None = None,
    ) -> list[tuple[Thought, Relation]]:
        """Find (source thought, relation) pairs by relation type.

        Answers questions like "which thoughts lead to a Decision":
            await store.query_symbolic(session, "leads_to", "Decision")

        Args:
            session_id: Session to query
            relation_type: Relation type to match
            target_type: Optional thought type the relation must point at

        Raises:
            InvalidInputError: If relation_type is not a known relation type
        """
        try:
            relation_type = RelationType(relation_type)
        except ValueError as e:
            raise InvalidInputError(f"Unknown relation type: {relation_type!r}", cause=e) from e

        relations = await self.relations.get_session_relations(session_id, relation_type)
        thoughts = {t.id: t for t in await self.thoughts.get_thoughts(session_id)}
        wanted = tag_value(coerce_tag(ThoughtType, target_type)) if target_type else None

        matches = []
        for relation in relations:
            source = thoughts.get(relation.source_thought_id)
            if source is None:
                continue
            if wanted is not None:
                target = thoughts.get(relation.target_thought_id)
                if target is None or target.type_name != wanted:
                    continue
            matches.append((source, relation))
        return matches

    async def get_neuro_symbolic_stats(self, session_id: str) -> NeuroSymbolicStats:
        """Counts by kind plus sampled causal chain statistics."""
        thoughts = await self.thoughts.get_thoughts(session_id)
        relations = await self.relations.get_session_relations(session_id)
        results = await self.results.get_session_results(session_id)
        summary: ChainSummary = await self.chains.summarize(session_id)

        return NeuroSymbolicStats(
            total_thoughts=len(thoughts),
            total_relations=len(relations),
            total_results=len(results),
            thoughts_by_type=dict(Counter(t.type_name for t in thoughts)),
            relations_by_type=dict(Counter(r.relation_type.value for r in relations)),
            results_by_type=dict(Counter(r.result_type.value for r in results)),
            causal_chain_count=summary.chain_start_count,
            average_chain_length=summary.average_chain_length,
            oldest_thought=thoughts[0].timestamp if thoughts else None,
            newest_thought=thoughts[-1].timestamp if thoughts else None,
        )


__all__ = ["NeuroSymbolicThoughtStore"]
