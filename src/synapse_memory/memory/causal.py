"""Causal chain reconstruction over the relation graph.

A causal chain is a path of thoughts connected by outgoing relations,
starting at a given thought. The finder enumerates every maximal path up to
a depth limit with an explicit stack, so deep graphs cannot exhaust the
interpreter's recursion limit. Cycles are cut per branch: a thought may
appear in several chains but never twice in one.

Relations pointing at ids that are not thoughts of the session (results,
or thoughts since deleted) are ignored.
"""

from dataclasses import dataclass
from uuid import UUID
import logging

from synapse_memory.config import InferenceConfig
from synapse_memory.exceptions import InvalidInputError
from synapse_memory.memory.base import Relation, Thought, parse_uuid
from synapse_memory.memory.relations import RelationGraph
from synapse_memory.memory.thought_store import ThoughtStore

logger = logging.getLogger(__name__)

MIN_CHAIN_DEPTH = 2
MAX_CHAIN_DEPTH = 10


@dataclass
class ChainSummary:
    """Aggregate chain statistics for a session."""

    chain_start_count: int  # Thoughts no relation points at
    average_chain_length: float  # Mean longest-chain length over the sample
    sampled_starts: int


def _check_depth(max_depth: int) -> None:
    if not MIN_CHAIN_DEPTH <= max_depth <= MAX_CHAIN_DEPTH:
        raise InvalidInputError(
            f"max_depth must be between {MIN_CHAIN_DEPTH} and {MAX_CHAIN_DEPTH}, got {max_depth}"
        )


def walk_chains(
    start: UUID,
    thoughts: dict[UUID, Thought],
    adjacency: dict[UUID, list[Relation]],
    max_depth: int,
) -> list[list[Thought]]:
    """Enumerate maximal chains from ``start``.

    A path is emitted when it holds ``max_depth`` thoughts or when its last
    thought has no outgoing edge to a thought not already on the path.
    Single-thought paths are never emitted.
    """
    chains: list[list[Thought]] = []
    stack: list[list[UUID]] = [[start]]

    while stack:
        path = stack.pop()
        if len(path) >= max_depth:
            chains.append([thoughts[i] for i in path])
            continue

        on_path = set(path)
        successors: list[UUID] = []
        for relation in adjacency.get(path[-1], []):
            target = relation.target_thought_id
            if target in thoughts and target not in on_path and target not in successors:
                successors.append(target)

        if not successors:
            if len(path) > 1:
                chains.append([thoughts[i] for i in path])
            continue

        # Reversed so the first successor is explored first
        for target in reversed(successors):
            stack.append(path + [target])

    return chains


class CausalChainFinder:
    """Finds reasoning traces by following relations forward."""

    def __init__(
        self,
        thought_store: ThoughtStore,
        graph: RelationGraph,
        config: InferenceConfig | None = None,
    ):
        self.thought_store = thought_store
        self.graph = graph
        self.config = config or thought_store.config.inference

    async def _load(
        self, session_id: str
    ) -> tuple[dict[UUID, Thought], dict[UUID, list[Relation]]]:
        thoughts = {t.id: t for t in await self.thought_store.get_thoughts(session_id)}
        adjacency = await self.graph.get_outgoing(session_id)
        return thoughts, adjacency

    async def find_causal_chains(
        self,
        session_id: str,
        start_id: UUID | str,
        max_depth: int | None = None,
    ) -> list[list[Thought]]:
        """All maximal chains starting at a thought.

        Args:
            session_id: Session to search
            start_id: Thought the chains start from
            max_depth: Longest chain, in thoughts (2-10, default from config)

        Returns:
            Chains as lists of thoughts, start first; [] for an unknown start

        Raises:
            InvalidInputError: If start_id is not a UUID or max_depth is out of range
        """
        depth = self.config.default_chain_depth if max_depth is None else max_depth
        _check_depth(depth)
        start = parse_uuid(start_id, "start thought id")

        thoughts, adjacency = await self._load(session_id)
        if start not in thoughts:
            return []
        return walk_chains(start, thoughts, adjacency, depth)

    async def summarize(
        self,
        session_id: str,
        sample_size: int | None = None,
        max_depth: int = MAX_CHAIN_DEPTH,
    ) -> ChainSummary:
        """Count chain starts and estimate the average chain length.

        Chain starts are thoughts that no relation points at. Only the
        ``sample_size`` oldest starts are walked; the average is taken over
        their longest chains (0 for a start with no outgoing chain).
        """
        _check_depth(max_depth)
        sample_size = self.config.stats_sample_size if sample_size is None else sample_size

        thoughts, adjacency = await self._load(session_id)
        targeted = {r.target_thought_id for edges in adjacency.values() for r in edges}
        starts = sorted(
            (t for t in thoughts.values() if t.id not in targeted),
            key=lambda t: t.timestamp,
        )

        sample = starts[:max(sample_size, 0)]
        if not sample:
            return ChainSummary(len(starts), 0.0, 0)

        total = 0
        for start in sample:
            chains = walk_chains(start.id, thoughts, adjacency, max_depth)
            total += max((len(c) for c in chains), default=0)

        return ChainSummary(
            chain_start_count=len(starts),
            average_chain_length=total / len(sample),
            sampled_starts=len(sample),
        )


__all__ = [
    "CausalChainFinder",
    "ChainSummary",
    "MAX_CHAIN_DEPTH",
    "MIN_CHAIN_DEPTH",
    "walk_chains",
]
