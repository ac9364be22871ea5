"""Relation inference between new and recent thoughts.

When a thought is saved with inference enabled, it is compared with the
most recent thoughts of its session. Pairs that are semantically close
(cosine similarity above the configured threshold) are linked with a
relation whose type depends on the two thought types. A thought is always
linked to its parent with ``refines``, however dissimilar the two are.

Edges point from the existing thought to the new one; their strength is
the similarity clamped to [0, 1].

Example:
    engine = RelationInferenceEngine(store, graph)
    relations = await engine.save_with_relations("session-1", decision)
    # [Relation(source=<analysis>, target=<decision>, relation_type=LEADS_TO, ...)]
"""

from dataclasses import dataclass
from uuid import NAMESPACE_URL, UUID, uuid5
import logging

from synapse_memory.config import InferenceConfig
from synapse_memory.memory.base import (
    Relation,
    RelationType,
    Thought,
    ThoughtType,
    tag_value,
)
from synapse_memory.memory.embedding import cosine_similarity
from synapse_memory.memory.relations import RelationGraph
from synapse_memory.memory.thought_store import ThoughtStore

logger = logging.getLogger(__name__)

_RELATION_NAMESPACE = uuid5(NAMESPACE_URL, "synapse-memory/inferred-relation")


@dataclass(frozen=True)
class RelationRule:
    """Maps an (existing type, new type) pair onto a relation type.

    ``None`` on either side matches any thought type.
    """

    existing: ThoughtType | str | None
    new: ThoughtType | str | None
    relation_type: RelationType

    def matches(self, existing_type: ThoughtType | str, new_type: ThoughtType | str) -> bool:
        if self.existing is not None and tag_value(self.existing) != tag_value(existing_type):
            return False
        if self.new is not None and tag_value(self.new) != tag_value(new_type):
            return False
        return True


# First match wins
DEFAULT_RULES: tuple[RelationRule, ...] = (
    RelationRule(ThoughtType.OBSERVATION, ThoughtType.ANALYTICAL, RelationType.LEADS_TO),
    RelationRule(ThoughtType.ANALYTICAL, ThoughtType.DECISION, RelationType.LEADS_TO),
    RelationRule(ThoughtType.EMOTIONAL, ThoughtType.SELF_REFLECTION, RelationType.TRIGGERS),
    RelationRule(ThoughtType.MEMORY_RECALL, None, RelationType.SUPPORTS),
    RelationRule(ThoughtType.STRATEGIC, ThoughtType.DECISION, RelationType.LEADS_TO),
    RelationRule(ThoughtType.SYNTHESIS, None, RelationType.ABSTRACTS),
    RelationRule(ThoughtType.CREATIVE, None, RelationType.ELABORATES),
    RelationRule(None, ThoughtType.SYNTHESIS, RelationType.PART_OF),
    RelationRule(None, ThoughtType.DECISION, RelationType.LEADS_TO),
)


class RelationRuleTable:
    """Ordered rule list with a fallback relation type."""

    def __init__(
        self,
        rules: tuple[RelationRule, ...] | list[RelationRule] = DEFAULT_RULES,
        default: RelationType = RelationType.SIMILAR_TO,
    ):
        self.rules = tuple(rules)
        self.default = RelationType(default)

    def infer(self, existing_type: ThoughtType | str, new_type: ThoughtType | str) -> RelationType:
        for rule in self.rules:
            if rule.matches(existing_type, new_type):
                return rule.relation_type
        return self.default


def inferred_relation_id(source: UUID, target: UUID, relation_type: RelationType) -> UUID:
    """Stable id for an inferred edge, so re-inference overwrites instead of duplicating."""
    return uuid5(_RELATION_NAMESPACE, f"{source}:{target}:{relation_type.value}")


class RelationInferenceEngine:
    """Saves thoughts and links them to similar recent thoughts.

    Args:
        thought_store: Store the thoughts are saved to and read from
        graph: Relation graph receiving the inferred edges
        rules: Relation type table (default: DEFAULT_RULES)
        config: Recent window size and similarity threshold
    """

    def __init__(
        self,
        thought_store: ThoughtStore,
        graph: RelationGraph,
        rules: RelationRuleTable | None = None,
        config: InferenceConfig | None = None,
    ):
        self.thought_store = thought_store
        self.graph = graph
        self.rules = rules or RelationRuleTable()
        self.config = config or thought_store.config.inference

    @property
    def enabled(self) -> bool:
        return self.thought_store.embedding_provider is not None

    async def save_with_relations(
        self,
        session_id: str,
        thought: Thought,
        auto_infer: bool = True,
    ) -> list[Relation]:
        """Persist a thought and, optionally, relations to recent thoughts.

        Without an embedding provider the thought is saved and no relations
        are inferred.

        Returns:
            The relations that were saved
        """
        async with self.thought_store.lock.hold(session_id):
            await self.thought_store.save_thought(session_id, thought)
            if not auto_infer or not self.enabled:
                return []

            relations = await self.infer_relations(session_id, thought)
            if relations:
                await self.graph.save_relations(session_id, relations)

        logger.debug(f"Inferred {len(relations)} relations for thought {thought.id}")
        return relations

    async def infer_relations(self, session_id: str, thought: Thought) -> list[Relation]:
        """Compute (without saving) the relations a thought would get."""
        embedder = self.thought_store.embedding_provider
        if embedder is None:
            return []

        stored = await self.thought_store.load_with_vectors(session_id)
        vectors = {t.id: v for t, v in stored}

        new_vector = vectors.get(thought.id) or await embedder.embed(thought.content)

        # Newest first, excluding the thought itself
        candidates = [t for t, _ in reversed(stored) if t.id != thought.id]
        recent = candidates[:self.config.recent_window]
        if thought.parent_thought_id is not None and all(
            t.id != thought.parent_thought_id for t in recent
        ):
            parent = next((t for t in candidates if t.id == thought.parent_thought_id), None)
            if parent is not None:
                recent.append(parent)

        relations = []
        for candidate in recent:
            candidate_vector = vectors.get(candidate.id) or await embedder.embed(candidate.content)
            similarity = cosine_similarity(new_vector, candidate_vector)

            if thought.parent_thought_id == candidate.id:
                relation_type = RelationType.REFINES
                reason = "parent"
            elif similarity > self.config.similarity_threshold:
                relation_type = self.rules.infer(candidate.type, thought.type)
                reason = "similarity"
            else:
                continue

            relations.append(
                Relation(
                    id=inferred_relation_id(candidate.id, thought.id, relation_type),
                    source_thought_id=candidate.id,
                    target_thought_id=thought.id,
                    relation_type=relation_type,
                    strength=min(max(similarity, 0.0), 1.0),
                    metadata={"inferred_from": reason},
                )
            )
        return relations


__all__ = [
    "DEFAULT_RULES",
    "RelationInferenceEngine",
    "RelationRule",
    "RelationRuleTable",
    "inferred_relation_id",
]
