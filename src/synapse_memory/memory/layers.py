"""Cognitive memory layers over the vector collections.

Five layers group the physical collections by the kind of memory they
hold. Each collection belongs to at most one layer; the retention priority
tells consumers how precious a layer's content is.

| Layer            | Holds                                   | Priority |
|------------------|-----------------------------------------|----------|
| working          | Active thoughts and immediate reasoning | 1.0      |
| episodic         | Recent interactions and their outcomes  | 0.9      |
| semantic         | Facts, concepts, domain knowledge       | 0.7      |
| procedural       | Skills, tool patterns, procedures       | 0.8      |
| autobiographical | Self-model, identity, known entities    | 0.95     |

Example:
    manager = MemoryLayerManager(CollectionAdmin(backend))
    await manager.initialize(vector_size=768)

    count = await manager.get_layer_vector_count(MemoryLayer.WORKING)
    snapshot = await manager.create_snapshot()
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
import logging

from synapse_memory.exceptions import ConfigurationError, ConfirmationRequiredError
from synapse_memory.memory.admin import (
    DEFAULT_VECTOR_SIZE,
    CollectionAdmin,
    CollectionInfo,
    CollectionLink,
    LinkType,
    MemoryStatistics,
)

logger = logging.getLogger(__name__)


class MemoryLayer(str, Enum):
    """Cognitive memory layers."""

    WORKING = "working"
    EPISODIC = "episodic"
    SEMANTIC = "semantic"
    PROCEDURAL = "procedural"
    AUTOBIOGRAPHICAL = "autobiographical"


@dataclass(frozen=True)
class MemoryLayerMapping:
    """Which collections make up a layer."""

    layer: MemoryLayer
    collections: tuple[str, ...]
    description: str
    retention_priority: float = 1.0

    def __post_init__(self):
        object.__setattr__(self, "layer", MemoryLayer(self.layer))
        object.__setattr__(self, "collections", tuple(self.collections))
        if not 0.0 <= self.retention_priority <= 1.0:
            raise ConfigurationError(
                f"retention_priority of {self.layer.value} must be within [0, 1]"
            )


DEFAULT_LAYER_MAPPINGS: tuple[MemoryLayerMapping, ...] = (
    MemoryLayerMapping(
        MemoryLayer.WORKING,
        ("synapse_neuro_thoughts",),
        "Active thought processes and immediate reasoning",
        1.0,
    ),
    MemoryLayerMapping(
        MemoryLayer.EPISODIC,
        ("synapse_conversations", "synapse_thought_results"),
        "Recent interactions and their outcomes",
        0.9,
    ),
    MemoryLayerMapping(
        MemoryLayer.SEMANTIC,
        ("core", "fullcore", "codebase", "qdrant_documentation"),
        "Learned facts, concepts, and domain knowledge",
        0.7,
    ),
    MemoryLayerMapping(
        MemoryLayer.PROCEDURAL,
        ("synapse_skills", "synapse_tool_patterns", "tools"),
        "Learned skills, tool usage patterns, and procedures",
        0.8,
    ),
    MemoryLayerMapping(
        MemoryLayer.AUTOBIOGRAPHICAL,
        ("synapse_personalities", "synapse_persons", "synapse_selfindex"),
        "Self-model, identity, and known entities",
        0.95,
    ),
)


@dataclass
class MemoryHealthReport:
    """Outcome of a layer-wide health check."""

    healthy_collections: int
    unhealthy_collections: int
    healed_collections: list[str]
    unhealthy_collection_names: list[str]
    statistics: MemoryStatistics


@dataclass
class MemorySnapshot:
    """Point-in-time inventory of the whole memory."""

    created_at: datetime
    collections: list[CollectionInfo]
    links: list[CollectionLink]
    layer_vector_counts: dict[MemoryLayer, int]
    statistics: MemoryStatistics
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable form."""
        return {
            "created_at": self.created_at.isoformat(),
            "collections": [
                {
                    "name": c.name,
                    "vector_size": c.vector_size,
                    "points_count": c.points_count,
                    "distance": c.distance.value,
                    "status": c.status.value,
                    "purpose": c.purpose,
                    "linked_collections": list(c.linked_collections),
                }
                for c in self.collections
            ],
            "links": [
                {
                    "source": link.source,
                    "target": link.target,
                    "relation_type": link.relation_type.value,
                    "strength": link.strength,
                    "description": link.description,
                }
                for link in self.links
            ],
            "layer_vector_counts": {
                layer.value: count for layer, count in self.layer_vector_counts.items()
            },
            "statistics": {
                "total_collections": self.statistics.total_collections,
                "total_vectors": self.statistics.total_vectors,
                "healthy_collections": self.statistics.healthy_collections,
                "unhealthy_collections": self.statistics.unhealthy_collections,
                "link_count": self.statistics.link_count,
                "dimension_distribution": {
                    str(size): count
                    for size, count in self.statistics.dimension_distribution.items()
                },
            },
            "metadata": dict(self.metadata),
        }


def _check_mappings(mappings: list[MemoryLayerMapping]) -> dict[MemoryLayer, MemoryLayerMapping]:
    by_layer: dict[MemoryLayer, MemoryLayerMapping] = {}
    owner: dict[str, MemoryLayer] = {}
    for mapping in mappings:
        if mapping.layer in by_layer:
            raise ConfigurationError(f"Layer {mapping.layer.value} is mapped twice")
        for collection in mapping.collections:
            if collection in owner:
                raise ConfigurationError(
                    f"Collection {collection} is mapped to both "
                    f"{owner[collection].value} and {mapping.layer.value}"
                )
            owner[collection] = mapping.layer
        by_layer[mapping.layer] = mapping
    return by_layer


class MemoryLayerManager:
    """Maps memory layers onto collections and manages them as units.

    Args:
        admin: Collection admin over the backend
        mappings: Layer mappings (default: DEFAULT_LAYER_MAPPINGS). A
            collection may belong to at most one layer.

    Raises:
        ConfigurationError: If mappings overlap or map a layer twice
    """

    def __init__(
        self,
        admin: CollectionAdmin,
        mappings: list[MemoryLayerMapping] | tuple[MemoryLayerMapping, ...] | None = None,
    ):
        self.admin = admin
        self._mappings = _check_mappings(
            list(DEFAULT_LAYER_MAPPINGS if mappings is None else mappings)
        )
        self._initialized = False
        self._init_lock = asyncio.Lock()

    @property
    def mappings(self) -> list[MemoryLayerMapping]:
        return list(self._mappings.values())

    async def initialize(self, vector_size: int = DEFAULT_VECTOR_SIZE) -> None:
        """Initialize the admin and create any missing layer collection."""
        async with self._init_lock:
            if self._initialized:
                return
            await self.admin.initialize()

            created = 0
            for mapping in self._mappings.values():
                for collection in mapping.collections:
                    purpose = self.admin.known_collections.get(collection, mapping.description)
                    if await self.admin.create_collection(collection, vector_size, purpose=purpose):
                        created += 1

            self._initialized = True
        logger.info(f"Memory layers initialized ({created} collections created)")

    def get_collections_for_layer(self, layer: MemoryLayer | str) -> list[str]:
        mapping = self._mappings.get(MemoryLayer(layer))
        return list(mapping.collections) if mapping else []

    def get_layer_for_collection(self, collection: str) -> MemoryLayer | None:
        for layer, mapping in self._mappings.items():
            if collection in mapping.collections:
                return layer
        return None

    async def get_layer_vector_count(self, layer: MemoryLayer | str) -> int:
        """Points stored across a layer's existing collections."""
        total = 0
        for collection in self.get_collections_for_layer(layer):
            info = await self.admin.get_collection_info(collection)
            if info is not None:
                total += info.points_count
        return total

    async def get_total_vectors(self) -> int:
        """Points stored across every collection of the backend."""
        return (await self.admin.get_statistics()).total_vectors

    async def clear_memory_layer(self, layer: MemoryLayer | str, confirmed: bool = False) -> bool:
        """Empty every collection of a layer.

        Collections keep their vector size, distance and links.

        Returns:
            True if every collection of the layer existed and was recreated

        Raises:
            ConfirmationRequiredError: If confirmed is not True
        """
        if not confirmed:
            raise ConfirmationRequiredError("clear_memory_layer")

        layer = MemoryLayer(layer)
        success = True
        for collection in self.get_collections_for_layer(layer):
            if not await self.admin.recreate_collection(collection):
                logger.warning(f"Cannot clear {collection} ({layer.value}): collection missing")
                success = False

        logger.warning(f"Cleared memory layer {layer.value}")
        return success

    async def perform_health_check(
        self,
        expected_dimension: int = DEFAULT_VECTOR_SIZE,
        auto_heal: bool = False,
    ) -> MemoryHealthReport:
        """Check every collection and optionally heal dimension mismatches.

        Passing ``auto_heal=True`` is the confirmation for the destructive
        heal. Counts describe the state before healing.
        """
        reports = await self.admin.health_check(expected_dimension)
        unhealthy = [r for r in reports if not r.is_healthy]

        healed: list[str] = []
        if auto_heal and any(r.dimension_mismatch for r in unhealthy):
            heal = await self.admin.auto_heal(expected_dimension, confirmed=True)
            healed = heal.healed

        return MemoryHealthReport(
            healthy_collections=sum(1 for r in reports if r.is_healthy),
            unhealthy_collections=len(unhealthy),
            healed_collections=healed,
            unhealthy_collection_names=[r.collection_name for r in unhealthy],
            statistics=await self.admin.get_statistics(),
        )

    async def create_snapshot(self) -> MemorySnapshot:
        collections = await self.admin.list_collections()
        statistics = await self.admin.get_statistics()
        counts = {layer: await self.get_layer_vector_count(layer) for layer in MemoryLayer}
        return MemorySnapshot(
            created_at=datetime.now(timezone.utc),
            collections=collections,
            links=self.admin.links,
            layer_vector_counts=counts,
            statistics=statistics,
        )

    async def link_collections(
        self,
        source: str,
        target: str,
        relation_type: LinkType | str,
        description: str | None = None,
        strength: float = 1.0,
    ) -> bool:
        return await self.admin.add_link(
            CollectionLink(source, target, LinkType(relation_type), strength, description)
        )

    def get_related_collections(self, collection: str) -> list[CollectionLink]:
        return self.admin.get_linked_collections(collection)

    async def get_memory_map(self) -> str:
        return await self.admin.generate_memory_map()

    async def close(self) -> None:
        await self.admin.close()


__all__ = [
    "DEFAULT_LAYER_MAPPINGS",
    "MemoryHealthReport",
    "MemoryLayer",
    "MemoryLayerManager",
    "MemoryLayerMapping",
    "MemorySnapshot",
]
