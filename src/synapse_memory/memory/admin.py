"""Self-administration of the vector collections.

CollectionAdmin keeps an inventory of every collection in the backend, the
typed links between them (the architecture of the agent's memory), and
their dimensional health. It can recreate collections whose vector size
no longer matches the embedding model, which deletes their contents, so
that path only runs with explicit confirmation.

Example:
    admin = CollectionAdmin(backend)
    await admin.initialize()

    for report in await admin.health_check(expected_dimension=768):
        if report.dimension_mismatch:
            print(report.issue)

    print(await admin.generate_memory_map())
"""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
import asyncio
import logging

from synapse_memory.exceptions import (
    BackendError,
    CollectionNotFoundError,
    ConfirmationRequiredError,
)
from synapse_memory.memory.backend import CollectionStatus, Distance, VectorBackend

logger = logging.getLogger(__name__)

DEFAULT_VECTOR_SIZE = 768  # nomic-embed-text


class LinkType(str, Enum):
    """How two collections relate."""

    DEPENDS_ON = "depends_on"
    INDEXES = "indexes"
    EXTENDS = "extends"
    MIRRORS = "mirrors"
    AGGREGATES = "aggregates"
    PART_OF = "part_of"
    RELATED_TO = "related_to"


@dataclass(frozen=True)
class CollectionLink:
    """A directed, typed link between two collections."""

    source: str
    target: str
    relation_type: LinkType
    strength: float = 1.0
    description: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "relation_type", LinkType(self.relation_type))

    def touches(self, collection: str) -> bool:
        return collection in (self.source, self.target)

    def same_edge(self, other: "CollectionLink") -> bool:
        return (self.source, self.target, self.relation_type) == (
            other.source,
            other.target,
            other.relation_type,
        )


@dataclass
class CollectionInfo:
    """Inventory entry for one collection."""

    name: str
    vector_size: int
    points_count: int
    distance: Distance = Distance.COSINE
    status: CollectionStatus = CollectionStatus.GREEN
    purpose: str | None = None
    linked_collections: list[str] = field(default_factory=list)


@dataclass
class CollectionHealthReport:
    """Dimensional health of one collection."""

    collection_name: str
    is_healthy: bool
    expected_dimension: int
    actual_dimension: int
    dimension_mismatch: bool
    issue: str | None = None
    recommendation: str | None = None


@dataclass
class AutoHealReport:
    """Outcome of an auto-heal run."""

    healed: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)  # name -> error


@dataclass
class MemoryStatistics:
    """Backend-wide totals."""

    total_collections: int
    total_vectors: int
    healthy_collections: int
    unhealthy_collections: int
    link_count: int
    dimension_distribution: dict[int, int]


# Collections of the agent's memory and what they hold
KNOWN_COLLECTIONS: dict[str, str] = {
    "synapse_neuro_thoughts": "Neural-symbolic thought storage for inner dialog",
    "synapse_thought_relations": "Symbolic relations between thoughts",
    "synapse_thought_results": "Outcomes and results of thought chains",
    "synapse_conversations": "Conversation history and context",
    "synapse_skills": "Learned skills and capabilities",
    "synapse_tool_patterns": "Tool usage patterns and preferences",
    "synapse_personalities": "Personality trait vectors",
    "synapse_persons": "Known persons and their attributes",
    "synapse_selfindex": "Self-referential knowledge index",
    "synapse_filehashes": "File content hashes for deduplication",
    "pipeline_vectors": "General pipeline vector storage",
    "tools": "Tool definitions and embeddings",
    "core": "Core knowledge embeddings",
    "fullcore": "Full codebase embeddings",
    "codebase": "Source code embeddings",
    "prefix_cache": "Prefix-based completion cache",
    "qdrant_documentation": "Qdrant documentation embeddings",
}

DEFAULT_LINKS: tuple[CollectionLink, ...] = (
    CollectionLink("synapse_neuro_thoughts", "synapse_thought_relations", LinkType.INDEXES, 1.0,
                   "Thoughts indexed by relations"),
    CollectionLink("synapse_neuro_thoughts", "synapse_thought_results", LinkType.EXTENDS, 1.0,
                   "Thoughts extend to results"),
    CollectionLink("synapse_skills", "synapse_tool_patterns", LinkType.RELATED_TO, 0.8,
                   "Skills inform tool patterns"),
    CollectionLink("synapse_conversations", "synapse_neuro_thoughts", LinkType.DEPENDS_ON, 0.9,
                   "Conversations feed thoughts"),
    CollectionLink("synapse_personalities", "synapse_persons", LinkType.RELATED_TO, 0.7,
                   "Personalities relate to persons"),
    CollectionLink("synapse_selfindex", "synapse_neuro_thoughts", LinkType.AGGREGATES, 1.0,
                   "Self-index aggregates thoughts"),
    CollectionLink("core", "fullcore", LinkType.PART_OF, 1.0, "Core is part of fullcore"),
    CollectionLink("codebase", "fullcore", LinkType.PART_OF, 1.0, "Codebase is part of fullcore"),
)

# Memory map sections: title and the name fragments that select a collection
_MAP_SECTIONS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("THOUGHT SYSTEM", ("thought",)),
    ("SKILLS & TOOLS", ("skill", "tool")),
    ("KNOWLEDGE BASE", ("core", "code")),
    ("PERSONALITY & SELF", ("person", "self")),
)
_MAP_WIDTH = 66
_MAP_LINK_LIMIT = 10


def _map_line(text: str) -> str:
    return f"║ {text:<{_MAP_WIDTH - 2}} ║"


class CollectionAdmin:
    """Inventory, links and dimensional health of the backend's collections.

    The collection cache and the link list are guarded by one asyncio.Lock,
    so concurrent admin calls see consistent snapshots.

    Args:
        backend: Vector backend to administer
        known_collections: Purpose descriptions by collection name
        default_links: Links seeded by initialize()
    """

    def __init__(
        self,
        backend: VectorBackend,
        known_collections: dict[str, str] | None = None,
        default_links: tuple[CollectionLink, ...] | list[CollectionLink] = DEFAULT_LINKS,
    ):
        self.backend = backend
        self.known_collections = dict(KNOWN_COLLECTIONS if known_collections is None else known_collections)
        self._default_links = tuple(default_links)
        self._cache: dict[str, CollectionInfo] = {}
        self._links: list[CollectionLink] = []
        self._lock = asyncio.Lock()
        self._initialized = False

    async def initialize(self) -> None:
        """Seed the default links and scan the backend. Idempotent."""
        async with self._lock:
            if self._initialized:
                return
            for link in self._default_links:
                self._add_link(link)
            await self._refresh()
            self._initialized = True
        logger.info(
            f"Collection admin initialized: {len(self._cache)} collections, "
            f"{len(self._links)} links"
        )

    # =========================================================================
    # Cache (callers hold self._lock)
    # =========================================================================

    def _linked(self, name: str) -> list[str]:
        linked: list[str] = []
        for link in self._links:
            if link.touches(name):
                other = link.target if link.source == name else link.source
                if other not in linked:
                    linked.append(other)
        return linked

    async def _fetch(self, name: str) -> CollectionInfo | None:
        try:
            raw = await self.backend.get_collection_info(name)
        except CollectionNotFoundError:
            return None
        cached = self._cache.get(name)
        return CollectionInfo(
            name=name,
            vector_size=raw.vector_size,
            points_count=raw.points_count,
            distance=raw.distance,
            status=raw.status,
            purpose=self.known_collections.get(name) or (cached.purpose if cached else None),
            linked_collections=self._linked(name),
        )

    async def _refresh(self) -> None:
        names = await self.backend.list_collections()
        cache: dict[str, CollectionInfo] = {}
        for name in names:
            info = await self._fetch(name)
            if info is not None:
                cache[name] = info
        self._cache = cache

    def _add_link(self, link: CollectionLink) -> bool:
        if any(existing.same_edge(link) for existing in self._links):
            return False
        self._links.append(link)
        return True

    async def _recreate(self, info: CollectionInfo, vector_size: int) -> None:
        await self.backend.delete_collection(info.name)
        await self.backend.create_collection(info.name, vector_size, info.distance)
        self._cache[info.name] = CollectionInfo(
            name=info.name,
            vector_size=vector_size,
            points_count=0,
            distance=info.distance,
            status=CollectionStatus.GREEN,
            purpose=info.purpose,
            linked_collections=self._linked(info.name),
        )

    # =========================================================================
    # Collections
    # =========================================================================

    async def list_collections(self) -> list[CollectionInfo]:
        """Fresh inventory of every collection."""
        async with self._lock:
            await self._refresh()
            return list(self._cache.values())

    async def get_collection_info(self, name: str) -> CollectionInfo | None:
        """Inventory entry for one collection; None when it does not exist."""
        async with self._lock:
            info = await self._fetch(name)
            if info is None:
                self._cache.pop(name, None)
            else:
                self._cache[name] = info
            return info

    async def create_collection(
        self,
        name: str,
        vector_size: int = DEFAULT_VECTOR_SIZE,
        distance: Distance = Distance.COSINE,
        purpose: str | None = None,
    ) -> bool:
        """Create a collection.

        Returns:
            True if created, False if it already existed
        """
        async with self._lock:
            if await self.backend.collection_exists(name):
                return False
            await self.backend.create_collection(name, vector_size, distance)
            self._cache[name] = CollectionInfo(
                name=name,
                vector_size=vector_size,
                points_count=0,
                distance=Distance(distance),
                status=CollectionStatus.GREEN,
                purpose=purpose or self.known_collections.get(name),
                linked_collections=self._linked(name),
            )
        logger.info(f"Created collection {name} ({vector_size}d)")
        return True

    async def ensure_collection(
        self,
        name: str,
        vector_size: int = DEFAULT_VECTOR_SIZE,
        distance: Distance = Distance.COSINE,
        purpose: str | None = None,
    ) -> CollectionInfo:
        """Create the collection if missing and return its inventory entry."""
        await self.create_collection(name, vector_size, distance, purpose)
        info = await self.get_collection_info(name)
        if info is None:
            raise CollectionNotFoundError(name)
        return info

    async def delete_collection(self, name: str) -> bool:
        """Delete a collection and every link naming it.

        Returns:
            True if deleted, False if it did not exist
        """
        async with self._lock:
            if not await self.backend.collection_exists(name):
                return False
            await self.backend.delete_collection(name)
            self._cache.pop(name, None)
            self._links = [link for link in self._links if not link.touches(name)]
        logger.info(f"Deleted collection {name}")
        return True

    async def recreate_collection(self, name: str, vector_size: int | None = None) -> bool:
        """Drop every point of a collection by deleting and recreating it.

        Size (unless given) and distance are kept, as are the collection's
        links.

        Returns:
            True if recreated, False if the collection did not exist
        """
        async with self._lock:
            info = await self._fetch(name)
            if info is None:
                return False
            await self._recreate(info, vector_size or info.vector_size)
        logger.info(f"Recreated collection {name} empty")
        return True

    # =========================================================================
    # Health
    # =========================================================================

    async def _health_reports(self, expected_dimension: int) -> list[CollectionHealthReport]:
        await self._refresh()
        reports = []
        for name, info in self._cache.items():
            # Size 0 means the backend did not report one
            mismatch = info.vector_size != 0 and info.vector_size != expected_dimension
            reports.append(
                CollectionHealthReport(
                    collection_name=name,
                    is_healthy=not mismatch and info.status == CollectionStatus.GREEN,
                    expected_dimension=expected_dimension,
                    actual_dimension=info.vector_size,
                    dimension_mismatch=mismatch,
                    issue=(
                        f"Dimension mismatch: expected {expected_dimension}, "
                        f"got {info.vector_size}"
                        if mismatch
                        else None
                    ),
                    recommendation=(
                        f"Delete and recreate collection, or migrate vectors to "
                        f"{expected_dimension} dimensions"
                        if mismatch
                        else None
                    ),
                )
            )
        return reports

    async def health_check(
        self, expected_dimension: int = DEFAULT_VECTOR_SIZE
    ) -> list[CollectionHealthReport]:
        """Check every collection's vector size against the expected one."""
        async with self._lock:
            return await self._health_reports(expected_dimension)

    async def auto_heal(
        self,
        target_dimension: int = DEFAULT_VECTOR_SIZE,
        confirmed: bool = False,
    ) -> AutoHealReport:
        """Recreate every mismatched collection, empty, at the target dimension.

        Deletes all points of the affected collections. Distance and links
        are kept.

        Raises:
            ConfirmationRequiredError: If confirmed is not True
        """
        if not confirmed:
            raise ConfirmationRequiredError("auto_heal")

        report = AutoHealReport()
        async with self._lock:
            for health in await self._health_reports(target_dimension):
                if not health.dimension_mismatch:
                    continue
                name = health.collection_name
                try:
                    await self._recreate(self._cache[name], target_dimension)
                    report.healed.append(name)
                    logger.warning(
                        f"Auto-healed {name}: {health.actual_dimension}d -> {target_dimension}d, "
                        f"points dropped"
                    )
                except BackendError as e:
                    report.failed[name] = str(e)
                    logger.error(f"Auto-heal failed for {name}: {e}")
            await self._refresh()
        return report

    # =========================================================================
    # Links
    # =========================================================================

    @property
    def links(self) -> list[CollectionLink]:
        return list(self._links)

    async def add_link(self, link: CollectionLink) -> bool:
        """Add a link unless the same (source, target, type) edge exists."""
        async with self._lock:
            added = self._add_link(link)
            if added:
                for name in (link.source, link.target):
                    if name in self._cache:
                        self._cache[name].linked_collections = self._linked(name)
            return added

    async def remove_link(self, source: str, target: str, relation_type: LinkType | str) -> bool:
        probe = CollectionLink(source, target, relation_type)
        async with self._lock:
            before = len(self._links)
            self._links = [link for link in self._links if not link.same_edge(probe)]
            return len(self._links) < before

    def get_linked_collections(self, name: str) -> list[CollectionLink]:
        """Links in which the collection is source or target."""
        return [link for link in self._links if link.touches(name)]

    def get_collections_by_relation(self, name: str, relation_type: LinkType | str) -> list[str]:
        """Collections connected to ``name`` by links of one type, either direction."""
        relation_type = LinkType(relation_type)
        typed = [link for link in self._links if link.relation_type == relation_type]
        found: list[str] = []
        outgoing = [link.target for link in typed if link.source == name]
        incoming = [link.source for link in typed if link.target == name]
        for other in outgoing + incoming:
            if other not in found:
                found.append(other)
        return found

    # =========================================================================
    # Reports
    # =========================================================================

    async def generate_memory_map(self) -> str:
        """Boxed text overview of collections by area, plus their links."""
        async with self._lock:
            await self._refresh()
            cache = dict(self._cache)
            links = list(self._links)

        border = "═" * _MAP_WIDTH
        lines = [
            f"╔{border}╗",
            _map_line("SYNAPSE MEMORY ARCHITECTURE".center(_MAP_WIDTH - 2)),
            f"╠{border}╣",
        ]

        remaining = list(cache)
        sections = []
        for title, fragments in _MAP_SECTIONS:
            members = [n for n in remaining if any(f in n for f in fragments)]
            remaining = [n for n in remaining if n not in members]
            sections.append((title, members))
        sections.append(("OTHER", remaining))

        for title, members in sections:
            if not members:
                continue
            lines.append(_map_line(title))
            for name in members:
                info = cache[name]
                mark = "✓" if info.status == CollectionStatus.GREEN else "⚠"
                lines.append(
                    _map_line(
                        f"  {mark} {name:<36} [{info.vector_size:>4}d] {info.points_count:>8} pts"
                    )
                )

        lines.append(f"╠{border}╣")
        lines.append(_map_line("COLLECTION LINKS"))
        for link in links[:_MAP_LINK_LIMIT]:
            lines.append(
                _map_line(f"  {link.source:<25} ─{link.relation_type.value:>12}→ {link.target}")
            )
        if len(links) > _MAP_LINK_LIMIT:
            lines.append(_map_line(f"  ... and {len(links) - _MAP_LINK_LIMIT} more links"))
        lines.append(f"╚{border}╝")
        return "\n".join(lines) + "\n"

    async def get_statistics(self) -> MemoryStatistics:
        async with self._lock:
            await self._refresh()
            infos = list(self._cache.values())
            link_count = len(self._links)

        healthy = sum(1 for info in infos if info.status == CollectionStatus.GREEN)
        return MemoryStatistics(
            total_collections=len(infos),
            total_vectors=sum(info.points_count for info in infos),
            healthy_collections=healthy,
            unhealthy_collections=len(infos) - healthy,
            link_count=link_count,
            dimension_distribution=dict(Counter(info.vector_size for info in infos)),
        )

    async def close(self) -> None:
        await self.backend.close()


__all__ = [
    "AutoHealReport",
    "CollectionAdmin",
    "CollectionHealthReport",
    "CollectionInfo",
    "CollectionLink",
    "DEFAULT_LINKS",
    "DEFAULT_VECTOR_SIZE",
    "KNOWN_COLLECTIONS",
    "LinkType",
    "MemoryStatistics",
]
