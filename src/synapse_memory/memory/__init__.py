"""Thought memory for autonomous agents.

Neural layer: thoughts embedded and stored as vectors, searchable by
meaning. Symbolic layer: typed relations between thoughts, results of
thoughts, and causal chains reconstructed from the relations. Admin layer:
collection inventory, dimensional health and cognitive memory layers.
"""

from .admin import (
    DEFAULT_LINKS,
    KNOWN_COLLECTIONS,
    AutoHealReport,
    CollectionAdmin,
    CollectionHealthReport,
    CollectionInfo,
    CollectionLink,
    LinkType,
    MemoryStatistics,
)
from .backend import (
    BackendCollectionInfo,
    CollectionStatus,
    Distance,
    FieldMatch,
    PayloadFilter,
    StoredPoint,
    VectorBackend,
    VectorPoint,
)
from .base import (
    NeuroSymbolicStats,
    Relation,
    RelationType,
    Result,
    ResultType,
    Thought,
    ThoughtOrigin,
    ThoughtStatistics,
    ThoughtType,
)
from .causal import CausalChainFinder, ChainSummary
from .embedding import EmbeddingProvider, OllamaEmbeddingProvider, cosine_similarity
from .inference import (
    DEFAULT_RULES,
    RelationInferenceEngine,
    RelationRule,
    RelationRuleTable,
)
from .layers import (
    DEFAULT_LAYER_MAPPINGS,
    MemoryHealthReport,
    MemoryLayer,
    MemoryLayerManager,
    MemoryLayerMapping,
    MemorySnapshot,
)
from .locks import KeyedLock
from .neuro_symbolic import NeuroSymbolicThoughtStore
from .relations import RelationGraph, ResultStore
from .thought_store import ThoughtStore

__all__ = [
    # Domain types
    "NeuroSymbolicStats",
    "Relation",
    "RelationType",
    "Result",
    "ResultType",
    "Thought",
    "ThoughtOrigin",
    "ThoughtStatistics",
    "ThoughtType",
    # Backend
    "BackendCollectionInfo",
    "CollectionStatus",
    "Distance",
    "FieldMatch",
    "PayloadFilter",
    "StoredPoint",
    "VectorBackend",
    "VectorPoint",
    # Embeddings
    "EmbeddingProvider",
    "OllamaEmbeddingProvider",
    "cosine_similarity",
    # Stores
    "KeyedLock",
    "NeuroSymbolicThoughtStore",
    "RelationGraph",
    "ResultStore",
    "ThoughtStore",
    # Reasoning
    "CausalChainFinder",
    "ChainSummary",
    "DEFAULT_RULES",
    "RelationInferenceEngine",
    "RelationRule",
    "RelationRuleTable",
    # Administration
    "AutoHealReport",
    "CollectionAdmin",
    "CollectionHealthReport",
    "CollectionInfo",
    "CollectionLink",
    "DEFAULT_LINKS",
    "KNOWN_COLLECTIONS",
    "LinkType",
    "MemoryStatistics",
    # Layers
    "DEFAULT_LAYER_MAPPINGS",
    "MemoryHealthReport",
    "MemoryLayer",
    "MemoryLayerManager",
    "MemoryLayerMapping",
    "MemorySnapshot",
]
