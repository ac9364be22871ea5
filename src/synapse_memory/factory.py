"""Wiring from SynapseConfig to ready-to-use components.

Example:
    from synapse_memory.config import SynapseConfig
    from synapse_memory.factory import create_memory_manager, create_thought_store

    config = SynapseConfig.from_env()
    store = create_thought_store(config)
    manager = create_memory_manager(config)
"""

from dataclasses import replace
import logging

from synapse_memory.config import SynapseConfig
from synapse_memory.exceptions import ConfigurationError
from synapse_memory.memory.admin import CollectionAdmin
from synapse_memory.memory.backend import VectorBackend
from synapse_memory.memory.embedding import EmbeddingProvider, OllamaEmbeddingProvider
from synapse_memory.memory.layers import (
    DEFAULT_LAYER_MAPPINGS,
    MemoryLayerManager,
    MemoryLayerMapping,
)
from synapse_memory.memory.neuro_symbolic import NeuroSymbolicThoughtStore
from synapse_memory.memory.providers import InMemoryVectorBackend, QdrantVectorBackend

logger = logging.getLogger(__name__)


def create_backend(config: SynapseConfig) -> VectorBackend:
    """Create the vector backend named by config.vector_store.provider."""
    provider = config.vector_store.provider
    if provider == "qdrant":
        logger.info(f"Using Qdrant backend at {config.vector_store.url}")
        return QdrantVectorBackend(config.vector_store)
    if provider == "in_memory":
        logger.info("Using in-memory vector backend")
        return InMemoryVectorBackend()
    raise ConfigurationError(f"Unknown vector store provider: {provider}")


def create_embedding_provider(config: SynapseConfig) -> EmbeddingProvider | None:
    """Create the embedder named by config.embedding.provider (None for "none")."""
    embedding = config.embedding
    if embedding.provider == "none":
        return None
    if embedding.provider == "ollama":
        return OllamaEmbeddingProvider(
            base_url=embedding.url,
            model=embedding.model,
            dimension=embedding.dimensions,
        )
    raise ConfigurationError(f"Unknown embedding provider: {embedding.provider}")


def create_thought_store(
    config: SynapseConfig | None = None,
    backend: VectorBackend | None = None,
    embedding_provider: EmbeddingProvider | None = None,
) -> NeuroSymbolicThoughtStore:
    """Build a NeuroSymbolicThoughtStore.

    Args:
        config: Settings (default: SynapseConfig.from_env())
        backend: Pre-built backend overriding config.vector_store
        embedding_provider: Pre-built embedder overriding config.embedding

    Raises:
        ConfigurationError: If the configuration is inconsistent
    """
    config = config or SynapseConfig.from_env()
    config.validate()
    return NeuroSymbolicThoughtStore(
        backend or create_backend(config),
        embedding_provider or create_embedding_provider(config),
        config,
    )


def layer_mappings_for(config: SynapseConfig) -> list[MemoryLayerMapping]:
    """Default layer mappings with the configured thought collection names."""
    store = config.vector_store
    renames = {
        "synapse_neuro_thoughts": store.thoughts_collection,
        "synapse_thought_relations": store.relations_collection,
        "synapse_thought_results": store.results_collection,
    }
    return [
        replace(mapping, collections=tuple(renames.get(c, c) for c in mapping.collections))
        for mapping in DEFAULT_LAYER_MAPPINGS
    ]


def create_memory_manager(
    config: SynapseConfig | None = None,
    backend: VectorBackend | None = None,
) -> MemoryLayerManager:
    """Build a MemoryLayerManager over the configured backend."""
    config = config or SynapseConfig.from_env()
    config.validate()
    return MemoryLayerManager(
        CollectionAdmin(backend or create_backend(config)),
        layer_mappings_for(config),
    )


__all__ = [
    "create_backend",
    "create_embedding_provider",
    "create_memory_manager",
    "create_thought_store",
    "layer_mappings_for",
]
