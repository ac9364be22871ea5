"""Unified configuration for synapse-memory.

SynapseConfig provides a clean way to configure all components:
- Vector store provider, connection and collection names
- Embedding provider
- Relation inference and causal reasoning parameters
"""

from dataclasses import dataclass, field
from typing import Literal
import os

from synapse_memory.exceptions import ConfigurationError


@dataclass
class VectorStoreConfig:
    """Configuration for the vector backend."""

    provider: Literal["qdrant", "in_memory"] = "qdrant"
    url: str = "http://localhost:6333"
    api_key: str | None = None
    timeout: float = 30.0

    # Vector settings shared by every collection this engine writes
    vector_size: int = 768
    distance: Literal["cosine", "dot", "euclid", "manhattan"] = "cosine"

    # Collection names
    thoughts_collection: str = "synapse_neuro_thoughts"
    relations_collection: str = "synapse_thought_relations"
    results_collection: str = "synapse_thought_results"


@dataclass
class EmbeddingConfig:
    """Configuration for embeddings."""

    provider: Literal["ollama", "none"] = "ollama"
    model: str = "nomic-embed-text"
    url: str = "http://localhost:11434"
    dimensions: int = 768


@dataclass
class InferenceConfig:
    """Configuration for relation inference and causal reasoning."""

    # How many recent thoughts a new thought is compared against
    recent_window: int = 10
    # Pairs must be strictly above this cosine similarity to be linked
    similarity_threshold: float = 0.7

    # Points per upsert request when saving many thoughts
    batch_size: int = 100

    default_chain_depth: int = 5
    # Chain starts sampled when computing aggregate chain statistics
    stats_sample_size: int = 10


@dataclass
class SynapseConfig:
    """Main configuration for synapse-memory.

    Create from environment variables:
        config = SynapseConfig.from_env()

    Or specify directly:
        config = SynapseConfig(
            vector_store=VectorStoreConfig(url="http://qdrant:6333"),
            embedding=EmbeddingConfig(model="nomic-embed-text"),
        )
    """

    vector_store: VectorStoreConfig = field(default_factory=VectorStoreConfig)
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    inference: InferenceConfig = field(default_factory=InferenceConfig)

    def validate(self) -> None:
        """Check cross-field consistency.

        Raises:
            ConfigurationError: If settings contradict each other.
        """
        if (
            self.embedding.provider != "none"
            and self.embedding.dimensions != self.vector_store.vector_size
        ):
            raise ConfigurationError(
                f"Embedding dimension {self.embedding.dimensions} does not match "
                f"vector store size {self.vector_store.vector_size}"
            )
        if not 0.0 <= self.inference.similarity_threshold <= 1.0:
            raise ConfigurationError("similarity_threshold must be within [0, 1]")
        if self.inference.batch_size < 1:
            raise ConfigurationError("batch_size must be positive")
        if self.inference.recent_window < 1:
            raise ConfigurationError("recent_window must be positive")

    @classmethod
    def from_env(cls) -> "SynapseConfig":
        """Load configuration from environment variables.

        Environment variables:
        - SYNAPSE_VECTOR_PROVIDER: qdrant, in_memory
        - SYNAPSE_QDRANT_URL: Qdrant URL
        - SYNAPSE_QDRANT_API_KEY: Qdrant API key (or QDRANT_API_KEY)
        - SYNAPSE_QDRANT_TIMEOUT: Request timeout in seconds
        - SYNAPSE_VECTOR_SIZE: Dimension of stored vectors
        - SYNAPSE_THOUGHTS_COLLECTION / SYNAPSE_RELATIONS_COLLECTION /
          SYNAPSE_RESULTS_COLLECTION: Collection names
        - SYNAPSE_EMBEDDING_PROVIDER: ollama, none
        - SYNAPSE_EMBEDDING_MODEL: Embedding model name
        - SYNAPSE_EMBEDDING_URL: Embedding service URL
        - SYNAPSE_EMBEDDING_DIMENSIONS: Embedding dimension
        - SYNAPSE_SIMILARITY_THRESHOLD: Relation inference threshold
        - SYNAPSE_RECENT_WINDOW: Recent thoughts compared on save
        """
        defaults_store = VectorStoreConfig()
        defaults_inference = InferenceConfig()

        api_key = os.getenv("SYNAPSE_QDRANT_API_KEY") or os.getenv("QDRANT_API_KEY")

        try:
            vector_size = int(os.getenv("SYNAPSE_VECTOR_SIZE", str(defaults_store.vector_size)))
            return cls(
                vector_store=VectorStoreConfig(
                    provider=os.getenv("SYNAPSE_VECTOR_PROVIDER", "qdrant"),  # type: ignore
                    url=os.getenv("SYNAPSE_QDRANT_URL", defaults_store.url),
                    api_key=api_key,
                    timeout=float(os.getenv("SYNAPSE_QDRANT_TIMEOUT", "30")),
                    vector_size=vector_size,
                    thoughts_collection=os.getenv(
                        "SYNAPSE_THOUGHTS_COLLECTION", defaults_store.thoughts_collection
                    ),
                    relations_collection=os.getenv(
                        "SYNAPSE_RELATIONS_COLLECTION", defaults_store.relations_collection
                    ),
                    results_collection=os.getenv(
                        "SYNAPSE_RESULTS_COLLECTION", defaults_store.results_collection
                    ),
                ),
                embedding=EmbeddingConfig(
                    provider=os.getenv("SYNAPSE_EMBEDDING_PROVIDER", "ollama"),  # type: ignore
                    model=os.getenv("SYNAPSE_EMBEDDING_MODEL", "nomic-embed-text"),
                    url=os.getenv("SYNAPSE_EMBEDDING_URL", "http://localhost:11434"),
                    dimensions=int(
                        os.getenv("SYNAPSE_EMBEDDING_DIMENSIONS", str(vector_size))
                    ),
                ),
                inference=InferenceConfig(
                    similarity_threshold=float(
                        os.getenv(
                            "SYNAPSE_SIMILARITY_THRESHOLD",
                            str(defaults_inference.similarity_threshold),
                        )
                    ),
                    recent_window=int(
                        os.getenv(
                            "SYNAPSE_RECENT_WINDOW", str(defaults_inference.recent_window)
                        )
                    ),
                ),
            )
        except ValueError as e:
            raise ConfigurationError("Invalid numeric environment setting", cause=e) from e

    @classmethod
    def default(cls) -> "SynapseConfig":
        """Create a default configuration (same as no-arg constructor)."""
        return cls()
