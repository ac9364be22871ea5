"""synapse-memory - Neuro-symbolic thought memory for autonomous agents.

synapse-memory persists an agent's reasoning so it can be recalled and
explained later:
- Thoughts stored as vectors for semantic recall
- Typed relations between thoughts, inferred as thoughts arrive
- Causal chains reconstructed from the relations
- Self-administered collections with dimensional health checks
- Cognitive memory layers (working, episodic, semantic, ...)

Example:
    from synapse_memory import SynapseConfig, Thought, ThoughtType, create_thought_store

    store = create_thought_store(SynapseConfig.from_env())

    observation = Thought(type=ThoughtType.OBSERVATION, content="user asked for weather")
    await store.save_with_relations("session-1", observation)

    chains = await store.find_causal_chains("session-1", observation.id)
"""

__version__ = "0.1.0"

# Configuration
from synapse_memory.config import (
    EmbeddingConfig,
    InferenceConfig,
    SynapseConfig,
    VectorStoreConfig,
)

# Errors
from synapse_memory.exceptions import (
    BackendError,
    BackendUnavailableError,
    CollectionNotFoundError,
    ConfigurationError,
    ConfirmationRequiredError,
    EmbeddingError,
    InvalidInputError,
    PayloadDecodeError,
    ProviderError,
    SynapseError,
)

# Wiring
from synapse_memory.factory import (
    create_backend,
    create_embedding_provider,
    create_memory_manager,
    create_thought_store,
)

# Memory
from synapse_memory.memory import (
    CollectionAdmin,
    MemoryLayer,
    MemoryLayerManager,
    NeuroSymbolicThoughtStore,
    Relation,
    RelationType,
    Result,
    ResultType,
    Thought,
    ThoughtOrigin,
    ThoughtType,
)

__all__ = [
    "__version__",
    # Configuration
    "EmbeddingConfig",
    "InferenceConfig",
    "SynapseConfig",
    "VectorStoreConfig",
    # Errors
    "BackendError",
    "BackendUnavailableError",
    "CollectionNotFoundError",
    "ConfigurationError",
    "ConfirmationRequiredError",
    "EmbeddingError",
    "InvalidInputError",
    "PayloadDecodeError",
    "ProviderError",
    "SynapseError",
    # Wiring
    "create_backend",
    "create_embedding_provider",
    "create_memory_manager",
    "create_thought_store",
    # Memory
    "CollectionAdmin",
    "MemoryLayer",
    "MemoryLayerManager",
    "NeuroSymbolicThoughtStore",
    "Relation",
    "RelationType",
    "Result",
    "ResultType",
    "Thought",
    "ThoughtOrigin",
    "ThoughtType",
]
