"""Pytest configuration for synapse-memory tests."""

import zlib

import pytest

from synapse_memory.config import (
    EmbeddingConfig,
    SynapseConfig,
    VectorStoreConfig,
)
from synapse_memory.memory.neuro_symbolic import NeuroSymbolicThoughtStore
from synapse_memory.memory.providers.in_memory import InMemoryVectorBackend

TEST_DIMENSION = 8


class MockEmbeddingProvider:
    """Deterministic embedding provider for testing.

    Texts registered in ``vectors`` embed to that exact vector; anything
    else embeds to a normalized bag of hashed words.
    """

    def __init__(self, dimension: int = TEST_DIMENSION, vectors: dict[str, list[float]] | None = None):
        self.dimension = dimension
        self.vectors = dict(vectors or {})
        self.call_count = 0

    async def embed(self, text: str) -> list[float]:
        self.call_count += 1
        if text in self.vectors:
            return list(self.vectors[text])

        embedding = [0.0] * self.dimension
        for word in text.lower().split():
            embedding[zlib.crc32(word.encode()) % self.dimension] += 1.0

        magnitude = sum(x * x for x in embedding) ** 0.5
        if magnitude > 0:
            embedding = [x / magnitude for x in embedding]
        return embedding


class ConstantEmbeddingProvider:
    """Embeds every text to the same vector (all pairs have similarity 1.0)."""

    def __init__(self, dimension: int = TEST_DIMENSION):
        self.dimension = dimension
        self.call_count = 0

    async def embed(self, text: str) -> list[float]:
        self.call_count += 1
        return [1.0] * self.dimension


@pytest.fixture
def anyio_backend():
    """Use asyncio for async tests."""
    return "asyncio"


@pytest.fixture
def config() -> SynapseConfig:
    """Small-vector configuration over the in-memory backend."""
    return SynapseConfig(
        vector_store=VectorStoreConfig(provider="in_memory", vector_size=TEST_DIMENSION),
        embedding=EmbeddingConfig(provider="none", dimensions=TEST_DIMENSION),
    )


@pytest.fixture
def backend() -> InMemoryVectorBackend:
    return InMemoryVectorBackend()


@pytest.fixture
def embedder() -> MockEmbeddingProvider:
    return MockEmbeddingProvider()


@pytest.fixture
def constant_embedder() -> ConstantEmbeddingProvider:
    return ConstantEmbeddingProvider()


@pytest.fixture
def store(backend, embedder, config) -> NeuroSymbolicThoughtStore:
    """Store with semantic search and relation inference enabled."""
    return NeuroSymbolicThoughtStore(backend, embedder, config)


@pytest.fixture
def plain_store(backend, config) -> NeuroSymbolicThoughtStore:
    """Store without an embedder (substring search, no inference)."""
    return NeuroSymbolicThoughtStore(backend, None, config)
