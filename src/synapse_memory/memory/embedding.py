"""Embedding providers for the thought memory.

Embeddings convert thought content into vectors so that the backend can
run similarity search and the inference engine can compare thoughts.
The provider is optional: without one, search falls back to substring
matching and relation inference is skipped.

Example:
    from synapse_memory.memory.embedding import OllamaEmbeddingProvider

    embedder = OllamaEmbeddingProvider(
        base_url="http://localhost:11434",
        model="nomic-embed-text",
    )

    vector = await embedder.embed("user asked for weather")
    # Returns: [0.23, 0.87, 0.12, ... 768 numbers]
"""

from typing import Protocol, runtime_checkable
import logging
import math

from synapse_memory.exceptions import EmbeddingError

logger = logging.getLogger(__name__)


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Protocol for embedding generation."""

    async def embed(self, text: str) -> list[float]:
        """Generate embedding for text."""
        ...


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Cosine similarity between two vectors.

    Returns 0.0 when lengths differ or either vector has zero magnitude.
    """
    if len(a) != len(b) or not a:
        return 0.0

    dot_product = sum(x * y for x, y in zip(a, b))
    magnitude_a = math.sqrt(sum(x * x for x in a))
    magnitude_b = math.sqrt(sum(x * x for x in b))

    if magnitude_a == 0 or magnitude_b == 0:
        return 0.0

    return dot_product / (magnitude_a * magnitude_b)


class OllamaEmbeddingProvider:
    """Ollama-based embedding provider.

    Uses Ollama's embedding models (like nomic-embed-text) to generate
    vector representations of thoughts.

    Args:
        base_url: Ollama server URL (default: http://localhost:11434)
        model: Embedding model name (default: nomic-embed-text)
        dimension: Expected embedding dimension (default: 768)
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "nomic-embed-text",
        dimension: int = 768,
    ):
        self.base_url = base_url
        self.model = model
        self.dimension = dimension
        self._client = None

    @property
    def client(self):
        """Lazy-load the Ollama client."""
        if self._client is None:
            try:
                from ollama import AsyncClient

                self._client = AsyncClient(host=self.base_url)
            except ImportError:
                raise ImportError(
                    "ollama package required. Install with: pip install ollama"
                )
        return self._client

    async def embed(self, text: str) -> list[float]:
        """Generate embedding for text.

        Args:
            text: Text to embed

        Returns:
            Embedding vector (list of floats)

        Raises:
            EmbeddingError: If the call fails or the vector has the wrong size
        """
        try:
            response = await self.client.embeddings(model=self.model, prompt=text)
        except Exception as e:
            logger.error(f"Ollama embedding failed for model {self.model}: {e}")
            raise EmbeddingError(f"Embedding request to {self.base_url} failed", cause=e) from e

        vector = list(response["embedding"])
        if len(vector) != self.dimension:
            raise EmbeddingError(
                f"Model {self.model} returned {len(vector)} dimensions, "
                f"expected {self.dimension}"
            )
        return vector

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for multiple texts.

        Args:
            texts: List of texts to embed

        Returns:
            List of embedding vectors
        """
        return [await self.embed(text) for text in texts]


__all__ = ["EmbeddingProvider", "OllamaEmbeddingProvider", "cosine_similarity"]
