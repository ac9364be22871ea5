"""Vector backend implementations.

Available providers:
- QdrantVectorBackend: Production backend over qdrant-client
- InMemoryVectorBackend: Process-local backend for development and tests
"""

from .in_memory import InMemoryVectorBackend
from .qdrant import QdrantVectorBackend

__all__ = [
    "InMemoryVectorBackend",
    "QdrantVectorBackend",
]
