"""Standard exception hierarchy for synapse-memory.

All synapse-memory exceptions inherit from SynapseError, making it easy
to catch all library-specific errors.

Exception Hierarchy:
    SynapseError (base)
    ├── ConfigurationError - Invalid configuration
    ├── InvalidInputError - Malformed caller input (bad ids, bad ranges)
    ├── ConfirmationRequiredError - Destructive operation without opt-in
    ├── PayloadDecodeError - Stored payload cannot be turned back into a record
    └── ProviderError - Base for provider errors
        ├── BackendError - Vector backend errors
        │   ├── BackendUnavailableError - Backend unreachable or failing
        │   └── CollectionNotFoundError - Collection does not exist
        └── EmbeddingError - Embedding provider errors
"""


class SynapseError(Exception):
    """Base exception for all synapse-memory errors.

    Catch this to handle any library-specific exception:
        try:
            await store.save_thought(session_id, thought)
        except SynapseError as e:
            logger.error(f"Memory error: {e}")
    """

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause

    def __str__(self) -> str:
        if self.cause:
            return f"{super().__str__()} (caused by: {self.cause})"
        return super().__str__()


# =============================================================================
# Caller Errors
# =============================================================================


class ConfigurationError(SynapseError):
    """Invalid configuration.

    Raised when SynapseConfig has invalid settings, or when memory layer
    mappings overlap.
    """

    pass


class InvalidInputError(SynapseError, ValueError):
    """Malformed input from the caller.

    Raised when:
    - An id cannot be parsed as a UUID
    - A score is outside [0, 1]
    - A traversal depth is out of range
    """

    pass


class ConfirmationRequiredError(SynapseError):
    """A destructive operation was called without explicit confirmation.

    Auto-heal and layer clearing delete data; they only run when the caller
    passes ``confirmed=True``.
    """

    def __init__(self, operation: str):
        super().__init__(
            f"'{operation}' deletes stored vectors; pass confirmed=True to proceed"
        )
        self.operation = operation


class PayloadDecodeError(SynapseError):
    """A stored point's payload could not be decoded.

    Read paths catch this, skip the point and count it; it only escapes
    from the codec functions themselves.
    """

    def __init__(self, point_id: str, message: str, cause: Exception | None = None):
        super().__init__(f"Point {point_id}: {message}", cause)
        self.point_id = point_id


# =============================================================================
# Provider Errors
# =============================================================================


class ProviderError(SynapseError):
    """Base exception for provider-related errors."""

    pass


class BackendError(ProviderError):
    """Vector backend error."""

    def __init__(
        self,
        message: str,
        collection: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause)
        self.collection = collection


class BackendUnavailableError(BackendError):
    """Vector backend could not serve the request.

    Raised when:
    - Connection to Qdrant fails or times out
    - Qdrant returns a server error

    Never retried by this library.
    """

    pass


class CollectionNotFoundError(BackendError):
    """The requested collection does not exist."""

    def __init__(self, collection: str, cause: Exception | None = None):
        super().__init__(f"Collection '{collection}' does not exist", collection, cause)


class EmbeddingError(ProviderError):
    """Embedding provider error.

    Raised when:
    - Embedding generation fails
    - The model returns a vector of unexpected size
    """

    pass
