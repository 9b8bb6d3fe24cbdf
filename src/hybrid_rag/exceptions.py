"""Exception hierarchy for the hybrid retrieval engine.

Only the hard failures propagate to callers (missing index, configuration
errors). Embedding and vector-store failures are raised by the backends as
``EmbeddingError`` / ``VectorStoreError`` and converted into degraded
outcomes by the orchestrator.
"""


class HybridRAGError(Exception):
    """Base class for all engine errors."""


class IndexNotFoundError(HybridRAGError, LookupError):
    """Raised when searching a document that has no READY index."""

    def __init__(self, document_id: str):
        self.document_id = document_id
        super().__init__(f"No index found for document: {document_id}")


class ConfigurationError(HybridRAGError, ValueError):
    """Raised for caller or wiring mistakes, e.g. chunk/vector count mismatch."""


class EmbeddingError(HybridRAGError):
    """Raised when the embedding provider cannot produce vectors."""


class VectorStoreError(HybridRAGError):
    """Raised when the vector store cannot persist or query vectors."""
