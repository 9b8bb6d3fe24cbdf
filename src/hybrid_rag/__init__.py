"""
Hybrid document retrieval.

TF-IDF and embedding search over chunked documents, merged with weighted
or reciprocal rank fusion. The sentence-transformers and ChromaDB backends
live in ``hybrid_rag.backends`` and are only imported from there.
"""

from .config import HybridRAGConfig, load_config
from .exceptions import (
    ConfigurationError,
    EmbeddingError,
    HybridRAGError,
    IndexNotFoundError,
    VectorStoreError,
)
from .chunking import smart_chunk
from .retrieval import HybridIndex, HybridRAG, HybridSearchResult, IndexState, SearchResponse

__version__ = "0.1.0"

__all__ = [
    "HybridRAGConfig",
    "load_config",
    "ConfigurationError",
    "EmbeddingError",
    "HybridRAGError",
    "IndexNotFoundError",
    "VectorStoreError",
    "smart_chunk",
    "HybridIndex",
    "HybridRAG",
    "HybridSearchResult",
    "IndexState",
    "SearchResponse",
]
