"""Concrete embedding provider and vector store backends."""

from .embedder import SentenceTransformerEmbedder
from .vector_store import ChromaVectorStore
from .factory import build_hybrid_rag

__all__ = [
    "SentenceTransformerEmbedder",
    "ChromaVectorStore",
    "build_hybrid_rag",
]
