"""Type definitions shared across the engine.

TypedDicts describe the plain-dict payloads that cross component
boundaries: lexical hits, vector-store hits and the persisted per-document
cache record.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, TypedDict

if TYPE_CHECKING:
    from .chunking.base_chunker import Chunk


class LexicalHit(TypedDict):
    """A single TF-IDF match.

    Attributes:
        chunk: The matched chunk
        score: Cosine similarity between query and chunk TF-IDF vectors (> 0)
    """
    chunk: "Chunk"
    score: float


class VectorHit(TypedDict):
    """A single nearest-neighbour match returned by a vector store.

    Attributes:
        chunk_id: Chunk id within the document's index
        text: Chunk text as stored alongside the vector
        score: Store-defined relevance (higher is more relevant)
        distance: Raw distance reported by the store
    """
    chunk_id: str
    text: str
    score: float
    distance: float


class DocumentCacheRecord(TypedDict):
    """Persisted build metadata for one document.

    ``text_hash`` is the only field consulted for cache validity.
    ``chunk_strategy`` is used only to decide whether stored vectors still
    line up with a fresh chunking. Timestamps are POSIX seconds.
    """
    document_id: str
    chunk_count: int
    chunk_strategy: str
    has_semantic_index: bool
    embedding_model: str
    created_at: float
    last_accessed: float
    text_hash: str
