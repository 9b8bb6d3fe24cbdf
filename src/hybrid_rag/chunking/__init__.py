"""Chunking strategies for document processing."""

from .base_chunker import (
    SECTION_TYPES,
    Chunk,
    EnhancedChunk,
    HierarchicalChunk,
    detect_section_type,
    split_paragraphs,
    split_sentences,
)
from .semantic_chunker import semantic_chunk
from .sliding_window_chunker import sliding_window_chunk
from .hierarchical_chunker import hierarchical_chunk
from .strategy import smart_chunk

__all__ = [
    "SECTION_TYPES",
    "Chunk",
    "EnhancedChunk",
    "HierarchicalChunk",
    "detect_section_type",
    "split_paragraphs",
    "split_sentences",
    "semantic_chunk",
    "sliding_window_chunk",
    "hierarchical_chunk",
    "smart_chunk",
]
