"""Chunking strategy selection."""

from __future__ import annotations
from typing import Any, Dict, List, Optional

from ..utils.logger import get_logger
from .base_chunker import EnhancedChunk
from .hierarchical_chunker import hierarchical_chunk
from .semantic_chunker import semantic_chunk
from .sliding_window_chunker import DEFAULT_MIN_FINAL_SIZE, sliding_window_chunk

logger = get_logger("chunking")

DEFAULT_STRATEGY = "semantic"
DEFAULT_OVERLAP = 150


def smart_chunk(
    text: str,
    strategy: str = DEFAULT_STRATEGY,
    options: Optional[Dict[str, Any]] = None,
) -> List[EnhancedChunk]:
    """
    Chunk text with the named strategy.

    Options:
        target_size: Base size in characters (default 800). Semantic chunks
            use it as target with 0.5x/1.5x min/max bounds, sliding windows
            use it as the window size, hierarchical chunking uses 2x for
            parents and 1x for children.
        overlap: Sliding window overlap (default 150)
        min_final_size: Sliding window trailing-chunk floor (default 100)

    Unknown strategies fall back to semantic chunking.

    Returns:
        List of chunks (HierarchicalChunk instances for "hierarchical")
    """
    options = options or {}
    target_size = int(options.get("target_size", 800))
    overlap = int(options.get("overlap", DEFAULT_OVERLAP))
    min_final_size = int(options.get("min_final_size", DEFAULT_MIN_FINAL_SIZE))

    if strategy == "sliding":
        return sliding_window_chunk(text, target_size, overlap, min_final_size)
    if strategy == "hierarchical":
        return hierarchical_chunk(text, target_size * 2, target_size)
    if strategy != "semantic":
        logger.warning(f"Unknown chunk strategy '{strategy}', falling back to semantic")

    return semantic_chunk(text, target_size, int(target_size * 0.5), int(target_size * 1.5))
