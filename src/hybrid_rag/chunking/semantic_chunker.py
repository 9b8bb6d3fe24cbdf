"""Semantic chunking based on paragraph boundaries."""

from __future__ import annotations
from typing import List, Tuple

from ..exceptions import ConfigurationError
from .base_chunker import (
    EnhancedChunk,
    Span,
    count_sentences,
    detect_section_type,
    split_paragraphs,
)

DEFAULT_TARGET_SIZE = 800
DEFAULT_MIN_SIZE = 400
DEFAULT_MAX_SIZE = 1200


def validate_sizes(target_size: int, min_size: int, max_size: int) -> None:
    if target_size < 1 or max_size < 1:
        raise ConfigurationError(
            f"target_size and max_size must be positive, got {target_size} and {max_size}"
        )
    if not 0 <= min_size <= max_size:
        raise ConfigurationError(
            f"min_size must be between 0 and max_size ({max_size}), got {min_size}"
        )


def _make_chunk(paragraphs: List[Span], chunk_index: int) -> EnhancedChunk:
    """Build an EnhancedChunk from the buffered paragraphs."""
    chunk_text = " ".join(p[0] for p in paragraphs)
    section_type = detect_section_type(chunk_text)

    return EnhancedChunk(
        chunk_id=f"chunk_{chunk_index}",
        text=chunk_text,
        chunk_index=chunk_index,
        start_char=paragraphs[0][1],
        end_char=paragraphs[-1][2],
        sentence_count=count_sentences(chunk_text),
        section_type=section_type or "body",
        has_title=section_type == "title",
    )


def chunk_paragraph_spans(
    paragraphs: List[Span],
    target_size: int,
    max_size: int,
) -> List[Tuple[EnhancedChunk, List[Span]]]:
    """
    Group paragraphs into chunks.

    The pending buffer is flushed just before a paragraph would push it past
    ``max_size``, and right after it reaches ``target_size``. A paragraph
    longer than ``max_size`` therefore ends up alone in its own chunk,
    unsplit.

    Args:
        paragraphs: (normalized_text, start, end) spans in document order
        target_size: Flush once the buffer holds this many characters
        max_size: Never grow a multi-paragraph buffer past this size

    Returns:
        List of (chunk, paragraphs_in_chunk) pairs
    """
    results: List[Tuple[EnhancedChunk, List[Span]]] = []
    current: List[Span] = []
    current_size = 0

    def flush() -> None:
        nonlocal current, current_size
        results.append((_make_chunk(current, len(results)), current))
        current = []
        current_size = 0

    for paragraph in paragraphs:
        paragraph_length = len(paragraph[0])

        # If adding this paragraph would exceed max size, save current chunk
        if current and current_size + paragraph_length > max_size:
            flush()

        current.append(paragraph)
        current_size += paragraph_length + 1  # +1 for the joining space

        if current_size >= target_size:
            flush()

    if current:
        flush()

    return results


def semantic_chunk(
    text: str,
    target_size: int = DEFAULT_TARGET_SIZE,
    min_size: int = DEFAULT_MIN_SIZE,
    max_size: int = DEFAULT_MAX_SIZE,
) -> List[EnhancedChunk]:
    """
    Chunk text on blank-line paragraph boundaries.

    Paragraphs are whitespace-normalized and joined with single spaces.
    Each chunk is tagged with a detected section type ("body" by default).

    Args:
        text: Raw document text
        target_size: Characters after which the buffer is flushed
        min_size: Lower size bound; must not exceed max_size
        max_size: Upper bound for multi-paragraph chunks

    Returns:
        List of EnhancedChunk objects (empty for blank input)

    Raises:
        ConfigurationError: If the size bounds are inconsistent
    """
    validate_sizes(target_size, min_size, max_size)

    if not text or not text.strip():
        return []

    return [chunk for chunk, _ in chunk_paragraph_spans(split_paragraphs(text), target_size, max_size)]
