"""Sentence-based sliding window chunking with overlap."""

from __future__ import annotations
from typing import List

from ..exceptions import ConfigurationError
from .base_chunker import EnhancedChunk, Span, detect_section_type, split_sentences

DEFAULT_WINDOW_SIZE = 1000
DEFAULT_OVERLAP = 200
# Trailing windows at or below this size are dropped, even when no
# earlier window was emitted.
DEFAULT_MIN_FINAL_SIZE = 100


def _window_size(sentences: List[Span]) -> int:
    return sum(len(s[0]) + 1 for s in sentences)


def _overlap_count(window: List[Span], overlap: int) -> int:
    """
    Number of trailing sentences to carry into the next window.

    Picks the count whose combined length is closest to ``overlap``,
    preferring the shorter carry on ties. At least one sentence of the
    window is always left behind so every window makes progress.
    """
    best_count = 0
    best_distance = overlap
    carried = 0
    for count in range(1, len(window)):
        carried += len(window[-count][0]) + 1
        distance = abs(carried - overlap)
        if distance < best_distance:
            best_count, best_distance = count, distance
        if carried >= overlap:
            break
    return best_count


def _make_chunk(sentences: List[Span], chunk_index: int) -> EnhancedChunk:
    chunk_text = " ".join(s[0] for s in sentences)
    section_type = detect_section_type(chunk_text)
    return EnhancedChunk(
        chunk_id=f"chunk_{chunk_index}",
        text=chunk_text,
        chunk_index=chunk_index,
        start_char=sentences[0][1],
        end_char=sentences[-1][2],
        sentence_count=len(sentences),
        section_type=section_type or "body",
        has_title=section_type == "title",
    )


def sliding_window_chunk(
    text: str,
    window_size: int = DEFAULT_WINDOW_SIZE,
    overlap: int = DEFAULT_OVERLAP,
    min_final_size: int = DEFAULT_MIN_FINAL_SIZE,
) -> List[EnhancedChunk]:
    """
    Chunk text into overlapping windows of whole sentences.

    Sentences accumulate until the window reaches ``window_size`` characters,
    then the window is emitted and the next one is seeded with the trailing
    sentences whose combined length is closest to ``overlap``.

    Args:
        text: Raw document text
        window_size: Characters after which a window is emitted
        overlap: Desired characters shared by consecutive windows
        min_final_size: The last partial window is kept only if larger than
            this

    Returns:
        List of EnhancedChunk objects (empty for blank input)
    """
    if window_size < 1:
        raise ConfigurationError(f"window_size must be positive, got {window_size}")
    if overlap < 0:
        raise ConfigurationError(f"overlap must be >= 0, got {overlap}")

    if not text or not text.strip():
        return []

    chunks: List[EnhancedChunk] = []
    window: List[Span] = []
    current_size = 0
    # Sentences at the head of the window that were already emitted
    carried = 0

    for sentence in split_sentences(text):
        window.append(sentence)
        current_size += len(sentence[0]) + 1

        if current_size >= window_size:
            chunks.append(_make_chunk(window, len(chunks)))

            carried = _overlap_count(window, overlap)
            window = window[len(window) - carried:] if carried else []
            current_size = _window_size(window)

    has_new_content = len(window) > carried
    if has_new_content and current_size > min_final_size:
        chunks.append(_make_chunk(window, len(chunks)))

    return chunks
