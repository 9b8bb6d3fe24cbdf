"""Hierarchical chunking: section-sized parents split into paragraph-sized children."""

from __future__ import annotations
from typing import List

from .base_chunker import HierarchicalChunk, split_paragraphs
from .semantic_chunker import validate_sizes, chunk_paragraph_spans

DEFAULT_PARENT_SIZE = 2000
DEFAULT_CHILD_SIZE = 600


def _bounds(size: int):
    """(min, max) bounds used for a level of the hierarchy."""
    return int(size * 0.5), int(size * 1.5)


def hierarchical_chunk(
    text: str,
    parent_size: int = DEFAULT_PARENT_SIZE,
    child_size: int = DEFAULT_CHILD_SIZE,
) -> List[HierarchicalChunk]:
    """
    Create parent chunks (level 0) and child chunks (level 1).

    Parents come from semantic chunking at ``parent_size``; each parent's
    own paragraphs are then re-chunked at ``child_size``. Parents list
    their children in ``child_ids`` and children point back through
    ``parent_id``.

    Args:
        text: Raw document text
        parent_size: Target size of parent chunks
        child_size: Target size of child chunks

    Returns:
        Flattened list: each parent followed by its children. Filter on
        ``level`` to get one layer.
    """
    parent_min, parent_max = _bounds(parent_size)
    child_min, child_max = _bounds(child_size)
    validate_sizes(parent_size, parent_min, parent_max)
    validate_sizes(child_size, child_min, child_max)

    if not text or not text.strip():
        return []

    chunks: List[HierarchicalChunk] = []
    parents = chunk_paragraph_spans(split_paragraphs(text), parent_size, parent_max)

    for parent_number, (parent, paragraphs) in enumerate(parents):
        parent_id = f"parent_{parent_number}"
        child_ids: List[str] = []

        chunks.append(HierarchicalChunk(
            chunk_id=parent_id,
            text=parent.text,
            chunk_index=len(chunks),
            start_char=parent.start_char,
            end_char=parent.end_char,
            sentence_count=parent.sentence_count,
            section_type=parent.section_type,
            has_title=parent.has_title,
            level=0,
            child_ids=child_ids,
        ))

        for child, _ in chunk_paragraph_spans(paragraphs, child_size, child_max):
            child_id = f"{parent_id}_child_{len(child_ids)}"
            child_ids.append(child_id)

            chunks.append(HierarchicalChunk(
                chunk_id=child_id,
                text=child.text,
                chunk_index=len(chunks),
                start_char=child.start_char,
                end_char=child.end_char,
                sentence_count=child.sentence_count,
                section_type=child.section_type,
                has_title=child.has_title,
                level=1,
                parent_id=parent_id,
            ))

    return chunks
