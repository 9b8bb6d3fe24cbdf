"""Chunk types and the text-splitting helpers shared by all chunking strategies."""

from __future__ import annotations
import re
from typing import Any, Dict, List, Optional, Tuple

SECTION_TYPES = (
    "title",
    "abstract",
    "introduction",
    "methods",
    "results",
    "discussion",
    "conclusion",
    "references",
    "body",
)

# Common section headers in academic papers, checked in this order
SECTION_PATTERNS = [
    ("abstract", re.compile(r"^(abstract|summary)[\s:]", re.IGNORECASE)),
    ("introduction", re.compile(r"^(introduction|background)[\s:]", re.IGNORECASE)),
    ("methods", re.compile(r"^(methods?|methodology|experimental|materials?\s+and\s+methods?)[\s:]", re.IGNORECASE)),
    ("results", re.compile(r"^(results?|findings?)[\s:]", re.IGNORECASE)),
    ("discussion", re.compile(r"^(discussion|analysis)[\s:]", re.IGNORECASE)),
    ("conclusion", re.compile(r"^(conclusion|concluding\s+remarks?|summary)[\s:]", re.IGNORECASE)),
    ("references", re.compile(r"^(references?|bibliography|citations?)[\s:]", re.IGNORECASE)),
]

# A paragraph is a run of text between blank lines
_PARAGRAPH_PATTERN = re.compile(r"\S(?:.*?\S)??(?=\s*\n\s*\n|\s*$)", re.DOTALL)

# A sentence runs up to terminal punctuation (plus closing quotes/brackets)
# that is followed by whitespace and a likely sentence start, or to the end of text.
_SENTENCE_PATTERN = re.compile(
    r"\S.*?(?:[.!?]+[\"')\]]*(?=\s+[A-Z0-9\"'(\[])|$)",
    re.DOTALL,
)

Span = Tuple[str, int, int]


class Chunk:
    """Atomic retrieval unit: an id unique within one document's index, and its text."""

    def __init__(self, chunk_id: str, text: str):
        self.id = chunk_id
        self.text = text

    def to_dict(self) -> Dict[str, Any]:
        """Convert chunk to dictionary representation."""
        return {"id": self.id, "text": self.text}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Chunk):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        preview = self.text[:50] + "..." if len(self.text) > 50 else self.text
        return f"{type(self).__name__}(id={self.id}, preview='{preview}')"


class EnhancedChunk(Chunk):
    """Chunk with position and structure metadata."""

    def __init__(
        self,
        chunk_id: str,
        text: str,
        chunk_index: int,
        start_char: int,
        end_char: int,
        sentence_count: int,
        section_type: str = "body",
        has_title: bool = False,
    ):
        """
        Initialize an enhanced chunk.

        Args:
            chunk_id: Unique identifier within the document's index
            text: Whitespace-normalized chunk text
            chunk_index: Position of this chunk in the chunk list (0-indexed)
            start_char: Offset of the chunk's first character in the source text
            end_char: Offset just past the chunk's last character in the source text
            sentence_count: Number of sentences in the chunk
            section_type: Detected section (see SECTION_TYPES)
            has_title: True when the chunk looks like a title line
        """
        super().__init__(chunk_id, text)
        self.chunk_index = chunk_index
        self.start_char = start_char
        self.end_char = end_char
        self.sentence_count = sentence_count
        self.section_type = section_type
        self.has_title = has_title

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "chunk_index": self.chunk_index,
            "start_char": self.start_char,
            "end_char": self.end_char,
            "sentence_count": self.sentence_count,
            "section_type": self.section_type,
            "has_title": self.has_title,
        })
        return data


class HierarchicalChunk(EnhancedChunk):
    """Enhanced chunk linked into a parent (level 0) / child (level 1) tree."""

    def __init__(
        self,
        chunk_id: str,
        text: str,
        chunk_index: int,
        start_char: int,
        end_char: int,
        sentence_count: int,
        section_type: str = "body",
        has_title: bool = False,
        level: int = 0,
        parent_id: Optional[str] = None,
        child_ids: Optional[List[str]] = None,
    ):
        super().__init__(
            chunk_id, text, chunk_index, start_char, end_char,
            sentence_count, section_type, has_title,
        )
        self.level = level
        self.parent_id = parent_id
        self.child_ids = child_ids if child_ids is not None else []

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "level": self.level,
            "parent_id": self.parent_id,
            "child_ids": list(self.child_ids),
        })
        return data


def normalize_whitespace(text: str) -> str:
    """Collapse every whitespace run to a single space."""
    return " ".join(text.split())


def split_paragraphs(text: str) -> List[Span]:
    """
    Split text on blank lines.

    Returns:
        List of (normalized_text, start, end) where start/end are offsets
        into ``text``
    """
    return [
        (normalize_whitespace(m.group(0)), m.start(), m.end())
        for m in _PARAGRAPH_PATTERN.finditer(text)
    ]


def split_sentences(text: str) -> List[Span]:
    """
    Split text into sentences with a regex boundary detector.

    Boundaries are terminal punctuation followed by whitespace and an
    uppercase letter, digit, quote or bracket. Sentences are never split
    inside a word.

    Returns:
        List of (normalized_text, start, end) offsets into ``text``
    """
    spans = []
    for m in _SENTENCE_PATTERN.finditer(text):
        sentence = normalize_whitespace(m.group(0))
        if sentence:
            spans.append((sentence, m.start(), m.end()))
    return spans


def count_sentences(text: str) -> int:
    return len(split_sentences(text))


def detect_section_type(text: str) -> Optional[str]:
    """
    Guess which paper section a chunk belongs to from its leading text.

    Section keyword patterns win; otherwise a short (10-100 chars exclusive),
    capitalized line without terminal punctuation counts as a title.

    Returns:
        Section type, or None when nothing matched
    """
    trimmed = text.strip()

    for section_type, pattern in SECTION_PATTERNS:
        if pattern.search(trimmed):
            return section_type

    if 10 < len(trimmed) < 100 and trimmed[:1].isupper() and not re.search(r"[.!?]$", trimmed):
        return "title"

    return None
