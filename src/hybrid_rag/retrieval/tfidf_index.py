"""TF-IDF keyword search with sparse cosine similarity."""

from __future__ import annotations
import math
import re
from collections import Counter
from typing import Dict, FrozenSet, List, Sequence

from ..chunking.base_chunker import Chunk
from ..types import LexicalHit
from ..utils.logger import get_logger

logger = get_logger("tfidf_index")

STOPWORDS: FrozenSet[str] = frozenset({
    'the', 'is', 'at', 'of', 'on', 'and', 'a', 'to', 'in', 'for', 'that',
    'this', 'with', 'as', 'an', 'by', 'be', 'are', 'or', 'it', 'from', 'we',
    'can', 'also', 'not', 'our', 'have', 'has', 'which', 'their', 'these',
    'those', 'into', 'using', 'used', 'use', 'such', 'than', 'other', 'more',
    'most', 'less', 'least', 'between', 'over', 'under', 'above', 'below',
    'however', 'therefore', 'thus', 'while', 'where', 'when', 'who', 'whom',
    'whose', 'what', 'why', 'how',
})

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")

SparseVector = Dict[str, float]


class LexicalIndex:
    """
    In-memory TF-IDF index over one document's chunks.

    Attributes:
        chunks: Indexed chunks in document order
        vocabulary: term -> number of chunks containing the term
        chunk_term_frequencies: chunk id -> (term -> count in that chunk)
        chunk_count: Number of indexed chunks (N in the idf formula)
    """

    __slots__ = ("chunks", "vocabulary", "chunk_term_frequencies", "chunk_count")

    def __init__(
        self,
        chunks: List[Chunk],
        vocabulary: Dict[str, int],
        chunk_term_frequencies: Dict[str, Dict[str, int]],
    ):
        self.chunks = chunks
        self.vocabulary = vocabulary
        self.chunk_term_frequencies = chunk_term_frequencies
        self.chunk_count = len(chunks)

    def idf(self, term: str) -> float:
        return compute_idf(self, term)

    def retrieve(self, query: str, top_k: int = 3) -> List[LexicalHit]:
        return retrieve(self, query, top_k)

    def __repr__(self) -> str:
        return f"LexicalIndex(chunks={self.chunk_count}, terms={len(self.vocabulary)})"


def tokenize(text: str) -> List[str]:
    """
    Tokenize text for TF-IDF indexing.

    Lowercases, replaces everything outside ``[a-z0-9\\s]`` with a space,
    splits on whitespace and drops single-character tokens and stopwords.
    No stemming is applied.
    """
    tokens = _NON_ALNUM.sub(" ", text.lower()).split()
    return [t for t in tokens if len(t) > 1 and t not in STOPWORDS]


def build_index(chunks: Sequence[Chunk]) -> LexicalIndex:
    """
    Build a TF-IDF index from chunks.

    Each chunk contributes at most 1 to a term's document frequency,
    however often the term repeats inside it.
    """
    vocabulary: Counter = Counter()
    chunk_term_frequencies: Dict[str, Dict[str, int]] = {}

    for chunk in chunks:
        tf = Counter(tokenize(chunk.text))
        vocabulary.update(tf.keys())
        chunk_term_frequencies[chunk.id] = dict(tf)

    index = LexicalIndex(list(chunks), dict(vocabulary), chunk_term_frequencies)
    logger.debug(f"Built TF-IDF index: {index.chunk_count} chunks, {len(index.vocabulary)} terms")
    return index


def compute_idf(index: LexicalIndex, term: str) -> float:
    """Smoothed idf: ln((1 + N) / (1 + df)) + 1. Unknown terms get the maximum for N."""
    df = index.vocabulary.get(term, 0)
    return math.log((1 + index.chunk_count) / (1 + df)) + 1


def _weigh(index: LexicalIndex, term_frequencies: Dict[str, int]) -> SparseVector:
    return {term: tf * compute_idf(index, term) for term, tf in term_frequencies.items()}


def cosine_similarity(a: SparseVector, b: SparseVector) -> float:
    """Cosine similarity of two sparse vectors; 0.0 if either is empty."""
    a_norm = math.sqrt(sum(v * v for v in a.values()))
    b_norm = math.sqrt(sum(v * v for v in b.values()))
    if a_norm == 0 or b_norm == 0:
        return 0.0

    # Walk the smaller vector, look up in the larger
    shorter, longer = (a, b) if len(a) <= len(b) else (b, a)
    dot = 0.0
    for term, value in shorter.items():
        other = longer.get(term)
        if other:
            dot += value * other
    return dot / (a_norm * b_norm)


def retrieve(index: LexicalIndex, query: str, top_k: int = 3) -> List[LexicalHit]:
    """
    Rank chunks by TF-IDF cosine similarity to the query.

    Chunk vectors are weighted at query time. Chunks scoring 0 are left out,
    and equal scores keep document order.

    Args:
        index: Index built by ``build_index``
        query: Free-text query
        top_k: Maximum number of hits

    Returns:
        Up to ``top_k`` hits, best first
    """
    if top_k <= 0:
        return []

    query_vector = _weigh(index, Counter(tokenize(query)))
    if not query_vector:
        return []

    hits: List[LexicalHit] = []
    for chunk in index.chunks:
        chunk_vector = _weigh(index, index.chunk_term_frequencies.get(chunk.id, {}))
        score = cosine_similarity(query_vector, chunk_vector)
        if score > 0:
            hits.append({"chunk": chunk, "score": score})

    # list.sort is stable, so ties keep chunk order
    hits.sort(key=lambda hit: hit["score"], reverse=True)
    return hits[:top_k]
