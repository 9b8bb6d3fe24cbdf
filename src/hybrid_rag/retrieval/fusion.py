"""
Rank fusion of lexical and semantic result lists.

Both methods take ranked ``(chunk_id, score)`` lists, best first, and return
``FusedResult`` objects sorted by fused score with 1-indexed ranks. Equal
fused scores are ordered by the best source rank, then by first appearance
(lexical list before semantic list).
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..exceptions import ConfigurationError

RankedList = Sequence[Tuple[str, float]]

DEFAULT_LEXICAL_WEIGHT = 0.4
DEFAULT_SEMANTIC_WEIGHT = 0.6
DEFAULT_RRF_K = 60


class FusedResult:
    """One chunk after fusion, with the per-source evidence kept alongside."""

    __slots__ = (
        "chunk_id",
        "lexical_score",
        "semantic_score",
        "lexical_rank",
        "semantic_rank",
        "fused_score",
        "rank",
    )

    def __init__(self, chunk_id: str):
        self.chunk_id = chunk_id
        self.lexical_score = 0.0
        self.semantic_score = 0.0
        self.lexical_rank: Optional[int] = None
        self.semantic_rank: Optional[int] = None
        self.fused_score = 0.0
        self.rank = 0

    @property
    def in_lexical(self) -> bool:
        return self.lexical_rank is not None

    @property
    def in_semantic(self) -> bool:
        return self.semantic_rank is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chunk_id": self.chunk_id,
            "lexical_score": self.lexical_score,
            "semantic_score": self.semantic_score,
            "lexical_rank": self.lexical_rank,
            "semantic_rank": self.semantic_rank,
            "fused_score": self.fused_score,
            "rank": self.rank,
        }

    def __repr__(self) -> str:
        return f"FusedResult(rank={self.rank}, chunk_id={self.chunk_id!r}, fused={self.fused_score:.4f})"


def _collect(lexical: RankedList, semantic: RankedList) -> Dict[str, FusedResult]:
    """Union of both lists keyed by chunk id, in first-appearance order."""
    merged: Dict[str, FusedResult] = {}

    for rank, (chunk_id, score) in enumerate(lexical, start=1):
        result = merged.setdefault(chunk_id, FusedResult(chunk_id))
        if result.lexical_rank is None:
            result.lexical_rank = rank
            result.lexical_score = score

    for rank, (chunk_id, score) in enumerate(semantic, start=1):
        result = merged.setdefault(chunk_id, FusedResult(chunk_id))
        if result.semantic_rank is None:
            result.semantic_rank = rank
            result.semantic_score = score

    return merged


def _rank(
    candidates: List[FusedResult],
    use_lexical_rank: bool,
    use_semantic_rank: bool,
    top_k: Optional[int],
) -> List[FusedResult]:
    def best_source_rank(result: FusedResult) -> float:
        ranks = []
        if use_lexical_rank and result.lexical_rank is not None:
            ranks.append(result.lexical_rank)
        if use_semantic_rank and result.semantic_rank is not None:
            ranks.append(result.semantic_rank)
        return min(ranks) if ranks else float("inf")

    # sorted() is stable, so first-appearance order breaks remaining ties
    ordered = sorted(candidates, key=lambda r: (-r.fused_score, best_source_rank(r)))
    if top_k is not None:
        ordered = ordered[:max(top_k, 0)]
    for rank, result in enumerate(ordered, start=1):
        result.rank = rank
    return ordered


def weighted_fusion(
    lexical: RankedList,
    semantic: RankedList,
    lexical_weight: float = DEFAULT_LEXICAL_WEIGHT,
    semantic_weight: float = DEFAULT_SEMANTIC_WEIGHT,
    top_k: Optional[int] = None,
) -> List[FusedResult]:
    """
    Fuse by weighted score sum: ``lexical * wL + semantic * wS``.

    Every chunk in either list is kept; a chunk missing from one list scores
    0 on that side. Scores are used as given and may be zero or negative,
    so ``(1, 0)`` ranks the lexical list first in its own order, and
    ``(0, 1)`` does the same for the semantic list.

    Raises:
        ConfigurationError: If a weight is negative
    """
    if lexical_weight < 0 or semantic_weight < 0:
        raise ConfigurationError(
            f"Fusion weights must be non-negative, got {lexical_weight} and {semantic_weight}"
        )

    candidates = list(_collect(lexical, semantic).values())
    for result in candidates:
        result.fused_score = result.lexical_score * lexical_weight + result.semantic_score * semantic_weight

    return _rank(candidates, lexical_weight > 0, semantic_weight > 0, top_k)


def reciprocal_rank_fusion(
    lexical: RankedList,
    semantic: RankedList,
    k: int = DEFAULT_RRF_K,
    top_k: Optional[int] = None,
) -> List[FusedResult]:
    """
    Fuse by Reciprocal Rank Fusion: sum of ``1 / (k + rank)`` over the lists
    a chunk appears in. Raw scores are carried through but never compared
    across lists.

    Raises:
        ConfigurationError: If k is negative
    """
    if k < 0:
        raise ConfigurationError(f"RRF k must be >= 0, got {k}")

    candidates = list(_collect(lexical, semantic).values())
    for result in candidates:
        fused = 0.0
        if result.lexical_rank is not None:
            fused += 1.0 / (k + result.lexical_rank)
        if result.semantic_rank is not None:
            fused += 1.0 / (k + result.semantic_rank)
        result.fused_score = fused

    return _rank(candidates, True, True, top_k)


def fuse(
    method: str,
    lexical: RankedList,
    semantic: RankedList,
    top_k: Optional[int] = None,
    lexical_weight: float = DEFAULT_LEXICAL_WEIGHT,
    semantic_weight: float = DEFAULT_SEMANTIC_WEIGHT,
    rrf_k: int = DEFAULT_RRF_K,
) -> List[FusedResult]:
    """
    Dispatch to ``weighted_fusion`` or ``reciprocal_rank_fusion``.

    Raises:
        ConfigurationError: If the method name is unknown
    """
    if method == "weighted":
        return weighted_fusion(lexical, semantic, lexical_weight, semantic_weight, top_k)
    if method == "rrf":
        return reciprocal_rank_fusion(lexical, semantic, rrf_k, top_k)
    raise ConfigurationError(f"Unknown fusion method: {method}")
