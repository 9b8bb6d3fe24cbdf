"""Retrieval components: TF-IDF index, rank fusion and hybrid search."""

from .base import BaseEmbedder, BaseVectorStore
from .tfidf_index import LexicalIndex, build_index, retrieve, tokenize
from .fusion import FusedResult, fuse, reciprocal_rank_fusion, weighted_fusion
from .hybrid_searcher import HybridIndex, HybridRAG, HybridSearchResult, IndexState, SearchResponse

__all__ = [
    "BaseEmbedder",
    "BaseVectorStore",
    "LexicalIndex",
    "build_index",
    "retrieve",
    "tokenize",
    "FusedResult",
    "fuse",
    "reciprocal_rank_fusion",
    "weighted_fusion",
    "HybridIndex",
    "HybridRAG",
    "HybridSearchResult",
    "IndexState",
    "SearchResponse",
]
