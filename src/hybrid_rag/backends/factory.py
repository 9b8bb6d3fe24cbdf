"""Wire an engine with the real backends from configuration."""

from __future__ import annotations
from datetime import timedelta
from typing import Optional

from ..config import HybridRAGConfig, expand_path
from ..retrieval.hybrid_searcher import HybridRAG
from ..utils.cache_manager import CacheManager
from .embedder import SentenceTransformerEmbedder
from .vector_store import ChromaVectorStore


def build_hybrid_rag(config: Optional[HybridRAGConfig] = None, semantic: bool = True) -> HybridRAG:
    """
    Construct a ``HybridRAG`` with sentence-transformers and ChromaDB.

    Nothing is loaded until ``await engine.initialize()``.

    Args:
        config: Engine configuration (defaults if None)
        semantic: False builds a TF-IDF-only engine regardless of config

    Returns:
        Uninitialized HybridRAG
    """
    config = config or HybridRAGConfig()

    embedder = None
    vector_store = None
    if semantic and config.embedding.enabled and config.vector_store.enabled:
        embedder = SentenceTransformerEmbedder(
            model_name=config.embedding.model_name,
            device=config.embedding.device,
            batch_size=config.embedding.batch_size,
            cache_size=config.embedding.embedding_cache_size,
        )
        vector_store = ChromaVectorStore(
            persist_directory=expand_path(config.vector_store.persist_directory),
            collection_name=config.vector_store.collection_name,
        )

    cache_manager = CacheManager(
        expand_path(config.cache.cache_dir),
        max_age=timedelta(days=config.cache.max_age_days),
    )
    return HybridRAG(config, embedder=embedder, vector_store=vector_store, cache_manager=cache_manager)
