"""Hybrid search combining TF-IDF and semantic retrieval with rank fusion."""

from __future__ import annotations
import asyncio
import time
from datetime import timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..chunking.base_chunker import EnhancedChunk
from ..chunking.strategy import smart_chunk
from ..config import CHUNK_STRATEGIES, HybridRAGConfig, expand_path
from ..exceptions import ConfigurationError, HybridRAGError, IndexNotFoundError
from ..types import DocumentCacheRecord, VectorHit
from ..utils.cache_manager import CacheManager
from ..utils.hashing import content_hash
from ..utils.logger import document_id_context, get_logger
from ..utils.outcome import (
    STATUS_OK,
    STATUS_UNAVAILABLE,
    Outcome,
    attempt,
    with_fallback,
)
from ..utils.registry import IndexRegistry
from .base import BaseEmbedder, BaseVectorStore
from .fusion import fuse
from .tfidf_index import LexicalIndex, build_index, retrieve


class IndexState(str, Enum):
    UNBUILT = "UNBUILT"
    BUILDING = "BUILDING"
    READY = "READY"


class HybridIndex:
    """
    Everything needed to search one document, held in process memory only.

    Attributes:
        document_id: Document the index belongs to
        lexical_index: TF-IDF index over ``chunks``
        chunks: Chunks in document order
        has_semantic_index: Whether the vector store holds this chunking
        semantic_status: Outcome status of the semantic part of the build
        metadata: created_at, chunk_count, chunk_strategy, embedding_model
    """

    def __init__(
        self,
        document_id: str,
        lexical_index: LexicalIndex,
        chunks: List[EnhancedChunk],
        has_semantic_index: bool,
        semantic_status: str,
        metadata: Dict[str, Any],
    ):
        self.document_id = document_id
        self.lexical_index = lexical_index
        self.chunks = chunks
        self.has_semantic_index = has_semantic_index
        self.semantic_status = semantic_status
        self.metadata = metadata
        self.chunk_map: Dict[str, EnhancedChunk] = {chunk.id: chunk for chunk in chunks}

    @property
    def chunk_count(self) -> int:
        return len(self.chunks)

    def __repr__(self) -> str:
        return (
            f"HybridIndex(document_id={self.document_id!r}, chunks={self.chunk_count}, "
            f"semantic={self.has_semantic_index})"
        )


class HybridSearchResult:
    """One ranked chunk as handed to downstream consumers."""

    __slots__ = ("chunk", "lexical_score", "semantic_score", "fused_score", "rank", "lexical_rank", "semantic_rank")

    def __init__(
        self,
        chunk: EnhancedChunk,
        lexical_score: float,
        semantic_score: float,
        fused_score: float,
        rank: int,
        lexical_rank: Optional[int] = None,
        semantic_rank: Optional[int] = None,
    ):
        self.chunk = chunk
        self.lexical_score = lexical_score
        self.semantic_score = semantic_score
        self.fused_score = fused_score
        self.rank = rank
        self.lexical_rank = lexical_rank
        self.semantic_rank = semantic_rank

    @property
    def chunk_text(self) -> str:
        return self.chunk.text

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chunk_id": self.chunk.id,
            "chunk_text": self.chunk.text,
            "lexical_score": self.lexical_score,
            "semantic_score": self.semantic_score,
            "fused_score": self.fused_score,
            "rank": self.rank,
        }

    def __repr__(self) -> str:
        return f"HybridSearchResult(rank={self.rank}, chunk_id={self.chunk.id!r}, fused={self.fused_score:.4f})"


class SearchResponse:
    """
    Results of one search plus how they were obtained.

    ``semantic_status`` tells "no semantic match" (ok, nothing relevant)
    apart from "semantic side missing" (unavailable / failed / timeout).
    """

    def __init__(
        self,
        document_id: str,
        query: str,
        results: List[HybridSearchResult],
        semantic_status: str,
        fusion_method: str,
        timing: Dict[str, float],
    ):
        self.document_id = document_id
        self.query = query
        self.results = results
        self.semantic_status = semantic_status
        self.fusion_method = fusion_method
        self.timing = timing

    @property
    def degraded(self) -> bool:
        return self.semantic_status != STATUS_OK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "document_id": self.document_id,
            "query": self.query,
            "results": [result.to_dict() for result in self.results],
            "semantic_status": self.semantic_status,
            "fusion_method": self.fusion_method,
            "timing": self.timing,
        }

    def __iter__(self):
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class HybridRAG:
    """
    Hybrid retrieval over per-document indexes.

    Lexical search always works. Semantic search is layered on top when an
    embedder and a vector store are supplied and initialize cleanly; any
    failure there degrades that build or query to lexical-only and is
    reported through ``semantic_status``.

    Concurrent ``build_index`` calls for one document share a single build.
    """

    def __init__(
        self,
        config: Optional[HybridRAGConfig] = None,
        embedder: Optional[BaseEmbedder] = None,
        vector_store: Optional[BaseVectorStore] = None,
        cache_manager: Optional[CacheManager] = None,
        logger_name: str = "hybrid_searcher",
    ):
        """
        Initialize the engine. Call ``initialize`` before building indexes.

        Args:
            config: Engine configuration (defaults if None)
            embedder: Embedding provider; None disables semantic search
            vector_store: Vector store; None disables semantic search
            cache_manager: Build metadata cache (created from config if None)
            logger_name: Logger name
        """
        self.config = config or HybridRAGConfig()
        self.embedder = embedder
        self.vector_store = vector_store
        self.cache_manager = cache_manager or CacheManager(
            expand_path(self.config.cache.cache_dir),
            max_age=timedelta(days=self.config.cache.max_age_days),
        )
        self.logger = get_logger(logger_name)

        self._registry: IndexRegistry[HybridIndex] = IndexRegistry(self.config.engine.max_indexes)
        self._inflight: Dict[str, "asyncio.Task[HybridIndex]"] = {}
        self._semantic_ready = False
        self._initialized = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def semantic_enabled(self) -> bool:
        return self._semantic_ready

    @property
    def embedding_model(self) -> str:
        if self.embedder is not None:
            return self.embedder.model_name
        return self.config.embedding.model_name

    async def initialize(self) -> None:
        """Open the cache and the semantic backends. Backend failures only disable semantic search."""
        if self._initialized:
            return

        await self.cache_manager.initialize()

        if self.embedder is None or self.vector_store is None:
            self.logger.info("Semantic search disabled (no embedder or vector store)")
        else:
            store = await attempt(self.vector_store.initialize, "Vector store initialization", self.logger)
            model = await attempt(self.embedder.initialize, "Embedder initialization", self.logger)
            self._semantic_ready = store.is_ok and model.is_ok
            if not self._semantic_ready:
                self.logger.warning("Semantic search unavailable, falling back to TF-IDF only")

        self._initialized = True
        self.logger.info(
            f"Hybrid RAG initialized (semantic={'enabled' if self._semantic_ready else 'disabled'}, "
            f"max_indexes={self._registry.capacity})"
        )

    async def shutdown(self) -> None:
        await self._wait_for_builds(list(self._inflight.values()))
        self._registry.clear()

        if self.embedder is not None:
            await attempt(self.embedder.shutdown, "Embedder shutdown", self.logger)
        if self.vector_store is not None:
            await attempt(self.vector_store.shutdown, "Vector store shutdown", self.logger)
        await self.cache_manager.shutdown()

        self._semantic_ready = False
        self._initialized = False
        self.logger.info("Hybrid RAG shut down")

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise HybridRAGError("HybridRAG.initialize() must be awaited before use")

    @staticmethod
    async def _wait_for_builds(tasks: Sequence["asyncio.Task[HybridIndex]"]) -> None:
        # Build errors belong to the callers of build_index
        if tasks:
            await asyncio.wait(tasks)

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    async def build_index(
        self,
        document_id: str,
        text: str,
        chunk_strategy: Optional[str] = None,
        force_rebuild: bool = False,
    ) -> HybridIndex:
        """
        Build (or reuse) the hybrid index for a document.

        An index already in memory is returned as-is unless ``force_rebuild``.
        If a build for the same document is running, callers wait for it
        instead of starting another. During a forced rebuild the previous
        index stays searchable.

        Args:
            document_id: Document identifier
            text: Full document text
            chunk_strategy: semantic, sliding or hierarchical (config default if None)
            force_rebuild: Rebuild and re-embed even if cached

        Returns:
            READY HybridIndex

        Raises:
            ConfigurationError: On invalid chunking parameters or a
                chunk/vector count mismatch
        """
        self._require_initialized()
        strategy = chunk_strategy or self.config.chunking.strategy
        token = document_id_context.set(document_id)
        try:
            if not force_rebuild:
                index = self._registry.get(document_id)
                if index is not None:
                    self.logger.debug("Using in-memory index")
                    await self.cache_manager.touch_access(document_id)
                    return index

            # A forced caller must not reuse a build that started before it,
            # but does reuse one started by another forced caller meanwhile
            stale = None
            while True:
                task = self._inflight.get(document_id)
                if task is None:
                    break
                self.logger.debug("Waiting for in-flight build")
                index = await asyncio.shield(task)
                if not force_rebuild or (stale is not None and task is not stale):
                    return index
                stale = task

            task = asyncio.ensure_future(self._build(document_id, text, strategy, force_rebuild))
            self._inflight[document_id] = task
            return await asyncio.shield(task)
        finally:
            document_id_context.reset(token)

    async def _build(self, document_id: str, text: str, strategy: str, force_rebuild: bool) -> HybridIndex:
        try:
            start = time.perf_counter()
            text_hash = content_hash(text, self.config.cache.hash_prefix_chars)

            if strategy not in CHUNK_STRATEGIES:
                self.logger.warning(f"Unknown chunk strategy '{strategy}', using semantic")
                strategy = "semantic"

            chunks = await asyncio.to_thread(smart_chunk, text, strategy, self._chunk_options())
            lexical_index = await asyncio.to_thread(build_index, chunks)
            self.logger.info(f"Created {len(chunks)} chunks with '{strategy}' strategy")

            semantic_status = await self._build_semantic(document_id, chunks, text_hash, strategy, force_rebuild)
            has_semantic_index = semantic_status == STATUS_OK

            now = time.time()
            index = HybridIndex(
                document_id=document_id,
                lexical_index=lexical_index,
                chunks=chunks,
                has_semantic_index=has_semantic_index,
                semantic_status=semantic_status,
                metadata={
                    "created_at": now,
                    "chunk_count": len(chunks),
                    "chunk_strategy": strategy,
                    "embedding_model": self.embedding_model,
                },
            )

            record: DocumentCacheRecord = {
                "document_id": document_id,
                "chunk_count": len(chunks),
                "chunk_strategy": strategy,
                "has_semantic_index": has_semantic_index,
                "embedding_model": self.embedding_model,
                "created_at": now,
                "last_accessed": now,
                "text_hash": text_hash,
            }
            await self.cache_manager.save_record(record)
            self._registry.put(document_id, index)

            self.logger.info(
                f"Index ready: {len(chunks)} chunks, semantic={semantic_status} "
                f"({_elapsed_ms(start)} ms)"
            )
            return index
        finally:
            if self._inflight.get(document_id) is asyncio.current_task():
                del self._inflight[document_id]

    def _chunk_options(self) -> Dict[str, int]:
        chunking = self.config.chunking
        return {
            "target_size": chunking.target_size,
            "overlap": chunking.overlap,
            "min_final_size": chunking.min_final_size,
        }

    async def _can_reuse_vectors(
        self,
        document_id: str,
        chunk_count: int,
        text_hash: str,
        strategy: str,
    ) -> bool:
        if not self.cache_manager.is_valid(document_id, text_hash):
            return False

        record = self.cache_manager.get_record(document_id)
        if (
            not record["has_semantic_index"]
            or record["embedding_model"] != self.embedding_model
            or record.get("chunk_strategy", strategy) != strategy
        ):
            return False

        stored = await attempt(
            lambda: self.vector_store.count(document_id),
            "Vector count lookup",
            self.logger,
            timeout=self.config.engine.semantic_timeout_seconds,
        )
        return with_fallback(stored, 0) == chunk_count

    async def _build_semantic(
        self,
        document_id: str,
        chunks: List[EnhancedChunk],
        text_hash: str,
        strategy: str,
        force_rebuild: bool,
    ) -> str:
        """Embed and store chunk vectors. Returns the outcome status."""
        if not self._semantic_ready:
            return STATUS_UNAVAILABLE
        if not chunks:
            return STATUS_UNAVAILABLE

        if not force_rebuild and await self._can_reuse_vectors(document_id, len(chunks), text_hash, strategy):
            self.logger.info("Cache valid, reusing stored vectors")
            return STATUS_OK

        timeout = self.config.engine.semantic_timeout_seconds
        texts = [chunk.text for chunk in chunks]

        embedded = await attempt(
            lambda: self.embedder.embed_batch(texts, self.config.embedding.batch_size),
            "Chunk embedding",
            self.logger,
            timeout=timeout,
        )
        if not embedded.is_ok:
            self.logger.warning("Falling back to TF-IDF only for this document")
            return embedded.status

        stored = await attempt(
            lambda: self.vector_store.add_chunks(document_id, chunks, embedded.value),
            "Vector store population",
            self.logger,
            timeout=timeout,
        )
        if not stored.is_ok:
            self.logger.warning("Falling back to TF-IDF only for this document")
        return stored.status

    # ------------------------------------------------------------------
    # Searching
    # ------------------------------------------------------------------

    async def search(
        self,
        document_id: str,
        query: str,
        top_k: Optional[int] = None,
        lexical_weight: Optional[float] = None,
        semantic_weight: Optional[float] = None,
        fusion_method: Optional[str] = None,
        lexical_candidates: Optional[int] = None,
        semantic_candidates: Optional[int] = None,
    ) -> SearchResponse:
        """
        Search one document's index.

        Lexical and semantic retrieval run concurrently; the semantic side
        is skipped or dropped (never fatal) when unavailable, failing or
        timing out.

        Args:
            document_id: Document to search
            query: Free-text query
            top_k: Results to return (config default if None)
            lexical_weight: Weighted-fusion weight for TF-IDF scores
            semantic_weight: Weighted-fusion weight for vector scores
            fusion_method: "weighted" or "rrf"
            lexical_candidates: TF-IDF candidates fetched before fusion
            semantic_candidates: Vector candidates fetched before fusion

        Returns:
            SearchResponse with ranked results and semantic status

        Raises:
            IndexNotFoundError: If the document has no READY index
            ConfigurationError: On invalid search parameters
        """
        index = self._registry.get(document_id)
        if index is None:
            raise IndexNotFoundError(document_id)

        retrieval = self.config.retrieval
        top_k = retrieval.top_k if top_k is None else top_k
        lexical_weight = retrieval.lexical_weight if lexical_weight is None else lexical_weight
        semantic_weight = retrieval.semantic_weight if semantic_weight is None else semantic_weight
        fusion_method = fusion_method or retrieval.fusion_method

        if top_k < 1:
            raise ConfigurationError(f"top_k must be >= 1, got {top_k}")
        if fusion_method not in ("weighted", "rrf"):
            raise ConfigurationError(f"Unknown fusion method: {fusion_method}")

        lexical_pool = self._pool_size("lexical", lexical_candidates or retrieval.lexical_candidates, top_k)
        semantic_pool = self._pool_size("semantic", semantic_candidates or retrieval.semantic_candidates, top_k)

        token = document_id_context.set(document_id)
        try:
            query_preview = query[:50] + "..." if len(query) > 50 else query
            self.logger.info(
                f"Hybrid search: query='{query_preview}', top_k={top_k}, fusion={fusion_method}"
            )
            start = time.perf_counter()

            (lexical_hits, lexical_ms), (semantic, semantic_ms) = await asyncio.gather(
                self._timed(asyncio.to_thread(retrieve, index.lexical_index, query, lexical_pool)),
                self._timed(self._semantic_search(index, query, semantic_pool)),
            )

            semantic_hits = [
                hit for hit in with_fallback(semantic, []) if hit["chunk_id"] in index.chunk_map
            ]

            fusion_start = time.perf_counter()
            fused = fuse(
                fusion_method,
                [(hit["chunk"].id, hit["score"]) for hit in lexical_hits],
                [(hit["chunk_id"], hit["score"]) for hit in semantic_hits],
                top_k=top_k,
                lexical_weight=lexical_weight,
                semantic_weight=semantic_weight,
                rrf_k=retrieval.rrf_k,
            )
            results = [
                HybridSearchResult(
                    chunk=index.chunk_map[item.chunk_id],
                    lexical_score=item.lexical_score,
                    semantic_score=item.semantic_score,
                    fused_score=item.fused_score,
                    rank=item.rank,
                    lexical_rank=item.lexical_rank,
                    semantic_rank=item.semantic_rank,
                )
                for item in fused
            ]

            timing = {
                "lexical_ms": lexical_ms,
                "semantic_ms": semantic_ms,
                "fusion_ms": _elapsed_ms(fusion_start),
                "total_ms": _elapsed_ms(start),
            }
            self.logger.info(
                f"Returning {len(results)} results "
                f"(lexical={len(lexical_hits)}, semantic={len(semantic_hits)}, status={semantic.status})"
            )
            return SearchResponse(
                document_id=document_id,
                query=query,
                results=results,
                semantic_status=semantic.status,
                fusion_method=fusion_method,
                timing=timing,
            )
        finally:
            document_id_context.reset(token)

    def _pool_size(self, side: str, requested: int, top_k: int) -> int:
        if requested < top_k:
            self.logger.warning(f"{side} candidate pool {requested} < top_k {top_k}, using {top_k}")
            return top_k
        return requested

    @staticmethod
    async def _timed(awaitable) -> Tuple[Any, float]:
        start = time.perf_counter()
        value = await awaitable
        return value, _elapsed_ms(start)

    async def _semantic_search(self, index: HybridIndex, query: str, top_k: int) -> Outcome[List[VectorHit]]:
        if not index.has_semantic_index:
            return Outcome.unavailable("document has no semantic index")
        if not self._semantic_ready:
            return Outcome.unavailable("semantic backends not initialized")

        timeout = self.config.engine.semantic_timeout_seconds
        embedded = await attempt(
            lambda: self.embedder.embed(query),
            "Query embedding",
            self.logger,
            timeout=timeout,
        )
        if not embedded.is_ok:
            return Outcome(status=embedded.status, error=embedded.error)

        return await attempt(
            lambda: self.vector_store.search(index.document_id, embedded.value, top_k),
            "Semantic search",
            self.logger,
            timeout=timeout,
        )

    # ------------------------------------------------------------------
    # Inspection and removal
    # ------------------------------------------------------------------

    def get_index(self, document_id: str) -> Optional[HybridIndex]:
        return self._registry.peek(document_id)

    def has_index(self, document_id: str) -> bool:
        return document_id in self._registry

    def get_state(self, document_id: str) -> IndexState:
        if document_id in self._registry:
            return IndexState.READY
        if document_id in self._inflight:
            return IndexState.BUILDING
        return IndexState.UNBUILT

    def get_stats(self, document_id: str) -> Optional[Dict[str, Any]]:
        index = self._registry.peek(document_id)
        if index is None:
            return None
        return {
            "chunk_count": index.metadata["chunk_count"],
            "has_semantic_index": index.has_semantic_index,
            "embedding_model": index.metadata["embedding_model"],
            "created_at": index.metadata["created_at"],
        }

    async def delete_index(self, document_id: str) -> None:
        """Drop a document's in-memory index, cache record and stored vectors."""
        token = document_id_context.set(document_id)
        try:
            task = self._inflight.get(document_id)
            await self._wait_for_builds([task] if task else [])

            self._registry.pop(document_id)
            await self.cache_manager.remove_record(document_id)
            if self._semantic_ready:
                await attempt(
                    lambda: self.vector_store.delete_document(document_id),
                    "Vector deletion",
                    self.logger,
                )
            self.logger.info("Deleted index")
        finally:
            document_id_context.reset(token)

    async def clear_all(self) -> None:
        """Drop every index, cache record and stored vector."""
        await self._wait_for_builds(list(self._inflight.values()))

        self._registry.clear()
        await self.cache_manager.clear_all()
        if self._semantic_ready:
            await attempt(self.vector_store.clear_all, "Vector store clear", self.logger)
        self.logger.info("Cleared all indexes")
