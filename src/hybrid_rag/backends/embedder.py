"""Embedding generation using sentence-transformers."""

from __future__ import annotations
import asyncio
from collections import OrderedDict
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
from sentence_transformers import SentenceTransformer

from ..exceptions import EmbeddingError
from ..retrieval.base import BaseEmbedder, Vector
from ..utils.hashing import text_digest
from ..utils.logger import get_logger


class SentenceTransformerEmbedder(BaseEmbedder):
    """
    Embedding provider backed by a sentence-transformers model.

    Changing the embedding model only requires a different ``model_name``.
    Vectors are unit-normalized. Recently embedded texts are kept in a
    bounded in-memory cache keyed by model and text digest, so re-indexing
    a document or repeating a query does not re-encode.
    """

    def __init__(
        self,
        model_name: str = "all-MiniLM-L6-v2",
        device: str = "cpu",
        batch_size: int = 8,
        cache_size: int = 2048,
        logger_name: str = "embedder",
    ):
        """
        Initialize embedder. The model itself is loaded by ``initialize``.

        Args:
            model_name: Name of the sentence-transformer model
            device: Device to run on ('cpu' or 'cuda')
            batch_size: Default batch size for encoding
            cache_size: Embedding cache entries (0 disables caching)
            logger_name: Logger name
        """
        self._model_name = model_name
        self.device = device
        self.batch_size = batch_size
        self.cache_size = cache_size
        self.logger = get_logger(logger_name)

        self.model: Optional[SentenceTransformer] = None
        self.embedding_dim: Optional[int] = None
        self._cache: "OrderedDict[str, Vector]" = OrderedDict()
        self.cache_hits = 0
        self.cache_misses = 0

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def dimension(self) -> int:
        if self.embedding_dim is None:
            raise EmbeddingError("Embedding model not initialized")
        return self.embedding_dim

    def _load_model(self) -> SentenceTransformer:
        return SentenceTransformer(self._model_name, device=self.device)

    async def initialize(self) -> None:
        """
        Load the model in a worker thread.

        Raises:
            EmbeddingError: If the model cannot be loaded
        """
        if self.model is not None:
            return

        self.logger.info(f"Loading embedding model: {self._model_name}")
        try:
            self.model = await asyncio.to_thread(self._load_model)
        except Exception as e:
            raise EmbeddingError(f"Could not load embedding model '{self._model_name}': {e}") from e

        self.embedding_dim = self.model.get_sentence_embedding_dimension()
        self.logger.info(
            f"Model loaded. Embedding dimension: {self.embedding_dim}, Device: {self.device}"
        )

    async def shutdown(self) -> None:
        self.model = None
        self._cache.clear()

    def _cache_key(self, text: str) -> str:
        return text_digest(f"{self._model_name}\x00{text}")

    def _remember(self, key: str, vector: Vector) -> None:
        if self.cache_size <= 0:
            return
        self._cache[key] = vector
        self._cache.move_to_end(key)
        while len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)

    def _encode(self, texts: List[str], batch_size: int) -> np.ndarray:
        return self.model.encode(
            texts,
            batch_size=batch_size,
            show_progress_bar=False,
            normalize_embeddings=True,
            convert_to_numpy=True,
        )

    async def embed(self, text: str) -> Vector:
        vectors = await self.embed_batch([text], batch_size=1)
        return vectors[0]

    async def embed_batch(self, texts: Sequence[str], batch_size: Optional[int] = None) -> List[Vector]:
        """
        Embed texts in input order, encoding only cache misses.

        Args:
            texts: Texts to embed
            batch_size: Texts per model call (defaults to the configured size)

        Returns:
            One vector per text

        Raises:
            EmbeddingError: If the model is not loaded or encoding fails
        """
        if self.model is None:
            raise EmbeddingError("Embedding model not initialized")

        keys = [self._cache_key(text) for text in texts]
        results: List[Optional[Vector]] = [self._cache.get(key) for key in keys]

        missing: Dict[str, List[int]] = {}
        for position, (key, vector) in enumerate(zip(keys, results)):
            if vector is None:
                missing.setdefault(key, []).append(position)
            else:
                self._cache.move_to_end(key)

        self.cache_hits += len(texts) - sum(len(p) for p in missing.values())
        self.cache_misses += len(missing)

        if missing:
            pending_keys = list(missing.keys())
            pending_texts = [texts[missing[key][0]] for key in pending_keys]
            self.logger.debug(f"Encoding {len(pending_texts)} texts ({len(texts) - len(pending_texts)} cached)")
            try:
                encoded = await asyncio.to_thread(self._encode, pending_texts, batch_size or self.batch_size)
            except Exception as e:
                raise EmbeddingError(f"Embedding failed: {e}") from e

            for key, embedding in zip(pending_keys, encoded):
                vector = embedding.tolist()
                self._remember(key, vector)
                for position in missing[key]:
                    results[position] = vector

        return results

    def get_model_info(self) -> Dict[str, Any]:
        """
        Get information about the current model.

        Returns:
            Dictionary with model information
        """
        return {
            "model_name": self._model_name,
            "embedding_dim": self.embedding_dim,
            "device": self.device,
            "batch_size": self.batch_size,
            "cache_entries": len(self._cache),
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
        }
