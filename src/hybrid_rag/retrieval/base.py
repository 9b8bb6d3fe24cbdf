"""Abstract interfaces for the embedding provider and the vector store."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Sequence

from ..chunking.base_chunker import Chunk
from ..exceptions import ConfigurationError
from ..types import VectorHit

Vector = List[float]


class BaseEmbedder(ABC):
    """
    Maps text to fixed-dimension vectors.

    Implementations must be deterministic for a fixed model version, and
    ``embed_batch`` must return exactly what repeated ``embed`` calls would,
    in input order.
    """

    async def initialize(self) -> None:
        """Load the model. Called once before first use."""

    async def shutdown(self) -> None:
        """Release the model."""

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Identifier recorded in the cache for every semantic build."""
        pass

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Vector dimension produced by the model."""
        pass

    @abstractmethod
    async def embed(self, text: str) -> Vector:
        """
        Embed a single text.

        Raises:
            EmbeddingError: If the model cannot produce a vector
        """
        pass

    @abstractmethod
    async def embed_batch(self, texts: Sequence[str], batch_size: int = 8) -> List[Vector]:
        """
        Embed many texts, ``batch_size`` per model call.

        Raises:
            EmbeddingError: If the model cannot produce vectors
        """
        pass

    def get_model_info(self) -> Dict[str, Any]:
        return {"model_name": self.model_name, "embedding_dim": self.dimension}


class BaseVectorStore(ABC):
    """
    Persists chunk vectors partitioned by document id and answers
    nearest-neighbour queries within one document.
    """

    async def initialize(self) -> None:
        """Open the underlying store."""

    async def shutdown(self) -> None:
        """Close the underlying store."""

    async def add_chunks(
        self,
        document_id: str,
        chunks: Sequence[Chunk],
        vectors: Sequence[Vector],
    ) -> int:
        """
        Store one vector per chunk, replacing anything stored for the document.

        Args:
            document_id: Document the chunks belong to
            chunks: Chunks in index order
            vectors: One vector per chunk, same order

        Returns:
            Number of chunks stored

        Raises:
            ConfigurationError: If chunks and vectors differ in length
            VectorStoreError: If the store cannot persist the vectors
        """
        if len(chunks) != len(vectors):
            raise ConfigurationError(
                f"Got {len(chunks)} chunks but {len(vectors)} vectors for document {document_id}"
            )
        return await self._add_chunks(document_id, list(chunks), list(vectors))

    @abstractmethod
    async def _add_chunks(
        self,
        document_id: str,
        chunks: List[Chunk],
        vectors: List[Vector],
    ) -> int:
        pass

    @abstractmethod
    async def search(self, document_id: str, query_vector: Vector, top_k: int) -> List[VectorHit]:
        """
        Nearest chunks of one document, most relevant first.

        Callers must not re-sort the result; higher ``score`` means more relevant.
        """
        pass

    @abstractmethod
    async def has_document(self, document_id: str) -> bool:
        pass

    @abstractmethod
    async def count(self, document_id: str) -> int:
        """Number of vectors stored for the document."""
        pass

    @abstractmethod
    async def delete_document(self, document_id: str) -> None:
        pass

    @abstractmethod
    async def clear_all(self) -> None:
        pass
