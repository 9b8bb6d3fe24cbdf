"""ChromaDB vector database wrapper."""

from __future__ import annotations
import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import chromadb
from chromadb.config import Settings

from ..chunking.base_chunker import Chunk
from ..exceptions import VectorStoreError
from ..retrieval.base import BaseVectorStore, Vector
from ..types import VectorHit
from ..utils.logger import get_logger

ADD_BATCH_SIZE = 1000


def chroma_id(document_id: str, chunk_id: str) -> str:
    return f"{document_id}::{chunk_id}"


class ChromaVectorStore(BaseVectorStore):
    """
    Vector store backed by a persistent ChromaDB collection.

    All documents share one collection; each vector carries its
    ``document_id`` in metadata and every query is filtered on it.
    Relevance is reported as ``1 / (1 + L2 distance)``.
    """

    def __init__(
        self,
        persist_directory: Union[str, Path],
        collection_name: str = "document_chunks",
        logger_name: str = "vector_store",
    ):
        """
        Initialize vector store. The client is opened by ``initialize``.

        Args:
            persist_directory: Directory to persist the database
            collection_name: Collection holding every document's chunks
            logger_name: Logger name
        """
        self.persist_directory = Path(persist_directory)
        self.collection_name = collection_name
        self.logger = get_logger(logger_name)

        self.client: Optional[chromadb.ClientAPI] = None
        self.collection: Optional[chromadb.Collection] = None

    # ------------------------------------------------------------------
    # Blocking helpers (run in worker threads)
    # ------------------------------------------------------------------

    def _open(self) -> None:
        self.persist_directory.mkdir(parents=True, exist_ok=True)
        self.client = chromadb.PersistentClient(
            path=str(self.persist_directory),
            settings=Settings(anonymized_telemetry=False),
        )
        self.collection = self._get_or_create_collection()

    def _get_or_create_collection(self) -> chromadb.Collection:
        # Vectors are always supplied by the embedder
        return self.client.get_or_create_collection(
            name=self.collection_name,
            embedding_function=None,
        )

    def _require_collection(self) -> chromadb.Collection:
        if self.collection is None:
            raise VectorStoreError("Vector store not initialized")
        return self.collection

    def _count(self, document_id: str) -> int:
        collection = self._require_collection()
        found = collection.get(where={"document_id": document_id}, include=[])
        return len(found["ids"])

    def _delete(self, document_id: str) -> None:
        self._require_collection().delete(where={"document_id": document_id})

    def _replace(self, document_id: str, chunks: List[Chunk], vectors: List[Vector]) -> int:
        collection = self._require_collection()
        self._delete(document_id)

        ids = [chroma_id(document_id, chunk.id) for chunk in chunks]
        documents = [chunk.text for chunk in chunks]
        metadatas: List[Dict[str, Any]] = [
            {
                "document_id": document_id,
                "chunk_id": chunk.id,
                "chunk_index": position,
            }
            for position, chunk in enumerate(chunks)
        ]

        total_added = 0
        for i in range(0, len(ids), ADD_BATCH_SIZE):
            batch_end = min(i + ADD_BATCH_SIZE, len(ids))
            collection.add(
                ids=ids[i:batch_end],
                embeddings=vectors[i:batch_end],
                documents=documents[i:batch_end],
                metadatas=metadatas[i:batch_end],
            )
            total_added += batch_end - i
        return total_added

    def _query(self, document_id: str, query_vector: Vector, top_k: int) -> List[VectorHit]:
        collection = self._require_collection()
        n_results = min(top_k, self._count(document_id))
        if n_results <= 0:
            return []

        raw_results = collection.query(
            query_embeddings=[query_vector],
            n_results=n_results,
            where={"document_id": document_id},
            include=["documents", "metadatas", "distances"],
        )

        # Outer lists are per query; we always send one
        documents = raw_results["documents"][0]
        metadatas = raw_results["metadatas"][0]
        distances = raw_results["distances"][0]

        return [
            {
                "chunk_id": metadata["chunk_id"],
                "text": text,
                "score": 1.0 / (1.0 + distance),
                "distance": distance,
            }
            for text, metadata, distance in zip(documents, metadatas, distances)
        ]

    def _drop_all(self) -> None:
        self._require_collection()
        self.client.delete_collection(self.collection_name)
        self.collection = self._get_or_create_collection()

    async def _run(self, description: str, func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except VectorStoreError:
            raise
        except Exception as e:
            self.logger.error(f"Error during {description}: {e}")
            raise VectorStoreError(f"{description} failed: {e}") from e

    # ------------------------------------------------------------------
    # BaseVectorStore
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        if self.collection is not None:
            return
        self.logger.info(f"Initializing ChromaDB at: {self.persist_directory}")
        await self._run("ChromaDB initialization", self._open)
        count = await asyncio.to_thread(self.collection.count)
        self.logger.info(f"Collection '{self.collection_name}' ready (count: {count})")

    async def shutdown(self) -> None:
        self.collection = None
        self.client = None

    async def _add_chunks(self, document_id: str, chunks: List[Chunk], vectors: List[Vector]) -> int:
        added = await self._run("add_chunks", self._replace, document_id, chunks, vectors)
        self.logger.info(f"Stored {added} vectors for document '{document_id}'")
        return added

    async def search(self, document_id: str, query_vector: Vector, top_k: int) -> List[VectorHit]:
        return await self._run("search", self._query, document_id, list(query_vector), top_k)

    async def has_document(self, document_id: str) -> bool:
        return await self.count(document_id) > 0

    async def count(self, document_id: str) -> int:
        return await self._run("count", self._count, document_id)

    async def delete_document(self, document_id: str) -> None:
        await self._run("delete_document", self._delete, document_id)
        self.logger.info(f"Deleted vectors for document '{document_id}'")

    async def clear_all(self) -> None:
        await self._run("clear_all", self._drop_all)
        self.logger.info(f"Cleared collection '{self.collection_name}'")

    def get_stats(self) -> Dict[str, Any]:
        return {
            "persist_directory": str(self.persist_directory),
            "collection_name": self.collection_name,
            "total_chunks": self.collection.count() if self.collection is not None else 0,
        }
