"""
Pytest configuration and shared fixtures.

Fixtures defined here are available to all test modules. The fake embedder
and vector store implement the backend interfaces in memory, so engine
tests run without downloading a model or opening ChromaDB.
"""

import asyncio
import math
import shutil
import tempfile
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

import pytest

from hybrid_rag.chunking.base_chunker import Chunk
from hybrid_rag.config import HybridRAGConfig
from hybrid_rag.exceptions import EmbeddingError, VectorStoreError
from hybrid_rag.retrieval.base import BaseEmbedder, BaseVectorStore, Vector
from hybrid_rag.retrieval.tfidf_index import tokenize
from hybrid_rag.utils.cache_manager import CacheManager


class FakeEmbedder(BaseEmbedder):
    """Deterministic bag-of-words hashing embedder."""

    def __init__(self, dim: int = 32, fail: bool = False, delay: float = 0.0):
        self.dim = dim
        self.fail = fail
        self.delay = delay
        self.batch_calls = 0
        self.embedded_texts: List[str] = []
        self.initialized = False

    @property
    def model_name(self) -> str:
        return "fake-model"

    @property
    def dimension(self) -> int:
        return self.dim

    async def initialize(self) -> None:
        self.initialized = True

    async def shutdown(self) -> None:
        self.initialized = False

    def _vector(self, text: str) -> Vector:
        vector = [0.0] * self.dim
        for token in tokenize(text):
            vector[sum(ord(c) for c in token) % self.dim] += 1.0
        norm = math.sqrt(sum(v * v for v in vector)) or 1.0
        return [v / norm for v in vector]

    async def embed(self, text: str) -> Vector:
        return (await self.embed_batch([text]))[0]

    async def embed_batch(self, texts: Sequence[str], batch_size: int = 8) -> List[Vector]:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise EmbeddingError("model unavailable")
        self.batch_calls += 1
        self.embedded_texts.extend(texts)
        return [self._vector(text) for text in texts]


class FakeVectorStore(BaseVectorStore):
    """In-memory vector store with L2 nearest-neighbour search."""

    def __init__(self, fail_search: bool = False, fail_add: bool = False):
        self.fail_search = fail_search
        self.fail_add = fail_add
        self.documents: Dict[str, List[Tuple[Chunk, Vector]]] = {}
        self.add_calls = 0

    async def _add_chunks(self, document_id: str, chunks: List[Chunk], vectors: List[Vector]) -> int:
        if self.fail_add:
            raise VectorStoreError("disk full")
        self.add_calls += 1
        self.documents[document_id] = list(zip(chunks, vectors))
        return len(chunks)

    async def search(self, document_id: str, query_vector: Vector, top_k: int):
        if self.fail_search:
            raise VectorStoreError("connection lost")
        scored = []
        for chunk, vector in self.documents.get(document_id, []):
            distance = math.sqrt(sum((a - b) ** 2 for a, b in zip(vector, query_vector)))
            scored.append({
                "chunk_id": chunk.id,
                "text": chunk.text,
                "score": 1.0 / (1.0 + distance),
                "distance": distance,
            })
        scored.sort(key=lambda hit: hit["distance"])
        return scored[:top_k]

    async def has_document(self, document_id: str) -> bool:
        return bool(self.documents.get(document_id))

    async def count(self, document_id: str) -> int:
        return len(self.documents.get(document_id, []))

    async def delete_document(self, document_id: str) -> None:
        self.documents.pop(document_id, None)

    async def clear_all(self) -> None:
        self.documents.clear()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    # Cleanup after test
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def config(temp_dir):
    """Engine config writing all state under the temp dir."""
    return HybridRAGConfig(
        chunking={"strategy": "semantic", "target_size": 120},
        cache={"cache_dir": str(temp_dir / "cache")},
        vector_store={"persist_directory": str(temp_dir / "vectors")},
        engine={"max_indexes": 4, "semantic_timeout_seconds": 1.0},
    )


@pytest.fixture
def cache_manager(temp_dir):
    return CacheManager(temp_dir / "cache")


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()


@pytest.fixture
def fake_vector_store():
    return FakeVectorStore()


@pytest.fixture
def sample_text():
    """A short paper-like document with blank-line paragraphs."""
    return (
        "Abstract: We study gradient descent for training neural networks "
        "and report convergence behaviour on image benchmarks.\n\n"
        "Introduction: Optimization of deep models relies on stochastic "
        "gradient methods. Learning rate schedules matter a great deal.\n\n"
        "Methods: We train convolutional networks with momentum and weight "
        "decay. Batch normalization is applied after every convolution.\n\n"
        "Results: Accuracy improves steadily. The cosine schedule reaches "
        "the best validation accuracy after ninety epochs.\n\n"
        "Conclusion: Careful schedules give robust convergence. Future work "
        "will examine transformers and language modelling."
    )


@pytest.fixture
def sample_chunks():
    """Provide sample chunks for testing."""
    return [
        Chunk("c0", "StandardScaler normalizes features by removing the mean and scaling to unit variance."),
        Chunk("c1", "Use fit_transform to fit the scaler and transform data in one step."),
        Chunk("c2", "GridSearchCV performs hyperparameter tuning with cross-validation."),
        Chunk("c3", "PCA reduces dimensionality by projecting data onto principal components."),
    ]
