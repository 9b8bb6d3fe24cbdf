"""Integration tests for the ChromaDB vector store."""

import asyncio

import pytest

from hybrid_rag.backends.vector_store import ChromaVectorStore, chroma_id
from hybrid_rag.chunking.base_chunker import Chunk
from hybrid_rag.exceptions import ConfigurationError

pytestmark = pytest.mark.integration

CHUNKS = [
    Chunk("chunk_0", "north"),
    Chunk("chunk_1", "east"),
    Chunk("chunk_2", "south"),
]
VECTORS = [
    [1.0, 0.0, 0.0],
    [0.0, 1.0, 0.0],
    [0.0, 0.0, 1.0],
]


@pytest.fixture
def store(temp_dir):
    return ChromaVectorStore(temp_dir / "vectors", collection_name="test_chunks")


def test_chroma_id():
    assert chroma_id("paper", "chunk_3") == "paper::chunk_3"


def test_add_and_search(store):
    async def scenario():
        await store.initialize()
        await store.add_chunks("paper", CHUNKS, VECTORS)
        return await store.search("paper", [0.9, 0.1, 0.0], top_k=2)

    hits = asyncio.run(scenario())

    assert [hit["chunk_id"] for hit in hits] == ["chunk_0", "chunk_1"]
    assert hits[0]["text"] == "north"
    assert 0 < hits[1]["score"] < hits[0]["score"] <= 1.0


def test_search_is_scoped_to_document(store):
    async def scenario():
        await store.initialize()
        await store.add_chunks("paper", CHUNKS, VECTORS)
        await store.add_chunks("other", [Chunk("chunk_0", "up")], [[0.9, 0.1, 0.0]])
        return await store.search("other", [1.0, 0.0, 0.0], top_k=5), await store.count("paper")

    hits, paper_count = asyncio.run(scenario())

    assert [hit["text"] for hit in hits] == ["up"]
    assert paper_count == 3


def test_add_replaces_previous_vectors(store):
    async def scenario():
        await store.initialize()
        await store.add_chunks("paper", CHUNKS, VECTORS)
        await store.add_chunks("paper", CHUNKS[:1], VECTORS[:1])
        return await store.count("paper")

    assert asyncio.run(scenario()) == 1


def test_delete_and_clear(store):
    async def scenario():
        await store.initialize()
        await store.add_chunks("paper", CHUNKS, VECTORS)
        await store.add_chunks("other", CHUNKS, VECTORS)
        await store.delete_document("paper")
        after_delete = (await store.has_document("paper"), await store.has_document("other"))
        await store.clear_all()
        return after_delete, await store.count("other")

    (has_paper, has_other), other_count = asyncio.run(scenario())

    assert (has_paper, has_other) == (False, True)
    assert other_count == 0


def test_search_unknown_document(store):
    async def scenario():
        await store.initialize()
        return await store.search("missing", [1.0, 0.0, 0.0], top_k=3)

    assert asyncio.run(scenario()) == []


def test_count_mismatch_rejected(store):
    async def scenario():
        await store.initialize()
        await store.add_chunks("paper", CHUNKS, VECTORS[:2])

    with pytest.raises(ConfigurationError):
        asyncio.run(scenario())
