import math

import pytest

from docbot.errors import EmbeddingFailure
from docbot.ingest.embedder import Embedder
from docbot.retrieval.retriever import CosineRetriever, cosine_similarity
from docbot.types import Chunk


class _FixedEmbedder(Embedder):
    def __init__(self, vector: list[float]) -> None:
        self.vector = vector
        self.calls: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        return self.vector


class _FailingEmbedder(Embedder):
    async def embed(self, text: str) -> list[float]:
        raise EmbeddingFailure("provider unavailable")


def _chunk(chunk_id: str, embedding: list[float]) -> Chunk:
    return Chunk(
        id=chunk_id,
        content_address=f"cid-{chunk_id}",
        filename=f"{chunk_id}.txt",
        text=f"text of {chunk_id}",
        embedding=embedding,
    )


def _at_cosine(score: float) -> list[float]:
    return [score, math.sqrt(1.0 - score * score)]


def test_cosine_of_vector_with_itself_is_one() -> None:
    vector = [0.3, -1.2, 4.0, 0.01]

    assert cosine_similarity(vector, vector) == pytest.approx(1.0)


def test_cosine_zero_norm_and_mismatch_return_zero() -> None:
    assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0
    assert cosine_similarity([1.0, 2.0], [0.0, 0.0]) == 0.0
    assert cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0]) == 0.0
    assert cosine_similarity([], []) == 0.0


def test_cosine_stays_within_bounds() -> None:
    assert cosine_similarity([1.0, 1.0], [-1.0, -1.0]) == pytest.approx(-1.0)
    for a, b in (([1e-9, 3.0], [2.0, 1e9]), ([5.0, 5.0], [5.0, 5.0])):
        assert -1.0 <= cosine_similarity(a, b) <= 1.0


@pytest.mark.asyncio
async def test_retrieve_orders_by_descending_score() -> None:
    chunks = [
        _chunk("a", _at_cosine(0.9)),
        _chunk("b", _at_cosine(0.95)),
        _chunk("c", _at_cosine(0.2)),
    ]
    retriever = CosineRetriever(_FixedEmbedder([1.0, 0.0]))

    hits = await retriever.retrieve("quota", chunks, k=2)

    assert [hit.chunk.id for hit in hits] == ["b", "a"]
    assert [hit.rank for hit in hits] == [1, 2]
    assert hits[0].score == pytest.approx(0.95)
    assert hits[1].score == pytest.approx(0.9)


@pytest.mark.asyncio
async def test_ties_keep_snapshot_order() -> None:
    chunks = [_chunk(name, [1.0, 1.0]) for name in ("first", "second", "third")]

    hits = await CosineRetriever(_FixedEmbedder([1.0, 1.0])).retrieve("q", chunks)

    assert [hit.chunk.id for hit in hits] == ["first", "second", "third"]


@pytest.mark.asyncio
async def test_k_is_capped_by_chunk_count_and_defaults_to_five() -> None:
    chunks = [_chunk(str(i), [1.0, float(i)]) for i in range(8)]
    retriever = CosineRetriever(_FixedEmbedder([1.0, 1.0]))

    assert len(await retriever.retrieve("q", chunks)) == 5
    assert len(await retriever.retrieve("q", chunks[:2], k=10)) == 2


@pytest.mark.asyncio
async def test_empty_chunks_skip_query_embedding() -> None:
    embedder = _FixedEmbedder([1.0])

    assert await CosineRetriever(embedder).retrieve("q", []) == []
    assert embedder.calls == []


@pytest.mark.asyncio
async def test_query_embedding_failure_propagates() -> None:
    retriever = CosineRetriever(_FailingEmbedder())

    with pytest.raises(EmbeddingFailure):
        await retriever.retrieve("q", [_chunk("a", [1.0])])
