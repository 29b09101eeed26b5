"""Cosine-similarity retrieval over the cached chunk snapshot."""

from __future__ import annotations

from collections.abc import Sequence
from math import sqrt

from docbot.ingest.embedder import Embedder
from docbot.types import Chunk, ScoredChunk


class CosineRetriever:
    """Ranks chunks against a query embedding.

    Query embedding failures are not caught here: a question whose embedding
    cannot be computed cannot be answered.
    """

    def __init__(self, embedder: Embedder, default_k: int = 5) -> None:
        self.embedder = embedder
        self.default_k = default_k

    async def retrieve(
        self,
        query: str,
        chunks: Sequence[Chunk],
        k: int | None = None,
    ) -> list[ScoredChunk]:
        limit = min(self.default_k if k is None else k, len(chunks))
        if limit <= 0:
            return []

        query_embedding = await self.embedder.embed(query)
        return rank_chunks(query_embedding, chunks, limit)


def rank_chunks(
    query_embedding: Sequence[float], chunks: Sequence[Chunk], k: int
) -> list[ScoredChunk]:
    """Score every chunk and keep the top `k`; ties keep snapshot order."""

    ranked = sorted(
        (
            ScoredChunk(chunk=chunk, score=cosine_similarity(query_embedding, chunk.embedding))
            for chunk in chunks
        ),
        key=lambda item: item.score,
        reverse=True,
    )
    return [
        ScoredChunk(chunk=item.chunk, score=item.score, rank=i + 1)
        for i, item in enumerate(ranked[:k])
    ]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    if not a or not b or len(a) != len(b):
        return 0.0
    numerator = sum(x * y for x, y in zip(a, b, strict=True))
    norm_a = sqrt(sum(x * x for x in a))
    norm_b = sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return max(-1.0, min(1.0, numerator / (norm_a * norm_b)))
