"""Embedding abstractions, LangChain adapter and deterministic baseline."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections import Counter
from hashlib import blake2b
from math import sqrt
from typing import Any

from docbot.errors import EmbeddingFailure, ProviderUnconfigured

_WORD_PATTERN = re.compile(r"\w+", flags=re.UNICODE)


class Embedder(ABC):
    """Embedder interface used by index builds and retrieval."""

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Embed one text into a fixed-length vector."""


class HashingEmbedder(Embedder):
    """Deterministic bag-of-words embedding without external model calls.

    Used for tests and for running the service offline. Tokens are hashed into
    `dimension` signed buckets and the result is L2-normalized.
    """

    def __init__(self, dimension: int = 256) -> None:
        self.dimension = dimension

    async def embed(self, text: str) -> list[float]:
        return self._embed(text)

    def _embed(self, text: str) -> list[float]:
        counts = Counter(_WORD_PATTERN.findall(text.lower()))
        vector = [0.0] * self.dimension
        for token, count in counts.items():
            bucket, sign = self._bucket(token)
            vector[bucket] += sign * count

        norm = sqrt(sum(value * value for value in vector))
        if norm == 0:
            return vector
        return [value / norm for value in vector]

    def _bucket(self, token: str) -> tuple[int, float]:
        """Map a token to a bucket index and a +1/-1 sign."""

        digest = blake2b(token.encode("utf-8"), digest_size=8).digest()
        value = int.from_bytes(digest, "big")
        return (value >> 1) % self.dimension, -1.0 if value & 1 else 1.0


class LangChainEmbedder(Embedder):
    """Adapts any LangChain `Embeddings` implementation.

    Provider exceptions are wrapped in `EmbeddingFailure` so callers can tell
    a failed call apart from a missing credential (`ProviderUnconfigured`,
    raised by `from_openai`).
    """

    def __init__(self, embeddings: Any) -> None:
        self._embeddings = embeddings

    @classmethod
    def from_openai(cls, *, api_key: str | None, model: str) -> "LangChainEmbedder":
        if not api_key:
            raise ProviderUnconfigured("Embedding provider requires OPENAI_API_KEY")

        from langchain_openai import OpenAIEmbeddings

        return cls(OpenAIEmbeddings(model=model, api_key=api_key))

    async def embed(self, text: str) -> list[float]:
        try:
            vector = await self._embeddings.aembed_query(text)
        except Exception as exc:
            raise EmbeddingFailure(f"Embedding call failed: {exc}") from exc
        if not vector:
            raise EmbeddingFailure("Embedding provider returned an empty vector")
        return [float(value) for value in vector]
