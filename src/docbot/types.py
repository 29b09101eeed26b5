"""Shared domain models."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True, frozen=True)
class DocumentRef:
    """A document known to the metadata catalog."""

    filename: str
    content_address: str


@dataclass(slots=True)
class FetchedContent:
    """Raw bytes returned by the content-addressed store."""

    data: bytes
    media_type: str
    truncated: bool = False


@dataclass(slots=True)
class Chunk:
    """An embedded text window of one document."""

    id: str
    content_address: str
    filename: str
    text: str
    embedding: list[float]


@dataclass(slots=True, frozen=True)
class IndexState:
    """A committed index snapshot. Replaced wholesale, never mutated."""

    chunks: tuple[Chunk, ...] = ()
    last_indexed_at: float | None = None


@dataclass(slots=True)
class ScoredChunk:
    """A retrieval result with its cosine score."""

    chunk: Chunk
    score: float
    rank: int = 0


@dataclass(slots=True)
class ChatTurn:
    """One prior message in a conversation."""

    role: str
    content: str


@dataclass(slots=True)
class SourceCitation:
    rank: int
    content_address: str
    filename: str
    score: float
    preview: str


@dataclass(slots=True)
class AnswerResult:
    """Answer text plus the chunks it was grounded on."""

    answer: str
    sources: list[SourceCitation] = field(default_factory=list)


@dataclass(slots=True)
class RefreshResult:
    ok: bool
    chunk_count: int
