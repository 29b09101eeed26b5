"""Fixed-size sliding-window chunking."""

from __future__ import annotations

import re

from docbot.config import ChunkingConfig

_WHITESPACE = re.compile(r"\s+")


class SlidingWindowChunker:
    """Splits text into overlapping character windows.

    Whitespace runs are collapsed to single spaces before slicing. Each window
    is `chunk_size` characters; the next window starts `chunk_overlap`
    characters before the previous one ended, so a sentence that straddles a
    boundary appears whole in at least one window when it is shorter than the
    overlap. Slicing stops at the end of the text or once
    `max_chunks_per_file` windows exist; the remainder of a very large
    document is left unindexed.
    """

    def __init__(self, config: ChunkingConfig | None = None) -> None:
        self.config = config or ChunkingConfig()
        if self.config.chunk_overlap >= self.config.chunk_size:
            raise ValueError("chunk_overlap must be less than chunk_size")

    def chunk(self, text: str) -> list[str]:
        clean = normalize_whitespace(text)
        if not clean:
            return []

        size = self.config.chunk_size
        overlap = self.config.chunk_overlap
        chunks: list[str] = []
        start = 0
        while start < len(clean) and len(chunks) < self.config.max_chunks_per_file:
            end = min(len(clean), start + size)
            chunks.append(clean[start:end])
            if end == len(clean):
                break
            start = max(0, end - overlap)
        return chunks


def normalize_whitespace(text: str | None) -> str:
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()
