"""Per-document pipeline: fetch -> extract -> chunk -> embed."""

from __future__ import annotations

import asyncio
import logging
from hashlib import sha1

from docbot.errors import ExtractionEmpty
from docbot.ingest.chunker import SlidingWindowChunker
from docbot.ingest.embedder import Embedder
from docbot.ingest.fetcher import ContentStore
from docbot.ingest.parser import ExtractorRegistry
from docbot.types import Chunk, DocumentRef

logger = logging.getLogger(__name__)


class DocumentPipeline:
    """Coordinates store/extractor/chunker/embedder stages for one document.

    Errors are raised, not swallowed: deciding that a failed document simply
    contributes nothing is the index builder's job.
    """

    def __init__(
        self,
        store: ContentStore,
        extractors: ExtractorRegistry,
        chunker: SlidingWindowChunker,
        embedder: Embedder,
    ) -> None:
        self._store = store
        self._extractors = extractors
        self._chunker = chunker
        self._embedder = embedder

    async def process(self, document: DocumentRef) -> list[Chunk]:
        content = await self._store.fetch(document.content_address)
        # Parsing runs in a worker thread.
        text = await asyncio.to_thread(
            self._extractors.extract, content.data, content.media_type, document.filename
        )
        if not text or not text.strip():
            raise ExtractionEmpty(
                f"No text extracted from {document.content_address} "
                f"({content.media_type or 'unknown type'}, {len(content.data)} bytes)"
            )

        chunks: list[Chunk] = []
        for ordinal, piece in enumerate(self._chunker.chunk(text)):
            embedding = await self._embedder.embed(piece)
            chunks.append(
                Chunk(
                    id=chunk_id(document.content_address, piece, ordinal),
                    content_address=document.content_address,
                    filename=document.filename or document.content_address,
                    text=piece,
                    embedding=embedding,
                )
            )
        return chunks


def chunk_id(content_address: str, text: str, ordinal: int) -> str:
    digest = sha1(text.encode("utf-8")).hexdigest()
    return f"{content_address}:{digest}:{ordinal}"
