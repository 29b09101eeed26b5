"""Cached document index with TTL freshness and single-flight builds."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from docbot.config import IndexConfig
from docbot.ingest.catalog import DocumentCatalog
from docbot.ingest.pipeline import DocumentPipeline
from docbot.obs.logging import Timer
from docbot.types import Chunk, DocumentRef, IndexState, RefreshResult

logger = logging.getLogger(__name__)


class DocumentIndex:
    """Owns the process-wide chunk snapshot.

    Lifecycle:
    - Created empty.
    - `build()` returns the committed snapshot while it is younger than the
      TTL. Otherwise it starts a build, or joins the one already running.
    - A build walks the most recent `max_files` documents. Each document runs
      through the pipeline on its own; any failure is logged and that
      document contributes zero chunks.
    - The new `IndexState` is committed with one assignment at the end of the
      build. Readers never see a partially built snapshot.
    - `invalidate()` drops the committed snapshot so the next call rebuilds.

    The in-flight build is an `asyncio.Task` shared by every concurrent
    caller. Callers await it through `asyncio.shield`, so a caller being
    cancelled does not cancel the build other callers depend on.
    """

    def __init__(
        self,
        catalog: DocumentCatalog,
        pipeline: DocumentPipeline,
        config: IndexConfig | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._catalog = catalog
        self._pipeline = pipeline
        self.config = config or IndexConfig()
        self._clock = clock
        self._state = IndexState()
        self._in_flight: asyncio.Task[list[Chunk]] | None = None

    def snapshot(self) -> IndexState:
        return self._state

    @property
    def building(self) -> bool:
        return self._in_flight is not None

    def invalidate(self) -> None:
        self._state = IndexState()

    async def build(self, force: bool = False) -> list[Chunk]:
        state = self._state
        if not force and self._is_fresh(state):
            return list(state.chunks)

        if self._in_flight is None:
            self._in_flight = asyncio.create_task(self._run_build())
        return list(await asyncio.shield(self._in_flight))

    async def refresh(self) -> RefreshResult:
        chunks = await self.build(force=True)
        return RefreshResult(ok=True, chunk_count=len(chunks))

    def _is_fresh(self, state: IndexState) -> bool:
        # Empty snapshots are never served from cache so new uploads show up.
        if not state.chunks or state.last_indexed_at is None:
            return False
        return self._clock() - state.last_indexed_at < self.config.ttl_seconds

    async def _run_build(self) -> list[Chunk]:
        try:
            with Timer() as timer:
                documents = await self._catalog.list_recent(self.config.max_files)
                semaphore = asyncio.Semaphore(self.config.max_concurrent_documents)
                per_document = await asyncio.gather(
                    *(self._index_document(document, semaphore) for document in documents)
                )
                chunks = _consistent_dimension(per_document)
            self._state = IndexState(chunks=tuple(chunks), last_indexed_at=self._clock())
            logger.info(
                "Indexed %d chunks from %d documents in %.1f ms",
                len(chunks),
                len(documents),
                timer.elapsed_ms,
            )
            return chunks
        finally:
            self._in_flight = None

    async def _index_document(
        self, document: DocumentRef, semaphore: asyncio.Semaphore
    ) -> list[Chunk]:
        async with semaphore:
            try:
                return await self._pipeline.process(document)
            except Exception as exc:
                logger.warning(
                    "Skipping %s (%s): %s",
                    document.content_address,
                    document.filename,
                    exc,
                )
                return []


def _consistent_dimension(per_document: list[list[Chunk]]) -> list[Chunk]:
    """Flatten per-document chunks, dropping documents whose vectors disagree
    in length with the first embedded document."""

    dimension: int | None = None
    chunks: list[Chunk] = []
    for document_chunks in per_document:
        if not document_chunks:
            continue
        lengths = {len(chunk.embedding) for chunk in document_chunks}
        if dimension is None and len(lengths) == 1:
            dimension = lengths.pop()
        elif lengths != {dimension}:
            logger.warning(
                "Dropping %s: embedding dimension %s does not match %s",
                document_chunks[0].content_address,
                sorted(lengths),
                dimension,
            )
            continue
        chunks.extend(document_chunks)
    return chunks
