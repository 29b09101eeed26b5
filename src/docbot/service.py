"""Upward-facing facade used by the HTTP layer."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from docbot.agent.chat import ChatProvider, ExtractiveChatProvider, LangChainChatProvider
from docbot.agent.composer import AnswerComposer
from docbot.config import DocbotSettings
from docbot.errors import ProviderUnconfigured
from docbot.ingest.catalog import DocumentCatalog, SqliteDocumentCatalog
from docbot.ingest.chunker import SlidingWindowChunker
from docbot.ingest.embedder import Embedder, HashingEmbedder, LangChainEmbedder
from docbot.ingest.fetcher import ContentStore, GatewayContentFetcher
from docbot.ingest.index import DocumentIndex
from docbot.ingest.parser import ExtractorRegistry
from docbot.ingest.pipeline import DocumentPipeline
from docbot.retrieval.retriever import CosineRetriever
from docbot.types import AnswerResult, ChatTurn, IndexState, RefreshResult

logger = logging.getLogger(__name__)


class DocbotService:
    """Exposes `is_enabled`, `answer_question` and `refresh_index`.

    The service is disabled when either provider is missing; in that case no
    index is built and every call fails fast with `ProviderUnconfigured`.
    """

    def __init__(
        self,
        *,
        index: DocumentIndex | None,
        composer: AnswerComposer | None,
        disabled_reason: str | None = None,
        store: ContentStore | None = None,
    ) -> None:
        self._index = index
        self._composer = composer
        self._store = store
        self.disabled_reason = disabled_reason

    def is_enabled(self) -> bool:
        return self._index is not None and self._composer is not None

    def snapshot(self) -> IndexState:
        if self._index is None:
            return IndexState()
        return self._index.snapshot()

    async def answer_question(
        self,
        question: str,
        history: Sequence[ChatTurn] | None = None,
    ) -> AnswerResult:
        if self._composer is None:
            raise self._unconfigured()
        return await self._composer.answer(question, history)

    async def refresh_index(self) -> RefreshResult:
        if self._index is None or self._composer is None:
            raise self._unconfigured()
        return await self._index.refresh()

    async def aclose(self) -> None:
        """Release the content store's connections, if it holds any."""
        close = getattr(self._store, "aclose", None)
        if close is not None:
            await close()

    def _unconfigured(self) -> ProviderUnconfigured:
        return ProviderUnconfigured(
            self.disabled_reason
            or "Doc chatbot disabled. Configure the embedding and chat providers."
        )


def assemble_service(
    *,
    catalog: DocumentCatalog,
    store: ContentStore,
    embedder: Embedder,
    chat: ChatProvider,
    settings: DocbotSettings | None = None,
) -> DocbotService:
    """Wire concrete collaborators into an enabled service."""

    settings = settings or DocbotSettings()
    pipeline = DocumentPipeline(
        store,
        ExtractorRegistry(),
        SlidingWindowChunker(settings.chunking()),
        embedder,
    )
    index = DocumentIndex(catalog, pipeline, settings.index())
    answer_config = settings.answer()
    composer = AnswerComposer(
        index=index,
        retriever=CosineRetriever(embedder, default_k=answer_config.top_k),
        chat=chat,
        config=answer_config,
    )
    return DocbotService(index=index, composer=composer, store=store)


def build_service(settings: DocbotSettings) -> DocbotService:
    """Build the service from settings; returns a disabled one without credentials."""

    api_key = settings.openai_api_key.get_secret_value() if settings.openai_api_key else None
    try:
        embedder = _create_embedder(settings, api_key)
        chat = _create_chat(settings, api_key)
    except ProviderUnconfigured as exc:
        logger.warning("Doc chatbot disabled: %s", exc)
        return DocbotService(index=None, composer=None, disabled_reason=str(exc))

    return assemble_service(
        catalog=SqliteDocumentCatalog(settings.catalog_path),
        store=GatewayContentFetcher(
            settings.gateway_url,
            max_bytes=settings.max_file_bytes,
            timeout_seconds=settings.fetch_timeout_seconds,
        ),
        embedder=embedder,
        chat=chat,
        settings=settings,
    )


def _create_embedder(settings: DocbotSettings, api_key: str | None) -> Embedder:
    if settings.embedding_backend == "hashing":
        return HashingEmbedder()
    return LangChainEmbedder.from_openai(api_key=api_key, model=settings.embedding_model)


def _create_chat(settings: DocbotSettings, api_key: str | None) -> ChatProvider:
    if settings.chat_backend == "extractive":
        return ExtractiveChatProvider()
    return LangChainChatProvider.from_openai(api_key=api_key, model=settings.chat_model)
