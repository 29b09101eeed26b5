"""Grounded answer composition with per-source citations."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from docbot.agent.chat import ChatProvider
from docbot.config import AnswerConfig
from docbot.errors import InvalidInput, ProviderError
from docbot.ingest.index import DocumentIndex
from docbot.retrieval.retriever import CosineRetriever
from docbot.types import AnswerResult, ChatTurn, ScoredChunk, SourceCitation

logger = logging.getLogger(__name__)

NO_DOCUMENTS_ANSWER = "No documents are indexed yet. Upload files and try again."

_SYSTEM_PROMPT = """
You are a document assistant. Answer the latest user question using only the
provided context chunks, each linked to the content address of its source file.

Rules:
1) Cite supporting chunks inline using their reference number like [#1].
2) If the answer cannot be found in the context, state that clearly instead of guessing.
""".strip()


class AnswerComposer:
    """Index lookup -> retrieval -> prompt -> chat completion -> citations."""

    def __init__(
        self,
        *,
        index: DocumentIndex,
        retriever: CosineRetriever,
        chat: ChatProvider,
        config: AnswerConfig | None = None,
    ) -> None:
        self.index = index
        self.retriever = retriever
        self.chat = chat
        self.config = config or AnswerConfig()

    async def answer(
        self,
        question: str,
        history: Sequence[ChatTurn] | None = None,
    ) -> AnswerResult:
        """Answer one question against the current index snapshot.

        Raises:
            InvalidInput: the question is blank.
            EmbeddingFailure: the question could not be embedded.
            ProviderError: the chat provider failed or returned no text.
        """

        prompt = (question or "").strip()
        if not prompt:
            raise InvalidInput("Question is required")

        chunks = await self.index.build(force=False)
        if not chunks:
            return AnswerResult(answer=NO_DOCUMENTS_ANSWER, sources=[])

        scored = await self.retriever.retrieve(prompt, chunks, self.config.top_k)
        history_block = render_history(history or [])
        user_prompt = build_user_prompt(prompt, scored)

        try:
            reply = await self.chat.complete(_SYSTEM_PROMPT, history_block, user_prompt)
        except Exception as exc:
            raise ProviderError(f"Chat provider failed: {exc}") from exc
        answer = (reply or "").strip()
        if not answer:
            raise ProviderError("Chat provider returned no text")

        logger.info("Answered question with %d sources", len(scored))
        return AnswerResult(
            answer=answer,
            sources=[self._citation(item) for item in scored],
        )

    def _citation(self, item: ScoredChunk) -> SourceCitation:
        return SourceCitation(
            rank=item.rank,
            content_address=item.chunk.content_address,
            filename=item.chunk.filename,
            score=round(item.score, 4),
            preview=item.chunk.text[: self.config.preview_chars],
        )


def render_context(scored: Sequence[ScoredChunk]) -> str:
    return "\n\n".join(
        f"[#{item.rank}] {item.chunk.filename} ({item.chunk.content_address})\n{item.chunk.text}"
        for item in scored
    )


def render_history(history: Sequence[ChatTurn]) -> str:
    lines = []
    for turn in history:
        speaker = "User" if turn.role == "user" else "Assistant"
        lines.append(f"{speaker}: {turn.content}")
    return "\n".join(lines)


def build_user_prompt(question: str, scored: Sequence[ScoredChunk]) -> str:
    context = render_context(scored) or "None"
    return f"Context:\n{context}\n\nQuestion: {question}"
