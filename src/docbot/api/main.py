"""FastAPI entrypoint for the document chatbot endpoints."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from docbot.config import get_settings
from docbot.errors import EmbeddingFailure, InvalidInput, ProviderError, ProviderUnconfigured
from docbot.obs.logging import configure_logging
from docbot.service import DocbotService, build_service
from docbot.types import ChatTurn


class HistoryTurn(BaseModel):
    role: str
    content: str


class AskRequest(BaseModel):
    question: str = ""
    history: list[HistoryTurn] = Field(default_factory=list)


def create_app(service: DocbotService | None = None) -> FastAPI:
    if service is None:
        settings = get_settings()
        configure_logging(settings.log_level)
        service = build_service(settings)

    docbot_service = service

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        try:
            yield
        finally:
            await docbot_service.aclose()

    app = FastAPI(title="Docbot", version="0.1.0", lifespan=lifespan)
    app.state.docbot = docbot_service

    @app.get("/health")
    def health(request: Request) -> dict[str, Any]:
        docbot: DocbotService = request.app.state.docbot
        state = docbot.snapshot()
        last_indexed = None
        if state.last_indexed_at is not None:
            last_indexed = datetime.fromtimestamp(state.last_indexed_at, tz=timezone.utc).isoformat()
        return {
            "status": "ok",
            "docbot_enabled": docbot.is_enabled(),
            "indexed_chunks": len(state.chunks),
            "last_indexed_at": last_indexed,
        }

    @app.post("/docbot/ask")
    async def ask(payload: AskRequest, request: Request) -> dict[str, Any]:
        docbot: DocbotService = request.app.state.docbot
        history = [ChatTurn(role=turn.role, content=turn.content) for turn in payload.history]
        try:
            result = await docbot.answer_question(payload.question, history)
        except InvalidInput as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except ProviderUnconfigured as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        except (EmbeddingFailure, ProviderError) as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return asdict(result)

    @app.post("/docbot/refresh")
    async def refresh(request: Request) -> dict[str, Any]:
        docbot: DocbotService = request.app.state.docbot
        try:
            result = await docbot.refresh_index()
        except ProviderUnconfigured as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        return asdict(result)

    return app
