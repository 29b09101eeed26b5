"""Configuration models for the document answering engine."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChunkingConfig(BaseModel):
    """Configures fixed-size sliding-window chunking."""

    chunk_size: int = Field(default=900, ge=1)
    chunk_overlap: int = Field(default=150, ge=0)
    max_chunks_per_file: int = Field(default=8, ge=1)


class IndexConfig(BaseModel):
    """Configures index builds and the cached snapshot lifetime."""

    max_files: int = Field(default=15, ge=1)
    max_file_bytes: int = Field(default=50 * 1024 * 1024, ge=1)
    ttl_seconds: float = Field(default=300.0, ge=0.0)
    max_concurrent_documents: int = Field(default=4, ge=1)


class AnswerConfig(BaseModel):
    """Configures retrieval depth and citation previews."""

    top_k: int = Field(default=5, ge=1)
    preview_chars: int = Field(default=220, ge=1)


class DocbotSettings(BaseSettings):
    """Process-level settings read from the environment (prefix `DOCBOT_`)."""

    model_config = SettingsConfigDict(
        env_prefix="DOCBOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    max_files: int = Field(default=15, ge=1)
    max_file_bytes: int = Field(default=50 * 1024 * 1024, ge=1)
    max_chunks_per_file: int = Field(default=8, ge=1)
    chunk_size: int = Field(default=900, ge=1)
    chunk_overlap: int = Field(default=150, ge=0)
    index_ttl_seconds: float = Field(default=300.0, ge=0.0)
    max_concurrent_documents: int = Field(default=4, ge=1)
    top_k: int = Field(default=5, ge=1)

    gateway_url: str = "https://gateway.pinata.cloud"
    fetch_timeout_seconds: float = Field(default=30.0, gt=0.0)
    catalog_path: str = "docbot.db"

    embedding_backend: Literal["openai", "hashing"] = "openai"
    chat_backend: Literal["openai", "extractive"] = "openai"
    openai_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("DOCBOT_OPENAI_API_KEY", "OPENAI_API_KEY"),
    )
    chat_model: str = "gpt-4o-mini"
    embedding_model: str = "text-embedding-3-small"

    log_level: str = "INFO"

    def chunking(self) -> ChunkingConfig:
        return ChunkingConfig(
            chunk_size=self.chunk_size,
            chunk_overlap=self.chunk_overlap,
            max_chunks_per_file=self.max_chunks_per_file,
        )

    def index(self) -> IndexConfig:
        return IndexConfig(
            max_files=self.max_files,
            max_file_bytes=self.max_file_bytes,
            ttl_seconds=self.index_ttl_seconds,
            max_concurrent_documents=self.max_concurrent_documents,
        )

    def answer(self) -> AnswerConfig:
        return AnswerConfig(top_k=self.top_k)


@lru_cache
def get_settings() -> DocbotSettings:
    return DocbotSettings()
