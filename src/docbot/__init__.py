"""Document indexing and retrieval-augmented answering."""

from .config import AnswerConfig, ChunkingConfig, DocbotSettings, IndexConfig

__all__ = ["AnswerConfig", "ChunkingConfig", "DocbotSettings", "IndexConfig"]
