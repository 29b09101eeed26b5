"""Error taxonomy for indexing and answering."""

from __future__ import annotations


class DocbotError(Exception):
    """Base class for all docbot failures."""


class ProviderUnconfigured(DocbotError):
    """Embedding or chat provider has no credential."""


class FetchError(DocbotError):
    """A document could not be retrieved from the content store."""

    def __init__(self, content_address: str, reason: str) -> None:
        super().__init__(f"Fetch failed for {content_address}: {reason}")
        self.content_address = content_address
        self.reason = reason


class ExtractionEmpty(DocbotError):
    """No usable text could be extracted from a document."""


class EmbeddingFailure(DocbotError):
    """The embedding provider failed or returned an unusable vector."""


class InvalidInput(DocbotError):
    """Caller input was rejected before any I/O."""


class ProviderError(DocbotError):
    """The chat provider failed or returned no usable text."""
