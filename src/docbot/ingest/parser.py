"""Text extraction for heterogeneous document formats."""

from __future__ import annotations

import html
import io
import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from docx import Document as DocxDocument
from pypdf import PdfReader

logger = logging.getLogger(__name__)

_SCRIPT_BLOCK = re.compile(r"<script[\s\S]*?</script>", flags=re.IGNORECASE)
_STYLE_BLOCK = re.compile(r"<style[\s\S]*?</style>", flags=re.IGNORECASE)
_TAG = re.compile(r"<[^>]+>")
_WHITESPACE = re.compile(r"\s+")


@dataclass(slots=True)
class ExtractionOutcome:
    """Text produced by an extractor, or the reason it produced none."""

    text: str = ""
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Extractor(ABC):
    """One row of the dispatch table: a format predicate plus its parser.

    `media_types` are matched as case-insensitive substrings of the declared
    media type; `extensions` are matched against the filename as a fallback.
    """

    name: str = "base"
    media_types: tuple[str, ...] = ()
    extensions: tuple[str, ...] = ()

    def matches(self, media_type: str, filename: str) -> bool:
        media = (media_type or "").lower()
        if any(candidate in media for candidate in self.media_types):
            return True
        name = (filename or "").lower()
        return any(name.endswith(ext) for ext in self.extensions)

    @abstractmethod
    def extract(self, data: bytes) -> ExtractionOutcome:
        """Convert raw bytes into plain text."""


class PdfExtractor(Extractor):
    name = "pdf"
    media_types = ("application/pdf",)
    extensions = (".pdf",)

    def extract(self, data: bytes) -> ExtractionOutcome:
        try:
            reader = PdfReader(io.BytesIO(data))
            pages = [page.extract_text() or "" for page in reader.pages]
        except Exception as exc:
            return ExtractionOutcome(error=f"PDF parse failed: {exc}")
        return ExtractionOutcome(text="\n".join(pages))


class WordExtractor(Extractor):
    """Word-processing documents via python-docx.

    Legacy `.doc` payloads are routed here too; python-docx cannot read them,
    so they come back as an empty outcome with an error.
    """

    name = "docx"
    media_types = (
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/msword",
    )
    extensions = (".docx", ".doc")

    def extract(self, data: bytes) -> ExtractionOutcome:
        try:
            document = DocxDocument(io.BytesIO(data))
        except Exception as exc:
            return ExtractionOutcome(error=f"DOCX parse failed: {exc}")
        return ExtractionOutcome(
            text="\n".join(paragraph.text for paragraph in document.paragraphs)
        )


class HtmlExtractor(Extractor):
    name = "html"
    media_types = ("text/html",)
    extensions = (".html", ".htm")

    def extract(self, data: bytes) -> ExtractionOutcome:
        return ExtractionOutcome(text=strip_html(_decode(data)))


class PlainTextExtractor(Extractor):
    name = "text"
    media_types = ("text/csv", "text/plain", "text/markdown")
    extensions = (".csv", ".txt", ".md", ".markdown", ".log")

    def extract(self, data: bytes) -> ExtractionOutcome:
        return ExtractionOutcome(text=_decode(data))


class JsonExtractor(Extractor):
    name = "json"
    media_types = ("application/json",)
    extensions = (".json",)

    def extract(self, data: bytes) -> ExtractionOutcome:
        try:
            payload: Any = json.loads(_decode(data))
        except ValueError as exc:
            return ExtractionOutcome(error=f"JSON parse failed: {exc}")
        return ExtractionOutcome(text=json.dumps(payload, ensure_ascii=False, indent=2))


class ImageExtractor(Extractor):
    """Image content is not indexed."""

    name = "image"
    media_types = ("image/",)
    extensions = (".png", ".jpg", ".jpeg", ".gif", ".webp", ".bmp", ".svg")

    def extract(self, data: bytes) -> ExtractionOutcome:
        return ExtractionOutcome(text="")


class BinaryTextExtractor(Extractor):
    """Best-effort decode for anything not claimed by an earlier row."""

    name = "binary"

    def matches(self, media_type: str, filename: str) -> bool:
        return True

    def extract(self, data: bytes) -> ExtractionOutcome:
        return ExtractionOutcome(text=_decode(data))


def default_extractors() -> list[Extractor]:
    return [
        PdfExtractor(),
        WordExtractor(),
        HtmlExtractor(),
        PlainTextExtractor(),
        JsonExtractor(),
        ImageExtractor(),
        BinaryTextExtractor(),
    ]


class ExtractorRegistry:
    """Ordered dispatch table; the first matching extractor wins."""

    def __init__(self, extractors: list[Extractor] | None = None) -> None:
        self._extractors: list[Extractor] = list(
            extractors if extractors is not None else default_extractors()
        )

    def register(self, extractor: Extractor, *, before: str | None = None) -> None:
        """Add an extractor, optionally ahead of the row named `before`."""
        if before is None:
            self._extractors.append(extractor)
            return
        for index, existing in enumerate(self._extractors):
            if existing.name == before:
                self._extractors.insert(index, extractor)
                return
        raise KeyError(f"Unknown extractor: {before}")

    def select(self, media_type: str, filename: str) -> Extractor | None:
        for extractor in self._extractors:
            if extractor.matches(media_type, filename):
                return extractor
        return None

    def extract(self, data: bytes, media_type: str, filename: str) -> str:
        """Return extracted text, or an empty string when nothing usable came out.

        Parser failures are logged and swallowed here so a single malformed
        document never aborts indexing of the rest of the corpus.
        """

        extractor = self.select(media_type, filename)
        if extractor is None:
            return ""
        outcome = extractor.extract(data)
        if not outcome.ok:
            logger.warning(
                "%s extraction failed for %s: %s", extractor.name, filename, outcome.error
            )
            return ""
        return outcome.text


def strip_html(markup: str) -> str:
    text = _SCRIPT_BLOCK.sub(" ", markup)
    text = _STYLE_BLOCK.sub(" ", text)
    text = _TAG.sub(" ", text)
    text = html.unescape(text).replace("\xa0", " ")
    return _WHITESPACE.sub(" ", text).strip()


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")
