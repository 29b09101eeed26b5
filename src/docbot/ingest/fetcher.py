"""Content-addressed store client with a byte ceiling."""

from __future__ import annotations

import logging
import re
from typing import Protocol

import httpx

from docbot.errors import FetchError
from docbot.types import FetchedContent

logger = logging.getLogger(__name__)

DEFAULT_GATEWAY = "https://gateway.pinata.cloud"


class ContentStore(Protocol):
    """Minimal content-addressed store contract."""

    async def fetch(self, content_address: str) -> FetchedContent:
        """Return raw bytes and declared media type for an address."""


def normalize_gateway(raw: str | None) -> str:
    """Return an absolute gateway base URL ending in `/ipfs`."""

    candidate = (raw or "").strip() or DEFAULT_GATEWAY
    if not re.match(r"^https?://", candidate, flags=re.IGNORECASE):
        candidate = f"https://{candidate}"
    candidate = candidate.rstrip("/")
    if not candidate.endswith("/ipfs"):
        candidate = f"{candidate}/ipfs"
    return candidate


class GatewayContentFetcher:
    """Fetches documents over an HTTP gateway.

    The body is streamed and cut at `max_bytes`, so an oversized document is
    truncated rather than rejected. There is no retry: a failed request raises
    `FetchError` and the caller decides what to do with the document.
    """

    def __init__(
        self,
        gateway_url: str | None = None,
        *,
        max_bytes: int = 50 * 1024 * 1024,
        timeout_seconds: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if max_bytes < 1:
            raise ValueError("max_bytes must be positive")
        self.base_url = normalize_gateway(gateway_url)
        self.max_bytes = max_bytes
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds), follow_redirects=True
        )

    async def fetch(self, content_address: str) -> FetchedContent:
        url = f"{self.base_url}/{content_address}"
        buffer = bytearray()
        truncated = False
        try:
            async with self._client.stream("GET", url) as response:
                if not response.is_success:
                    raise FetchError(content_address, f"HTTP {response.status_code}")
                media_type = response.headers.get("content-type", "")
                async for piece in response.aiter_bytes():
                    remaining = self.max_bytes - len(buffer)
                    if len(piece) > remaining:
                        buffer.extend(piece[:remaining])
                        truncated = True
                        break
                    buffer.extend(piece)
        except httpx.HTTPError as exc:
            raise FetchError(content_address, str(exc) or type(exc).__name__) from exc

        if truncated:
            logger.info(
                "Truncated %s at %d bytes", content_address, self.max_bytes
            )
        return FetchedContent(data=bytes(buffer), media_type=media_type, truncated=truncated)

    async def aclose(self) -> None:
        await self._client.aclose()
