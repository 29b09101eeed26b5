import httpx
import pytest

from docbot.errors import FetchError
from docbot.ingest.fetcher import GatewayContentFetcher, normalize_gateway


def _fetcher(handler, **kwargs) -> GatewayContentFetcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GatewayContentFetcher("https://gateway.example", client=client, **kwargs)


def test_normalize_gateway() -> None:
    assert normalize_gateway(None) == "https://gateway.pinata.cloud/ipfs"
    assert normalize_gateway("  ") == "https://gateway.pinata.cloud/ipfs"
    assert normalize_gateway("my.gateway.io") == "https://my.gateway.io/ipfs"
    assert normalize_gateway("http://localhost:8080/") == "http://localhost:8080/ipfs"
    assert normalize_gateway("https://gw.io/ipfs/") == "https://gw.io/ipfs"


@pytest.mark.asyncio
async def test_fetch_returns_bytes_and_media_type() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(
            200, content=b"The quota is 500.", headers={"content-type": "text/plain"}
        )

    content = await _fetcher(handler).fetch("bafyA")

    assert seen == ["https://gateway.example/ipfs/bafyA"]
    assert content.data == b"The quota is 500."
    assert content.media_type == "text/plain"
    assert content.truncated is False


@pytest.mark.asyncio
async def test_oversized_documents_are_truncated() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"x" * 100)

    content = await _fetcher(handler, max_bytes=10).fetch("bafyBig")

    assert content.data == b"x" * 10
    assert content.truncated is True


@pytest.mark.asyncio
async def test_non_success_status_raises_fetch_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, content=b"not pinned")

    with pytest.raises(FetchError) as excinfo:
        await _fetcher(handler).fetch("bafyMissing")

    assert excinfo.value.content_address == "bafyMissing"
    assert "404" in str(excinfo.value)


@pytest.mark.asyncio
async def test_transport_errors_raise_fetch_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(FetchError):
        await _fetcher(handler).fetch("bafyDown")
