import pytest

from docbot.config import ChunkingConfig
from docbot.ingest.chunker import SlidingWindowChunker, normalize_whitespace


def _chunker(size: int = 20, overlap: int = 5, cap: int = 8) -> SlidingWindowChunker:
    return SlidingWindowChunker(
        ChunkingConfig(chunk_size=size, chunk_overlap=overlap, max_chunks_per_file=cap)
    )


def test_exact_chunk_size_yields_one_chunk() -> None:
    text = "a" * 20

    assert _chunker().chunk(text) == [text]


def test_one_past_chunk_size_yields_two_overlapping_chunks() -> None:
    text = "abcdefghijklmnopqrstu"  # 21 characters

    chunks = _chunker().chunk(text)

    assert chunks == ["abcdefghijklmnopqrst", "pqrstu"]
    assert chunks[1][:5] == chunks[0][-5:]


def test_chunk_cap_bounds_large_documents() -> None:
    chunks = _chunker(cap=3).chunk("x" * 500)

    assert len(chunks) == 3
    assert all(len(chunk) == 20 for chunk in chunks)


def test_whitespace_is_collapsed_before_windowing() -> None:
    chunks = _chunker(size=100, overlap=10).chunk("  The quota\n\n is   500\trequests.  ")

    assert chunks == ["The quota is 500 requests."]


def test_blank_text_yields_no_chunks() -> None:
    assert _chunker().chunk("") == []
    assert _chunker().chunk(" \n\t ") == []
    assert normalize_whitespace(None) == ""


def test_chunking_is_idempotent() -> None:
    chunker = _chunker(size=50, overlap=10)
    text = "Support hours are 9 to 5 weekdays. " * 20

    assert chunker.chunk(text) == chunker.chunk(text)


def test_default_windows_cover_text_with_overlap() -> None:
    chunker = SlidingWindowChunker()
    text = " ".join(f"word{i}" for i in range(400))

    chunks = chunker.chunk(text)

    assert len(chunks) >= 2
    assert all(len(chunk) <= 900 for chunk in chunks)
    assert chunks[1][:150] == chunks[0][-150:]


def test_overlap_must_be_smaller_than_window() -> None:
    with pytest.raises(ValueError):
        SlidingWindowChunker(ChunkingConfig(chunk_size=10, chunk_overlap=10))
