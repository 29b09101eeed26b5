import pytest

from docbot.agent.chat import ExtractiveChatProvider, message_text
from docbot.agent.composer import _SYSTEM_PROMPT, build_user_prompt, render_history
from docbot.types import Chunk, ChatTurn, ScoredChunk


def test_prompt_requires_inline_citations_and_no_guessing() -> None:
    assert "[#1]" in _SYSTEM_PROMPT
    assert "instead of guessing" in _SYSTEM_PROMPT


def test_context_labels_each_chunk_with_file_and_address() -> None:
    chunk = Chunk(id="x", content_address="bafyA", filename="specA.txt", text="Quota 500.", embedding=[1.0])

    prompt = build_user_prompt("quota?", [ScoredChunk(chunk=chunk, score=0.9, rank=1)])

    assert prompt == "Context:\n[#1] specA.txt (bafyA)\nQuota 500.\n\nQuestion: quota?"
    assert build_user_prompt("quota?", []) == "Context:\nNone\n\nQuestion: quota?"


def test_non_user_roles_render_as_assistant() -> None:
    turns = [ChatTurn("user", "a"), ChatTurn("model", "b"), ChatTurn("assistant", "c")]

    assert render_history(turns) == "User: a\nAssistant: b\nAssistant: c"


def test_message_text_flattens_content_parts() -> None:
    class _Reply:
        content = [{"type": "text", "text": "Quota"}, {"type": "image"}, "is 500."]

    assert message_text(_Reply()) == "Quota is 500."
    assert message_text({"content": "plain"}) == "plain"
    assert message_text("raw") == "raw"


@pytest.mark.asyncio
async def test_extractive_answer_shortens_long_snippets_on_word_boundaries() -> None:
    chunk = Chunk(
        id="x",
        content_address="bafyA",
        filename="specA.txt",
        text="The quota is 500 requests per day for every tenant on the free plan.",
        embedding=[1.0],
    )
    prompt = build_user_prompt("quota?", [ScoredChunk(chunk=chunk, score=0.9, rank=1)])

    answer = await ExtractiveChatProvider(snippet_chars=30).complete("", "", prompt)

    assert answer == "1. The quota is 500 requests... [#1]"
