"""Chat-completion collaborators."""

from __future__ import annotations

import re
from textwrap import shorten
from typing import Any, Protocol

from langchain_core.messages import HumanMessage
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder

from docbot.errors import ProviderUnconfigured

_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", "{system}"),
        MessagesPlaceholder(variable_name="history", optional=True),
        ("human", "{request}"),
    ]
)

_CONTEXT_BLOCK = re.compile(
    r"^\[#(?P<ref>\d+)\] [^\n]*\n(?P<body>.*?)(?=\n\n\[#\d+\] |\n\nQuestion: |\Z)",
    flags=re.MULTILINE | re.DOTALL,
)


class ChatProvider(Protocol):
    """Minimal chat-completion contract used by the answer composer."""

    async def complete(self, system_prompt: str, history: str, user_prompt: str) -> str:
        """Return the model's reply text. `history` is a rendered transcript."""


class LangChainChatProvider:
    """Runs the prompt through any LangChain chat model."""

    def __init__(self, llm: Any) -> None:
        self.llm = llm

    @classmethod
    def from_openai(cls, *, api_key: str | None, model: str) -> "LangChainChatProvider":
        if not api_key:
            raise ProviderUnconfigured("Chat provider requires OPENAI_API_KEY")

        from langchain_openai import ChatOpenAI

        return cls(ChatOpenAI(model=model, api_key=api_key, temperature=0))

    async def complete(self, system_prompt: str, history: str, user_prompt: str) -> str:
        messages = _PROMPT.format_messages(
            system=system_prompt,
            history=[HumanMessage(content=f"Conversation so far:\n{history}")] if history else [],
            request=user_prompt,
        )
        response = await self.llm.ainvoke(messages)
        return message_text(response)


class ExtractiveChatProvider:
    """Answers from the context block without calling a model.

    Keeps the same contract as `LangChainChatProvider` and is meant for
    offline environments: it lists the leading context snippets with their
    `[#n]` references, so every sentence is grounded by construction.
    """

    def __init__(self, max_snippets: int = 3, snippet_chars: int = 220) -> None:
        self.max_snippets = max_snippets
        self.snippet_chars = snippet_chars

    async def complete(self, system_prompt: str, history: str, user_prompt: str) -> str:
        del system_prompt, history  # stateless: only the context matters.
        lines: list[str] = []
        for idx, match in enumerate(_CONTEXT_BLOCK.finditer(user_prompt), start=1):
            if idx > self.max_snippets:
                break
            snippet = shorten(match.group("body"), self.snippet_chars, placeholder="...")
            lines.append(f"{idx}. {snippet} [#{match.group('ref')}]")
        if not lines:
            return "I could not find verifiable evidence in the indexed documents."
        return "\n".join(lines)


def message_text(message: Any) -> str:
    """Flatten a chat model reply into plain text."""

    if isinstance(message, str):
        return message
    if isinstance(message, dict):
        return str(message.get("content", ""))
    content = getattr(message, "content", "")
    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if isinstance(item, dict):
                if "text" in item:
                    parts.append(str(item["text"]))
            else:
                parts.append(str(item))
        return " ".join(parts).strip()
    return "" if content is None else str(content)

