"""Tests for chat title generation."""

from __future__ import annotations

from collections.abc import Sequence

from voice_assistant.core.errors import LLMError
from voice_assistant.intelligence import DEFAULT_CHAT_TITLE, ChatTitleGenerator
from voice_assistant.intelligence.titles import MAX_TITLE_LENGTH, normalize_title


class StubChatModel:
    """Chat model stub returning a canned title or raising."""

    def __init__(self, reply: str | Exception) -> None:
        self.reply = reply
        self.calls: list[dict[str, object]] = []

    async def complete(
        self,
        messages: Sequence[dict[str, str]],
        *,
        max_tokens: int,
        temperature: float,
    ) -> str:
        self.calls.append({"messages": list(messages), "max_tokens": max_tokens})
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


async def test_title_comes_from_the_chat_model() -> None:
    model = StubChatModel('"Spotkanie z dentystą"\n')

    title = await ChatTitleGenerator(model).generate_title("Umów mnie do dentysty")

    assert title == "Spotkanie z dentystą"
    call = model.calls[0]
    assert call["max_tokens"] == 30
    messages = call["messages"]
    assert isinstance(messages, list)
    assert "Umów mnie do dentysty" in messages[1]["content"]


async def test_long_title_is_capped() -> None:
    model = StubChatModel("Bardzo " * 20)

    title = await ChatTitleGenerator(model).generate_title("Coś długiego")

    assert len(title) <= MAX_TITLE_LENGTH
    assert title.startswith("Bardzo Bardzo")


async def test_failures_and_blank_output_use_default_title() -> None:
    failing = ChatTitleGenerator(StubChatModel(LLMError("offline")))
    dropped = ChatTitleGenerator(StubChatModel(ConnectionError("reset")))
    blank = ChatTitleGenerator(StubChatModel("   "))
    missing = ChatTitleGenerator(None)

    assert await failing.generate_title("Cześć") == DEFAULT_CHAT_TITLE
    assert await dropped.generate_title("Cześć") == DEFAULT_CHAT_TITLE
    assert await blank.generate_title("Cześć") == DEFAULT_CHAT_TITLE
    assert await missing.generate_title("Cześć") == DEFAULT_CHAT_TITLE


def test_normalize_title_strips_quotes_and_whitespace() -> None:
    assert normalize_title("  „Zakupy   na weekend”  ") == "Zakupy na weekend"
    assert normalize_title(None) == DEFAULT_CHAT_TITLE
