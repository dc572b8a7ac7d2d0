"""Chat titles generated from the first user message."""

from __future__ import annotations

import logging

from voice_assistant.core.interfaces import ChatModelProvider

from .prompts import TITLE_SYSTEM_PROMPT, build_title_prompt

LOGGER = logging.getLogger(__name__)

DEFAULT_CHAT_TITLE = "Nowa rozmowa"
MAX_TITLE_LENGTH = 60


def normalize_title(raw: str | None, max_length: int = MAX_TITLE_LENGTH) -> str:
    """Trim quotes and whitespace, cap the length, fall back to the default."""
    title = " ".join((raw or "").split()).strip("\"'„”")
    if not title:
        return DEFAULT_CHAT_TITLE
    return title[:max_length].rstrip()


class ChatTitleGenerator:
    """Ask the chat model for a short title; failures yield the default."""

    def __init__(
        self,
        chat_model: ChatModelProvider | None,
        *,
        max_tokens: int = 30,
        temperature: float = 0.7,
    ) -> None:
        self._chat_model = chat_model
        self._max_tokens = max_tokens
        self._temperature = temperature

    async def generate_title(self, first_message: str) -> str:
        """Return a title of at most ``MAX_TITLE_LENGTH`` characters."""
        if self._chat_model is None or not first_message.strip():
            return DEFAULT_CHAT_TITLE
        messages = [
            {"role": "system", "content": TITLE_SYSTEM_PROMPT},
            {"role": "user", "content": build_title_prompt(first_message)},
        ]
        try:
            raw = await self._chat_model.complete(
                messages,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
            )
        except Exception as exc:  # noqa: BLE001 - a title is never worth a failure
            LOGGER.warning("Chat title generation failed: %s", exc)
            return DEFAULT_CHAT_TITLE
        return normalize_title(raw)


__all__ = [
    "DEFAULT_CHAT_TITLE",
    "MAX_TITLE_LENGTH",
    "ChatTitleGenerator",
    "normalize_title",
]
