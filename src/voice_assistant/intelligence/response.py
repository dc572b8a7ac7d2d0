"""Reply generation on the standard or the search-augmented path."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from voice_assistant.core.config import GenerationSettings
from voice_assistant.core.interfaces import (
    ChatModelProvider,
    SearchGenerationProvider,
)
from voice_assistant.core.models import ChatMessage

from .prompts import APOLOGY_REPLY, ASSISTANT_LABEL, build_system_instruction

LOGGER = logging.getLogger(__name__)

_MARKDOWN_LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_BOLD = re.compile(r"\*\*([^*]+)\*\*")
_EMPHASIS = re.compile(r"\*([^*]+)\*")
_URL = re.compile(r"https?://\S+")
_WHITESPACE = re.compile(r"\s+")


def postprocess_reply(reply: str) -> str:
    """Strip markdown and URLs so the reply reads well when spoken."""
    processed = reply.strip()
    processed = _MARKDOWN_LINK.sub(r"\1", processed)
    processed = _BOLD.sub(r"\1", processed)
    processed = _EMPHASIS.sub(r"\1", processed)
    processed = _URL.sub("", processed)
    return _WHITESPACE.sub(" ", processed).strip()


# pylint: disable=too-many-instance-attributes
@dataclass(slots=True)
class ResponseRequest:
    """Everything the generator needs besides the transcript."""

    context: str | None = None
    location: str | None = None
    user_name: str | None = None
    use_web_search: bool = False
    mail_connected: bool = False
    contacts_available: bool = False
    history: Sequence[ChatMessage] = field(default_factory=tuple)


class ResponseGenerator:
    """Produce the spoken reply, degrading to a fixed apology."""

    def __init__(
        self,
        chat_model: ChatModelProvider | None,
        search_model: SearchGenerationProvider | None = None,
        *,
        settings: GenerationSettings | None = None,
    ) -> None:
        """Bind the two generation providers and their budgets."""
        self._chat_model = chat_model
        self._search_model = search_model
        self._settings = settings or GenerationSettings()

    async def generate(self, transcript: str, request: ResponseRequest) -> str:
        """Return the post-processed reply for ``transcript``."""
        instruction = build_system_instruction(
            user_name=request.user_name,
            context=request.context,
            location=request.location,
            use_web_search=request.use_web_search,
            mail_connected=request.mail_connected,
            contacts_available=request.contacts_available,
        )
        history = [message for message in request.history if message.role != "system"]
        try:
            if request.use_web_search and self._search_model is not None:
                raw = await self._generate_with_search(instruction, history, transcript)
            else:
                if request.use_web_search:
                    LOGGER.info("No search model configured; using the chat model")
                raw = await self._generate_standard(instruction, history, transcript)
        except TimeoutError:
            LOGGER.warning(
                "Reply generation exceeded %.1fs deadline",
                self._settings.search_timeout_seconds,
            )
            return APOLOGY_REPLY
        except Exception as exc:  # noqa: BLE001 - any failure yields the apology
            LOGGER.warning("Reply generation failed: %s", exc)
            return APOLOGY_REPLY

        reply = postprocess_reply(raw or "")
        if not reply:
            LOGGER.warning("Empty reply from the generation model")
            return APOLOGY_REPLY
        return reply

    async def _generate_standard(
        self,
        instruction: str,
        history: Sequence[ChatMessage],
        transcript: str,
    ) -> str:
        if self._chat_model is None:
            raise ValueError("No chat model configured")
        messages = [{"role": "system", "content": instruction}]
        messages.extend(
            {"role": item.role, "content": item.content} for item in history
        )
        messages.append({"role": "user", "content": transcript})
        return await self._chat_model.complete(
            messages,
            max_tokens=self._settings.max_output_tokens,
            temperature=self._settings.temperature,
        )

    async def _generate_with_search(
        self,
        instruction: str,
        history: Sequence[ChatMessage],
        transcript: str,
    ) -> str:
        if self._search_model is None:
            raise ValueError("No search model configured")
        call = self._search_model.generate(
            instruction,
            _render_search_prompt(history, transcript),
            self._settings.search_max_output_tokens,
        )
        timeout = self._settings.search_timeout_seconds
        if timeout is None:
            return await call
        return await asyncio.wait_for(call, timeout=timeout)


def _render_search_prompt(history: Sequence[ChatMessage], transcript: str) -> str:
    parts: list[str] = []
    if history:
        parts.append("Historia rozmowy:\n")
        for message in history:
            label = "Użytkownik" if message.role == "user" else ASSISTANT_LABEL
            parts.append(f"{label}: {message.content}\n")
        parts.append("\n")
    parts.append(f"Pytanie użytkownika: {transcript}")
    return "".join(parts)


__all__ = ["ResponseGenerator", "ResponseRequest", "postprocess_reply"]
