"""Async client for the OpenAI speech and chat completion endpoints."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import httpx

from voice_assistant.core.config import OpenAISettings
from voice_assistant.core.errors import LLMError

LOGGER = logging.getLogger(__name__)

STRUCTURED_MAX_TOKENS = 300
EXTRACTION_TEMPERATURE = 0.1


class OpenAIClient:
    """Speech-to-text, chat and structured JSON calls over one HTTP client."""

    def __init__(
        self,
        settings: OpenAISettings,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Create the client; ``client`` lets tests inject a mock transport."""
        self._settings = settings
        self._client = client or httpx.AsyncClient(
            base_url=settings.base_url.rstrip("/") + "/",
            timeout=settings.timeout_seconds,
        )

    async def transcribe(self, audio_path: Path, language: str | None = None) -> str:
        """Send the audio file to the transcription model and return plain text."""
        payload = await asyncio.to_thread(audio_path.read_bytes)
        data = {"model": self._settings.transcription_model, "response_format": "text"}
        if language:
            data["language"] = language
        response = await self._request(
            "audio/transcriptions",
            data=data,
            files={"file": (audio_path.name, payload, "application/octet-stream")},
        )
        return response.text.strip()

    async def complete(
        self,
        messages: Sequence[dict[str, str]],
        *,
        max_tokens: int,
        temperature: float,
    ) -> str:
        """Return the assistant message for a chat completion."""
        body = {
            "model": self._settings.chat_model,
            "messages": list(messages),
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        return _message_content(await self._chat(body))

    async def extract_json(
        self,
        system_prompt: str,
        user_prompt: str,
        schema_hint: str,
        *,
        model: str | None = None,
    ) -> Any:
        """Run a JSON-mode completion and decode the returned object."""
        hint = f"Schemat JSON odpowiedzi: {schema_hint}"
        body = {
            "model": model or self._settings.extraction_model,
            "messages": [
                {"role": "system", "content": f"{system_prompt}\n\n{hint}"},
                {"role": "user", "content": user_prompt},
            ],
            "max_tokens": STRUCTURED_MAX_TOKENS,
            "temperature": EXTRACTION_TEMPERATURE,
            "response_format": {"type": "json_object"},
        }
        content = _message_content(await self._chat(body))
        if not content:
            raise LLMError("Structured completion returned no content")
        try:
            return json.loads(content)
        except json.JSONDecodeError as exc:
            raise LLMError("Structured completion was not valid JSON") from exc

    async def aclose(self) -> None:
        """Release the underlying HTTP connections."""
        await self._client.aclose()

    async def _chat(self, body: dict[str, Any]) -> dict[str, Any]:
        response = await self._request("chat/completions", json=body)
        try:
            data = response.json()
        except ValueError as exc:
            raise LLMError("OpenAI returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise LLMError("OpenAI response must be a JSON object")
        return data

    async def _request(self, path: str, **kwargs: Any) -> httpx.Response:
        if not self._settings.api_key:
            raise LLMError("OpenAI API key is not configured")
        headers = {"Authorization": f"Bearer {self._settings.api_key}"}
        LOGGER.debug("POST %s", path)
        try:
            response = await self._client.post(path, headers=headers, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise LLMError(f"OpenAI request to {path} failed: {exc}") from exc
        return response


def _message_content(data: dict[str, Any]) -> str:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise LLMError("OpenAI response missing message content") from exc
    return (content or "").strip()


__all__ = ["OpenAIClient"]
