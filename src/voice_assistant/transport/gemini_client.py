"""Search-grounded generation through the Generative Language API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from voice_assistant.core.config import GeminiSettings
from voice_assistant.core.errors import LLMError

LOGGER = logging.getLogger(__name__)


class GeminiSearchClient:
    """Call ``generateContent`` with the Google Search tool enabled."""

    def __init__(
        self,
        settings: GeminiSettings,
        *,
        temperature: float = 0.7,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Create the client; ``client`` lets tests inject a mock transport."""
        self._settings = settings
        self._temperature = temperature
        self._client = client or httpx.AsyncClient(
            base_url=settings.base_url.rstrip("/") + "/",
            timeout=settings.timeout_seconds,
        )

    async def generate(
        self, system_instruction: str, user_text: str, max_tokens: int
    ) -> str:
        """Return the text of the first candidate."""
        if not self._settings.api_key:
            raise LLMError("Gemini API key is not configured")
        body = {
            "systemInstruction": {"parts": [{"text": system_instruction}]},
            "contents": [{"role": "user", "parts": [{"text": user_text}]}],
            "tools": [{"google_search": {}}],
            "generationConfig": {
                "temperature": self._temperature,
                "topP": 0.95,
                "topK": 40,
                "maxOutputTokens": max_tokens,
            },
        }
        path = f"models/{self._settings.model}:generateContent"
        LOGGER.debug("POST %s", path)
        try:
            response = await self._client.post(
                path,
                params={"key": self._settings.api_key},
                json=body,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            raise LLMError(f"Gemini request failed: {exc}") from exc
        except ValueError as exc:
            raise LLMError("Gemini returned invalid JSON") from exc
        return _candidate_text(data)

    async def aclose(self) -> None:
        """Release the underlying HTTP connections."""
        await self._client.aclose()


def _candidate_text(data: Any) -> str:
    try:
        candidate = data["candidates"][0]
    except (KeyError, IndexError, TypeError) as exc:
        raise LLMError("Gemini response has no candidates") from exc
    if not isinstance(candidate, dict):
        raise LLMError("Gemini candidate is not an object")
    content = candidate.get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        parts = []
    text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
    if not text.strip():
        LOGGER.warning(
            "Gemini returned no text (finishReason=%s)", candidate.get("finishReason")
        )
    return text.strip()


__all__ = ["GeminiSearchClient"]
