"""Speech-to-text adapter with input validation."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from voice_assistant.core.errors import InputError, TranscriptionError
from voice_assistant.core.interfaces import SpeechToTextProvider

LOGGER = logging.getLogger(__name__)


def resolve_audio_ref(audio_ref: str | os.PathLike[str] | None) -> Path:
    """Return the audio path or raise ``InputError`` when it cannot be read."""
    if audio_ref is None or not str(audio_ref).strip():
        raise InputError("Audio reference is empty")
    path = Path(audio_ref).expanduser()
    if not path.is_file():
        raise InputError(f"Audio file not found: {path}")
    if path.stat().st_size == 0:
        raise InputError(f"Audio file is empty: {path}")
    if not os.access(path, os.R_OK):
        raise InputError(f"Audio file is not readable: {path}")
    return path


class TranscriptionAdapter:
    """Validate the audio reference and delegate to the speech provider."""

    def __init__(self, provider: SpeechToTextProvider) -> None:
        """Store the speech-to-text provider."""
        self._provider = provider

    async def transcribe(
        self,
        audio_ref: str | os.PathLike[str] | None,
        language: str | None = None,
    ) -> str:
        """Return the transcript; every failure here is fatal for the run."""
        path = resolve_audio_ref(audio_ref)
        try:
            text = await self._provider.transcribe(path, language)
        except (InputError, TranscriptionError):
            raise
        except Exception as exc:  # noqa: BLE001 - surfaced as a fatal error
            raise TranscriptionError(f"Speech-to-text failed: {exc}") from exc

        transcript = (text or "").strip()
        if not transcript:
            raise TranscriptionError("Speech-to-text returned an empty transcript")
        LOGGER.info("Transcribed %s (%d chars)", path.name, len(transcript))
        return transcript


__all__ = ["TranscriptionAdapter", "resolve_audio_ref"]
