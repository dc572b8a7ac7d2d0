"""Exception hierarchy shared by the pipeline and its adapters."""

from __future__ import annotations


class VoiceAssistantError(RuntimeError):
    """Base class for errors raised by the voice assistant."""


class InputError(VoiceAssistantError, ValueError):
    """Raised when the audio reference is missing, empty or unreadable."""


class TranscriptionError(VoiceAssistantError):
    """Raised when speech-to-text fails; fatal for the whole run."""


class ProviderError(VoiceAssistantError):
    """Wrap transport or protocol failures of an external collaborator."""


class LLMError(ProviderError):
    """Raised when a language model provider fails to respond as expected."""


__all__ = [
    "InputError",
    "LLMError",
    "ProviderError",
    "TranscriptionError",
    "VoiceAssistantError",
]
