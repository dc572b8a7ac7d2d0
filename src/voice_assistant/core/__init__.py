"""Core utilities for configuration, logging, and dependency wiring."""

from .config import AppSettings, load_app_settings
from .container import ServiceContainer
from .errors import (
    InputError,
    LLMError,
    ProviderError,
    TranscriptionError,
    VoiceAssistantError,
)
from .logging import configure_logging

__all__ = [
    "AppSettings",
    "InputError",
    "LLMError",
    "ProviderError",
    "ServiceContainer",
    "TranscriptionError",
    "VoiceAssistantError",
    "configure_logging",
    "load_app_settings",
]
