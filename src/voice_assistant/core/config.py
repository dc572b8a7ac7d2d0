"""Application configuration models and loader utilities."""

from __future__ import annotations

import os
from collections.abc import Iterable
from functools import lru_cache
from pathlib import Path
from typing import Any, cast

from dotenv import dotenv_values
from pydantic import BaseModel, Field


class OpenAISettings(BaseModel):
    """Settings for the OpenAI-compatible speech and language models."""

    api_key: str | None = Field(default=None, description="OpenAI API key")
    base_url: str = Field(
        default="https://api.openai.com/v1", description="OpenAI API base URL"
    )
    transcription_model: str = Field(
        default="whisper-1", description="Speech-to-text model"
    )
    classification_model: str = Field(
        default="gpt-4o-mini", description="Model used for intent classification"
    )
    extraction_model: str = Field(
        default="gpt-4o", description="Model used for structured extraction"
    )
    chat_model: str = Field(
        default="gpt-4o-mini", description="Model used for standard replies"
    )
    timeout_seconds: float = Field(
        default=30.0, gt=0, description="Request timeout for OpenAI calls"
    )


class GeminiSettings(BaseModel):
    """Settings for the search-augmented generation provider."""

    api_key: str | None = Field(default=None, description="Google AI API key")
    base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Generative Language API base URL",
    )
    model: str = Field(default="gemini-2.5-pro", description="Search-capable model")
    timeout_seconds: float = Field(
        default=45.0, gt=0, description="Request timeout for search generation"
    )


class PlacesSettings(BaseModel):
    """Settings for the nearby places provider."""

    api_key: str | None = Field(default=None, description="Google Places API key")
    base_url: str = Field(
        default="https://maps.googleapis.com/maps/api/place",
        description="Places API base URL",
    )
    radius_meters: int = Field(default=5000, ge=1, description="Search radius")
    max_results: int = Field(default=5, ge=1, description="Places kept in context")
    timeout_seconds: float = Field(default=10.0, gt=0, description="Request timeout")


class IntegrationsSettings(BaseModel):
    """Settings for the backend exposing mail and calendar integrations."""

    base_url: str = Field(
        default="http://localhost:3000/api/v1",
        description="Integrations backend base URL",
    )
    session_token: str | None = Field(
        default=None, description="Bearer token of the authenticated session"
    )
    timeout_seconds: float = Field(default=15.0, gt=0, description="Request timeout")


class ContactsSettings(BaseModel):
    """Settings for the address book source."""

    export_path: Path | None = Field(
        default=None, description="JSON export of the device address book"
    )


class AssistantSettings(BaseModel):
    """Persona preferences."""

    language: str | None = Field(
        default="pl", description="Default transcription language"
    )
    user_name: str | None = Field(
        default=None, description="Name the assistant uses to address the user"
    )
    history_limit: int = Field(
        default=20, ge=0, description="Previous chat messages passed to the model"
    )


class GenerationSettings(BaseModel):
    """Token budgets and sampling for reply generation."""

    max_output_tokens: int = Field(
        default=300, ge=16, description="Token budget for the standard path"
    )
    search_max_output_tokens: int = Field(
        default=1024, ge=16, description="Token budget for the search path"
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for standard replies",
    )
    search_timeout_seconds: float | None = Field(
        default=20.0,
        description="Deadline for search-augmented generation; None disables it",
    )


class MailSettings(BaseModel):
    """Bounds for the mail context branch."""

    max_candidates: int = Field(
        default=50, ge=1, description="Messages fetched per server-side query"
    )
    max_context_messages: int = Field(
        default=10, ge=1, description="Messages formatted into the context"
    )


class CalendarSettings(BaseModel):
    """Bounds for the calendar context branch."""

    days_ahead: int = Field(default=7, ge=1, description="Forward event window")
    max_events: int = Field(default=20, ge=1, description="Events fetched")


class StorageSettings(BaseModel):
    """Settings for local persistence."""

    db_path: Path = Field(
        default=Path("./voice_assistant.db"), description="SQLite database path"
    )


class LoggingSettings(BaseModel):
    """Logging preferences."""

    level: str = Field(default="INFO", description="Root logging level")
    structured: bool = Field(
        default=False, description="Toggle JSON structured logging"
    )


class AppSettings(BaseModel):
    """Aggregated application configuration."""

    openai: OpenAISettings = Field(default_factory=OpenAISettings)
    gemini: GeminiSettings = Field(default_factory=GeminiSettings)
    places: PlacesSettings = Field(default_factory=PlacesSettings)
    integrations: IntegrationsSettings = Field(default_factory=IntegrationsSettings)
    contacts: ContactsSettings = Field(default_factory=ContactsSettings)
    assistant: AssistantSettings = Field(default_factory=AssistantSettings)
    generation: GenerationSettings = Field(default_factory=GenerationSettings)
    mail: MailSettings = Field(default_factory=MailSettings)
    calendar: CalendarSettings = Field(default_factory=CalendarSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


ENV_PREFIX = "VOICE_ASSISTANT_"
NESTING_DELIMITER = "__"

_BOOLEAN_WORDS = {"true": True, "false": False}


def _prefixed(items: Iterable[tuple[str | None, str | None]]) -> dict[str, Any]:
    """Keep only ``VOICE_ASSISTANT_*`` entries, keyed without the prefix."""
    return {
        key.removeprefix(ENV_PREFIX): value
        for key, value in items
        if key and key.startswith(ENV_PREFIX)
    }


def _coerce(value: str | None) -> Any:
    """Map empty strings to ``None`` and boolean words to ``bool``."""
    if value is None or value == "":
        return None
    return _BOOLEAN_WORDS.get(value.lower(), value)


def _nest(flat: dict[str, Any]) -> dict[str, Any]:
    """Expand ``SECTION__FIELD`` keys into nested section dictionaries."""
    tree: dict[str, Any] = {}
    for key, value in flat.items():
        path = [part.lower() for part in key.split(NESTING_DELIMITER) if part]
        if not path:
            continue
        node = tree
        for part in path[:-1]:
            node = cast(dict[str, Any], node.setdefault(part, {}))
        node[path[-1]] = _coerce(value)
    return tree


def _read_sources(
    env_file: Path | str | None, *, include_environment: bool
) -> dict[str, Any]:
    """Merge the env file with the process environment; the latter wins."""
    values: dict[str, Any] = {}
    if env_file and Path(env_file).is_file():
        values.update(_prefixed(dotenv_values(env_file).items()))
    if include_environment:
        values.update(_prefixed(os.environ.items()))
    return _nest(values)


@lru_cache(maxsize=1)
def load_app_settings(
    env_file: Path | str | None = None,
    *,
    include_environment: bool = True,
    **overrides: Any,
) -> AppSettings:
    """Build :class:`AppSettings` from the env file, environment and overrides."""
    collected = _read_sources(env_file, include_environment=include_environment)
    collected.update(overrides)
    return AppSettings.model_validate(collected)


__all__ = [
    "AppSettings",
    "AssistantSettings",
    "CalendarSettings",
    "ContactsSettings",
    "GeminiSettings",
    "GenerationSettings",
    "IntegrationsSettings",
    "LoggingSettings",
    "MailSettings",
    "OpenAISettings",
    "PlacesSettings",
    "StorageSettings",
    "load_app_settings",
]
