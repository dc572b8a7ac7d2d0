"""Protocol interfaces for the pipeline's external collaborators."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from .models import (
    CalendarEvent,
    CalendarStatus,
    ChatMessage,
    Contact,
    ContactsStatus,
    MailMessage,
    MailStatus,
    Place,
)


class SpeechToTextProvider(Protocol):
    """Turns a recorded utterance into text."""

    async def transcribe(self, audio_path: Path, language: str | None = None) -> str:
        """Return the transcript of the audio file at ``audio_path``."""
        raise NotImplementedError


class StructuredModelProvider(Protocol):
    """Model call constrained to return a JSON object."""

    async def extract_json(
        self,
        system_prompt: str,
        user_prompt: str,
        schema_hint: str,
        *,
        model: str | None = None,
    ) -> Any:
        """Return the decoded JSON payload; raise on transport or decode errors."""
        raise NotImplementedError


class ChatModelProvider(Protocol):
    """General-purpose chat completion model."""

    async def complete(
        self,
        messages: Sequence[dict[str, str]],
        *,
        max_tokens: int,
        temperature: float,
    ) -> str:
        """Return the assistant text for the supplied chat ``messages``."""
        raise NotImplementedError


class SearchGenerationProvider(Protocol):
    """Generation model allowed to consult live web results."""

    async def generate(
        self, system_instruction: str, user_text: str, max_tokens: int
    ) -> str:
        """Return the reply text for ``user_text``."""
        raise NotImplementedError


class MailProvider(Protocol):
    """Access to the user's mailbox."""

    async def status(self) -> MailStatus:
        """Report whether a mail account is linked."""
        raise NotImplementedError

    async def search(self, query: str, max_results: int) -> list[MailMessage]:
        """Return messages matching a provider-side search ``query``."""
        raise NotImplementedError


class CalendarProvider(Protocol):
    """Access to the user's calendar."""

    async def status(self) -> CalendarStatus:
        """Report whether a calendar account is linked."""
        raise NotImplementedError

    async def list_events(
        self, time_min: datetime, time_max: datetime, max_results: int
    ) -> list[CalendarEvent]:
        """Return events starting inside the window."""
        raise NotImplementedError


class PlacesProvider(Protocol):
    """Proximity search for points of interest."""

    async def search(
        self,
        latitude: float,
        longitude: float,
        query: str,
        radius: int,
        max_results: int,
    ) -> list[Place]:
        """Return places near the coordinates matching ``query``."""
        raise NotImplementedError


class ContactsProvider(Protocol):
    """Access to the device address book."""

    async def status(self) -> ContactsStatus:
        """Report whether the address book may be read."""
        raise NotImplementedError

    async def list_all(self) -> list[Contact]:
        """Return every contact."""
        raise NotImplementedError

    async def find_by_name(self, name: str, *, exact: bool = False) -> Contact | None:
        """Return the contact matching ``name``; ``exact`` skips partial matches."""
        raise NotImplementedError


class ConversationSink(Protocol):
    """Receives completed exchanges after a run finishes."""

    async def record_exchange(
        self, transcript: str, reply: str, created_at: datetime
    ) -> None:
        """Persist a user utterance and the assistant reply."""
        raise NotImplementedError


class ChatTitleProvider(Protocol):
    """Names a chat after its first user message."""

    async def generate_title(self, first_message: str) -> str:
        """Return a short title; never raises."""
        raise NotImplementedError


class ConversationHistory(Protocol):
    """Supplies earlier turns of the current conversation."""

    async def recent_messages(self, limit: int) -> list[ChatMessage]:
        """Return up to ``limit`` most recent messages, oldest first."""
        raise NotImplementedError


__all__ = [
    "CalendarProvider",
    "ChatModelProvider",
    "ChatTitleProvider",
    "ContactsProvider",
    "ConversationHistory",
    "ConversationSink",
    "MailProvider",
    "PlacesProvider",
    "SearchGenerationProvider",
    "SpeechToTextProvider",
    "StructuredModelProvider",
]
