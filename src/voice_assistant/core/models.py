"""Core domain models used across the application."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class Confidence(str, Enum):
    """Confidence reported alongside an intent classification."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ProcessingStatus(str, Enum):
    """Transient pipeline phases reported to the caller."""

    TRANSCRIBING = "transcribing"
    CLASSIFYING = "classifying"
    CHECKING_EMAIL = "checking_email"
    CHECKING_CALENDAR = "checking_calendar"
    CHECKING_CONTACTS = "checking_contacts"
    WEB_SEARCHING = "web_searching"
    PREPARING_RESPONSE = "preparing_response"
    NONE = "none"


# pylint: disable=too-many-instance-attributes
@dataclass(frozen=True, slots=True)
class IntentClassification:
    """Flags describing what a transcript needs from the pipeline."""

    needs_email: bool = False
    needs_calendar: bool = False
    needs_sms: bool = False
    needs_contacts: bool = False
    is_simple_greeting: bool = False
    needs_web_search: bool = False
    needs_places_search: bool = False
    confidence: Confidence = Confidence.LOW

    @property
    def is_fast_path(self) -> bool:
        """Return ``True`` when the greeting shortcut applies."""
        return self.is_simple_greeting and self.confidence is Confidence.HIGH


@dataclass(frozen=True, slots=True)
class ContextFragment:
    """Provider-scoped context text plus an availability flag."""

    source_name: str
    text: str | None
    available: bool

    @classmethod
    def unavailable(cls, source_name: str) -> ContextFragment:
        """Return a fragment the model should not be told about."""
        return cls(source_name=source_name, text=None, available=False)


DEFAULT_MAIL_QUERY = "in:inbox"


@dataclass(frozen=True, slots=True)
class GmailQueryResult:
    """Outcome of translating a transcript into a mailbox search query."""

    query: str | None
    query_without_sender: str | None
    has_sender: bool
    sender_hint: str | None

    @property
    def effective_query(self) -> str:
        """Return the sender-free query sent to the provider."""
        return self.query_without_sender or self.query or DEFAULT_MAIL_QUERY


@dataclass(slots=True)
class MailStatus:
    """Connectivity state of the mail integration."""

    connected: bool
    email: str | None = None


@dataclass(slots=True)
class CalendarStatus:
    """Connectivity state of the calendar integration."""

    connected: bool


@dataclass(slots=True)
class ContactsStatus:
    """Permission state of the address book."""

    has_permission: bool


@dataclass(slots=True)
class MailMessage:
    """Mailbox message as returned by the mail provider."""

    id: str
    subject: str
    sender: str
    date: datetime | None
    snippet: str = ""
    body: str | None = None
    is_unread: bool = False
    thread_id: str | None = None


@dataclass(slots=True)
class CalendarEvent:
    """Upcoming calendar entry."""

    id: str
    summary: str
    start: datetime | None
    end: datetime | None
    is_all_day: bool = False
    location: str | None = None
    description: str | None = None


@dataclass(slots=True)
class Place:
    """Point of interest near the user."""

    place_id: str
    name: str
    address: str
    rating: float | None = None
    user_ratings_total: int | None = None
    price_level: int | None = None
    open_now: bool | None = None
    distance_meters: float | None = None
    types: tuple[str, ...] = ()


@dataclass(slots=True)
class ContactPhone:
    """Phone number attached to a contact."""

    number: str
    label: str | None = None


@dataclass(slots=True)
class ContactEmail:
    """Email address attached to a contact."""

    email: str
    label: str | None = None


@dataclass(slots=True)
class Contact:
    """Address book entry."""

    id: str
    name: str
    first_name: str | None = None
    last_name: str | None = None
    phones: tuple[ContactPhone, ...] = ()
    emails: tuple[ContactEmail, ...] = ()


@dataclass(slots=True)
class ChatMessage:
    """Previous conversation turn passed to the reply model."""

    role: str
    content: str


@dataclass(slots=True)
class ChatSummary:
    """Stored chat with its generated title."""

    chat_id: int
    title: str | None
    updated_at: str
    exchange_count: int = 0


@dataclass(frozen=True, slots=True)
class AuthenticatedSession:
    """Explicit handle for the signed-in user's backend session."""

    access_token: str
    user_id: str | None = None


@dataclass(slots=True)
class EmailIntent:
    """Structured email request extracted from a transcript."""

    should_send_email: bool
    to: str | None = None
    subject: str | None = None
    body: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialise using the camelCase keys callers expect."""
        return _drop_none(
            {
                "shouldSendEmail": self.should_send_email,
                "to": self.to,
                "subject": self.subject,
                "body": self.body,
            }
        )


# pylint: disable=too-many-instance-attributes
@dataclass(slots=True)
class CalendarIntent:
    """Structured calendar event request extracted from a transcript."""

    should_create_event: bool
    summary: str | None = None
    description: str | None = None
    location: str | None = None
    start_date_time: str | None = None
    end_date_time: str | None = None
    is_all_day: bool = False
    attendees: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Serialise using the camelCase keys callers expect."""
        return _drop_none(
            {
                "shouldCreateEvent": self.should_create_event,
                "summary": self.summary,
                "description": self.description,
                "location": self.location,
                "startDateTime": self.start_date_time,
                "endDateTime": self.end_date_time,
                "isAllDay": self.is_all_day,
                "attendees": list(self.attendees) or None,
            }
        )


@dataclass(slots=True)
class SmsIntent:
    """Structured SMS request extracted from a transcript."""

    should_send_sms: bool
    to: str | None = None
    body: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialise using the camelCase keys callers expect."""
        return _drop_none(
            {"shouldSendSms": self.should_send_sms, "to": self.to, "body": self.body}
        )


@dataclass(slots=True)
class ExtractedIntents:
    """Results of the three actionable-intent extractors."""

    email: EmailIntent | None = None
    calendar: CalendarIntent | None = None
    sms: SmsIntent | None = None


@dataclass(slots=True)
class VoiceProcessResult:
    """Sole externally visible output of a pipeline run."""

    transcript: str
    reply: str
    email_intent: EmailIntent | None = None
    calendar_intent: CalendarIntent | None = None
    sms_intent: SmsIntent | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialise using the camelCase keys callers expect."""
        payload: dict[str, Any] = {"transcript": self.transcript, "reply": self.reply}
        if self.email_intent is not None:
            payload["emailIntent"] = self.email_intent.to_dict()
        if self.calendar_intent is not None:
            payload["calendarIntent"] = self.calendar_intent.to_dict()
        if self.sms_intent is not None:
            payload["smsIntent"] = self.sms_intent.to_dict()
        return payload


TranscriptCallback = Callable[[str], Awaitable[None] | None]
StatusCallback = Callable[[ProcessingStatus], Awaitable[None] | None]


# pylint: disable=too-many-instance-attributes
@dataclass(slots=True)
class VoiceProcessOptions:
    """Per-run options supplied by the caller."""

    language: str | None = None
    context: str | None = None
    location: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    user_name: str | None = None
    on_transcript: TranscriptCallback | None = None
    on_status_change: StatusCallback | None = None
    history: tuple[ChatMessage, ...] = field(default_factory=tuple)

    @property
    def has_coordinates(self) -> bool:
        """Return ``True`` when both latitude and longitude were supplied."""
        return self.latitude is not None and self.longitude is not None


def _drop_none(payload: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


__all__ = [
    "AuthenticatedSession",
    "CalendarEvent",
    "CalendarIntent",
    "CalendarStatus",
    "ChatMessage",
    "ChatSummary",
    "Confidence",
    "Contact",
    "ContactEmail",
    "ContactPhone",
    "ContactsStatus",
    "ContextFragment",
    "DEFAULT_MAIL_QUERY",
    "EmailIntent",
    "ExtractedIntents",
    "GmailQueryResult",
    "IntentClassification",
    "MailMessage",
    "MailStatus",
    "Place",
    "ProcessingStatus",
    "SmsIntent",
    "StatusCallback",
    "TranscriptCallback",
    "VoiceProcessOptions",
    "VoiceProcessResult",
]
