"""Closed pydantic schemas for every structured model response."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from voice_assistant.core.models import (
    CalendarIntent,
    Confidence,
    EmailIntent,
    IntentClassification,
    SmsIntent,
)

_FALSY_STRINGS = frozenset({"", "false", "0", "no", "nie", "null", "none"})


def coerce_bool(value: Any) -> bool:
    """Coerce model output to ``bool`` using truthiness rules."""
    if isinstance(value, str):
        return value.strip().lower() not in _FALSY_STRINGS
    return bool(value)


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() in {"null", "none", "undefined"}:
        return None
    return text


class _StructuredPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ClassificationPayload(_StructuredPayload):
    """Intent flags returned by the classification model."""

    needs_email: bool = Field(alias="needsEmailIntent")
    needs_calendar: bool = Field(alias="needsCalendarIntent")
    needs_sms: bool = Field(alias="needsSmsIntent")
    needs_contacts: bool = Field(default=False, alias="needsContacts")
    is_simple_greeting: bool = Field(alias="isSimpleGreeting")
    needs_web_search: bool = Field(alias="needsWebSearch")
    needs_places_search: bool = Field(alias="needsPlacesSearch")
    confidence: Confidence

    @field_validator(
        "needs_email",
        "needs_calendar",
        "needs_sms",
        "needs_contacts",
        "is_simple_greeting",
        "needs_web_search",
        "needs_places_search",
        mode="before",
    )
    @classmethod
    def _coerce_flags(cls, value: Any) -> bool:
        return coerce_bool(value)

    @field_validator("confidence", mode="before")
    @classmethod
    def _normalise_confidence(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    def to_classification(self) -> IntentClassification:
        """Return the model flags as-is, except a greeting that carries actions."""
        actionable = (
            self.needs_email
            or self.needs_calendar
            or self.needs_sms
            or self.needs_contacts
            or self.needs_web_search
            or self.needs_places_search
        )
        return IntentClassification(
            needs_email=self.needs_email,
            needs_calendar=self.needs_calendar,
            needs_sms=self.needs_sms,
            needs_contacts=self.needs_contacts,
            is_simple_greeting=self.is_simple_greeting and not actionable,
            needs_web_search=self.needs_web_search,
            needs_places_search=self.needs_places_search,
            confidence=self.confidence,
        )


class MailQueryPayload(_StructuredPayload):
    """Mailbox search query derived from a transcript."""

    query: str | None = None
    has_sender: bool = Field(default=False, alias="hasSender")
    sender_hint: str | None = Field(default=None, alias="senderHint")

    @field_validator("has_sender", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> bool:
        return coerce_bool(value)

    @field_validator("query", "sender_hint", mode="before")
    @classmethod
    def _clean_text(cls, value: Any) -> str | None:
        return _optional_text(value)


class SenderFilterPayload(_StructuredPayload):
    """1-based indices of senders the model matched to the hint."""

    matching_indices: list[int] = Field(alias="matchingIndices")


class EmailIntentPayload(_StructuredPayload):
    """Email send or read request."""

    should_send_email: bool = Field(default=False, alias="shouldSendEmail")
    to: str | None = None
    subject: str | None = None
    body: str | None = None

    @field_validator("should_send_email", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> bool:
        return coerce_bool(value)

    @field_validator("to", "subject", "body", mode="before")
    @classmethod
    def _clean_text(cls, value: Any) -> str | None:
        return _optional_text(value)

    def to_intent(self) -> EmailIntent:
        """Return the domain record."""
        return EmailIntent(
            should_send_email=self.should_send_email,
            to=self.to,
            subject=self.subject,
            body=self.body,
        )


class CalendarIntentPayload(_StructuredPayload):
    """Calendar event creation request."""

    should_create_event: bool = Field(default=False, alias="shouldCreateEvent")
    summary: str | None = None
    description: str | None = None
    location: str | None = None
    start_date_time: str | None = Field(default=None, alias="startDateTime")
    end_date_time: str | None = Field(default=None, alias="endDateTime")
    is_all_day: bool = Field(default=False, alias="isAllDay")
    attendees: list[str] = Field(default_factory=list)

    @field_validator("should_create_event", "is_all_day", mode="before")
    @classmethod
    def _coerce_flags(cls, value: Any) -> bool:
        return coerce_bool(value)

    @field_validator(
        "summary",
        "description",
        "location",
        "start_date_time",
        "end_date_time",
        mode="before",
    )
    @classmethod
    def _clean_text(cls, value: Any) -> str | None:
        return _optional_text(value)

    @field_validator("attendees", mode="before")
    @classmethod
    def _normalise_attendees(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list):
            raise ValueError("attendees must be a list")
        cleaned = (_optional_text(item) for item in value)
        return [item for item in cleaned if item]

    def to_intent(self) -> CalendarIntent:
        """Return the domain record."""
        return CalendarIntent(
            should_create_event=self.should_create_event,
            summary=self.summary,
            description=self.description,
            location=self.location,
            start_date_time=self.start_date_time,
            end_date_time=self.end_date_time,
            is_all_day=self.is_all_day,
            attendees=tuple(self.attendees),
        )


class SmsIntentPayload(_StructuredPayload):
    """SMS send request."""

    should_send_sms: bool = Field(default=False, alias="shouldSendSms")
    to: str | None = None
    body: str | None = None

    @field_validator("should_send_sms", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> bool:
        return coerce_bool(value)

    @field_validator("to", "body", mode="before")
    @classmethod
    def _clean_text(cls, value: Any) -> str | None:
        return _optional_text(value)

    def to_intent(self) -> SmsIntent:
        """Return the domain record."""
        return SmsIntent(
            should_send_sms=self.should_send_sms, to=self.to, body=self.body
        )


__all__ = [
    "CalendarIntentPayload",
    "ClassificationPayload",
    "EmailIntentPayload",
    "MailQueryPayload",
    "SenderFilterPayload",
    "SmsIntentPayload",
    "coerce_bool",
]
