"""Tests for structured payload schemas and the decode-or-default helper."""

from __future__ import annotations

import json
import logging
from typing import Any

import pytest

from voice_assistant.core.errors import ProviderError
from voice_assistant.intelligence.schemas import (
    CalendarIntentPayload,
    ClassificationPayload,
    EmailIntentPayload,
    MailQueryPayload,
    SmsIntentPayload,
    coerce_bool,
)
from voice_assistant.intelligence.structured import (
    decode_or_default,
    decode_payload,
    extract_or_default,
    schema_hint,
)


class StubStructuredModel:
    """Structured model stub returning or raising a predetermined value."""

    def __init__(self, outcome: Any) -> None:
        self.outcome = outcome
        self.schema_hints: list[str] = []

    async def extract_json(
        self,
        system_prompt: str,
        user_prompt: str,
        schema_hint: str,
        *,
        model: str | None = None,
    ) -> Any:
        del system_prompt, user_prompt, model
        self.schema_hints.append(schema_hint)
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("true", True),
        ("TAK", True),
        ("false", False),
        ("nie", False),
        ("", False),
        ("null", False),
        (1, True),
        (0, False),
        (None, False),
    ],
)
def test_coerce_bool(value: Any, expected: bool) -> None:
    assert coerce_bool(value) is expected


def test_decode_payload_accepts_fenced_json() -> None:
    raw = '```json\n{"query": "in:inbox is:unread", "hasSender": false}\n```'

    payload = decode_payload(raw, MailQueryPayload)

    assert payload.query == "in:inbox is:unread"
    assert payload.has_sender is False


def test_decode_payload_rejects_non_objects() -> None:
    with pytest.raises(ValueError):
        decode_payload("[1, 2, 3]", MailQueryPayload)


def test_decode_or_default_logs_and_returns_default(
    caplog: pytest.LogCaptureFixture,
) -> None:
    with caplog.at_level(logging.WARNING):
        result = decode_or_default(
            "not json", ClassificationPayload, "fallback", label="x"
        )

    assert result == "fallback"
    assert "Discarding malformed x output" in caplog.text


def test_decode_or_default_rejects_unknown_confidence() -> None:
    raw = {
        "needsEmailIntent": False,
        "needsCalendarIntent": False,
        "needsSmsIntent": False,
        "isSimpleGreeting": True,
        "needsWebSearch": False,
        "needsPlacesSearch": False,
        "confidence": "certain",
    }

    assert decode_or_default(raw, ClassificationPayload, None, label="c") is None


def test_text_fields_drop_null_markers() -> None:
    payload = EmailIntentPayload.model_validate(
        {"shouldSendEmail": "true", "to": "null", "subject": " ", "body": "Hej"}
    )

    intent = payload.to_intent()
    assert intent.should_send_email is True
    assert intent.to is None
    assert intent.subject is None
    assert intent.to_dict() == {"shouldSendEmail": True, "body": "Hej"}


def test_calendar_attendees_are_normalised() -> None:
    payload = CalendarIntentPayload.model_validate(
        {
            "shouldCreateEvent": True,
            "summary": "Dentysta",
            "startDateTime": "2025-01-10T15:00:00",
            "attendees": "anna@example.com",
        }
    )

    intent = payload.to_intent()
    assert intent.attendees == ("anna@example.com",)
    assert intent.to_dict()["startDateTime"] == "2025-01-10T15:00:00"
    assert intent.to_dict()["isAllDay"] is False


def test_sms_payload_defaults_to_no_send() -> None:
    assert SmsIntentPayload.model_validate({}).to_intent().should_send_sms is False


def test_schema_hint_uses_aliases() -> None:
    hint = json.loads(schema_hint(ClassificationPayload))

    assert hint["title"] == "ClassificationPayload"
    assert "needsEmailIntent" in hint["properties"]


async def test_extract_or_default_without_provider_returns_default() -> None:
    result = await extract_or_default(
        None,
        system_prompt="s",
        user_prompt="u",
        schema=MailQueryPayload,
        default="default",
        label="query",
    )

    assert result == "default"


async def test_extract_or_default_swallows_provider_errors() -> None:
    model = StubStructuredModel(ProviderError("offline"))

    result = await extract_or_default(
        model,
        system_prompt="s",
        user_prompt="u",
        schema=MailQueryPayload,
        default=None,
        label="query",
    )

    assert result is None
    assert "MailQueryPayload" in model.schema_hints[0]


async def test_extract_or_default_decodes_payload() -> None:
    model = StubStructuredModel({"query": "in:inbox", "hasSender": "true"})

    result = await extract_or_default(
        model,
        system_prompt="s",
        user_prompt="u",
        schema=MailQueryPayload,
        default=None,
        label="query",
    )

    assert isinstance(result, MailQueryPayload)
    assert result.has_sender is True
