"""Actionable-intent extraction for email, calendar and SMS requests."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from datetime import datetime
from typing import TypeVar

from voice_assistant.core.interfaces import StructuredModelProvider
from voice_assistant.core.models import (
    CalendarIntent,
    EmailIntent,
    ExtractedIntents,
    IntentClassification,
    SmsIntent,
)

from .prompts import (
    INTENT_SYSTEM_PROMPT,
    build_calendar_intent_prompt,
    build_email_intent_prompt,
    build_sms_intent_prompt,
)
from .schemas import CalendarIntentPayload, EmailIntentPayload, SmsIntentPayload
from .structured import extract_or_default

LOGGER = logging.getLogger(__name__)

IntentT = TypeVar("IntentT")


class IntentExtractor:
    """Run the structured extractors the classification and connectivity allow."""

    def __init__(
        self,
        model: StructuredModelProvider | None,
        *,
        model_name: str | None = None,
    ) -> None:
        """Store the structured model used by every extractor."""
        self._model = model
        self._model_name = model_name

    async def extract_email(self, transcript: str) -> EmailIntent | None:
        """Return the email intent, populated for read requests as well."""
        payload = await extract_or_default(
            self._model,
            system_prompt=INTENT_SYSTEM_PROMPT,
            user_prompt=build_email_intent_prompt(transcript),
            schema=EmailIntentPayload,
            default=None,
            label="email intent extraction",
            model=self._model_name,
        )
        return payload.to_intent() if payload is not None else None

    async def extract_calendar(
        self, transcript: str, now: datetime
    ) -> CalendarIntent | None:
        """Return the calendar intent when an event should be created."""
        payload = await extract_or_default(
            self._model,
            system_prompt=INTENT_SYSTEM_PROMPT,
            user_prompt=build_calendar_intent_prompt(transcript, now),
            schema=CalendarIntentPayload,
            default=None,
            label="calendar intent extraction",
            model=self._model_name,
        )
        if payload is None or not payload.should_create_event:
            return None
        return payload.to_intent()

    async def extract_sms(self, transcript: str) -> SmsIntent | None:
        """Return the SMS intent when a message should be sent."""
        payload = await extract_or_default(
            self._model,
            system_prompt=INTENT_SYSTEM_PROMPT,
            user_prompt=build_sms_intent_prompt(transcript),
            schema=SmsIntentPayload,
            default=None,
            label="sms intent extraction",
            model=self._model_name,
        )
        if payload is None or not payload.should_send_sms:
            return None
        return payload.to_intent()

    async def extract_all(
        self,
        transcript: str,
        classification: IntentClassification,
        *,
        mail_connected: bool,
        calendar_connected: bool,
        now: datetime,
    ) -> ExtractedIntents:
        """Run the gated extractors concurrently; each fails on its own."""
        email_call = (
            self.extract_email(transcript)
            if classification.needs_email and mail_connected
            else None
        )
        calendar_call = (
            self.extract_calendar(transcript, now)
            if classification.needs_calendar and calendar_connected
            else None
        )
        sms_call = self.extract_sms(transcript) if classification.needs_sms else None

        email, calendar, sms = await asyncio.gather(
            _guard("email", email_call),
            _guard("calendar", calendar_call),
            _guard("sms", sms_call),
        )
        return ExtractedIntents(email=email, calendar=calendar, sms=sms)


async def _guard(name: str, call: Awaitable[IntentT | None] | None) -> IntentT | None:
    if call is None:
        return None
    try:
        return await call
    except Exception as exc:  # noqa: BLE001 - one extractor must not sink the others
        LOGGER.warning("%s intent extraction failed: %s", name, exc)
        return None


__all__ = ["IntentExtractor"]
