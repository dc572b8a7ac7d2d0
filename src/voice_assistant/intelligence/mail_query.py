"""Natural-language mailbox queries and model-assisted sender matching."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from datetime import datetime

from voice_assistant.core.datetime_utils import compute_relative_dates
from voice_assistant.core.interfaces import StructuredModelProvider
from voice_assistant.core.models import (
    DEFAULT_MAIL_QUERY,
    GmailQueryResult,
    MailMessage,
)

from .prompts import (
    SENDER_FILTER_SYSTEM_PROMPT,
    build_mail_query_prompt,
    build_mail_query_system_prompt,
    build_sender_filter_prompt,
)
from .schemas import MailQueryPayload, SenderFilterPayload
from .structured import extract_or_default

LOGGER = logging.getLogger(__name__)

_FROM_OPERATOR = re.compile(
    r'(?<!\S)-?from:(?:"(?P<quoted>[^"]*)"|\((?P<grouped>[^)]*)\)|(?P<bare>\S+))',
    re.IGNORECASE,
)

DEFAULT_QUERY_RESULT = GmailQueryResult(
    query=DEFAULT_MAIL_QUERY,
    query_without_sender=DEFAULT_MAIL_QUERY,
    has_sender=False,
    sender_hint=None,
)


def strip_sender_operators(query: str) -> tuple[str, list[str]]:
    """Remove ``from:`` operators, returning the rest and the sender values."""
    senders: list[str] = []

    def _collect(match: re.Match[str]) -> str:
        value = match.group("quoted") or match.group("grouped") or match.group("bare")
        if value and value.strip() and not match.group(0).lstrip().startswith("-"):
            senders.append(value.strip())
        return " "

    remainder = " ".join(_FROM_OPERATOR.sub(_collect, query).split())
    return remainder, senders


class MailQueryService:
    """Translate transcripts into mailbox queries and narrow results by sender."""

    def __init__(
        self,
        model: StructuredModelProvider | None,
        *,
        model_name: str | None = None,
    ) -> None:
        """Store the structured model shared by both calls."""
        self._model = model
        self._model_name = model_name

    async def generate_query(
        self, transcript: str, now: datetime
    ) -> GmailQueryResult:
        """Return a sender-free query plus any sender the user mentioned."""
        dates = compute_relative_dates(now)
        payload = await extract_or_default(
            self._model,
            system_prompt=build_mail_query_system_prompt(dates),
            user_prompt=build_mail_query_prompt(transcript),
            schema=MailQueryPayload,
            default=None,
            label="mail query generation",
            model=self._model_name,
        )
        if payload is None:
            return DEFAULT_QUERY_RESULT

        query = payload.query or DEFAULT_MAIL_QUERY
        without_sender, stripped = strip_sender_operators(query)
        sender_hint = payload.sender_hint or (stripped[0] if stripped else None)
        has_sender = payload.has_sender or bool(stripped)
        if stripped:
            LOGGER.debug("Removed sender operators %s from query %r", stripped, query)
        return GmailQueryResult(
            query=query,
            query_without_sender=without_sender or DEFAULT_MAIL_QUERY,
            has_sender=has_sender,
            sender_hint=sender_hint,
        )

    async def filter_by_sender(
        self,
        messages: Sequence[MailMessage],
        transcript: str,
        sender_hint: str | None,
    ) -> list[MailMessage]:
        """Keep messages whose sender the model matched to ``sender_hint``."""
        if not messages:
            return []
        senders = list(dict.fromkeys(message.sender for message in messages))
        payload = await extract_or_default(
            self._model,
            system_prompt=SENDER_FILTER_SYSTEM_PROMPT,
            user_prompt=build_sender_filter_prompt(transcript, sender_hint, senders),
            schema=SenderFilterPayload,
            default=None,
            label="sender filtering",
            model=self._model_name,
        )
        if payload is None:
            return list(messages)

        selected = {
            senders[index - 1]
            for index in payload.matching_indices
            if 1 <= index <= len(senders)
        }
        if len(selected) > 1:
            LOGGER.debug(
                "Sender hint %r matched %d senders", sender_hint, len(selected)
            )
        return [message for message in messages if message.sender in selected]


__all__ = [
    "DEFAULT_QUERY_RESULT",
    "MailQueryService",
    "strip_sender_operators",
]
