"""Voice pipeline orchestration from audio reference to reply."""

from __future__ import annotations

import asyncio
import inspect
import logging
import os
from collections.abc import Callable
from datetime import datetime
from functools import partial
from typing import Any

from voice_assistant.context import ContextAggregator
from voice_assistant.core.config import AssistantSettings
from voice_assistant.core.interfaces import ConversationHistory, ConversationSink
from voice_assistant.core.models import (
    ChatMessage,
    ProcessingStatus,
    VoiceProcessOptions,
    VoiceProcessResult,
)
from voice_assistant.intelligence import (
    SMS_HANDOFF_REPLY,
    IntentClassifier,
    IntentExtractor,
    ResponseGenerator,
    ResponseRequest,
)

from .transcription import TranscriptionAdapter

LOGGER = logging.getLogger(__name__)


def _local_now() -> datetime:
    return datetime.now().astimezone()


async def _invoke_callback(
    callback: Callable[[Any], Any] | None, value: Any, *, label: str
) -> None:
    """Call a caller-supplied hook; its failures never abort a run."""
    if callback is None:
        return
    try:
        outcome = callback(value)
        if inspect.isawaitable(outcome):
            await outcome
    except Exception as exc:  # noqa: BLE001 - UI hooks must not break the run
        LOGGER.warning("%s callback raised: %s", label, exc)


class VoicePipeline:
    """Sequence transcription, classification, context, reply and intents."""

    # pylint: disable=too-many-arguments
    def __init__(
        self,
        *,
        transcriber: TranscriptionAdapter,
        classifier: IntentClassifier,
        aggregator: ContextAggregator,
        responder: ResponseGenerator,
        extractor: IntentExtractor,
        history: ConversationHistory | None = None,
        sink: ConversationSink | None = None,
        settings: AssistantSettings | None = None,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        """Wire the stages together."""
        self._transcriber = transcriber
        self._classifier = classifier
        self._aggregator = aggregator
        self._responder = responder
        self._extractor = extractor
        self._history = history
        self._sink = sink
        self._settings = settings or AssistantSettings()
        self._clock = clock
        self._pending: set[asyncio.Task[None]] = set()

    async def run(
        self,
        audio_ref: str | os.PathLike[str] | None,
        options: VoiceProcessOptions | None = None,
    ) -> VoiceProcessResult:
        """Process one utterance; only input and transcription errors escape."""
        options = options or VoiceProcessOptions()
        report = partial(_invoke_callback, options.on_status_change, label="Status")
        try:
            result = await self._run(audio_ref, options, report)
        finally:
            await report(ProcessingStatus.NONE)
        self._schedule_persist(result)
        return result

    async def drain(self) -> None:
        """Wait for outstanding conversation notifications."""
        if self._pending:
            await asyncio.gather(*list(self._pending))

    async def _run(
        self,
        audio_ref: str | os.PathLike[str] | None,
        options: VoiceProcessOptions,
        report: Callable[[ProcessingStatus], Any],
    ) -> VoiceProcessResult:
        await report(ProcessingStatus.TRANSCRIBING)
        transcript = await self._transcriber.transcribe(
            audio_ref, options.language or self._settings.language
        )
        await _invoke_callback(options.on_transcript, transcript, label="Transcript")

        await report(ProcessingStatus.CLASSIFYING)
        classification = await self._classifier.classify(transcript)
        history = await self._load_history(options)
        user_name = options.user_name or self._settings.user_name

        if classification.is_fast_path:
            await report(ProcessingStatus.PREPARING_RESPONSE)
            reply = await self._responder.generate(
                transcript,
                ResponseRequest(
                    context=options.context,
                    location=options.location,
                    user_name=user_name,
                    history=history,
                ),
            )
            return VoiceProcessResult(transcript=transcript, reply=reply)

        now = self._clock()
        context = await self._aggregator.gather(
            transcript, classification, options, now=now, on_status=report
        )

        if classification.needs_web_search:
            await report(ProcessingStatus.WEB_SEARCHING)
        else:
            await report(ProcessingStatus.PREPARING_RESPONSE)
        reply = await self._responder.generate(
            transcript,
            ResponseRequest(
                context=context.combined_text(),
                location=options.location,
                user_name=user_name,
                use_web_search=classification.needs_web_search,
                mail_connected=context.mail_connected,
                contacts_available=context.contacts_available,
                history=history,
            ),
        )
        if classification.needs_web_search:
            await report(ProcessingStatus.PREPARING_RESPONSE)

        intents = await self._extractor.extract_all(
            transcript,
            classification,
            mail_connected=context.mail_connected,
            calendar_connected=context.calendar_connected,
            now=now,
        )
        if intents.sms is not None and intents.sms.should_send_sms:
            reply = SMS_HANDOFF_REPLY

        return VoiceProcessResult(
            transcript=transcript,
            reply=reply,
            email_intent=intents.email,
            calendar_intent=intents.calendar,
            sms_intent=intents.sms,
        )

    async def _load_history(self, options: VoiceProcessOptions) -> list[ChatMessage]:
        limit = self._settings.history_limit
        if options.history:
            return list(options.history)[-limit:] if limit else []
        if self._history is None or limit == 0:
            return []
        try:
            return await self._history.recent_messages(limit)
        except Exception as exc:  # noqa: BLE001 - history is optional context
            LOGGER.warning("Could not load conversation history: %s", exc)
            return []

    def _schedule_persist(self, result: VoiceProcessResult) -> None:
        if self._sink is None:
            return
        task = asyncio.create_task(
            self._persist(self._sink, result.transcript, result.reply)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _persist(
        self, sink: ConversationSink, transcript: str, reply: str
    ) -> None:
        try:
            await sink.record_exchange(transcript, reply, self._clock())
        except Exception as exc:  # noqa: BLE001 - persistence never alters the result
            LOGGER.warning("Failed to record conversation exchange: %s", exc)


__all__ = ["VoicePipeline"]
