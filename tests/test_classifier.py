"""Tests for the two-tier intent classifier."""

from __future__ import annotations

from typing import Any

import pytest

from voice_assistant.core.errors import LLMError
from voice_assistant.core.models import Confidence
from voice_assistant.intelligence import IntentClassifier, classify_local


class StubStructuredModel:
    """Structured model stub returning a predetermined payload."""

    def __init__(self, payload: Any) -> None:
        self.payload = payload
        self.calls: list[dict[str, Any]] = []

    async def extract_json(
        self,
        system_prompt: str,
        user_prompt: str,
        schema_hint: str,
        *,
        model: str | None = None,
    ) -> Any:
        self.calls.append(
            {"system": system_prompt, "user": user_prompt, "model": model}
        )
        return self.payload


class FailingStructuredModel:
    """Structured model stub that always raises."""

    async def extract_json(self, *args: Any, **kwargs: Any) -> Any:
        del args, kwargs
        raise LLMError("boom")


@pytest.mark.parametrize(
    "transcript",
    ["Cześć!", "hej", "Dzień dobry", "Jak się masz?", "no siema, co słychać"],
)
def test_short_greetings_take_fast_path(transcript: str) -> None:
    classification = classify_local(transcript)

    assert classification.is_simple_greeting
    assert classification.confidence is Confidence.HIGH
    assert classification.is_fast_path


@pytest.mark.parametrize(
    "transcript",
    ["wyślij mail do szefa", "Napisz email do Marty", "wyślij mail", "napisz email"],
)
def test_mail_phrases_need_email(transcript: str) -> None:
    classification = classify_local(transcript)

    assert classification.needs_email
    assert not classification.needs_sms
    assert not classification.is_simple_greeting
    assert classification.confidence is Confidence.HIGH


def test_greeting_with_action_is_not_fast_path() -> None:
    classification = classify_local("Cześć, wyślij maila do Jana")

    assert not classification.is_simple_greeting
    assert classification.needs_email
    assert classification.confidence is Confidence.HIGH


def test_long_greeting_is_not_fast_path() -> None:
    transcript = "Dzień dobry, opowiem ci dziś o tym, jak minął mi dzień"

    assert not classify_local(transcript).is_fast_path


def test_places_query_masks_web_search() -> None:
    classification = classify_local("Gdzie jest najbliższa apteka?")

    assert classification.needs_places_search
    assert not classification.needs_web_search
    assert classification.confidence is Confidence.MEDIUM


def test_weather_needs_web_search() -> None:
    classification = classify_local("Jaka jest pogoda w Krakowie?")

    assert classification.needs_web_search
    assert not classification.needs_places_search


def test_sms_implies_contacts_not_email() -> None:
    classification = classify_local("Wyślij SMS do mamy że będę później")

    assert classification.needs_sms
    assert classification.needs_contacts
    assert not classification.needs_email


def test_calendar_needs_keyword_and_time_hint() -> None:
    assert classify_local("Dodaj spotkanie jutro o 15:00").needs_calendar
    assert classify_local("Co mam w kalendarzu?").needs_calendar
    assert not classify_local("Dodaj cukier do listy").needs_calendar


def test_unrecognised_text_has_low_confidence() -> None:
    classification = classify_local("Opowiedz mi coś ciekawego")

    assert classification.confidence is Confidence.LOW
    assert not classification.is_simple_greeting


async def test_fast_path_skips_model() -> None:
    model = StubStructuredModel({})
    classifier = IntentClassifier(model)

    classification = await classifier.classify("Hej")

    assert classification.is_fast_path
    assert model.calls == []


async def test_model_result_is_used_for_non_greetings() -> None:
    model = StubStructuredModel(
        {
            "needsEmailIntent": "false",
            "needsCalendarIntent": False,
            "needsSmsIntent": True,
            "isSimpleGreeting": True,
            "needsWebSearch": False,
            "needsPlacesSearch": False,
            "confidence": "HIGH",
        }
    )
    classifier = IntentClassifier(model, model_name="gpt-test")

    classification = await classifier.classify("Napisz do Ani")

    assert classification.needs_sms
    assert not classification.needs_contacts
    assert not classification.needs_email
    assert not classification.is_simple_greeting
    assert classification.confidence is Confidence.HIGH
    assert model.calls[0]["model"] == "gpt-test"
    assert "Napisz do Ani" in model.calls[0]["user"]


async def test_model_flags_are_taken_verbatim() -> None:
    model = StubStructuredModel(
        {
            "needsEmailIntent": False,
            "needsCalendarIntent": False,
            "needsSmsIntent": False,
            "isSimpleGreeting": False,
            "needsWebSearch": True,
            "needsPlacesSearch": True,
            "confidence": "medium",
        }
    )

    classification = await IntentClassifier(model).classify("Gdzie zjem obiad?")

    assert classification.needs_places_search
    assert classification.needs_web_search
    assert classification.confidence is Confidence.MEDIUM


async def test_model_failure_falls_back_to_local_rules() -> None:
    classifier = IntentClassifier(FailingStructuredModel())

    classification = await classifier.classify("Sprawdź moją pocztę")

    assert classification.needs_email
    assert classification.confidence is Confidence.HIGH


async def test_malformed_model_output_falls_back_to_local_rules() -> None:
    classifier = IntentClassifier(StubStructuredModel({"needsEmailIntent": True}))

    classification = await classifier.classify("Jaka jest pogoda?")

    assert classification.needs_web_search
    assert not classification.needs_email
