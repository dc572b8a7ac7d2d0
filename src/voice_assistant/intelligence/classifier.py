"""Two-tier intent classification: Polish keyword rules, then a model."""

from __future__ import annotations

import logging
import re

from voice_assistant.core.interfaces import StructuredModelProvider
from voice_assistant.core.models import Confidence, IntentClassification

from .prompts import CLASSIFIER_SYSTEM_PROMPT, build_classification_prompt
from .schemas import ClassificationPayload
from .structured import extract_or_default

LOGGER = logging.getLogger(__name__)

_FLAGS = re.IGNORECASE | re.UNICODE

GREETING_MAX_LENGTH = 50

_GREETING_PATTERNS = (
    re.compile(
        r"^(?:no\s+)?"
        r"(?:cześć|czesc|hej(?:ka)?|siema(?:nko)?|witaj(?:cie)?|halo|elo)\b",
        _FLAGS,
    ),
    re.compile(r"^dzie[ńn]\s+dobry\b", _FLAGS),
    re.compile(r"^dobry\s+wiecz[óo]r\b", _FLAGS),
    re.compile(r"\bjak\s+(?:si[ęe]\s+masz|leci)\b", _FLAGS),
    re.compile(r"\bco\s+s[łl]ycha[ćc]\b", _FLAGS),
)

_ACTION_KEYWORDS = re.compile(
    r"\b(?:wy[śs]lij|napisz|odpisz|dodaj|zapisz|znajd[źz]|wyszukaj|poszukaj|"
    r"sprawd[źz]|pogod\w*|temperatur\w*|ile|gdzie|numer\w*|telefon\w*|"
    r"zadzwo\w*|przypomn\w*|kalendarz\w*|e-?mail\w*|g?mail\w*|sms\w*|"
    r"esemes\w*|poczt\w*)",
    _FLAGS,
)

_EMAIL_WORDS = re.compile(r"\b(?:e-?mail\w*|g?mail\w*|poczt\w*|skrzynk\w*)", _FLAGS)
_MESSAGE_WORDS = re.compile(r"\bwiadomo[śs][ćc]\w*|\bwiadomo[śs]ci\b", _FLAGS)
_SEND_VERBS = re.compile(r"\b(?:wy[śs]lij|napisz|odpisz|odpowiedz)\b", _FLAGS)

_SMS_WORDS = re.compile(r"\b(?:sms\w*|esemes\w*)", _FLAGS)

_CALENDAR_WORD = re.compile(r"\bkalendarz\w*", _FLAGS)
_CALENDAR_KEYWORDS = re.compile(
    r"\b(?:dodaj|zapisz|wydarzeni\w*|spotkani\w*|termin\w*|przypom\w*|"
    r"dentyst\w*|wizyt\w*|co\s+mam|plan\w*)",
    _FLAGS,
)
_TIME_HINTS = re.compile(
    r"\b(?:jutr\w*|dzisiaj|dzi[śs]|pojutrze|termin\w*|spotkani\w*|przypomnieni\w*|"
    r"poniedzia[łl]\w*|wtor\w*|[śs]rod\w*|czwart\w*|pi[ąa]t\w*|sobot\w*|niedziel\w*)"
    r"|na\s+godzin[ęe]?\s+\d+|\d{1,2}:\d{2}",
    _FLAGS,
)

_CONTACT_WORDS = re.compile(
    r"\b(?:kontakt\w*|numer\w*|telefon\w*|zadzwo\w*|adres\s+email\w*)", _FLAGS
)

_PLACES_WORDS = re.compile(
    r"ile\s+metr[óo]w|ile\s+kilometr[óo]w|jak\s+daleko|odleg[łl]o[śs][ćc]|"
    r"dystans|najbli[żz]sz\w*|gdzie\s+jest|w\s+okolicy|restauracj\w*|sklep\w*|"
    r"\bstacj\w*|aptek\w*|\bbar(?:y|ze|u|ów|em)?\b|kawiarn\w*|pizzeri\w*|"
    r"\bhotel\w*",
    _FLAGS,
)

_WEB_WORDS = re.compile(
    r"\b(?:pogod\w*|temperatur\w*|wynik\w*|mecz\w*|kurs\w*|cen[aęy]\b|"
    r"notowani\w*|aktualn\w*|wiadomo[śs]ci\s+ze\s+[śs]wiata)",
    _FLAGS,
)


def _normalise(transcript: str) -> str:
    return " ".join(transcript.strip().lower().split())


def _is_greeting(text: str) -> bool:
    if len(text) >= GREETING_MAX_LENGTH or _ACTION_KEYWORDS.search(text):
        return False
    return any(pattern.search(text) for pattern in _GREETING_PATTERNS)


def _needs_email(text: str) -> bool:
    if _EMAIL_WORDS.search(text):
        return True
    return bool(
        _MESSAGE_WORDS.search(text)
        and _SEND_VERBS.search(text)
        and not _SMS_WORDS.search(text)
    )


def _needs_calendar(text: str) -> bool:
    if _CALENDAR_WORD.search(text):
        return True
    return bool(_CALENDAR_KEYWORDS.search(text) and _TIME_HINTS.search(text))


def classify_local(transcript: str) -> IntentClassification:
    """Classify ``transcript`` with keyword and pattern rules only."""
    text = _normalise(transcript)
    if not text:
        return IntentClassification()

    if _is_greeting(text):
        return IntentClassification(is_simple_greeting=True, confidence=Confidence.HIGH)

    needs_sms = bool(_SMS_WORDS.search(text))
    needs_email = _needs_email(text)
    needs_calendar = _needs_calendar(text)
    needs_places = bool(_PLACES_WORDS.search(text))
    needs_web = bool(_WEB_WORDS.search(text)) and not needs_places
    needs_contacts = needs_sms or bool(_CONTACT_WORDS.search(text))

    if needs_email or needs_calendar or needs_sms:
        confidence = Confidence.HIGH
    elif needs_places or needs_web or needs_contacts:
        confidence = Confidence.MEDIUM
    else:
        confidence = Confidence.LOW

    return IntentClassification(
        needs_email=needs_email,
        needs_calendar=needs_calendar,
        needs_sms=needs_sms,
        needs_contacts=needs_contacts,
        is_simple_greeting=False,
        needs_web_search=needs_web,
        needs_places_search=needs_places,
        confidence=confidence,
    )


class IntentClassifier:
    """Accept local greetings outright; otherwise ask the model."""

    def __init__(
        self,
        model: StructuredModelProvider | None,
        *,
        model_name: str | None = None,
    ) -> None:
        """Store the structured model used for the second tier."""
        self._model = model
        self._model_name = model_name

    async def classify(self, transcript: str) -> IntentClassification:
        """Return the classification that drives the rest of the run."""
        local = classify_local(transcript)
        if local.is_fast_path:
            LOGGER.debug("Greeting fast path accepted for %r", transcript)
            return local
        return await self.classify_with_model(transcript, fallback=local)

    async def classify_with_model(
        self,
        transcript: str,
        *,
        fallback: IntentClassification | None = None,
    ) -> IntentClassification:
        """Run the model pass; any failure returns the local result."""
        if fallback is None:
            fallback = classify_local(transcript)
        payload = await extract_or_default(
            self._model,
            system_prompt=CLASSIFIER_SYSTEM_PROMPT,
            user_prompt=build_classification_prompt(transcript),
            schema=ClassificationPayload,
            default=None,
            label="intent classification",
            model=self._model_name,
        )
        if payload is None:
            return fallback
        classification = payload.to_classification()
        LOGGER.debug("Model classified %r as %s", transcript, classification)
        return classification


__all__ = ["GREETING_MAX_LENGTH", "IntentClassifier", "classify_local"]
