"""Concurrent, fault-isolated collection of mail, calendar, places and contacts."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from voice_assistant.core.config import CalendarSettings, MailSettings, PlacesSettings
from voice_assistant.core.interfaces import (
    CalendarProvider,
    ContactsProvider,
    MailProvider,
    PlacesProvider,
)
from voice_assistant.core.models import (
    Contact,
    ContextFragment,
    GmailQueryResult,
    IntentClassification,
    Place,
    ProcessingStatus,
    VoiceProcessOptions,
)
from voice_assistant.intelligence.mail_query import (
    DEFAULT_QUERY_RESULT,
    MailQueryService,
)

from .formatters import (
    format_calendar_context,
    format_contacts_context,
    format_mail_context,
    format_no_mail_context,
    format_places_context,
)

LOGGER = logging.getLogger(__name__)

CALLER = "caller"
MAIL = "mail"
CALENDAR = "calendar"
PLACES = "places"
CONTACTS = "contacts"

StatusNotifier = Callable[[ProcessingStatus], Awaitable[None]]

_NAME_PATTERN = re.compile(
    r"\b(?:do|dla|od|z|ze|u|numer(?:u)?|telefon(?:u)?|kontakt(?:u)?|adres)\s+"
    r"(?:do\s+)?([A-ZĄĆĘŁŃÓŚŹŻ][a-ząćęłńóśźż]{2,})"
)
_DECLENSION_SUFFIXES = ("owi", "em", "ie", "a", "y", "i", "u")


def extract_person_name(transcript: str) -> str | None:
    """Return the capitalised name following a preposition, if any."""
    match = _NAME_PATTERN.search(transcript)
    return match.group(1) if match else None


def name_candidates(name: str) -> list[str]:
    """Return ``name`` followed by plausible nominative stems."""
    candidates = [name]
    for suffix in _DECLENSION_SUFFIXES:
        if name.lower().endswith(suffix) and len(name) - len(suffix) >= 3:
            stem = name[: -len(suffix)]
            candidates.append(stem)
            if suffix in {"i", "y"}:
                candidates.append(f"{stem}a")
    if name.lower().endswith("i") and len(name) >= 3:
        candidates.append(f"{name}a")
    return list(dict.fromkeys(candidates))


def rank_places(places: list[Place], limit: int) -> list[Place]:
    """Order places nearest first, unknown distances last."""
    ordered = sorted(
        places,
        key=lambda place: (
            place.distance_meters is None,
            place.distance_meters or 0.0,
        ),
    )
    return ordered[:limit]


# pylint: disable=too-many-instance-attributes
@dataclass(slots=True)
class AggregatedContext:
    """Fragments from every source plus the connectivity they revealed."""

    caller: ContextFragment
    mail: ContextFragment
    calendar: ContextFragment
    places: ContextFragment
    contacts: ContextFragment
    mail_connected: bool = False
    calendar_connected: bool = False
    contacts_available: bool = False

    @property
    def fragments(self) -> tuple[ContextFragment, ...]:
        """Return fragments in the order they are combined."""
        return (self.caller, self.mail, self.calendar, self.places, self.contacts)

    def combined_text(self) -> str | None:
        """Concatenate the available fragments, or ``None`` when there are none."""
        parts = [
            fragment.text
            for fragment in self.fragments
            if fragment.available and fragment.text
        ]
        return "\n\n".join(parts) if parts else None

    @classmethod
    def from_caller(cls, context: str | None) -> AggregatedContext:
        """Return a result carrying only the caller-supplied context."""
        return cls(
            caller=_caller_fragment(context),
            mail=ContextFragment.unavailable(MAIL),
            calendar=ContextFragment.unavailable(CALENDAR),
            places=ContextFragment.unavailable(PLACES),
            contacts=ContextFragment.unavailable(CONTACTS),
        )


@dataclass(slots=True)
class _BranchOutcome:
    fragment: ContextFragment
    connected: bool = False


class ContextAggregator:
    """Fan out to the context providers the classification asks for."""

    # pylint: disable=too-many-arguments
    def __init__(
        self,
        *,
        mail: MailProvider | None = None,
        calendar: CalendarProvider | None = None,
        places: PlacesProvider | None = None,
        contacts: ContactsProvider | None = None,
        mail_query: MailQueryService | None = None,
        mail_settings: MailSettings | None = None,
        calendar_settings: CalendarSettings | None = None,
        places_settings: PlacesSettings | None = None,
    ) -> None:
        """Bind providers; a missing provider means its source is unavailable."""
        self._mail = mail
        self._calendar = calendar
        self._places = places
        self._contacts = contacts
        self._mail_query = mail_query
        self._mail_settings = mail_settings or MailSettings()
        self._calendar_settings = calendar_settings or CalendarSettings()
        self._places_settings = places_settings or PlacesSettings()

    async def gather(
        self,
        transcript: str,
        classification: IntentClassification,
        options: VoiceProcessOptions,
        *,
        now: datetime | None = None,
        on_status: StatusNotifier | None = None,
    ) -> AggregatedContext:
        """Run every gated branch concurrently and wait for all of them."""
        now = now or datetime.now(tz=UTC)
        notify = on_status or _ignore_status

        mail_branch = calendar_branch = places_branch = contacts_branch = None
        if classification.needs_email and self._mail is not None:
            mail_branch = self._mail_branch(self._mail, transcript, now, notify)
        if classification.needs_calendar and self._calendar is not None:
            calendar_branch = self._calendar_branch(self._calendar, now, notify)
        if (
            classification.needs_places_search
            and self._places is not None
            and options.has_coordinates
        ):
            places_branch = self._places_branch(self._places, transcript, options)
        if classification.needs_contacts and self._contacts is not None:
            contacts_branch = self._contacts_branch(self._contacts, transcript, notify)

        mail, calendar, places, contacts = await asyncio.gather(
            _isolate(MAIL, mail_branch),
            _isolate(CALENDAR, calendar_branch),
            _isolate(PLACES, places_branch),
            _isolate(CONTACTS, contacts_branch),
        )
        return AggregatedContext(
            caller=_caller_fragment(options.context),
            mail=mail.fragment,
            calendar=calendar.fragment,
            places=places.fragment,
            contacts=contacts.fragment,
            mail_connected=mail.connected,
            calendar_connected=calendar.connected,
            contacts_available=contacts.fragment.available,
        )

    async def _mail_branch(
        self,
        mail: MailProvider,
        transcript: str,
        now: datetime,
        notify: StatusNotifier,
    ) -> _BranchOutcome:
        await notify(ProcessingStatus.CHECKING_EMAIL)
        status = await mail.status()
        if not status.connected:
            LOGGER.debug("Mail not connected; skipping search")
            return _BranchOutcome(ContextFragment.unavailable(MAIL))
        try:
            fragment = await self._mail_fragment(mail, transcript, now)
        except Exception as exc:  # noqa: BLE001 - connectivity is still known
            LOGGER.warning("Mail context failed after status check: %s", exc)
            fragment = ContextFragment.unavailable(MAIL)
        return _BranchOutcome(fragment, connected=True)

    async def _mail_fragment(
        self, mail: MailProvider, transcript: str, now: datetime
    ) -> ContextFragment:
        query: GmailQueryResult = DEFAULT_QUERY_RESULT
        if self._mail_query is not None:
            query = await self._mail_query.generate_query(transcript, now)
        messages = await mail.search(
            query.effective_query, self._mail_settings.max_candidates
        )
        if not messages:
            return ContextFragment(
                MAIL, format_no_mail_context(query, filtered=False), available=True
            )
        if query.has_sender and self._mail_query is not None:
            messages = await self._mail_query.filter_by_sender(
                messages, transcript, query.sender_hint
            )
            if not messages:
                return ContextFragment(
                    MAIL, format_no_mail_context(query, filtered=True), available=True
                )
        shown = messages[: self._mail_settings.max_context_messages]
        return ContextFragment(MAIL, format_mail_context(shown), available=True)

    async def _calendar_branch(
        self, calendar: CalendarProvider, now: datetime, notify: StatusNotifier
    ) -> _BranchOutcome:
        await notify(ProcessingStatus.CHECKING_CALENDAR)
        status = await calendar.status()
        if not status.connected:
            return _BranchOutcome(ContextFragment.unavailable(CALENDAR))
        days = self._calendar_settings.days_ahead
        try:
            events = await calendar.list_events(
                now, now + timedelta(days=days), self._calendar_settings.max_events
            )
        except Exception as exc:  # noqa: BLE001 - connectivity is still known
            LOGGER.warning("Calendar events failed after status check: %s", exc)
            events = []
        if not events:
            return _BranchOutcome(ContextFragment.unavailable(CALENDAR), connected=True)
        text = format_calendar_context(events, days)
        return _BranchOutcome(
            ContextFragment(CALENDAR, text, available=True), connected=True
        )

    async def _places_branch(
        self,
        places_provider: PlacesProvider,
        transcript: str,
        options: VoiceProcessOptions,
    ) -> _BranchOutcome:
        settings = self._places_settings
        latitude = float(options.latitude or 0.0)
        longitude = float(options.longitude or 0.0)
        places = await places_provider.search(
            latitude,
            longitude,
            transcript,
            settings.radius_meters,
            settings.max_results,
        )
        ranked = rank_places(places, settings.max_results)
        if not ranked:
            return _BranchOutcome(ContextFragment.unavailable(PLACES))
        text = format_places_context(ranked)
        return _BranchOutcome(
            ContextFragment(PLACES, text, available=True), connected=True
        )

    async def _contacts_branch(
        self,
        contacts_provider: ContactsProvider,
        transcript: str,
        notify: StatusNotifier,
    ) -> _BranchOutcome:
        await notify(ProcessingStatus.CHECKING_CONTACTS)
        status = await contacts_provider.status()
        if not status.has_permission:
            return _BranchOutcome(ContextFragment.unavailable(CONTACTS))
        contacts = await _lookup_contacts(contacts_provider, transcript)
        if not contacts:
            return _BranchOutcome(ContextFragment.unavailable(CONTACTS), connected=True)
        text = format_contacts_context(contacts)
        return _BranchOutcome(
            ContextFragment(CONTACTS, text, available=True), connected=True
        )


async def _lookup_contacts(
    provider: ContactsProvider, transcript: str
) -> list[Contact]:
    name = extract_person_name(transcript)
    if name is not None:
        candidates = name_candidates(name)
        # Every declension stem gets an exact attempt before any partial match.
        for exact in (True, False):
            for candidate in candidates:
                contact = await provider.find_by_name(candidate, exact=exact)
                if contact is not None:
                    LOGGER.debug("Narrowed contacts to %r via %r", contact.name, name)
                    return [contact]
    return await provider.list_all()


async def _isolate(
    name: str, branch: Awaitable[_BranchOutcome] | None
) -> _BranchOutcome:
    if branch is None:
        return _BranchOutcome(ContextFragment.unavailable(name))
    try:
        return await branch
    except Exception as exc:  # noqa: BLE001 - bulkhead between sibling branches
        LOGGER.warning("Context branch '%s' failed: %s", name, exc)
        return _BranchOutcome(ContextFragment.unavailable(name))


async def _ignore_status(_status: ProcessingStatus) -> None:
    return None


def _caller_fragment(context: str | None) -> ContextFragment:
    text = context.strip() if context else None
    return ContextFragment(CALLER, text or None, available=bool(text))


__all__ = [
    "AggregatedContext",
    "ContextAggregator",
    "StatusNotifier",
    "extract_person_name",
    "name_candidates",
    "rank_places",
]
