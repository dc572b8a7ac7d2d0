"""Render provider records as Polish context text for the reply model."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from voice_assistant.core.datetime_utils import format_day_and_time
from voice_assistant.core.models import (
    CalendarEvent,
    Contact,
    GmailQueryResult,
    MailMessage,
    Place,
)

MAIL_BODY_PREVIEW = 500
EVENT_DESCRIPTION_PREVIEW = 100


def _truncate(text: str, limit: int) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


def format_mail_context(messages: Sequence[MailMessage]) -> str:
    """List recent messages with sender, subject, date and a body preview."""
    if not messages:
        return "Brak wiadomości email w skrzynce odbiorczej."
    blocks = []
    for index, message in enumerate(messages, 1):
        unread = "[NIEPRZECZYTANA] " if message.is_unread else ""
        if message.date is not None:
            clock = _clock(message.date)
            date_line = f"{format_day_and_time(message.date)} (godzina: {clock})"
        else:
            date_line = format_day_and_time(None)
        lines = [
            f"{index}. {unread}Od: {message.sender}",
            f"Temat: {message.subject or '(bez tematu)'}",
            f"Data: {date_line}",
            f"Podgląd: {message.snippet}",
        ]
        if message.body:
            lines.append(f"Treść: {_truncate(message.body, MAIL_BODY_PREVIEW)}")
        blocks.append("\n".join(lines))
    return (
        f"Ostatnie wiadomości email użytkownika ({len(messages)}):\n\n"
        + "\n\n".join(blocks)
    )


def format_no_mail_context(query: GmailQueryResult, *, filtered: bool) -> str:
    """Tell the model that the mailbox search came back empty."""
    if filtered and query.sender_hint:
        return (
            "Sprawdzono skrzynkę email użytkownika: nie znaleziono wiadomości od "
            f'nadawcy "{query.sender_hint}" (zapytanie: {query.effective_query}). '
            "Poinformuj użytkownika, że nie ma takich wiadomości."
        )
    return (
        "Sprawdzono skrzynkę email użytkownika: brak wiadomości pasujących do "
        f"zapytania ({query.effective_query}). "
        "Poinformuj użytkownika, że nie znaleziono żadnych wiadomości."
    )


def format_calendar_context(events: Sequence[CalendarEvent], days_ahead: int) -> str:
    """List upcoming events with date, hours, place and description."""
    if not events:
        return f"Brak wydarzeń w kalendarzu w najbliższych {days_ahead} dniach."
    blocks = []
    for index, event in enumerate(events, 1):
        lines = [
            f"{index}. {event.summary or '(bez tytułu)'}",
            f"   Data: {format_day_and_time(event.start, with_time=False)}",
        ]
        if event.is_all_day:
            lines.append("   Godzina: Cały dzień")
        elif event.start is not None:
            hours = _clock(event.start)
            if event.end is not None:
                hours = f"{hours} - {_clock(event.end)}"
            lines.append(f"   Godzina: {hours}")
        if event.location:
            lines.append(f"   Miejsce: {event.location}")
        if event.description:
            description = _truncate(event.description, EVENT_DESCRIPTION_PREVIEW)
            lines.append(f"   Opis: {description}")
        blocks.append("\n".join(lines))
    return (
        f"Nadchodzące wydarzenia w kalendarzu ({len(events)}):\n\n"
        + "\n\n".join(blocks)
    )


def format_places_context(places: Sequence[Place]) -> str:
    """List nearby places with rating, distance, status and price."""
    if not places:
        return "Nie znaleziono żadnych miejsc w okolicy."
    blocks = []
    for index, place in enumerate(places, 1):
        lines = [f"{index}. {place.name}", f"   Adres: {place.address}"]
        if place.rating:
            lines.append(
                f"   Ocena: {place.rating}/5 ({place.user_ratings_total or 0} opinii)"
            )
        if place.distance_meters is not None:
            lines.append(f"   Odległość: {place.distance_meters / 1000:.1f} km")
        if place.open_now is not None:
            lines.append(f"   Status: {'Otwarte' if place.open_now else 'Zamknięte'}")
        if place.price_level is not None:
            lines.append(f"   Cena: {'💰' * place.price_level}")
        blocks.append("\n".join(lines))
    return "Znalezione miejsca w okolicy:\n\n" + "\n\n".join(blocks)


def format_contacts_context(contacts: Sequence[Contact]) -> str:
    """List contacts with their phone numbers and email addresses."""
    if not contacts:
        return "Brak kontaktów w książce adresowej."
    blocks = []
    for index, contact in enumerate(contacts, 1):
        lines = [f"{index}. {contact.name}"]
        full_name = f"{contact.first_name or ''} {contact.last_name or ''}".strip()
        if full_name and full_name != contact.name:
            lines.append(f"   Imię i nazwisko: {full_name}")
        if contact.phones:
            phones = ", ".join(
                phone.number + (f" ({phone.label})" if phone.label else "")
                for phone in contact.phones
            )
            lines.append(f"   Telefon: {phones}")
        if contact.emails:
            emails = ", ".join(
                item.email + (f" ({item.label})" if item.label else "")
                for item in contact.emails
            )
            lines.append(f"   Email: {emails}")
        blocks.append("\n".join(lines))
    return f"Kontakty użytkownika ({len(contacts)}):\n\n" + "\n\n".join(blocks)


def _clock(value: datetime) -> str:
    local = value.astimezone() if value.tzinfo is not None else value
    return f"{local:%H:%M}"


__all__ = [
    "format_calendar_context",
    "format_contacts_context",
    "format_mail_context",
    "format_no_mail_context",
    "format_places_context",
]
