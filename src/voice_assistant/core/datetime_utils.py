"""Datetime helpers shared across the application."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta

__all__ = [
    "POLISH_WEEKDAYS",
    "RelativeDates",
    "compute_relative_dates",
    "ensure_utc",
    "format_day_and_time",
    "gmail_date",
    "parse_datetime",
]

POLISH_WEEKDAYS: tuple[str, ...] = (
    "poniedziałek",
    "wtorek",
    "środa",
    "czwartek",
    "piątek",
    "sobota",
    "niedziela",
)


@dataclass(frozen=True, slots=True)
class RelativeDates:
    """Calendar anchors the query model resolves relative phrases against."""

    today: date
    yesterday: date
    last_week: date
    last_month: date
    weekdays: dict[str, date]


def ensure_utc(value: datetime | None) -> datetime | None:
    """Return ``value`` converted to UTC when timezone-aware."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC)


def parse_datetime(value: str | None, *, assume_utc: bool = False) -> datetime | None:
    """Parse an ISO 8601 string into a ``datetime`` instance."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None and assume_utc:
        return parsed.replace(tzinfo=UTC)
    return parsed


def compute_relative_dates(now: datetime) -> RelativeDates:
    """Return today, yesterday, a week and a month back, and recent weekdays."""
    today = now.date()
    weekdays: dict[str, date] = {}
    for offset in range(7):
        day = today - timedelta(days=offset)
        weekdays.setdefault(POLISH_WEEKDAYS[day.weekday()], day)
    return RelativeDates(
        today=today,
        yesterday=today - timedelta(days=1),
        last_week=today - timedelta(days=7),
        last_month=today - timedelta(days=30),
        weekdays=weekdays,
    )


def gmail_date(value: date) -> str:
    """Format ``value`` the way mailbox search operators expect it."""
    return value.strftime("%Y/%m/%d")


def format_day_and_time(value: datetime | None, *, with_time: bool = True) -> str:
    """Return e.g. ``"poniedziałek, 06.10.2025 14:05"`` for context text."""
    if value is None:
        return "data nieznana"
    local = value.astimezone() if value.tzinfo is not None else value
    weekday = POLISH_WEEKDAYS[local.weekday()]
    if not with_time:
        return f"{weekday}, {local.strftime('%d.%m.%Y')}"
    return f"{weekday}, {local.strftime('%d.%m.%Y %H:%M')}"
