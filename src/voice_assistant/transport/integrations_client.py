"""Mail and calendar access through the authenticated integrations backend."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import httpx

from voice_assistant.core.config import IntegrationsSettings
from voice_assistant.core.datetime_utils import ensure_utc, parse_datetime
from voice_assistant.core.errors import ProviderError
from voice_assistant.core.models import (
    AuthenticatedSession,
    CalendarEvent,
    CalendarStatus,
    MailMessage,
    MailStatus,
)

LOGGER = logging.getLogger(__name__)


class IntegrationsApiClient:
    """Bearer-authenticated JSON client unwrapping ``{success, data}`` envelopes."""

    def __init__(
        self,
        settings: IntegrationsSettings,
        session: AuthenticatedSession | None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Bind the backend and the session; no session means fail closed."""
        self._session = session
        self._client = client or httpx.AsyncClient(
            base_url=settings.base_url.rstrip("/") + "/",
            timeout=settings.timeout_seconds,
        )

    @property
    def has_session(self) -> bool:
        """Return ``True`` when requests can be authenticated."""
        return self._session is not None and bool(self._session.access_token)

    def mail(self) -> GmailIntegration:
        """Return the mailbox view of this backend."""
        return GmailIntegration(self)

    def calendar(self) -> CalendarIntegration:
        """Return the calendar view of this backend."""
        return CalendarIntegration(self)

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET ``path`` and return the unwrapped payload."""
        if self._session is None:
            raise ProviderError("No authenticated session")
        headers = {"Authorization": f"Bearer {self._session.access_token}"}
        LOGGER.debug("GET %s", path)
        try:
            response = await self._client.get(path, params=params, headers=headers)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            message = f"Integrations request to {path} failed: {exc}"
            raise ProviderError(message) from exc
        except ValueError as exc:
            raise ProviderError("Integrations backend returned invalid JSON") from exc
        return _unwrap(payload)

    async def aclose(self) -> None:
        """Release the underlying HTTP connections."""
        await self._client.aclose()


class GmailIntegration:
    """``MailProvider`` over ``/integrations/gmail``."""

    def __init__(self, api: IntegrationsApiClient) -> None:
        """Store the shared backend client."""
        self._api = api

    async def status(self) -> MailStatus:
        """Report whether a Gmail account is linked to the session."""
        if not self._api.has_session:
            return MailStatus(connected=False)
        data = await self._api.get("integrations/gmail/status")
        if not isinstance(data, dict):
            raise ProviderError("Unexpected Gmail status payload")
        return MailStatus(
            connected=bool(data.get("isConnected")), email=data.get("email")
        )

    async def search(self, query: str, max_results: int) -> list[MailMessage]:
        """Return messages matching a Gmail search query."""
        data = await self._api.get(
            "integrations/gmail/search",
            params={"query": query, "maxResults": max_results},
        )
        if not isinstance(data, list):
            raise ProviderError("Unexpected Gmail search payload")
        return [_parse_message(item) for item in data if isinstance(item, dict)]


class CalendarIntegration:
    """``CalendarProvider`` over ``/integrations/calendar``."""

    def __init__(self, api: IntegrationsApiClient) -> None:
        """Store the shared backend client."""
        self._api = api

    async def status(self) -> CalendarStatus:
        """Report whether a calendar account is linked to the session."""
        if not self._api.has_session:
            return CalendarStatus(connected=False)
        data = await self._api.get("integrations/calendar/status")
        if not isinstance(data, dict):
            raise ProviderError("Unexpected calendar status payload")
        return CalendarStatus(connected=bool(data.get("isConnected")))

    async def list_events(
        self, time_min: datetime, time_max: datetime, max_results: int
    ) -> list[CalendarEvent]:
        """Return primary-calendar events starting inside the window."""
        data = await self._api.get(
            "integrations/calendar/events",
            params={
                "calendarId": "primary",
                "timeMin": _iso(time_min),
                "timeMax": _iso(time_max),
                "maxResults": max_results,
            },
        )
        if not isinstance(data, list):
            raise ProviderError("Unexpected calendar events payload")
        return [_parse_event(item) for item in data if isinstance(item, dict)]


def _unwrap(payload: Any) -> Any:
    if isinstance(payload, dict) and payload.get("success") is True:
        return payload.get("data")
    return payload


def _iso(value: datetime) -> str:
    normalised = ensure_utc(value) or value
    return normalised.isoformat().replace("+00:00", "Z")


def _parse_date(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return parse_datetime(value, assume_utc=True)
    except ValueError:
        LOGGER.debug("Unparseable date %r", value)
        return None


def _parse_message(item: dict[str, Any]) -> MailMessage:
    return MailMessage(
        id=str(item.get("id", "")),
        thread_id=item.get("threadId"),
        subject=item.get("subject") or "",
        sender=item.get("from") or "",
        date=_parse_date(item.get("date")),
        snippet=item.get("snippet") or "",
        body=item.get("body"),
        is_unread=bool(item.get("isUnread")),
    )


def _parse_boundary(value: Any) -> tuple[datetime | None, bool]:
    if not isinstance(value, dict):
        return None, False
    if value.get("dateTime"):
        return _parse_date(value["dateTime"]), False
    if value.get("date"):
        return _parse_date(value["date"]), True
    return None, False


def _parse_event(item: dict[str, Any]) -> CalendarEvent:
    start, start_is_date = _parse_boundary(item.get("start"))
    end, _ = _parse_boundary(item.get("end"))
    return CalendarEvent(
        id=str(item.get("id", "")),
        summary=item.get("summary") or "",
        start=start,
        end=end,
        is_all_day=bool(item.get("isAllDay", start_is_date)),
        location=item.get("location"),
        description=item.get("description"),
    )


__all__ = [
    "CalendarIntegration",
    "GmailIntegration",
    "IntegrationsApiClient",
]
