"""Address book backed by a JSON export of the device contacts."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from voice_assistant.core.errors import ProviderError
from voice_assistant.core.models import (
    Contact,
    ContactEmail,
    ContactPhone,
    ContactsStatus,
)

LOGGER = logging.getLogger(__name__)

UNNAMED_CONTACT = "Bez nazwy"


class _PhoneRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    number: str = ""
    label: str | None = None


class _EmailRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: str = ""
    label: str | None = None


class _ContactRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str | int = ""
    name: str | None = None
    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")
    phone_numbers: list[_PhoneRecord] = Field(
        default_factory=list, alias="phoneNumbers"
    )
    emails: list[_EmailRecord] = Field(default_factory=list)

    def to_contact(self) -> Contact:
        full_name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return Contact(
            id=str(self.id),
            name=self.name or full_name or UNNAMED_CONTACT,
            first_name=self.first_name,
            last_name=self.last_name,
            phones=tuple(
                ContactPhone(number=phone.number, label=phone.label)
                for phone in self.phone_numbers
                if phone.number
            ),
            emails=tuple(
                ContactEmail(email=item.email, label=item.label)
                for item in self.emails
                if item.email
            ),
        )


class JsonContactsProvider:
    """``ContactsProvider`` reading a list of contact objects from disk."""

    def __init__(self, path: Path | str | None) -> None:
        """Remember the export location; ``None`` means no address book."""
        self._path = Path(path).expanduser() if path is not None else None

    async def status(self) -> ContactsStatus:
        """Grant permission only when the export file exists."""
        return ContactsStatus(
            has_permission=self._path is not None and self._path.is_file()
        )

    async def list_all(self) -> list[Contact]:
        """Return every contact in the export."""
        if self._path is None or not self._path.is_file():
            return []
        raw = await asyncio.to_thread(self._path.read_text, encoding="utf-8")
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ProviderError(f"Contacts export {self._path} is not JSON") from exc
        if isinstance(payload, dict):
            payload = payload.get("contacts", [])
        if not isinstance(payload, list):
            raise ProviderError("Contacts export must contain a list of contacts")

        contacts: list[Contact] = []
        for index, item in enumerate(payload):
            try:
                contacts.append(_ContactRecord.model_validate(item).to_contact())
            except ValidationError as exc:
                LOGGER.warning("Skipping contact #%d: %s", index, exc)
        return contacts

    async def find_by_name(self, name: str, *, exact: bool = False) -> Contact | None:
        """Return the first exact name match, else the first partial match."""
        wanted = name.strip().lower()
        if not wanted:
            return None
        contacts = await self.list_all()
        for contact in contacts:
            if wanted in _exact_keys(contact):
                return contact
        if exact:
            return None
        for matcher in (_contains_wanted, _wanted_contains):
            for contact in contacts:
                if matcher(contact, wanted):
                    return contact
        return None


def _exact_keys(contact: Contact) -> set[str]:
    first = (contact.first_name or "").lower()
    last = (contact.last_name or "").lower()
    keys = {contact.name.lower(), first, last, f"{first} {last}".strip()}
    keys.discard("")
    return keys


def _contains_wanted(contact: Contact, wanted: str) -> bool:
    parts = (contact.name, contact.first_name, contact.last_name)
    return any(wanted in part.lower() for part in parts if part)


def _wanted_contains(contact: Contact, wanted: str) -> bool:
    # The spoken name may carry a surname or suffix the contact lacks.
    names = ((contact.first_name or "").lower(), (contact.last_name or "").lower())
    return any(part and part in wanted for part in names)


__all__ = ["JsonContactsProvider"]
