"""Contacts exported as ContactsPlus JSON, read from disk."""

from __future__ import annotations

import json
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from .schema import ContactPayload
from .translator import parse_contact

if TYPE_CHECKING:
    from contactipy.domain.model import ContactRecord
    from contactipy.domain.ports.remote import RecordSource

log = getLogger(__name__)


class ContactsJsonFileSource:
    """Reads a list of contacts, a single contact, or a ``{"contacts": [...]}`` page.

    Contacts without a ``contactId`` get ``<file stem>-<position>`` so re-importing the same
    file proposes the same changes.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def list_all(self) -> list[ContactRecord]:
        log.info("Loading contacts from %s", self.path)
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if isinstance(data, dict) and "contacts" in data:
            data = data["contacts"]
        entries = data if isinstance(data, list) else [data]

        records: list[ContactRecord] = []
        for position, entry in enumerate(entries, start=1):
            if not isinstance(entry, dict):
                raise ValueError(f"{self.path}: entry {position} is not an object")
            payload = dict(entry)
            payload.setdefault("contactId", f"{self.path.stem}-{position}")
            records.append(parse_contact(ContactPayload.model_validate(payload)))
        return records


if TYPE_CHECKING:
    _source_check: RecordSource = ContactsJsonFileSource("contacts.json")
