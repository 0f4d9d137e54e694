"""Reusable builders and fakes for contact related tests."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from contactipy.domain.model import (
    Address,
    ContactName,
    ContactRecord,
    EmailAddress,
    Organization,
    PhoneNumber,
)
from contactipy.domain.ports.remote import ApplyOutcome, RecordSource, RemoteApplier

if TYPE_CHECKING:
    from collections.abc import Callable

    from contactipy.domain.model import QueueItem


def make_contact(
    record_id: str = "c1",
    *,
    given: str | None = "John",
    family: str | None = "Smith",
    middle: str | None = None,
    emails: Sequence[str] = (),
    phones: Sequence[str] = (),
    company: str | None = None,
    title: str | None = None,
    addresses: Iterable[Address] = (),
    notes: str | None = None,
) -> ContactRecord:
    """Create a contact with only the fields a test cares about."""

    return ContactRecord(
        id=record_id,
        name=ContactName(given=given, middle=middle, family=family),
        emails=tuple(EmailAddress(value=email) for email in emails),
        phones=tuple(PhoneNumber(value=phone) for phone in phones),
        organizations=(Organization(name=company, title=title),) if company or title else (),
        addresses=tuple(addresses),
        notes=notes,
    )


class FakeRecordSource(RecordSource):
    def __init__(self, records: Iterable[ContactRecord]) -> None:
        self.records = list(records)
        self.calls = 0

    def list_all(self) -> list[ContactRecord]:
        self.calls += 1
        return list(self.records)


class FakeRemoteApplier(RemoteApplier):
    """Remote applier scripted per subject id.

    ``outcomes`` maps a subject id to the outcome (or exception) to produce for it, anything
    else succeeds. ``default`` overrides the outcome for unscripted subjects.
    """

    def __init__(
        self,
        outcomes: dict[str, ApplyOutcome | BaseException] | None = None,
        *,
        default: ApplyOutcome | BaseException | None = None,
        on_apply: Callable[[QueueItem], None] | None = None,
    ) -> None:
        self.outcomes = outcomes or {}
        self.default = default or ApplyOutcome.ok()
        self.on_apply = on_apply
        self.applied: list[QueueItem] = []

    async def apply(self, item: QueueItem) -> ApplyOutcome:
        self.applied.append(item)
        if self.on_apply is not None:
            self.on_apply(item)
        await asyncio.sleep(0)
        outcome = self.outcomes.get(item.subject_record_id, self.default)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome
