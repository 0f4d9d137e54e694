"""Ports for the remote record store and record sources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from contactipy.domain.model import ContactRecord, QueueItem


@dataclass(slots=True, frozen=True)
class ApplyOutcome:
    """Result of applying one queue item remotely.

    ``record`` optionally carries the remote's version of the contact after the write.
    """

    success: bool
    error: str | None = None
    record: ContactRecord | None = None

    @classmethod
    def ok(cls, record: ContactRecord | None = None) -> ApplyOutcome:
        return cls(success=True, record=record)

    @classmethod
    def failed(cls, error: str) -> ApplyOutcome:
        return cls(success=False, error=error or "Unknown error")


@runtime_checkable
class RemoteApplier(Protocol):
    """Applies a queued change to the remote store."""

    async def apply(self, item: QueueItem) -> ApplyOutcome: ...


@runtime_checkable
class RecordSource(Protocol):
    """Anything that can list contact records (a file import, a remote API, the local store)."""

    def list_all(self) -> Sequence[ContactRecord]: ...
