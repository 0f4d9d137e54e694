"""Queued change operations and their lifecycle."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from contactipy.domain.normalize import contact_fingerprint

if TYPE_CHECKING:
    from .contact import ContactRecord


class QueueOperation(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class QueueStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SYNCING = "syncing"
    SYNCED = "synced"
    FAILED = "failed"


ACTIVE_STATUSES: Final[frozenset[QueueStatus]] = frozenset(
    {QueueStatus.PENDING, QueueStatus.APPROVED}
)
"""Statuses that still represent an outstanding proposal for a subject."""

REVIEWABLE_STATUSES: Final[frozenset[QueueStatus]] = frozenset(
    {QueueStatus.PENDING, QueueStatus.FAILED}
)
"""Statuses a reviewer may approve or reject (failed only while below the retry ceiling)."""


class InvalidQueueItemError(ValueError):
    """Raised when a queue item lacks the data its operation requires."""


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True, kw_only=True)
class QueueItem:
    """A proposed change to one contact, waiting for review or synchronisation."""

    subject_record_id: str
    operation: QueueOperation
    data_before: ContactRecord | None = None
    data_after: ContactRecord | None = None
    origin_tag: str | None = None
    status: QueueStatus = QueueStatus.PENDING
    reviewed: bool = False
    approved: bool = False
    retry_count: int = 0
    error_message: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    reviewed_at: datetime | None = None
    synced_at: datetime | None = None
    id: int | None = None

    def __post_init__(self) -> None:
        if self.operation in {QueueOperation.CREATE, QueueOperation.UPDATE} and (
            self.data_after is None
        ):
            raise InvalidQueueItemError(f"{self.operation} requires data_after")
        if self.operation in {QueueOperation.UPDATE, QueueOperation.DELETE} and (
            self.data_before is None
        ):
            raise InvalidQueueItemError(f"{self.operation} requires data_before")
        if self.retry_count < 0:
            raise InvalidQueueItemError("retry_count cannot be negative")

    @property
    def data_hash_after(self) -> str | None:
        if self.data_after is None:
            return None
        return contact_fingerprint(self.data_after)

    @property
    def proposal_fingerprint(self) -> str | None:
        """Fingerprint of what this item would write (or remove, for deletes)."""

        if self.operation is QueueOperation.DELETE:
            return contact_fingerprint(self.data_before) if self.data_before else None
        return self.data_hash_after

    def can_retry(self, max_retries: int) -> bool:
        return self.retry_count < max_retries


@dataclass(slots=True, frozen=True, kw_only=True)
class QueueQuery:
    """Filter used to list queue items; ``None`` fields do not constrain the result."""

    statuses: frozenset[QueueStatus] | None = None
    subject_record_id: str | None = None
    operation: QueueOperation | None = None
    origin_tag: str | None = None
    limit: int | None = None
    offset: int = 0

    @classmethod
    def with_status(cls, *statuses: QueueStatus) -> QueueQuery:
        return cls(statuses=frozenset(statuses))


@dataclass(slots=True, frozen=True)
class QueueStats:
    counts: dict[QueueStatus, int]

    def __getitem__(self, status: QueueStatus) -> int:
        return self.counts.get(status, 0)

    @property
    def total(self) -> int:
        return sum(self.counts.values())
