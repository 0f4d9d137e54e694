"""Ports for persisting queue items and contact records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence
    from datetime import datetime

    from contactipy.domain.model import (
        ContactRecord,
        QueueItem,
        QueueQuery,
        QueueStatus,
        RecordOrigin,
    )


class StoreUnavailableError(RuntimeError):
    """Raised when the persistent store cannot be reached or fails mid-operation."""


@runtime_checkable
class QueueItemRepository(Protocol):
    """Persistence contract for queued change operations.

    Status changes are conditional: they only touch rows whose current status is one of
    ``from_statuses`` and report which rows actually moved.
    """

    def add(self, item: QueueItem) -> QueueItem: ...

    def get(self, item_id: int) -> QueueItem | None: ...

    def query(self, query: QueueQuery) -> list[QueueItem]: ...

    def count_by_status(self) -> dict[QueueStatus, int]: ...

    def transition(
        self,
        item_ids: Sequence[int],
        *,
        from_statuses: Collection[QueueStatus],
        to_status: QueueStatus,
        below_retry_count: int | None = None,
        at: datetime | None = None,
    ) -> list[int]: ...

    def record_failure(self, item_id: int, message: str) -> bool: ...

    def remove(self, item_id: int) -> bool: ...

    def remove_with_status(self, status: QueueStatus) -> int: ...


@runtime_checkable
class ContactRepository(Protocol):
    """Keyed storage for contact records."""

    def get(self, record_id: str) -> ContactRecord | None: ...

    def save(self, record: ContactRecord, *, origin: RecordOrigin, synced: bool) -> None: ...

    def list_all(self) -> list[ContactRecord]: ...

    def remove(self, record_id: str) -> bool: ...
