"""Queue store: the only way queued changes and stored records are mutated.

Items move through ``pending -> approved -> syncing -> synced | failed``. ``failed`` items
go back to ``approved`` only by re-approval while their retry count is below the ceiling,
``rejected`` and ``synced`` are terminal. Every status change is a conditional update, so a
call against an item in the wrong state is a no-op rather than an error.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from contactipy.config.sync import DEFAULT_MAX_RETRIES
from contactipy.domain.model import (
    ACTIVE_STATUSES,
    REVIEWABLE_STATUSES,
    QueueItem,
    QueueOperation,
    QueueQuery,
    QueueStats,
    QueueStatus,
    RecordOrigin,
)
from contactipy.domain.ports.unit_of_work import QueueUnitOfWork

if TYPE_CHECKING:
    from collections.abc import Iterable

    from contactipy.domain.model import ContactRecord

log = getLogger(__name__)

UnitOfWorkFactory = Callable[[], QueueUnitOfWork]

STALLED_MESSAGE = "Sync was interrupted before the result was recorded"


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True, frozen=True)
class EnqueueResult:
    item: QueueItem
    created: bool


class QueueStore:
    """Durable, ordered queue of proposed contact changes."""

    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        *,
        max_retries: int = DEFAULT_MAX_RETRIES,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self.max_retries = max_retries
        self._clock = clock

    # Enqueue ---------------------------------------------------------------

    def enqueue(
        self,
        subject_record_id: str,
        operation: QueueOperation,
        *,
        data_after: ContactRecord | None = None,
        data_before: ContactRecord | None = None,
        origin_tag: str | None = None,
    ) -> QueueItem:
        """Queue a change, or return the equivalent active item if one is already queued."""

        item = QueueItem(
            subject_record_id=subject_record_id,
            operation=operation,
            data_after=data_after,
            data_before=data_before,
            origin_tag=origin_tag,
            created_at=self._clock(),
        )
        return self.submit(item).item

    def submit(self, item: QueueItem) -> EnqueueResult:
        with self._unit_of_work_factory() as uow:
            existing = self._find_equivalent(uow, item)
            if existing is not None:
                log.info(
                    "Skipping duplicate %s for %s (already queued as #%s)",
                    item.operation,
                    item.subject_record_id,
                    existing.id,
                )
                return EnqueueResult(item=existing, created=False)
            stored = uow.repositories.queue.add(item)
            uow.commit()
        log.debug("Queued #%s: %s %s", stored.id, stored.operation, stored.subject_record_id)
        return EnqueueResult(item=stored, created=True)

    def _find_equivalent(self, uow: QueueUnitOfWork, item: QueueItem) -> QueueItem | None:
        fingerprint = item.proposal_fingerprint
        active = uow.repositories.queue.query(
            QueueQuery(
                statuses=ACTIVE_STATUSES,
                subject_record_id=item.subject_record_id,
                operation=item.operation,
            )
        )
        for candidate in active:
            if candidate.proposal_fingerprint == fingerprint:
                return candidate
        return None

    # Review ----------------------------------------------------------------

    def approve(self, item_ids: Iterable[int]) -> list[int]:
        """Approve pending items and failed items still below the retry ceiling."""

        return self._review(item_ids, QueueStatus.APPROVED)

    def reject(self, item_ids: Iterable[int]) -> list[int]:
        return self._review(item_ids, QueueStatus.REJECTED)

    def retry_failed(self) -> list[int]:
        """Re-approve every failed item that may still be retried."""

        failed = self.list_items(QueueQuery.with_status(QueueStatus.FAILED))
        return self.approve(item.id for item in failed if item.id is not None)

    def _review(self, item_ids: Iterable[int], to_status: QueueStatus) -> list[int]:
        ids = list(dict.fromkeys(item_ids))
        if not ids:
            return []
        with self._unit_of_work_factory() as uow:
            changed = uow.repositories.queue.transition(
                ids,
                from_statuses=REVIEWABLE_STATUSES,
                to_status=to_status,
                below_retry_count=self.max_retries,
                at=self._clock(),
            )
            uow.commit()
        ignored = len(ids) - len(changed)
        log.info(
            "Marked %s item(s) %s%s",
            len(changed),
            to_status,
            f" ({ignored} not eligible)" if ignored else "",
        )
        return changed

    # Reads -----------------------------------------------------------------

    def list_items(self, query: QueueQuery | None = None) -> list[QueueItem]:
        with self._unit_of_work_factory() as uow:
            return uow.repositories.queue.query(query or QueueQuery())

    def get(self, item_id: int) -> QueueItem | None:
        with self._unit_of_work_factory() as uow:
            return uow.repositories.queue.get(item_id)

    def approved(self) -> list[QueueItem]:
        return self.list_items(QueueQuery.with_status(QueueStatus.APPROVED))

    def stats(self) -> QueueStats:
        with self._unit_of_work_factory() as uow:
            return QueueStats(counts=uow.repositories.queue.count_by_status())

    # Removal ---------------------------------------------------------------

    def delete(self, item_id: int) -> bool:
        with self._unit_of_work_factory() as uow:
            removed = uow.repositories.queue.remove(item_id)
            uow.commit()
        if removed:
            log.info("Deleted queue item #%s", item_id)
        return removed

    def prune_synced(self) -> int:
        with self._unit_of_work_factory() as uow:
            removed = uow.repositories.queue.remove_with_status(QueueStatus.SYNCED)
            uow.commit()
        if removed:
            log.info("Pruned %s synced item(s)", removed)
        return removed

    # Execution -------------------------------------------------------------

    def claim(self, item_id: int) -> bool:
        """Move an approved item to ``syncing``; ``False`` means someone else holds it."""

        with self._unit_of_work_factory() as uow:
            changed = uow.repositories.queue.transition(
                [item_id],
                from_statuses=(QueueStatus.APPROVED,),
                to_status=QueueStatus.SYNCING,
            )
            uow.commit()
        return bool(changed)

    def complete(self, item_id: int, *, record: ContactRecord | None = None) -> bool:
        """Mark a syncing item synced, storing the remote's copy of the record if given."""

        with self._unit_of_work_factory() as uow:
            changed = uow.repositories.queue.transition(
                [item_id],
                from_statuses=(QueueStatus.SYNCING,),
                to_status=QueueStatus.SYNCED,
                at=self._clock(),
            )
            if changed and record is not None:
                uow.repositories.contacts.save(record, origin=RecordOrigin.REMOTE, synced=True)
            uow.commit()
        return bool(changed)

    def fail(self, item_id: int, message: str) -> bool:
        """Mark a syncing item failed and count the attempt."""

        with self._unit_of_work_factory() as uow:
            changed = uow.repositories.queue.record_failure(item_id, message)
            uow.commit()
        return changed

    def release_stalled(self, message: str = STALLED_MESSAGE) -> list[int]:
        """Fail every item still ``syncing`` so an interrupted attempt can be re-approved.

        Only call this while no sync run is active on the store: any ``syncing`` item is then
        left over from a run that died between claiming it and recording the result.
        """

        with self._unit_of_work_factory() as uow:
            stalled = uow.repositories.queue.query(QueueQuery.with_status(QueueStatus.SYNCING))
            released = [
                item.id
                for item in stalled
                if item.id is not None
                and uow.repositories.queue.record_failure(item.id, message)
            ]
            uow.commit()
        if released:
            log.warning("Released %s item(s) left syncing by an interrupted run", len(released))
        return released

    # Records ---------------------------------------------------------------

    def get_record(self, record_id: str) -> ContactRecord | None:
        with self._unit_of_work_factory() as uow:
            return uow.repositories.contacts.get(record_id)

    def save_record(
        self,
        record: ContactRecord,
        *,
        origin: RecordOrigin = RecordOrigin.LOCAL,
        synced: bool = False,
    ) -> None:
        with self._unit_of_work_factory() as uow:
            uow.repositories.contacts.save(record, origin=origin, synced=synced)
            uow.commit()

    def save_records(
        self,
        records: Iterable[ContactRecord],
        *,
        origin: RecordOrigin,
        synced: bool,
    ) -> int:
        saved = 0
        with self._unit_of_work_factory() as uow:
            for record in records:
                uow.repositories.contacts.save(record, origin=origin, synced=synced)
                saved += 1
            uow.commit()
        return saved

    def list_records(self) -> list[ContactRecord]:
        with self._unit_of_work_factory() as uow:
            return uow.repositories.contacts.list_all()
