"""SQLAlchemy-backed repositories for queue items and contact records."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, func, insert, select, update

from contactipy.domain.model import QueueItem, QueueQuery, QueueStatus
from contactipy.domain.normalize import contact_fingerprint

from .mappings import contact_table, sync_queue_table

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence

    from sqlalchemy import Row
    from sqlalchemy.orm import Session
    from sqlalchemy.sql import Select

    from contactipy.domain.model import ContactRecord, RecordOrigin


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _status_values(to_status: QueueStatus, at: datetime) -> dict[str, Any]:
    values: dict[str, Any] = {"status": to_status}
    if to_status is QueueStatus.APPROVED:
        values.update(reviewed=True, approved=True, reviewed_at=at)
    elif to_status is QueueStatus.REJECTED:
        values.update(reviewed=True, approved=False, reviewed_at=at)
    elif to_status is QueueStatus.SYNCED:
        values.update(synced_at=at, error_message=None)
    return values


def _item_from_row(row: Row[Any]) -> QueueItem:
    return QueueItem(
        id=row.id,
        subject_record_id=row.subject_record_id,
        operation=row.operation,
        data_before=row.data_before,
        data_after=row.data_after,
        origin_tag=row.origin_tag,
        status=row.status,
        reviewed=row.reviewed,
        approved=row.approved,
        retry_count=row.retry_count,
        error_message=row.error_message,
        created_at=row.created_at,
        reviewed_at=row.reviewed_at,
        synced_at=row.synced_at,
    )


class SqlAlchemyQueueItemRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, item: QueueItem) -> QueueItem:
        result = self.session.execute(
            insert(sync_queue_table).values(
                subject_record_id=item.subject_record_id,
                operation=item.operation,
                data_before=item.data_before,
                data_after=item.data_after,
                data_hash_after=item.data_hash_after,
                status=item.status,
                reviewed=item.reviewed,
                approved=item.approved,
                retry_count=item.retry_count,
                error_message=item.error_message,
                origin_tag=item.origin_tag,
                created_at=item.created_at,
                reviewed_at=item.reviewed_at,
                synced_at=item.synced_at,
            )
        )
        primary_key = result.inserted_primary_key
        if primary_key is None:
            raise RuntimeError("Queue insert did not return a primary key")
        item.id = int(primary_key[0])
        return item

    def get(self, item_id: int) -> QueueItem | None:
        row = self.session.execute(
            select(sync_queue_table).where(sync_queue_table.c.id == item_id)
        ).first()
        return _item_from_row(row) if row is not None else None

    def query(self, query: QueueQuery) -> list[QueueItem]:
        stmt: Select[Any] = select(sync_queue_table)
        if query.statuses is not None:
            stmt = stmt.where(sync_queue_table.c.status.in_(sorted(query.statuses)))
        if query.subject_record_id is not None:
            stmt = stmt.where(sync_queue_table.c.subject_record_id == query.subject_record_id)
        if query.operation is not None:
            stmt = stmt.where(sync_queue_table.c.operation == query.operation)
        if query.origin_tag is not None:
            stmt = stmt.where(sync_queue_table.c.origin_tag == query.origin_tag)
        stmt = stmt.order_by(sync_queue_table.c.created_at, sync_queue_table.c.id)
        if query.offset:
            stmt = stmt.offset(query.offset)
        if query.limit is not None:
            stmt = stmt.limit(query.limit)
        return [_item_from_row(row) for row in self.session.execute(stmt)]

    def count_by_status(self) -> dict[QueueStatus, int]:
        rows = self.session.execute(
            select(sync_queue_table.c.status, func.count()).group_by(sync_queue_table.c.status)
        )
        return {QueueStatus(status): int(count) for status, count in rows}

    def transition(
        self,
        item_ids: Sequence[int],
        *,
        from_statuses: Collection[QueueStatus],
        to_status: QueueStatus,
        below_retry_count: int | None = None,
        at: datetime | None = None,
    ) -> list[int]:
        if not item_ids:
            return []
        conditions = [
            sync_queue_table.c.id.in_(list(item_ids)),
            sync_queue_table.c.status.in_(sorted(from_statuses)),
        ]
        if below_retry_count is not None:
            conditions.append(sync_queue_table.c.retry_count < below_retry_count)

        eligible = [
            int(item_id)
            for item_id in self.session.execute(
                select(sync_queue_table.c.id).where(*conditions).order_by(sync_queue_table.c.id)
            ).scalars()
        ]
        if not eligible:
            return []
        self.session.execute(
            update(sync_queue_table)
            .where(*conditions)
            .values(**_status_values(to_status, at or _utcnow()))
        )
        return eligible

    def record_failure(self, item_id: int, message: str) -> bool:
        result = self.session.execute(
            update(sync_queue_table)
            .where(
                sync_queue_table.c.id == item_id,
                sync_queue_table.c.status == QueueStatus.SYNCING,
            )
            .values(
                status=QueueStatus.FAILED,
                error_message=message,
                retry_count=sync_queue_table.c.retry_count + 1,
            )
        )
        return result.rowcount > 0

    def remove(self, item_id: int) -> bool:
        result = self.session.execute(
            delete(sync_queue_table).where(sync_queue_table.c.id == item_id)
        )
        return result.rowcount > 0

    def remove_with_status(self, status: QueueStatus) -> int:
        result = self.session.execute(
            delete(sync_queue_table).where(sync_queue_table.c.status == status)
        )
        return int(result.rowcount)


class SqlAlchemyContactRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, record_id: str) -> ContactRecord | None:
        return self.session.execute(
            select(contact_table.c.contact_data).where(contact_table.c.contact_id == record_id)
        ).scalar_one_or_none()

    def save(self, record: ContactRecord, *, origin: RecordOrigin, synced: bool) -> None:
        now = _utcnow()
        values = {
            "contact_data": record,
            "data_hash": contact_fingerprint(record),
            "origin": origin,
            "synced_to_remote": synced,
            "updated_at": now,
        }
        result = self.session.execute(
            update(contact_table).where(contact_table.c.contact_id == record.id).values(**values)
        )
        if result.rowcount == 0:
            self.session.execute(
                insert(contact_table).values(contact_id=record.id, created_at=now, **values)
            )

    def list_all(self) -> list[ContactRecord]:
        return list(
            self.session.execute(
                select(contact_table.c.contact_data).order_by(
                    contact_table.c.created_at, contact_table.c.contact_id
                )
            ).scalars()
        )

    def remove(self, record_id: str) -> bool:
        result = self.session.execute(
            delete(contact_table).where(contact_table.c.contact_id == record_id)
        )
        return result.rowcount > 0

