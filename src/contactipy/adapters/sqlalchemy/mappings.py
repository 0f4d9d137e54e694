"""SQLAlchemy table metadata for contacts and the change queue."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
)

from contactipy.domain.model import ContactRecord, QueueOperation, QueueStatus, RecordOrigin

from .codec import record_from_document, record_to_document


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class ContactDocumentType(TypeDecorator[ContactRecord]):
    """Stores a :class:`ContactRecord` as a JSON text document."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: ContactRecord | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(record_to_document(value), sort_keys=True)

    def process_result_value(self, value: str | None, dialect: Dialect) -> ContactRecord | None:
        _ = dialect
        if value is None:
            return None
        loaded: Any = json.loads(value)
        if not isinstance(loaded, dict):
            raise ValueError("Stored contact document is not a JSON object")
        return record_from_document(loaded)


def _enum(enum_class: type[Any], name: str) -> Enum:
    return Enum(
        enum_class,
        name=name,
        native_enum=False,
        validate_strings=True,
        values_callable=lambda members: [member.value for member in members],
    )


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

contact_table = Table(
    "contact",
    metadata,
    Column("contact_id", String, primary_key=True),
    Column("contact_data", ContactDocumentType, nullable=False),
    Column("data_hash", String(64), nullable=False),
    Column("origin", _enum(RecordOrigin, "record_origin"), nullable=False),
    Column("synced_to_remote", Boolean, nullable=False, default=False),
    Column("created_at", UTCDateTime, nullable=False),
    Column("updated_at", UTCDateTime, nullable=False),
    Index("ix_contact_data_hash", "data_hash"),
)

sync_queue_table = Table(
    "sync_queue",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("subject_record_id", String, nullable=False),
    Column("operation", _enum(QueueOperation, "queue_operation"), nullable=False),
    Column("data_before", ContactDocumentType, nullable=True),
    Column("data_after", ContactDocumentType, nullable=True),
    Column("data_hash_after", String(64), nullable=True),
    Column("status", _enum(QueueStatus, "queue_status"), nullable=False),
    Column("reviewed", Boolean, nullable=False, default=False),
    Column("approved", Boolean, nullable=False, default=False),
    Column("retry_count", Integer, nullable=False, default=0),
    Column("error_message", Text, nullable=True),
    Column("origin_tag", String, nullable=True),
    Column("created_at", UTCDateTime, nullable=False),
    Column("reviewed_at", UTCDateTime, nullable=True),
    Column("synced_at", UTCDateTime, nullable=True),
    Index("ix_sync_queue_status", "status"),
    Index("ix_sync_queue_subject_record_id", "subject_record_id"),
)
