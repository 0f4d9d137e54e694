"""Domain model: contact records, queued changes and field references."""

from __future__ import annotations

from .contact import (
    Address,
    ContactName,
    ContactRecord,
    EmailAddress,
    Organization,
    PhoneNumber,
    RecordOrigin,
    WebAddress,
)
from .fields import (
    AddressAttribute,
    AddressField,
    EmailField,
    FieldAccessError,
    FieldRef,
    NameField,
    NamePart,
    NotesField,
    OrganizationAttribute,
    OrganizationField,
    PhoneField,
    describe_field,
    read_field,
    write_field,
)
from .queue import (
    ACTIVE_STATUSES,
    REVIEWABLE_STATUSES,
    InvalidQueueItemError,
    QueueItem,
    QueueOperation,
    QueueQuery,
    QueueStats,
    QueueStatus,
)

__all__ = [
    "ACTIVE_STATUSES",
    "REVIEWABLE_STATUSES",
    "Address",
    "AddressAttribute",
    "AddressField",
    "ContactName",
    "ContactRecord",
    "EmailAddress",
    "EmailField",
    "FieldAccessError",
    "FieldRef",
    "InvalidQueueItemError",
    "NameField",
    "NamePart",
    "NotesField",
    "Organization",
    "OrganizationAttribute",
    "OrganizationField",
    "PhoneField",
    "PhoneNumber",
    "QueueItem",
    "QueueOperation",
    "QueueQuery",
    "QueueStats",
    "QueueStatus",
    "RecordOrigin",
    "WebAddress",
    "describe_field",
    "read_field",
    "write_field",
]
