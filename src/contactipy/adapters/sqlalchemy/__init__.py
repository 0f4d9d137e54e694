"""SQLAlchemy adapter package for contactipy."""

from __future__ import annotations

from .mappings import contact_table, metadata, sync_queue_table
from .repositories import SqlAlchemyContactRepository, SqlAlchemyQueueItemRepository
from .unit_of_work import (
    SqlAlchemyQueueUnitOfWork,
    StartupError,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyContactRepository",
    "SqlAlchemyQueueItemRepository",
    "SqlAlchemyQueueUnitOfWork",
    "StartupError",
    "contact_table",
    "is_started",
    "metadata",
    "shutdown",
    "startup",
    "sync_queue_table",
]
