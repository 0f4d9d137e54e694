"""Domain ports (Protocols) implemented by adapters."""

from __future__ import annotations

from .persistence import ContactRepository, QueueItemRepository, StoreUnavailableError
from .remote import ApplyOutcome, RecordSource, RemoteApplier
from .unit_of_work import QueueRepositories, QueueUnitOfWork, RepositoryCollection, UnitOfWork

__all__ = [
    "ApplyOutcome",
    "ContactRepository",
    "QueueItemRepository",
    "QueueRepositories",
    "QueueUnitOfWork",
    "RecordSource",
    "RemoteApplier",
    "RepositoryCollection",
    "StoreUnavailableError",
    "UnitOfWork",
]
