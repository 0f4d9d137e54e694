"""Sync executor: drain approved queue items against the remote store.

One run processes approved items in fixed-size batches. Each item is claimed with a
conditional ``approved -> syncing`` update before the remote call starts, so two tasks racing
for the same item cannot both apply it. A run stops early when the consecutive-failure
breaker trips or a cancellation token is set; cancellation is only observed between batches.
Individual item failures are recorded on the item and never raise. Store failures do.

Once an item is claimed it ends up ``synced`` or ``failed`` even when the run is torn down by
an exception, as long as the store can still be written. Items left ``syncing`` anyway are
failed at the start of the next run, so they can be re-approved.

The remote apply is the only awaited call. Queue store calls go through a synchronous
SQLAlchemy session and block the event loop for the duration of each (short, local) query.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from contactipy.config.sync import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_MAX_CONSECUTIVE_FAILURES,
    SyncConfig,
)
from contactipy.domain.ports.remote import ApplyOutcome

if TYPE_CHECKING:
    from collections.abc import Sequence

    from contactipy.domain.model import QueueItem
    from contactipy.domain.ports.remote import RemoteApplier
    from contactipy.domain.queue import QueueStore

log = getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RunOutcome(StrEnum):
    COMPLETED = "completed"
    NOTHING_TO_SYNC = "nothing_to_sync"
    MAX_RETRIES_EXCEEDED = "max_retries_exceeded"
    CIRCUIT_OPEN = "circuit_open"
    CANCELLED = "cancelled"
    ALREADY_RUNNING = "already_running"


class ItemStatus(StrEnum):
    SYNCED = "synced"
    FAILED = "failed"
    ALREADY_SYNCING = "already_syncing"


@dataclass(slots=True, frozen=True)
class ItemResult:
    item_id: int
    subject_record_id: str
    status: ItemStatus
    error: str | None = None


@dataclass(slots=True)
class BatchResult:
    """Outcome of one executor run, with per-item results and aggregate counts."""

    outcome: RunOutcome
    items: list[ItemResult] = field(default_factory=list)
    considered: int = 0
    excluded: int = 0
    not_attempted: int = 0
    pruned: int = 0
    released: int = 0
    message: str | None = None
    started_at: datetime = field(default_factory=_utcnow)
    finished_at: datetime | None = None

    def _count(self, status: ItemStatus) -> int:
        return sum(1 for result in self.items if result.status is status)

    @property
    def succeeded(self) -> int:
        return self._count(ItemStatus.SYNCED)

    @property
    def failed(self) -> int:
        return self._count(ItemStatus.FAILED)

    @property
    def already_syncing(self) -> int:
        return self._count(ItemStatus.ALREADY_SYNCING)

    @property
    def is_systemic_failure(self) -> bool:
        return self.outcome is RunOutcome.CIRCUIT_OPEN

    @property
    def duration_seconds(self) -> float | None:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()


@dataclass(slots=True, frozen=True)
class SyncProgress:
    processed: int
    total: int
    last: ItemResult


ProgressCallback = Callable[[SyncProgress], None]


class CancellationToken:
    """Cooperative cancellation shared between whoever starts a run and whoever stops it."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(slots=True)
class SyncCoordinator:
    """Owns the "run in progress" flag; share one instance between executors on a store."""

    running: bool = False
    last_result: BatchResult | None = None


class SyncExecutor:
    def __init__(
        self,
        store: QueueStore,
        remote: RemoteApplier,
        *,
        config: SyncConfig | None = None,
        coordinator: SyncCoordinator | None = None,
    ) -> None:
        effective = config or SyncConfig()
        self.store = store
        self.remote = remote
        self.batch_size = effective.batch_size or DEFAULT_BATCH_SIZE
        self.max_retries = effective.max_retries
        self.max_consecutive_failures = (
            effective.max_consecutive_failures or DEFAULT_MAX_CONSECUTIVE_FAILURES
        )
        self.coordinator = coordinator or SyncCoordinator()

    @property
    def is_running(self) -> bool:
        return self.coordinator.running

    async def run(
        self,
        items: Sequence[QueueItem] | None = None,
        *,
        cancellation: CancellationToken | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> BatchResult:
        """Sync ``items`` (default: every approved item in queue order)."""

        if self.coordinator.running:
            log.warning("Sync already in progress; ignoring new run request")
            return BatchResult(
                outcome=RunOutcome.ALREADY_RUNNING,
                message="A sync run is already in progress",
                finished_at=_utcnow(),
            )
        self.coordinator.running = True
        try:
            released = self.store.release_stalled()
            result = await self._run(items, cancellation, on_progress)
        finally:
            self.coordinator.running = False
        result.released = len(released)
        result.finished_at = _utcnow()
        self.coordinator.last_result = result
        log.info(
            "Sync run %s: synced=%s, failed=%s, already_syncing=%s, excluded=%s, "
            "not_attempted=%s, pruned=%s, released=%s",
            result.outcome,
            result.succeeded,
            result.failed,
            result.already_syncing,
            result.excluded,
            result.not_attempted,
            result.pruned,
            result.released,
        )
        return result

    async def _run(
        self,
        items: Sequence[QueueItem] | None,
        cancellation: CancellationToken | None,
        on_progress: ProgressCallback | None,
    ) -> BatchResult:
        approved = list(items) if items is not None else self.store.approved()
        if not approved:
            return BatchResult(outcome=RunOutcome.NOTHING_TO_SYNC, message="Nothing to sync")

        eligible = [item for item in approved if item.can_retry(self.max_retries)]
        excluded = len(approved) - len(eligible)
        if not eligible:
            message = f"{excluded} items exceeded maximum retries"
            log.warning(message)
            return BatchResult(
                outcome=RunOutcome.MAX_RETRIES_EXCEEDED,
                considered=len(approved),
                excluded=excluded,
                message=message,
            )
        if excluded:
            log.warning("Skipping %s item(s) that exceeded maximum retries", excluded)

        result = BatchResult(
            outcome=RunOutcome.COMPLETED,
            considered=len(approved),
            excluded=excluded,
        )
        consecutive_failures = 0
        processed = 0
        for start in range(0, len(eligible), self.batch_size):
            if start:
                await asyncio.sleep(0)
            if cancellation is not None and cancellation.cancelled:
                result.outcome = RunOutcome.CANCELLED
                result.message = "Sync cancelled"
                result.not_attempted = len(eligible) - processed
                log.info("Sync cancelled with %s item(s) left", result.not_attempted)
                break

            batch = eligible[start : start + self.batch_size]
            for item in batch:
                item_result = await self._sync_item(item)
                result.items.append(item_result)
                processed += 1
                if on_progress is not None:
                    on_progress(SyncProgress(processed, len(eligible), item_result))

                if item_result.status is ItemStatus.SYNCED:
                    consecutive_failures = 0
                elif item_result.status is ItemStatus.FAILED:
                    consecutive_failures += 1

                if consecutive_failures >= self.max_consecutive_failures:
                    result.outcome = RunOutcome.CIRCUIT_OPEN
                    result.message = (
                        f"Aborted after too many consecutive failures ({consecutive_failures})"
                    )
                    result.not_attempted = len(eligible) - processed
                    log.error(
                        "%s; %s item(s) left untouched",
                        result.message,
                        result.not_attempted,
                    )
                    break
            if result.outcome is RunOutcome.CIRCUIT_OPEN:
                break

        if result.succeeded:
            result.pruned = self.store.prune_synced()
        return result

    async def _sync_item(self, item: QueueItem) -> ItemResult:
        if item.id is None:
            raise ValueError("Cannot sync a queue item that was never stored")
        if not self.store.claim(item.id):
            log.info("Queue item #%s is already syncing or no longer approved", item.id)
            return ItemResult(item.id, item.subject_record_id, ItemStatus.ALREADY_SYNCING)

        try:
            outcome = await self._apply(item)
            if outcome.success:
                self.store.complete(item.id, record=outcome.record)
            else:
                self.store.fail(item.id, outcome.error or "Unknown error")
        except BaseException as exc:
            self._release(item.id, _interruption_message(exc))
            raise

        if outcome.success:
            log.debug("Synced #%s (%s %s)", item.id, item.operation, item.subject_record_id)
            return ItemResult(item.id, item.subject_record_id, ItemStatus.SYNCED)

        error = outcome.error or "Unknown error"
        log.warning("Failed to sync #%s (%s): %s", item.id, item.subject_record_id, error)
        return ItemResult(item.id, item.subject_record_id, ItemStatus.FAILED, error)

    async def _apply(self, item: QueueItem) -> ApplyOutcome:
        try:
            return await self.remote.apply(item)
        except Exception as exc:  # noqa: BLE001
            log.warning("Remote apply raised for #%s: %s", item.id, exc)
            return ApplyOutcome.failed(str(exc) or type(exc).__name__)

    def _release(self, item_id: int, message: str) -> None:
        try:
            self.store.fail(item_id, message)
        except Exception:
            log.exception("Queue item #%s stays syncing until the next run releases it", item_id)


def _interruption_message(exc: BaseException) -> str:
    if isinstance(exc, asyncio.CancelledError):
        return "Sync cancelled during remote apply"
    return f"Sync interrupted ({type(exc).__name__})"
