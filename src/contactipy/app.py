"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from contactipy.adapters.contactsplus import (
    ContactsPlusApplier,
    ContactsPlusClient,
    ContactsPlusRecordSource,
)
from contactipy.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyQueueUnitOfWork,
    is_started,
    startup,
)
from contactipy.config import get_contactsplus_config, get_sync_config
from contactipy.domain.matching import SimilarityScorer, find_duplicates, find_matches
from contactipy.domain.model import RecordOrigin
from contactipy.domain.queue import QueueStore, UnitOfWorkFactory
from contactipy.domain.review import (
    MatchDecision,
    ReviewSummary,
    apply_decisions,
    default_decision,
    queue_duplicate_merge,
)
from contactipy.domain.sync import BatchResult, ProgressCallback, SyncCoordinator, SyncExecutor

if TYPE_CHECKING:
    from collections.abc import Sequence

    from contactipy.config import ReviewPolicy, SyncConfig
    from contactipy.domain.matching import ScoredMatch
    from contactipy.domain.model import ContactRecord
    from contactipy.domain.ports.remote import RecordSource, RemoteApplier
    from contactipy.domain.sync import CancellationToken

log = getLogger(__name__)

DUPLICATE_MERGE_TAG = "Duplicate merge"

# One sync run at a time for every caller in this process.
SYNC_COORDINATOR = SyncCoordinator()


def build_queue_store(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: SyncConfig | None = None,
) -> QueueStore:
    """Queue store over the configured database, starting the adapter on first use."""

    if unit_of_work_factory is None and not is_started():
        startup()
    effective_config = config or get_sync_config()
    return QueueStore(
        unit_of_work_factory or SqlAlchemyQueueUnitOfWork,
        max_retries=effective_config.max_retries,
    )


def refresh_contacts(
    *,
    source: RecordSource | None = None,
    store: QueueStore | None = None,
) -> int:
    """Replace the local copy of every remote contact with its current remote version."""

    effective_store = store or build_queue_store()
    effective_source = source or ContactsPlusRecordSource()
    records = effective_source.list_all()
    saved = effective_store.save_records(records, origin=RecordOrigin.REMOTE, synced=True)
    log.info("Refreshed %s contact(s) from the remote store", saved)
    return saved


def find_duplicate_contacts(*, store: QueueStore | None = None) -> list[ScoredMatch]:
    effective_store = store or build_queue_store()
    records = effective_store.list_records()
    duplicates = find_duplicates(records)
    log.info("Found %s likely duplicate pair(s) among %s contacts", len(duplicates), len(records))
    return duplicates


def queue_duplicate_merges(
    *,
    store: QueueStore | None = None,
    policy: ReviewPolicy | None = None,
    origin_tag: str = DUPLICATE_MERGE_TAG,
) -> ReviewSummary:
    """Queue merges for every duplicate pair the review policy settles without a human.

    Each record takes part in at most one merge per call so an absorbed record is never
    also a survivor.
    """

    effective_store = store or build_queue_store()
    effective_policy = policy or get_sync_config().review_policy
    summary = ReviewSummary()
    touched: set[str] = set()
    for match in find_duplicate_contacts(store=effective_store):
        decision = default_decision(match, effective_policy)
        if decision is None:
            summary.undecided += 1
            continue
        if decision is not MatchDecision.MERGE:
            summary.skipped += 1
            continue
        if match.existing.id in touched or match.incoming.id in touched:
            summary.skipped += 1
            continue
        touched.update((match.existing.id, match.incoming.id))
        pair = queue_duplicate_merge(effective_store, match, origin_tag=origin_tag)
        summary.queued.extend(pair.queued)
        summary.duplicates += pair.duplicates

    log.info(
        "Duplicate merges queued=%s, skipped=%s, undecided=%s",
        len(summary.queued),
        summary.skipped,
        summary.undecided,
    )
    return summary


def import_records(
    records: Sequence[ContactRecord],
    *,
    origin_tag: str,
    store: QueueStore | None = None,
    policy: ReviewPolicy | None = None,
    scorer: SimilarityScorer | None = None,
) -> ReviewSummary:
    """Match incoming records against the stored ones and queue what the policy decides."""

    effective_store = store or build_queue_store()
    effective_policy = policy or get_sync_config().review_policy
    existing = effective_store.list_records()
    analysis = find_matches(
        records,
        existing,
        scorer=scorer or SimilarityScorer(merge_provenance=origin_tag),
    )
    decisions = [(match, default_decision(match, effective_policy)) for match in analysis.matches]
    return apply_decisions(
        effective_store,
        decisions,
        unmatched=analysis.unmatched,
        origin_tag=origin_tag,
    )


def sync_approved_changes(
    *,
    store: QueueStore | None = None,
    remote: RemoteApplier | None = None,
    config: SyncConfig | None = None,
    cancellation: CancellationToken | None = None,
    on_progress: ProgressCallback | None = None,
    coordinator: SyncCoordinator | None = None,
) -> BatchResult:
    """Push every approved queue item to the remote store."""

    effective_config = config or get_sync_config()
    effective_store = store or build_queue_store(config=effective_config)
    return asyncio.run(
        _sync_approved_changes_async(
            effective_store,
            remote,
            effective_config,
            coordinator or SYNC_COORDINATOR,
            cancellation,
            on_progress,
        )
    )


async def _sync_approved_changes_async(
    store: QueueStore,
    remote: RemoteApplier | None,
    config: SyncConfig,
    coordinator: SyncCoordinator,
    cancellation: CancellationToken | None,
    on_progress: ProgressCallback | None,
) -> BatchResult:
    if remote is not None:
        executor = SyncExecutor(store, remote, config=config, coordinator=coordinator)
        return await executor.run(cancellation=cancellation, on_progress=on_progress)

    async with ContactsPlusClient(get_contactsplus_config()) as client:
        executor = SyncExecutor(
            store,
            ContactsPlusApplier(client, conflict_resolution=config.conflict_resolution),
            config=config,
            coordinator=coordinator,
        )
        return await executor.run(cancellation=cancellation, on_progress=on_progress)
