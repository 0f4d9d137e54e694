"""Review decisions and suggested field fixes, turned into queued changes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from contactipy.config.sync import ReviewPolicy
from contactipy.domain.matching import MatchBand, plan
from contactipy.domain.model import (
    QueueItem,
    QueueOperation,
    RecordOrigin,
    describe_field,
    read_field,
    write_field,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from contactipy.domain.matching import ScoredMatch
    from contactipy.domain.model import ContactRecord, FieldRef
    from contactipy.domain.queue import QueueStore

log = getLogger(__name__)


class MatchDecision(StrEnum):
    MERGE = "merge"
    SKIP = "skip"
    NEW = "new"


def default_decision(match: ScoredMatch, policy: ReviewPolicy) -> MatchDecision | None:
    """Decision to take without asking; ``None`` means a human has to decide."""

    band = match.band
    if band is MatchBand.HIGH_CONFIDENCE:
        return MatchDecision.MERGE
    if band is MatchBand.DISTINCT:
        return MatchDecision.NEW
    if policy is ReviewPolicy.MANUAL:
        return None
    return MatchDecision(policy.value)


@dataclass(slots=True)
class ReviewSummary:
    queued: list[QueueItem] = field(default_factory=list)
    skipped: int = 0
    duplicates: int = 0
    undecided: int = 0


def _submit(store: QueueStore, item: QueueItem, summary: ReviewSummary) -> None:
    result = store.submit(item)
    if result.created:
        summary.queued.append(result.item)
    else:
        summary.duplicates += 1


def apply_decisions(
    store: QueueStore,
    decisions: Iterable[tuple[ScoredMatch, MatchDecision | None]],
    *,
    unmatched: Sequence[ContactRecord] = (),
    origin_tag: str,
) -> ReviewSummary:
    """Queue what the reviewer decided.

    ``merge`` queues an update of the existing record with the planned merge, ``new`` queues
    a create of the incoming record, ``skip`` queues nothing. Unmatched records are created.
    The merge is re-planned here so the queued data is exactly what was displayed.
    """

    summary = ReviewSummary()
    for match, decision in decisions:
        if decision is None:
            summary.undecided += 1
            continue
        if decision is MatchDecision.SKIP:
            summary.skipped += 1
            continue
        if decision is MatchDecision.MERGE:
            merged = plan(match.existing, match.incoming, provenance=origin_tag)
            if merged == match.existing:
                log.debug("Merge of %s adds nothing; skipping", match.existing.id)
                summary.skipped += 1
                continue
            item = QueueItem(
                subject_record_id=match.existing.id,
                operation=QueueOperation.UPDATE,
                data_before=match.existing,
                data_after=merged,
                origin_tag=origin_tag,
            )
        else:
            item = QueueItem(
                subject_record_id=match.incoming.id,
                operation=QueueOperation.CREATE,
                data_after=match.incoming,
                origin_tag=origin_tag,
            )
        _submit(store, item, summary)

    for record in unmatched:
        item = QueueItem(
            subject_record_id=record.id,
            operation=QueueOperation.CREATE,
            data_after=record,
            origin_tag=origin_tag,
        )
        _submit(store, item, summary)

    log.info(
        "Review applied (%s): queued=%s, skipped=%s, duplicates=%s, undecided=%s",
        origin_tag,
        len(summary.queued),
        summary.skipped,
        summary.duplicates,
        summary.undecided,
    )
    return summary


def queue_duplicate_merge(
    store: QueueStore,
    match: ScoredMatch,
    *,
    origin_tag: str,
) -> ReviewSummary:
    """Queue the merge of a duplicate pair inside the stored collection.

    The surviving record is updated with the merged data and the absorbed one is deleted.
    """

    summary = ReviewSummary()
    merged = plan(match.existing, match.incoming, provenance=origin_tag)
    if merged != match.existing:
        _submit(
            store,
            QueueItem(
                subject_record_id=match.existing.id,
                operation=QueueOperation.UPDATE,
                data_before=match.existing,
                data_after=merged,
                origin_tag=origin_tag,
            ),
            summary,
        )
    _submit(
        store,
        QueueItem(
            subject_record_id=match.incoming.id,
            operation=QueueOperation.DELETE,
            data_before=match.incoming,
            origin_tag=origin_tag,
        ),
        summary,
    )
    return summary


@dataclass(slots=True, frozen=True, kw_only=True)
class FieldSuggestion:
    """A single-field fix proposed by a cleanup tool."""

    record_id: str
    location: FieldRef
    suggested_value: str | None
    current_value: str | None = None
    tool_name: str
    confidence: float = 1.0
    reason: str | None = None

    @property
    def label(self) -> str:
        return f"{self.tool_name}: {describe_field(self.location)}"


def queue_suggestion(
    store: QueueStore,
    record: ContactRecord,
    suggestion: FieldSuggestion,
    *,
    value: str | None = None,
) -> QueueItem | None:
    """Queue an update applying ``suggestion`` (or a reviewer-edited ``value``) to ``record``.

    Returns ``None`` when the field already holds the suggested value.
    """

    if suggestion.record_id != record.id:
        raise ValueError(
            f"Suggestion for {suggestion.record_id} cannot be applied to {record.id}"
        )
    new_value = value if value is not None else suggestion.suggested_value
    if read_field(record, suggestion.location) == new_value:
        return None

    updated = write_field(record, suggestion.location, new_value)
    item = store.enqueue(
        record.id,
        QueueOperation.UPDATE,
        data_before=record,
        data_after=updated,
        origin_tag=suggestion.tool_name,
    )
    store.save_record(updated, origin=RecordOrigin.LOCAL, synced=False)
    log.info("Queued %s for %s as #%s", suggestion.label, record.id, item.id)
    return item
