from __future__ import annotations

import pytest

from contactipy.config.sync import ReviewPolicy
from contactipy.domain.matching import SimilarityScorer
from contactipy.domain.model import (
    NameField,
    NamePart,
    OrganizationField,
    QueueOperation,
    QueueStatus,
)
from contactipy.domain.queue import QueueStore
from contactipy.domain.review import (
    FieldSuggestion,
    MatchDecision,
    apply_decisions,
    default_decision,
    queue_duplicate_merge,
    queue_suggestion,
)
from tests.helpers.contacts import make_contact

_SCORER = SimilarityScorer()

_HIGH = _SCORER.score(
    make_contact(
        "i1",
        emails=["john@acme.com", "john@home.net"],
        phones=["5551234567"],
        company="ACME",
    ),
    make_contact("c1", emails=["john@acme.com"], phones=["(555) 123-4567"], company="Acme"),
)
_REVIEW = _SCORER.score(
    make_contact("i2", given="Jon", emails=["john@acme.com"], phones=["5551234567"]),
    make_contact("c2", emails=["john@acme.com"], phones=["5551234567"]),
)
_DISTINCT = _SCORER.score(
    make_contact("i3", given="Alice", family="Jones", emails=["office@acme.com"]),
    make_contact("c3", given="Bob", family="Brown", emails=["office@acme.com"]),
)


@pytest.mark.parametrize(
    ("policy", "expected"),
    [
        (ReviewPolicy.MANUAL, None),
        (ReviewPolicy.MERGE, MatchDecision.MERGE),
        (ReviewPolicy.SKIP, MatchDecision.SKIP),
        (ReviewPolicy.NEW, MatchDecision.NEW),
    ],
)
def test_review_band_follows_policy(policy: ReviewPolicy, expected: MatchDecision | None) -> None:
    assert default_decision(_REVIEW, policy) is expected


def test_confident_bands_ignore_policy() -> None:
    for policy in ReviewPolicy:
        assert default_decision(_HIGH, policy) is MatchDecision.MERGE
        assert default_decision(_DISTINCT, policy) is MatchDecision.NEW


def test_apply_decisions_queues_merge_create_and_unmatched(queue_store: QueueStore) -> None:
    unmatched = make_contact("i9", given="Nina", family="New")

    summary = apply_decisions(
        queue_store,
        [
            (_HIGH, MatchDecision.MERGE),
            (_DISTINCT, MatchDecision.NEW),
            (_REVIEW, MatchDecision.SKIP),
        ],
        unmatched=[unmatched],
        origin_tag="contacts.csv",
    )

    assert summary.skipped == 1
    assert summary.duplicates == 0
    queued = {(item.subject_record_id, item.operation) for item in summary.queued}
    assert queued == {
        ("c1", QueueOperation.UPDATE),
        ("i3", QueueOperation.CREATE),
        ("i9", QueueOperation.CREATE),
    }
    update = next(item for item in summary.queued if item.operation is QueueOperation.UPDATE)
    assert update.data_before == _HIGH.existing
    assert update.data_after is not None
    assert update.data_after.id == "c1"
    assert [email.value for email in update.data_after.emails] == [
        "john@acme.com",
        "john@home.net",
    ]
    assert all(item.origin_tag == "contacts.csv" for item in summary.queued)
    assert queue_store.stats()[QueueStatus.PENDING] == 3


def test_apply_decisions_twice_is_idempotent(queue_store: QueueStore) -> None:
    decisions = [(_HIGH, MatchDecision.MERGE)]

    first = apply_decisions(queue_store, decisions, origin_tag="import")
    second = apply_decisions(queue_store, decisions, origin_tag="import")

    assert len(first.queued) == 1
    assert second.queued == []
    assert second.duplicates == 1


def test_undecided_matches_are_counted(queue_store: QueueStore) -> None:
    summary = apply_decisions(queue_store, [(_REVIEW, None)], origin_tag="import")

    assert summary.undecided == 1
    assert summary.queued == []


def test_merge_that_adds_nothing_is_skipped(queue_store: QueueStore) -> None:
    existing = make_contact("c1", emails=["john@acme.com"], phones=["5551234567"])
    match = _SCORER.score(make_contact("i1", emails=["JOHN@acme.com"]), existing)

    summary = apply_decisions(queue_store, [(match, MatchDecision.MERGE)], origin_tag="import")

    assert summary.queued == []
    assert summary.skipped == 1


def test_queue_duplicate_merge_updates_survivor_and_deletes_absorbed(
    queue_store: QueueStore,
) -> None:
    summary = queue_duplicate_merge(queue_store, _HIGH, origin_tag="Duplicate merge")

    operations = [(item.subject_record_id, item.operation) for item in summary.queued]
    assert operations == [("c1", QueueOperation.UPDATE), ("i1", QueueOperation.DELETE)]


def test_queue_suggestion_enqueues_field_fix(queue_store: QueueStore) -> None:
    record = make_contact("c1", company="acme inc")
    queue_store.save_record(record)
    suggestion = FieldSuggestion(
        record_id="c1",
        location=OrganizationField(0),
        current_value="acme inc",
        suggested_value="Acme Inc.",
        tool_name="Company name cleaner",
        confidence=0.9,
    )

    item = queue_suggestion(queue_store, record, suggestion)

    assert item is not None
    assert item.operation is QueueOperation.UPDATE
    assert item.origin_tag == "Company name cleaner"
    assert item.data_before == record
    assert item.data_after is not None
    assert item.data_after.organizations[0].name == "Acme Inc."
    stored = queue_store.get_record("c1")
    assert stored is not None
    assert stored.organizations[0].name == "Acme Inc."
    assert suggestion.label == "Company name cleaner: organizations[0].name"


def test_queue_suggestion_accepts_edited_value_and_skips_noop(queue_store: QueueStore) -> None:
    record = make_contact("c1", given="jOHN")
    suggestion = FieldSuggestion(
        record_id="c1",
        location=NameField(NamePart.GIVEN),
        current_value="jOHN",
        suggested_value="John",
        tool_name="Name fixer",
    )

    edited = queue_suggestion(queue_store, record, suggestion, value="Johnny")
    unchanged = queue_suggestion(
        queue_store,
        make_contact("c1", given="John"),
        suggestion,
    )

    assert edited is not None
    assert edited.data_after is not None
    assert edited.data_after.name.given == "Johnny"
    assert unchanged is None


def test_queue_suggestion_rejects_foreign_record(queue_store: QueueStore) -> None:
    suggestion = FieldSuggestion(
        record_id="c1",
        location=NameField(NamePart.GIVEN),
        suggested_value="John",
        tool_name="Name fixer",
    )

    with pytest.raises(ValueError, match="cannot be applied"):
        queue_suggestion(queue_store, make_contact("c2"), suggestion)
