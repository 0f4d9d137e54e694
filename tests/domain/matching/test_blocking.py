from __future__ import annotations

from contactipy.domain.matching import (
    DEFAULT_BLOCK,
    BlockingIndex,
    blocking_keys,
    candidate_pairs,
)
from contactipy.domain.model import ContactRecord
from tests.helpers.contacts import make_contact


def test_blocking_keys_cover_every_field() -> None:
    record = make_contact(
        emails=["John@Acme.com"],
        phones=["(555) 123-4567"],
        company="Acme Corp",
    )

    assert blocking_keys(record) == (
        "name:joh",
        "email:acme.com",
        "phone:5551",
        "company:acm",
    )


def test_blocking_keys_fall_back_to_default_block() -> None:
    record = ContactRecord(id="empty")

    assert blocking_keys(record) == (DEFAULT_BLOCK,)


def test_short_values_do_not_produce_keys() -> None:
    record = make_contact(given="Al", family=None, phones=["123"], company="IB")

    assert blocking_keys(record) == (DEFAULT_BLOCK,)


def test_repeated_keys_are_collapsed() -> None:
    record = make_contact(emails=["john@acme.com", "sales@ACME.com"])

    assert blocking_keys(record) == ("name:joh", "email:acme.com")


def test_candidates_exclude_record_and_keep_build_order() -> None:
    first = make_contact("c1", given="Jane", family="Doe", emails=["jane@example.com"])
    second = make_contact("c2", given="Bob", family="Stone", emails=["bob@example.com"])
    third = make_contact("c3", given="Janet", family="Doe")
    unrelated = make_contact("c4", given="Zed", family="Zulu")
    index = BlockingIndex.build([first, second, third, unrelated])

    query = make_contact("c1", given="Jane", family="Doe", emails=["jd@example.com"])

    assert [record.id for record in index.candidates(query)] == ["c2", "c3"]
    assert len(index) == 4


def test_sparse_records_meet_in_default_block() -> None:
    first = ContactRecord(id="a")
    second = ContactRecord(id="b")
    index = BlockingIndex.build([first, second])

    assert index.block(DEFAULT_BLOCK) == (first, second)
    assert [record.id for record in index.candidates(first)] == ["b"]


def test_candidate_pairs_yield_each_pair_once_with_earlier_record_left() -> None:
    records = [
        make_contact("c1", emails=["a@acme.com"], phones=["5551234567"]),
        make_contact("c2", emails=["b@acme.com"], phones=["5551239999"]),
        make_contact("c3", given="Other", family="Person", emails=["c@acme.com"]),
    ]

    pairs = list(candidate_pairs(records))

    assert [(pair.left.id, pair.right.id) for pair in pairs] == [
        ("c1", "c2"),
        ("c1", "c3"),
        ("c2", "c3"),
    ]
