from __future__ import annotations

from contactipy.domain.matching import plan
from contactipy.domain.matching.merge import merge_notes, provenance_marker
from contactipy.domain.model import Address, ContactName, ContactRecord, Organization
from tests.helpers.contacts import make_contact


def test_plan_keeps_existing_identity_and_name() -> None:
    existing = make_contact("c1", given="John", family="Smith")
    incoming = ContactRecord(
        id="i1",
        name=ContactName(prefix="Dr.", given="Jonathan", family="Smyth"),
    )

    merged = plan(existing, incoming)

    assert merged.id == "c1"
    assert merged.name.given == "John"
    assert merged.name.family == "Smith"
    assert merged.name.prefix == "Dr."


def test_plan_unions_contact_details_without_duplicates() -> None:
    existing = make_contact(
        "c1",
        emails=["john@acme.com"],
        phones=["(555) 123-4567"],
        company="Acme",
    )
    incoming = make_contact(
        "i1",
        emails=["JOHN@ACME.COM", "john@home.net"],
        phones=["555.123.4567", "555 999 0000"],
        company="acme",
    )

    merged = plan(existing, incoming)

    assert [email.value for email in merged.emails] == ["john@acme.com", "john@home.net"]
    assert [phone.value for phone in merged.phones] == ["(555) 123-4567", "555 999 0000"]
    assert merged.organizations == existing.organizations


def test_plan_adds_new_organizations_and_addresses() -> None:
    office = Address(type="work", street="1 Main St", city="Springfield")
    existing = make_contact("c1", company="Acme", addresses=[office])
    incoming = ContactRecord(
        id="i1",
        organizations=(Organization(name="Globex", title="Advisor"),),
        addresses=(
            Address(type="home", street="1 main st", city="SPRINGFIELD"),
            Address(type="home", street="9 Elm Rd", city="Shelbyville"),
            Address(),
        ),
    )

    merged = plan(existing, incoming)

    assert [org.name for org in merged.organizations] == ["Acme", "Globex"]
    assert [address.street for address in merged.addresses] == ["1 Main St", "9 Elm Rd"]


def test_plan_appends_notes_under_provenance_marker() -> None:
    existing = make_contact("c1", notes="Met at conference")
    incoming = make_contact("i1", notes="Prefers email")

    merged = plan(existing, incoming, provenance="CSV import")

    assert merged.notes == "Met at conference\n\n[From CSV import]\nPrefers email"


def test_plan_is_idempotent() -> None:
    existing = make_contact("c1", emails=["a@x.com"], notes="First")
    incoming = make_contact("i1", emails=["b@x.com"], phones=["5550001111"], notes="Second")

    once = plan(existing, incoming, provenance="Import")
    twice = plan(once, incoming, provenance="Import")

    assert twice == once


def test_plan_with_nothing_new_returns_equal_record() -> None:
    existing = make_contact("c1", emails=["a@x.com"], notes="Same")
    incoming = make_contact("i1", emails=["A@X.COM"], notes="Same")

    assert plan(existing, incoming) == existing


def test_merge_notes_edge_cases() -> None:
    assert merge_notes(None, "New", provenance="p") == "New"
    assert merge_notes("  ", "New", provenance="p") == "New"
    assert merge_notes("Old", None, provenance="p") == "Old"
    assert merge_notes("Old", "   ", provenance="p") == "Old"
    assert provenance_marker("vCard") == "[From vCard]"


def test_merge_notes_appends_text_contained_in_existing_notes() -> None:
    merged = merge_notes("Met at the Boston conference", "Boston", provenance="CSV import")

    assert merged == "Met at the Boston conference\n\n[From CSV import]\nBoston"
    assert merge_notes(merged, "Boston", provenance="CSV import") == merged
