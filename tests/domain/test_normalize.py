from __future__ import annotations

from contactipy.domain.model import ContactName, ContactRecord, EmailAddress, PhoneNumber
from contactipy.domain.normalize import (
    contact_fingerprint,
    email_domain,
    normalize_email,
    normalize_full_name,
    normalize_phone,
    normalize_text,
)
from tests.helpers.contacts import make_contact


def test_normalizers() -> None:
    assert normalize_text("  Acme   Corp ") == "acme corp"
    assert normalize_text(None) == ""
    assert normalize_email(" John@Example.COM ") == "john@example.com"
    assert normalize_phone("+1 (555) 123-4567") == "15551234567"
    assert normalize_phone(None) == ""
    assert email_domain("someone@Mail.Example.org") == "mail.example.org"
    assert email_domain("not-an-email") == ""


def test_normalize_full_name_skips_blank_parts() -> None:
    record = ContactRecord(id="x", name=ContactName(given=" Mary ", middle="", family="Ann"))

    assert normalize_full_name(record) == "mary ann"


def test_fingerprint_ignores_id_order_and_formatting() -> None:
    first = ContactRecord(
        id="a",
        name=ContactName(given="John", family="Smith"),
        emails=(EmailAddress(value="john@acme.com"), EmailAddress(value="j@home.net")),
        phones=(PhoneNumber(value="(555) 123-4567"),),
    )
    second = ContactRecord(
        id="b",
        name=ContactName(given="john ", family=" SMITH"),
        emails=(EmailAddress(value="J@Home.net"), EmailAddress(value="JOHN@acme.com")),
        phones=(PhoneNumber(value="555-123-4567"),),
    )

    assert contact_fingerprint(first) == contact_fingerprint(second)


def test_fingerprint_changes_with_content() -> None:
    base = make_contact(emails=["john@acme.com"])

    assert contact_fingerprint(base) != contact_fingerprint(make_contact(emails=["jo@acme.com"]))
    assert contact_fingerprint(base) != contact_fingerprint(
        make_contact(emails=["john@acme.com"], notes="note")
    )
    assert len(contact_fingerprint(base)) == 64
