"""Normalization helpers shared by matching, merging and queue deduplication."""

from __future__ import annotations

import hashlib
import json
import re
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from contactipy.domain.model import ContactRecord

_WHITESPACE_RE = re.compile(r"\s+")
_NON_DIGIT_RE = re.compile(r"\D")


def normalize_text(value: str | None) -> str:
    """Lower-case, trim and collapse inner whitespace; ``None`` becomes ``""``."""

    if not value:
        return ""
    return _WHITESPACE_RE.sub(" ", value).strip().lower()


def normalize_email(value: str | None) -> str:
    return value.strip().lower() if value else ""


def normalize_phone(value: str | None) -> str:
    """Digits only, so ``(555) 123-4567`` and ``555.123.4567`` compare equal."""

    return _NON_DIGIT_RE.sub("", value) if value else ""


def normalize_full_name(record: ContactRecord) -> str:
    return normalize_text(record.full_name)


def email_domain(value: str | None) -> str:
    email = normalize_email(value)
    _, sep, domain = email.rpartition("@")
    return domain if sep and domain else ""


def _canonical_document(record: ContactRecord) -> dict[str, Any]:
    name = record.name
    document: dict[str, Any] = {}
    name_parts = {
        "prefix": normalize_text(name.prefix),
        "given": normalize_text(name.given),
        "middle": normalize_text(name.middle),
        "family": normalize_text(name.family),
        "suffix": normalize_text(name.suffix),
    }
    name_parts = {key: value for key, value in name_parts.items() if value}
    if name_parts:
        document["name"] = name_parts

    emails = sorted(
        (normalize_email(email.value), normalize_text(email.type) or "other")
        for email in record.emails
        if normalize_email(email.value)
    )
    if emails:
        document["emails"] = emails

    phones = sorted(
        (normalize_phone(phone.value), normalize_text(phone.type) or "other")
        for phone in record.phones
        if normalize_phone(phone.value)
    )
    if phones:
        document["phones"] = phones

    organizations = sorted(
        (normalize_text(org.name), normalize_text(org.department), normalize_text(org.title))
        for org in record.organizations
    )
    if organizations:
        document["organizations"] = organizations

    addresses = sorted(
        (
            normalize_text(address.type),
            normalize_text(address.street),
            normalize_text(address.city),
            normalize_text(address.region),
            normalize_text(address.postal_code),
            normalize_text(address.country),
        )
        for address in record.addresses
        if not address.is_blank()
    )
    if addresses:
        document["addresses"] = addresses

    urls = sorted(normalize_text(url.value) for url in record.urls if normalize_text(url.value))
    if urls:
        document["urls"] = urls

    notes = record.notes.strip() if record.notes else ""
    if notes:
        document["notes"] = notes
    return document


def contact_fingerprint(record: ContactRecord) -> str:
    """Return a SHA-256 digest of the record's normalized content.

    The id is excluded, list order and formatting noise are not significant, so two records
    with the same fingerprint propose the same data.
    """

    payload = json.dumps(_canonical_document(record), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
