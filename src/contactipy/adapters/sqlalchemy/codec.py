"""JSON document encoding for contact records stored in SQL columns."""

from __future__ import annotations

from typing import Any, cast

from contactipy.domain.model import (
    Address,
    ContactName,
    ContactRecord,
    EmailAddress,
    Organization,
    PhoneNumber,
    WebAddress,
)

type Document = dict[str, Any]


def _compact(values: dict[str, Any]) -> Document:
    return {key: value for key, value in values.items() if value is not None}


def record_to_document(record: ContactRecord) -> Document:
    name = record.name
    document: Document = {
        "id": record.id,
        "name": _compact(
            {
                "prefix": name.prefix,
                "given": name.given,
                "middle": name.middle,
                "family": name.family,
                "suffix": name.suffix,
            }
        ),
        "emails": [_compact({"value": e.value, "type": e.type}) for e in record.emails],
        "phones": [_compact({"value": p.value, "type": p.type}) for p in record.phones],
        "organizations": [
            _compact({"name": o.name, "department": o.department, "title": o.title})
            for o in record.organizations
        ],
        "addresses": [
            _compact(
                {
                    "type": a.type,
                    "street": a.street,
                    "city": a.city,
                    "region": a.region,
                    "postal_code": a.postal_code,
                    "country": a.country,
                }
            )
            for a in record.addresses
        ],
        "urls": [_compact({"value": u.value, "type": u.type}) for u in record.urls],
    }
    if record.notes is not None:
        document["notes"] = record.notes
    return document


def _entries(document: Document, key: str) -> list[dict[str, Any]]:
    raw = document.get(key) or []
    return [cast(dict[str, Any], entry) for entry in raw if isinstance(entry, dict)]


def record_from_document(document: Document) -> ContactRecord:
    name = cast(dict[str, Any], document.get("name") or {})
    return ContactRecord(
        id=str(document["id"]),
        name=ContactName(**name),
        emails=tuple(EmailAddress(**entry) for entry in _entries(document, "emails")),
        phones=tuple(PhoneNumber(**entry) for entry in _entries(document, "phones")),
        organizations=tuple(
            Organization(**entry) for entry in _entries(document, "organizations")
        ),
        addresses=tuple(Address(**entry) for entry in _entries(document, "addresses")),
        urls=tuple(WebAddress(**entry) for entry in _entries(document, "urls")),
        notes=document.get("notes"),
    )
