"""Translate ContactsPlus payloads to and from contact records."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from contactipy.domain.model import (
    Address,
    ContactName,
    ContactRecord,
    EmailAddress,
    Organization,
    PhoneNumber,
    WebAddress,
)

from .schema import (
    AddressPayload,
    ContactDataPayload,
    ContactPayload,
    NamePayload,
    OrganizationPayload,
    ValuePayload,
)


def parse_contact(payload: ContactPayload | Mapping[str, object]) -> ContactRecord:
    model = (
        payload if isinstance(payload, ContactPayload) else ContactPayload.model_validate(payload)
    )
    return record_from_contact_data(model.contact_id, model.contact_data)


def record_from_contact_data(contact_id: str, data: ContactDataPayload) -> ContactRecord:
    name = data.name or NamePayload()
    return ContactRecord(
        id=contact_id,
        name=ContactName(
            prefix=name.prefix,
            given=name.given_name,
            middle=name.middle_name,
            family=name.family_name,
            suffix=name.suffix,
        ),
        emails=tuple(EmailAddress(value=e.value, type=e.type) for e in data.emails if e.value),
        phones=tuple(
            PhoneNumber(value=p.value, type=p.type) for p in data.phone_numbers if p.value
        ),
        organizations=tuple(
            Organization(name=o.name, department=o.department, title=o.title)
            for o in data.organizations
        ),
        addresses=tuple(
            Address(
                type=a.type,
                street=a.street,
                city=a.city,
                region=a.region,
                postal_code=a.postal_code,
                country=a.country,
            )
            for a in data.addresses
        ),
        urls=tuple(WebAddress(value=u.value, type=u.type) for u in data.urls if u.value),
        notes=data.notes,
    )


def contact_data_from_record(record: ContactRecord) -> ContactDataPayload:
    name = record.name
    return ContactDataPayload(
        name=NamePayload(
            given_name=name.given,
            middle_name=name.middle,
            family_name=name.family,
            prefix=name.prefix,
            suffix=name.suffix,
        ),
        emails=[ValuePayload(value=e.value, type=e.type) for e in record.emails],
        phone_numbers=[ValuePayload(value=p.value, type=p.type) for p in record.phones],
        organizations=[
            OrganizationPayload(name=o.name, department=o.department, title=o.title)
            for o in record.organizations
        ],
        addresses=[
            AddressPayload(
                type=a.type,
                street=a.street,
                city=a.city,
                region=a.region,
                postal_code=a.postal_code,
                country=a.country,
            )
            for a in record.addresses
        ],
        urls=[ValuePayload(value=u.value, type=u.type) for u in record.urls],
        notes=record.notes,
    )


def contact_data_json(record: ContactRecord) -> dict[str, Any]:
    """Wire form of ``contactData`` (API field names, empty parts left out)."""

    return contact_data_from_record(record).model_dump(
        by_alias=True,
        exclude_none=True,
    )
