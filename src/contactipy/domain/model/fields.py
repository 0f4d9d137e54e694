"""Typed references to individual contact fields.

A :data:`FieldRef` names exactly one editable location on a :class:`ContactRecord`. Reading
and writing dispatch on the reference type, so an unknown location cannot be expressed at all
and an out-of-range index fails loudly with :class:`FieldAccessError`.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import StrEnum
from functools import singledispatch
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .contact import ContactRecord


class FieldAccessError(LookupError):
    """Raised when a field reference points outside the record."""


class NamePart(StrEnum):
    PREFIX = "prefix"
    GIVEN = "given"
    MIDDLE = "middle"
    FAMILY = "family"
    SUFFIX = "suffix"


class OrganizationAttribute(StrEnum):
    NAME = "name"
    DEPARTMENT = "department"
    TITLE = "title"


class AddressAttribute(StrEnum):
    TYPE = "type"
    STREET = "street"
    CITY = "city"
    REGION = "region"
    POSTAL_CODE = "postal_code"
    COUNTRY = "country"


@dataclass(slots=True, frozen=True)
class NameField:
    part: NamePart


@dataclass(slots=True, frozen=True)
class EmailField:
    index: int


@dataclass(slots=True, frozen=True)
class PhoneField:
    index: int


@dataclass(slots=True, frozen=True)
class OrganizationField:
    index: int
    attribute: OrganizationAttribute = OrganizationAttribute.NAME


@dataclass(slots=True, frozen=True)
class AddressField:
    index: int
    attribute: AddressAttribute


@dataclass(slots=True, frozen=True)
class NotesField:
    pass


type FieldRef = NameField | EmailField | PhoneField | OrganizationField | AddressField | NotesField


def describe_field(ref: FieldRef) -> str:
    """Human-readable location, e.g. ``organizations[1].title``."""

    match ref:
        case NameField(part=part):
            return f"name.{part}"
        case EmailField(index=index):
            return f"emails[{index}]"
        case PhoneField(index=index):
            return f"phones[{index}]"
        case OrganizationField(index=index, attribute=attribute):
            return f"organizations[{index}].{attribute}"
        case AddressField(index=index, attribute=attribute):
            return f"addresses[{index}].{attribute}"
        case NotesField():
            return "notes"


def _checked_index(
    record: ContactRecord,
    ref: FieldRef,
    entries: tuple[Any, ...],
    index: int,
) -> int:
    if not 0 <= index < len(entries):
        raise FieldAccessError(f"{describe_field(ref)} does not exist on record {record.id}")
    return index


def _without(entries: tuple[Any, ...], index: int) -> tuple[Any, ...]:
    return entries[:index] + entries[index + 1 :]


def _with(entries: tuple[Any, ...], index: int, entry: object) -> tuple[Any, ...]:
    return (*entries[:index], entry, *entries[index + 1 :])


def read_field(record: ContactRecord, ref: FieldRef) -> str | None:
    """Return the current value at ``ref``."""

    return _read(ref, record)


def write_field(record: ContactRecord, ref: FieldRef, value: str | None) -> ContactRecord:
    """Return a copy of ``record`` with ``value`` stored at ``ref``.

    Writing ``None`` to an email, phone, organization name or address street removes that
    entry; on scalar locations it clears the value.
    """

    return _write(ref, record, value)


@singledispatch
def _read(ref: object, record: ContactRecord) -> str | None:
    raise TypeError(f"Unsupported field reference: {ref!r} (record {record.id})")


@_read.register(NameField)
def _(ref: NameField, record: ContactRecord) -> str | None:
    return getattr(record.name, ref.part.value)


@_read.register(EmailField)
def _(ref: EmailField, record: ContactRecord) -> str | None:
    return record.emails[_checked_index(record, ref, record.emails, ref.index)].value


@_read.register(PhoneField)
def _(ref: PhoneField, record: ContactRecord) -> str | None:
    return record.phones[_checked_index(record, ref, record.phones, ref.index)].value


@_read.register(OrganizationField)
def _(ref: OrganizationField, record: ContactRecord) -> str | None:
    index = _checked_index(record, ref, record.organizations, ref.index)
    return getattr(record.organizations[index], ref.attribute.value)


@_read.register(AddressField)
def _(ref: AddressField, record: ContactRecord) -> str | None:
    index = _checked_index(record, ref, record.addresses, ref.index)
    return getattr(record.addresses[index], ref.attribute.value)


@_read.register(NotesField)
def _(ref: NotesField, record: ContactRecord) -> str | None:
    _ = ref
    return record.notes


@singledispatch
def _write(ref: object, record: ContactRecord, value: str | None) -> ContactRecord:
    _ = value
    raise TypeError(f"Unsupported field reference: {ref!r} (record {record.id})")


@_write.register(NameField)
def _(ref: NameField, record: ContactRecord, value: str | None) -> ContactRecord:
    name = replace(record.name, **{ref.part.value: value})
    return replace(record, name=name)


@_write.register(EmailField)
def _(ref: EmailField, record: ContactRecord, value: str | None) -> ContactRecord:
    index = _checked_index(record, ref, record.emails, ref.index)
    if value is None:
        return replace(record, emails=_without(record.emails, index))
    entry = replace(record.emails[index], value=value)
    return replace(record, emails=_with(record.emails, index, entry))


@_write.register(PhoneField)
def _(ref: PhoneField, record: ContactRecord, value: str | None) -> ContactRecord:
    index = _checked_index(record, ref, record.phones, ref.index)
    if value is None:
        return replace(record, phones=_without(record.phones, index))
    entry = replace(record.phones[index], value=value)
    return replace(record, phones=_with(record.phones, index, entry))


@_write.register(OrganizationField)
def _(ref: OrganizationField, record: ContactRecord, value: str | None) -> ContactRecord:
    index = _checked_index(record, ref, record.organizations, ref.index)
    if value is None and ref.attribute is OrganizationAttribute.NAME:
        return replace(record, organizations=_without(record.organizations, index))
    entry = replace(record.organizations[index], **{ref.attribute.value: value})
    return replace(record, organizations=_with(record.organizations, index, entry))


@_write.register(AddressField)
def _(ref: AddressField, record: ContactRecord, value: str | None) -> ContactRecord:
    index = _checked_index(record, ref, record.addresses, ref.index)
    if value is None and ref.attribute is AddressAttribute.STREET:
        return replace(record, addresses=_without(record.addresses, index))
    entry = replace(record.addresses[index], **{ref.attribute.value: value})
    return replace(record, addresses=_with(record.addresses, index, entry))


@_write.register(NotesField)
def _(ref: NotesField, record: ContactRecord, value: str | None) -> ContactRecord:
    _ = ref
    return replace(record, notes=value)
