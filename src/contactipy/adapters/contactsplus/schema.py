"""Pydantic models describing the ContactsPlus API payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class ContactsPlusBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class NamePayload(ContactsPlusBaseModel):
    given_name: str | None = Field(default=None, alias="givenName")
    middle_name: str | None = Field(default=None, alias="middleName")
    family_name: str | None = Field(default=None, alias="familyName")
    prefix: str | None = None
    suffix: str | None = None

    _normalize_parts = field_validator(
        "given_name", "middle_name", "family_name", "prefix", "suffix", mode="before"
    )(_blank_to_none)


class ValuePayload(ContactsPlusBaseModel):
    value: str
    type: str | None = None

    _normalize_type = field_validator("type", mode="before")(_blank_to_none)


class OrganizationPayload(ContactsPlusBaseModel):
    name: str | None = None
    department: str | None = None
    title: str | None = None

    _normalize_fields = field_validator("name", "department", "title", mode="before")(
        _blank_to_none
    )


class AddressPayload(ContactsPlusBaseModel):
    type: str | None = None
    street: str | None = None
    city: str | None = None
    region: str | None = None
    postal_code: str | None = Field(default=None, alias="postalCode")
    country: str | None = None


class ContactDataPayload(ContactsPlusBaseModel):
    name: NamePayload | None = None
    emails: list[ValuePayload] = Field(default_factory=list)
    phone_numbers: list[ValuePayload] = Field(default_factory=list, alias="phoneNumbers")
    organizations: list[OrganizationPayload] = Field(default_factory=list)
    addresses: list[AddressPayload] = Field(default_factory=list)
    urls: list[ValuePayload] = Field(default_factory=list)
    notes: str | None = None


class ContactMetadataPayload(ContactsPlusBaseModel):
    tag_ids: list[str] = Field(default_factory=list, alias="tagIds")
    shared_by: list[str] = Field(default_factory=list, alias="sharedBy")


class ContactPayload(ContactsPlusBaseModel):
    contact_id: str = Field(alias="contactId")
    etag: str | None = None
    created: str | None = None
    updated: str | None = None
    contact_data: ContactDataPayload = Field(
        default_factory=ContactDataPayload, alias="contactData"
    )
    contact_metadata: ContactMetadataPayload | None = Field(
        default=None, alias="contactMetadata"
    )


class ContactsResponse(ContactsPlusBaseModel):
    contacts: list[ContactPayload] = Field(default_factory=list)
    cursor: str | None = None

    _normalize_cursor = field_validator("cursor", mode="before")(_blank_to_none)


class ContactResponse(ContactsPlusBaseModel):
    contact: ContactPayload
