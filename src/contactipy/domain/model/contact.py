"""Contact records as they are compared, merged and queued.

Records are immutable values: every edit goes through ``dataclasses.replace`` (or the typed
field accessors in :mod:`contactipy.domain.model.fields`) and produces a new record.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


def _clean(value: str | None) -> str:
    return value.strip() if value else ""


class RecordOrigin(StrEnum):
    """Where a locally stored record came from."""

    REMOTE = "remote"
    IMPORT = "import"
    LOCAL = "local"


@dataclass(slots=True, frozen=True, kw_only=True)
class ContactName:
    prefix: str | None = None
    given: str | None = None
    middle: str | None = None
    family: str | None = None
    suffix: str | None = None

    @property
    def full_name(self) -> str:
        parts = (_clean(self.given), _clean(self.middle), _clean(self.family))
        return " ".join(part for part in parts if part)

    def is_blank(self) -> bool:
        return not any(
            _clean(part)
            for part in (self.prefix, self.given, self.middle, self.family, self.suffix)
        )


@dataclass(slots=True, frozen=True, kw_only=True)
class EmailAddress:
    value: str
    type: str | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class PhoneNumber:
    value: str
    type: str | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class WebAddress:
    value: str
    type: str | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class Organization:
    name: str | None = None
    department: str | None = None
    title: str | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class Address:
    type: str | None = None
    street: str | None = None
    city: str | None = None
    region: str | None = None
    postal_code: str | None = None
    country: str | None = None

    def is_blank(self) -> bool:
        return not any(
            _clean(part)
            for part in (
                self.street,
                self.city,
                self.region,
                self.postal_code,
                self.country,
            )
        )


@dataclass(slots=True, frozen=True, kw_only=True)
class ContactRecord:
    """A contact identified by an opaque id plus its structured fields."""

    id: str
    name: ContactName = field(default_factory=ContactName)
    emails: tuple[EmailAddress, ...] = ()
    phones: tuple[PhoneNumber, ...] = ()
    organizations: tuple[Organization, ...] = ()
    addresses: tuple[Address, ...] = ()
    urls: tuple[WebAddress, ...] = ()
    notes: str | None = None

    @property
    def full_name(self) -> str:
        return self.name.full_name

    @property
    def primary_organization(self) -> Organization | None:
        """First organization entry, which is what company comparisons look at."""

        return self.organizations[0] if self.organizations else None

    @property
    def display_name(self) -> str:
        if self.full_name:
            return self.full_name
        if self.emails:
            return self.emails[0].value
        org = self.primary_organization
        if org is not None and _clean(org.name):
            return _clean(org.name)
        return self.id
