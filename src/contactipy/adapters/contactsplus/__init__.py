"""ContactsPlus adapter: the remote address book."""

from __future__ import annotations

from .client import (
    ContactsPlusAPIError,
    ContactsPlusApplier,
    ContactsPlusClient,
    ContactsPlusRecordSource,
)
from .files import ContactsJsonFileSource
from .translator import contact_data_json, parse_contact

__all__ = [
    "ContactsJsonFileSource",
    "ContactsPlusAPIError",
    "ContactsPlusApplier",
    "ContactsPlusClient",
    "ContactsPlusRecordSource",
    "contact_data_json",
    "parse_contact",
]
