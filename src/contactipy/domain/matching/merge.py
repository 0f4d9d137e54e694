"""Merge planning: fold an incoming record into an existing one.

``plan`` is pure. Its output only ever adds to ``existing`` and keeps its id, and planning the
same incoming record twice changes nothing the second time.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Final

from contactipy.domain.normalize import normalize_email, normalize_phone, normalize_text

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable

    from contactipy.domain.model import Address, ContactName, ContactRecord, Organization

DEFAULT_PROVENANCE: Final[str] = "Merged record"

_NAME_PARTS: Final[tuple[str, ...]] = ("prefix", "given", "middle", "family", "suffix")


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def merge_name(existing: ContactName, incoming: ContactName) -> ContactName:
    """Existing parts win; incoming only fills blanks."""

    filled = {
        part: getattr(incoming, part)
        for part in _NAME_PARTS
        if _blank(getattr(existing, part)) and not _blank(getattr(incoming, part))
    }
    return replace(existing, **filled) if filled else existing


def _union[T](
    existing: tuple[T, ...],
    incoming: tuple[T, ...],
    key: Callable[[T], Hashable | None],
) -> tuple[T, ...]:
    """Append incoming entries whose key is new; ``None`` keys are never appended."""

    seen = {key(entry) for entry in existing}
    merged = list(existing)
    for entry in incoming:
        entry_key = key(entry)
        if entry_key is None or entry_key in seen:
            continue
        seen.add(entry_key)
        merged.append(entry)
    if len(merged) == len(existing):
        return existing
    return tuple(merged)


def organization_key(organization: Organization) -> Hashable | None:
    name = normalize_text(organization.name)
    if name:
        return name
    rest = (normalize_text(organization.department), normalize_text(organization.title))
    return ("", *rest) if any(rest) else None


def address_key(address: Address) -> Hashable | None:
    if address.is_blank():
        return None
    street = normalize_text(address.street)
    city = normalize_text(address.city)
    if street or city:
        return f"{street}|{city}"
    return (
        normalize_text(address.region),
        normalize_text(address.postal_code),
        normalize_text(address.country),
    )


def provenance_marker(provenance: str) -> str:
    return f"[From {provenance}]"


def merge_notes(existing: str | None, incoming: str | None, *, provenance: str) -> str | None:
    """Append incoming notes under a provenance marker unless that exact block is already there."""

    addition = incoming.strip() if incoming else ""
    if not addition:
        return existing
    if existing is None or not existing.strip():
        return addition
    block = f"{provenance_marker(provenance)}\n{addition}"
    if existing.strip() == addition or block in existing:
        return existing
    return f"{existing}\n\n{block}"


def plan(
    existing: ContactRecord,
    incoming: ContactRecord,
    *,
    provenance: str = DEFAULT_PROVENANCE,
) -> ContactRecord:
    """Return ``existing`` enriched with everything ``incoming`` adds."""

    return replace(
        existing,
        name=merge_name(existing.name, incoming.name),
        emails=_union(
            existing.emails,
            incoming.emails,
            lambda email: normalize_email(email.value) or None,
        ),
        phones=_union(
            existing.phones,
            incoming.phones,
            lambda phone: normalize_phone(phone.value) or None,
        ),
        organizations=_union(existing.organizations, incoming.organizations, organization_key),
        addresses=_union(existing.addresses, incoming.addresses, address_key),
        urls=_union(
            existing.urls,
            incoming.urls,
            lambda url: normalize_text(url.value) or None,
        ),
        notes=merge_notes(existing.notes, incoming.notes, provenance=provenance),
    )
