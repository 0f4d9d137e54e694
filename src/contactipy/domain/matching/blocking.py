"""Blocking index: cheap derived keys that narrow pairwise comparison.

Keys come from four independent fields (name prefix, email domain, phone prefix, company
prefix), so two records have to differ on all four to never meet. Keys only select
candidates; they never decide whether two records are the same person.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

from contactipy.domain.normalize import (
    email_domain,
    normalize_full_name,
    normalize_phone,
    normalize_text,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from contactipy.domain.model import ContactRecord

log = getLogger(__name__)

DEFAULT_BLOCK: Final[str] = "default"
NAME_PREFIX_LENGTH: Final[int] = 3
PHONE_PREFIX_LENGTH: Final[int] = 4
COMPANY_PREFIX_LENGTH: Final[int] = 3

type BlockingKey = str


def blocking_keys(record: ContactRecord) -> tuple[BlockingKey, ...]:
    """Return the record's blocking keys in a stable order, falling back to ``default``."""

    keys: list[BlockingKey] = []

    name = normalize_full_name(record)
    if len(name) >= NAME_PREFIX_LENGTH:
        keys.append(f"name:{name[:NAME_PREFIX_LENGTH]}")

    for email in record.emails:
        domain = email_domain(email.value)
        if domain:
            keys.append(f"email:{domain}")

    for phone in record.phones:
        digits = normalize_phone(phone.value)
        if len(digits) >= PHONE_PREFIX_LENGTH:
            keys.append(f"phone:{digits[:PHONE_PREFIX_LENGTH]}")

    organization = record.primary_organization
    company = normalize_text(organization.name) if organization is not None else ""
    if len(company) >= COMPANY_PREFIX_LENGTH:
        keys.append(f"company:{company[:COMPANY_PREFIX_LENGTH]}")

    if not keys:
        return (DEFAULT_BLOCK,)
    return tuple(dict.fromkeys(keys))


@dataclass(slots=True, frozen=True)
class MatchCandidate:
    """Two records worth scoring; ``left`` is the query side, ``right`` the indexed side."""

    left: ContactRecord
    right: ContactRecord

    @property
    def pair_key(self) -> frozenset[str]:
        return frozenset((self.left.id, self.right.id))


@dataclass(slots=True)
class BlockingIndex:
    """Records grouped by blocking key, keeping insertion order inside every group."""

    _blocks: dict[BlockingKey, list[ContactRecord]] = field(default_factory=dict)
    _positions: dict[str, int] = field(default_factory=dict)

    @classmethod
    def build(cls, records: Iterable[ContactRecord]) -> BlockingIndex:
        index = cls()
        for record in records:
            index.add(record)
        log.debug("Built blocking index: records=%s, blocks=%s", len(index), len(index._blocks))
        return index

    def add(self, record: ContactRecord) -> None:
        if record.id in self._positions:
            return
        self._positions[record.id] = len(self._positions)
        for key in blocking_keys(record):
            self._blocks.setdefault(key, []).append(record)

    def __len__(self) -> int:
        return len(self._positions)

    def block(self, key: BlockingKey) -> Sequence[ContactRecord]:
        return tuple(self._blocks.get(key, ()))

    def candidates(self, record: ContactRecord) -> list[ContactRecord]:
        """Union of every block the record's keys hit, without the record itself.

        The result is ordered by the position each candidate had when the index was built,
        which is what makes best-match tie-breaking reproducible.
        """

        found: dict[str, ContactRecord] = {}
        for key in blocking_keys(record):
            for candidate in self._blocks.get(key, ()):
                if candidate.id != record.id:
                    found.setdefault(candidate.id, candidate)
        return sorted(found.values(), key=lambda candidate: self._positions[candidate.id])


def build(records: Iterable[ContactRecord]) -> BlockingIndex:
    return BlockingIndex.build(records)


def candidates(record: ContactRecord, index: BlockingIndex) -> list[ContactRecord]:
    return index.candidates(record)


def candidate_pairs(records: Sequence[ContactRecord]) -> Iterator[MatchCandidate]:
    """Yield every blocked pair inside one collection exactly once.

    The earlier record (in input order) is always ``left``.
    """

    index = BlockingIndex.build(records)
    seen: set[frozenset[str]] = set()
    for record in records:
        for other in index.candidates(record):
            pair = MatchCandidate(left=record, right=other)
            if pair.pair_key in seen:
                continue
            seen.add(pair.pair_key)
            yield pair
