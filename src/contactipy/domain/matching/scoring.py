"""Weighted multi-field similarity between two contact records.

Four sub-scores are combined as a literal weighted sum:

* name (0.35): Jaro-Winkler similarity of the normalized full names
* email (0.30): any address shared, case-insensitive
* phone (0.20): any digits-only number shared
* company (0.15): first organization names with Jaro-Winkler above 0.8

A field missing on either side contributes nothing, so sparse records score low instead of
looking similar.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from rapidfuzz.distance import JaroWinkler

from contactipy.domain.normalize import (
    normalize_email,
    normalize_full_name,
    normalize_phone,
    normalize_text,
)

from .blocking import MatchCandidate
from .merge import plan

if TYPE_CHECKING:
    from collections.abc import Iterable

    from contactipy.domain.model import ContactRecord

NAME_WEIGHT: Final[float] = 0.35
EMAIL_WEIGHT: Final[float] = 0.30
PHONE_WEIGHT: Final[float] = 0.20
COMPANY_WEIGHT: Final[float] = 0.15

NAME_MATCH_THRESHOLD: Final[float] = 0.85
COMPANY_MATCH_THRESHOLD: Final[float] = 0.8

HIGH_CONFIDENCE_THRESHOLD: Final[float] = 0.85
REVIEW_THRESHOLD: Final[float] = 0.70


class MatchBand(StrEnum):
    HIGH_CONFIDENCE = "high_confidence"
    REVIEW = "review"
    DISTINCT = "distinct"


def band_for(score: float) -> MatchBand:
    if score >= HIGH_CONFIDENCE_THRESHOLD:
        return MatchBand.HIGH_CONFIDENCE
    if score >= REVIEW_THRESHOLD:
        return MatchBand.REVIEW
    return MatchBand.DISTINCT


def jaro_winkler(left: str, right: str) -> float:
    """Jaro-Winkler similarity with operands in a fixed order, so argument order never matters."""

    if not left or not right:
        return 0.0
    first, second = sorted((left, right))
    return JaroWinkler.similarity(first, second)


@dataclass(slots=True, frozen=True)
class MatchFlags:
    name: bool = False
    email: bool = False
    phone: bool = False
    company: bool = False


@dataclass(slots=True, frozen=True)
class ScoredMatch:
    """A scored candidate pair plus the merged record a merge would produce.

    ``merged`` keeps the identity of ``existing`` (the indexed side) and folds ``incoming``
    into it.
    """

    candidate: MatchCandidate
    score: float
    flags: MatchFlags
    name_similarity: float
    merged: ContactRecord = field(compare=False)

    @property
    def incoming(self) -> ContactRecord:
        return self.candidate.left

    @property
    def existing(self) -> ContactRecord:
        return self.candidate.right

    @property
    def band(self) -> MatchBand:
        return band_for(self.score)


def _shares_any(left: Iterable[str], right: Iterable[str]) -> bool:
    left_values = {value for value in left if value}
    return any(value in left_values for value in right if value)


class SimilarityScorer:
    """Deterministic scorer; instances hold no state and can be shared."""

    def __init__(self, *, merge_provenance: str = "Merged record") -> None:
        self.merge_provenance = merge_provenance

    def name_similarity(self, a: ContactRecord, b: ContactRecord) -> float:
        return jaro_winkler(normalize_full_name(a), normalize_full_name(b))

    def company_similarity(self, a: ContactRecord, b: ContactRecord) -> float:
        org_a = a.primary_organization
        org_b = b.primary_organization
        if org_a is None or org_b is None:
            return 0.0
        return jaro_winkler(normalize_text(org_a.name), normalize_text(org_b.name))

    def similarity(self, a: ContactRecord, b: ContactRecord) -> tuple[float, MatchFlags, float]:
        """Return ``(score, flags, name_similarity)`` without planning a merge."""

        name_similarity = self.name_similarity(a, b)
        email_match = _shares_any(
            (normalize_email(email.value) for email in a.emails),
            (normalize_email(email.value) for email in b.emails),
        )
        phone_match = _shares_any(
            (normalize_phone(phone.value) for phone in a.phones),
            (normalize_phone(phone.value) for phone in b.phones),
        )
        company_match = self.company_similarity(a, b) > COMPANY_MATCH_THRESHOLD

        score = math.fsum(
            (
                NAME_WEIGHT * name_similarity,
                EMAIL_WEIGHT if email_match else 0.0,
                PHONE_WEIGHT if phone_match else 0.0,
                COMPANY_WEIGHT if company_match else 0.0,
            )
        )
        flags = MatchFlags(
            name=name_similarity > NAME_MATCH_THRESHOLD,
            email=email_match,
            phone=phone_match,
            company=company_match,
        )
        return min(max(score, 0.0), 1.0), flags, name_similarity

    def score(self, a: ContactRecord, b: ContactRecord) -> ScoredMatch:
        """Score ``a`` (incoming) against ``b`` (existing)."""

        value, flags, name_similarity = self.similarity(a, b)
        return ScoredMatch(
            candidate=MatchCandidate(left=a, right=b),
            score=value,
            flags=flags,
            name_similarity=name_similarity,
            merged=plan(b, a, provenance=self.merge_provenance),
        )

    def best_match(
        self,
        record: ContactRecord,
        candidates: Iterable[ContactRecord],
    ) -> ScoredMatch | None:
        """Highest-scoring candidate with a positive score.

        Ties keep the earliest candidate in iteration order; ``BlockingIndex.candidates``
        yields them in input order.
        """

        best: tuple[float, ContactRecord] | None = None
        for candidate in candidates:
            value, _, _ = self.similarity(record, candidate)
            if value > 0 and (best is None or value > best[0]):
                best = (value, candidate)
        if best is None:
            return None
        return self.score(record, best[1])
