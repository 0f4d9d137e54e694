"""Blocked match analysis over record collections."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from .blocking import BlockingIndex, candidate_pairs
from .scoring import REVIEW_THRESHOLD, ScoredMatch, SimilarityScorer

if TYPE_CHECKING:
    from collections.abc import Sequence

    from contactipy.domain.model import ContactRecord

log = getLogger(__name__)


@dataclass(slots=True)
class MatchAnalysis:
    """Incoming records split into those with a likely counterpart and those without."""

    matches: list[ScoredMatch] = field(default_factory=list)
    unmatched: list[ContactRecord] = field(default_factory=list)
    comparisons: int = 0


def find_best_match(
    record: ContactRecord,
    index: BlockingIndex,
    scorer: SimilarityScorer | None = None,
) -> ScoredMatch | None:
    effective_scorer = scorer or SimilarityScorer()
    return effective_scorer.best_match(record, index.candidates(record))


def find_matches(
    incoming: Sequence[ContactRecord],
    existing: Sequence[ContactRecord],
    *,
    scorer: SimilarityScorer | None = None,
    threshold: float = REVIEW_THRESHOLD,
) -> MatchAnalysis:
    """Match every incoming record against the existing collection."""

    effective_scorer = scorer or SimilarityScorer()
    index = BlockingIndex.build(existing)
    analysis = MatchAnalysis()
    for record in incoming:
        candidates = index.candidates(record)
        analysis.comparisons += len(candidates)
        best = effective_scorer.best_match(record, candidates)
        if best is not None and best.score >= threshold:
            analysis.matches.append(best)
        else:
            analysis.unmatched.append(record)

    log.info(
        "Match analysis: incoming=%s, existing=%s, matched=%s, unmatched=%s, comparisons=%s",
        len(incoming),
        len(existing),
        len(analysis.matches),
        len(analysis.unmatched),
        analysis.comparisons,
    )
    return analysis


def find_duplicates(
    records: Sequence[ContactRecord],
    *,
    scorer: SimilarityScorer | None = None,
    threshold: float = REVIEW_THRESHOLD,
) -> list[ScoredMatch]:
    """Likely duplicate pairs inside one collection, best first.

    Each pair is scored once. The earlier record is treated as the surviving (existing) side.
    """

    effective_scorer = scorer or SimilarityScorer()
    found: list[ScoredMatch] = []
    compared = 0
    for pair in candidate_pairs(records):
        compared += 1
        value, _, _ = effective_scorer.similarity(pair.right, pair.left)
        if value >= threshold:
            found.append(effective_scorer.score(pair.right, pair.left))
    found.sort(key=lambda match: match.score, reverse=True)
    log.info(
        "Duplicate scan: records=%s, comparisons=%s, duplicates=%s",
        len(records),
        compared,
        len(found),
    )
    return found
