"""Record matching: blocking, scoring and merge planning."""

from __future__ import annotations

from .analysis import MatchAnalysis, find_best_match, find_duplicates, find_matches
from .blocking import (
    DEFAULT_BLOCK,
    BlockingIndex,
    MatchCandidate,
    blocking_keys,
    candidate_pairs,
)
from .merge import plan
from .scoring import (
    HIGH_CONFIDENCE_THRESHOLD,
    REVIEW_THRESHOLD,
    MatchBand,
    MatchFlags,
    ScoredMatch,
    SimilarityScorer,
    band_for,
)

__all__ = [
    "DEFAULT_BLOCK",
    "HIGH_CONFIDENCE_THRESHOLD",
    "REVIEW_THRESHOLD",
    "BlockingIndex",
    "MatchAnalysis",
    "MatchBand",
    "MatchCandidate",
    "MatchFlags",
    "ScoredMatch",
    "SimilarityScorer",
    "band_for",
    "blocking_keys",
    "candidate_pairs",
    "find_best_match",
    "find_duplicates",
    "find_matches",
    "plan",
]
