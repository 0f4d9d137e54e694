"""Queue and synchronisation defaults."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from .env import bool_from_env, choice_from_env, int_from_env

DEFAULT_BATCH_SIZE = 10
DEFAULT_MAX_RETRIES = 3
DEFAULT_MAX_CONSECUTIVE_FAILURES = 5


class ReviewPolicy(StrEnum):
    """What to do with review-band matches when nobody decides interactively."""

    MANUAL = "manual"
    MERGE = "merge"
    SKIP = "skip"
    NEW = "new"


class ConflictResolution(StrEnum):
    """What an update does when the remote contact changed after the change was queued."""

    MANUAL = "manual"
    LOCAL = "local"
    REMOTE = "remote"


@dataclass(frozen=True, slots=True)
class SyncConfig:
    batch_size: int = DEFAULT_BATCH_SIZE
    max_retries: int = DEFAULT_MAX_RETRIES
    max_consecutive_failures: int = DEFAULT_MAX_CONSECUTIVE_FAILURES
    review_policy: ReviewPolicy = ReviewPolicy.MANUAL
    sync_on_import: bool = False
    conflict_resolution: ConflictResolution = ConflictResolution.MANUAL


def get_sync_config() -> SyncConfig:
    return SyncConfig(
        batch_size=int_from_env("CONTACTIPY_SYNC_BATCH_SIZE", DEFAULT_BATCH_SIZE, minimum=1),
        max_retries=int_from_env("CONTACTIPY_SYNC_MAX_RETRIES", DEFAULT_MAX_RETRIES, minimum=1),
        max_consecutive_failures=int_from_env(
            "CONTACTIPY_SYNC_MAX_CONSECUTIVE_FAILURES",
            DEFAULT_MAX_CONSECUTIVE_FAILURES,
            minimum=1,
        ),
        review_policy=ReviewPolicy(
            choice_from_env(
                "CONTACTIPY_REVIEW_POLICY",
                ReviewPolicy.MANUAL.value,
                [policy.value for policy in ReviewPolicy],
            )
        ),
        sync_on_import=bool_from_env("CONTACTIPY_SYNC_ON_IMPORT", False),  # noqa: FBT003
        conflict_resolution=ConflictResolution(
            choice_from_env(
                "CONTACTIPY_CONFLICT_RESOLUTION",
                ConflictResolution.MANUAL.value,
                [resolution.value for resolution in ConflictResolution],
            )
        ),
    )
