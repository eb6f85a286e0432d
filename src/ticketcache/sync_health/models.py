"""Data models for sync health."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime  # noqa: TC003 - dataclass field type
from enum import StrEnum


class SyncStatus(StrEnum):
    """Status written by the synchronization job."""

    IDLE = "idle"
    SYNCING = "syncing"
    ERROR = "error"


class SyncHealthState(StrEnum):
    """Derived health of a repository's cache."""

    HEALTHY = "healthy"
    STALE = "stale"
    ERROR = "error"
    SYNCING = "syncing"
    NEVER_SYNCED = "never_synced"


@dataclass(frozen=True)
class SyncHealthSnapshot:
    """Health of one repository's cache at a point in time.

    Attributes:
        state: Classified health state.
        sync_status: Normalized status reported by the sync job.
        last_synced_at: Time of the last successful sync, if any.
        age_ms: Milliseconds since last successful sync (None if never synced).
        stale_age_ms: Milliseconds past the stale threshold, floored at 0.
        stale_after_ms: Threshold used for this snapshot.
        is_stale: Whether age exceeds the threshold.
        has_error: Whether the sync job reported an error.
        error_message: Error text reported by the sync job.
    """

    state: SyncHealthState
    sync_status: SyncStatus
    last_synced_at: datetime | None
    age_ms: int | None
    stale_age_ms: int | None
    stale_after_ms: int
    is_stale: bool
    has_error: bool
    error_message: str | None


@dataclass
class SyncHealthSummary:
    """Per-state counts across repositories."""

    total: int = 0
    healthy: int = 0
    stale: int = 0
    error: int = 0
    syncing: int = 0
    never_synced: int = 0
    stale_threshold_ms: int = 0
