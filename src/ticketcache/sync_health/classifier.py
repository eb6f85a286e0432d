"""Sync health classification."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from ticketcache.sync_health.models import (
    SyncHealthSnapshot,
    SyncHealthState,
    SyncHealthSummary,
    SyncStatus,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS


def _normalize_status(raw: str | SyncStatus | None) -> SyncStatus:
    if raw is None:
        return SyncStatus.IDLE
    try:
        return SyncStatus(str(raw).strip().lower())
    except ValueError:
        return SyncStatus.IDLE


def _as_utc(value: datetime) -> datetime:
    # Cached timestamps are stored naive in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def classify_sync_health(
    sync_status: str | SyncStatus | None,
    sync_error: str | None,
    last_synced_at: datetime | None,
    now: datetime,
    stale_after_ms: int,
) -> SyncHealthSnapshot:
    """Classify a repository's cache health.

    Precedence: never synced, then an in-flight sync (which masks errors and
    staleness), then a reported error, then staleness. Derived durations and
    flags are filled in regardless of the final state.

    Args:
        sync_status: Status written by the sync job (unknown values count as idle).
        sync_error: Last error message, if any.
        last_synced_at: Time of last successful sync.
        now: Evaluation time.
        stale_after_ms: Age beyond which the cache is stale.

    Returns:
        The health snapshot. Never raises for any combination of inputs.
    """
    status = _normalize_status(sync_status)
    error_message = sync_error or None
    has_error = status is SyncStatus.ERROR or error_message is not None

    age_ms: int | None = None
    stale_age_ms: int | None = None
    synced_at = _as_utc(last_synced_at) if last_synced_at is not None else None
    if synced_at is not None:
        elapsed = _as_utc(now) - synced_at
        age_ms = max(0, int(elapsed.total_seconds() * 1000))
        stale_age_ms = max(0, age_ms - stale_after_ms)
    is_stale = age_ms is not None and age_ms > stale_after_ms

    if synced_at is None:
        state = SyncHealthState.NEVER_SYNCED
    elif status is SyncStatus.SYNCING:
        state = SyncHealthState.SYNCING
    elif has_error:
        state = SyncHealthState.ERROR
    elif is_stale:
        state = SyncHealthState.STALE
    else:
        state = SyncHealthState.HEALTHY

    return SyncHealthSnapshot(
        state=state,
        sync_status=status,
        last_synced_at=synced_at,
        age_ms=age_ms,
        stale_age_ms=stale_age_ms,
        stale_after_ms=stale_after_ms,
        is_stale=is_stale,
        has_error=has_error,
        error_message=error_message,
    )


def summarize_sync_health(
    snapshots: Iterable[SyncHealthSnapshot], stale_after_ms: int
) -> SyncHealthSummary:
    """Count snapshots per health state."""
    summary = SyncHealthSummary(stale_threshold_ms=stale_after_ms)
    for snapshot in snapshots:
        summary.total += 1
        # State values double as summary field names
        field_name = snapshot.state.value
        setattr(summary, field_name, getattr(summary, field_name) + 1)
    return summary


def format_duration_short(ms: int | None) -> str:
    """Compact duration label: ``<1m``, ``5m``, ``3h``, ``2d`` or ``n/a``."""
    if ms is None:
        return "n/a"
    if ms < MINUTE_MS:
        return "<1m"
    if ms < HOUR_MS:
        return f"{ms // MINUTE_MS}m"
    if ms < DAY_MS:
        return f"{ms // HOUR_MS}h"
    return f"{ms // DAY_MS}d"
