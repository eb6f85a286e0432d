"""Unit tests for sync health classification."""

from datetime import UTC, datetime, timedelta
from itertools import product

import pytest

from ticketcache.sync_health import (
    SyncHealthState,
    SyncStatus,
    classify_sync_health,
    format_duration_short,
    summarize_sync_health,
)

STALE_AFTER_MS = 3 * 60 * 60 * 1000  # 3 hours


def classify(now: datetime, **kwargs):
    params = {
        "sync_status": "idle",
        "sync_error": None,
        "last_synced_at": now - timedelta(minutes=10),
        "now": now,
        "stale_after_ms": STALE_AFTER_MS,
    }
    params.update(kwargs)
    return classify_sync_health(**params)


@pytest.mark.unit
class TestClassifySyncHealth:
    """Tests for classify_sync_health."""

    def test_never_synced(self, now: datetime) -> None:
        snapshot = classify(now, last_synced_at=None, sync_status="syncing", sync_error="x")

        assert snapshot.state is SyncHealthState.NEVER_SYNCED
        assert snapshot.age_ms is None
        assert snapshot.is_stale is False
        assert snapshot.has_error is True

    def test_syncing_masks_error_and_staleness(self, now: datetime) -> None:
        snapshot = classify(
            now,
            sync_status="syncing",
            sync_error="x",
            last_synced_at=now - timedelta(hours=5),
        )

        assert snapshot.state is SyncHealthState.SYNCING
        assert snapshot.is_stale is True
        assert snapshot.has_error is True

    def test_syncing_within_an_hour(self, now: datetime) -> None:
        snapshot = classify(
            now, sync_status="syncing", sync_error="x", last_synced_at=now - timedelta(hours=1)
        )

        assert snapshot.state is SyncHealthState.SYNCING

    def test_error_message(self, now: datetime) -> None:
        snapshot = classify(now, sync_error="forge returned 502")

        assert snapshot.state is SyncHealthState.ERROR
        assert snapshot.error_message == "forge returned 502"

    def test_error_status_without_message(self, now: datetime) -> None:
        snapshot = classify(now, sync_status="error")

        assert snapshot.state is SyncHealthState.ERROR
        assert snapshot.error_message is None

    def test_error_beats_staleness(self, now: datetime) -> None:
        snapshot = classify(now, sync_error="boom", last_synced_at=now - timedelta(days=2))

        assert snapshot.state is SyncHealthState.ERROR
        assert snapshot.is_stale is True

    def test_stale(self, now: datetime) -> None:
        snapshot = classify(now, last_synced_at=now - timedelta(hours=4))

        assert snapshot.state is SyncHealthState.STALE
        assert snapshot.age_ms == 4 * 60 * 60 * 1000
        assert snapshot.stale_age_ms == 60 * 60 * 1000

    def test_exactly_at_threshold_is_healthy(self, now: datetime) -> None:
        snapshot = classify(now, last_synced_at=now - timedelta(milliseconds=STALE_AFTER_MS))

        assert snapshot.state is SyncHealthState.HEALTHY
        assert snapshot.stale_age_ms == 0

    def test_healthy_reports_durations(self, now: datetime) -> None:
        snapshot = classify(now)

        assert snapshot.state is SyncHealthState.HEALTHY
        assert snapshot.age_ms == 10 * 60 * 1000
        assert snapshot.stale_after_ms == STALE_AFTER_MS
        assert snapshot.has_error is False

    def test_naive_timestamp_treated_as_utc(self, now: datetime) -> None:
        naive = (now - timedelta(minutes=30)).replace(tzinfo=None)
        snapshot = classify(now, last_synced_at=naive)

        assert snapshot.age_ms == 30 * 60 * 1000
        assert snapshot.last_synced_at.tzinfo is UTC

    def test_future_timestamp_floors_age(self, now: datetime) -> None:
        snapshot = classify(now, last_synced_at=now + timedelta(minutes=5))

        assert snapshot.age_ms == 0
        assert snapshot.state is SyncHealthState.HEALTHY

    def test_unknown_status_counts_as_idle(self, now: datetime) -> None:
        snapshot = classify(now, sync_status="paused")

        assert snapshot.sync_status is SyncStatus.IDLE
        assert snapshot.state is SyncHealthState.HEALTHY

    def test_totality(self, now: datetime) -> None:
        """Every combination of present and missing fields maps to a state."""
        statuses = [None, "idle", "syncing", "error", "bogus", SyncStatus.SYNCING]
        errors = [None, "", "failed"]
        synced = [None, now, now - timedelta(days=30)]

        for status, error, last in product(statuses, errors, synced):
            snapshot = classify(now, sync_status=status, sync_error=error, last_synced_at=last)
            assert snapshot.state in set(SyncHealthState)


@pytest.mark.unit
class TestSummarizeSyncHealth:
    """Tests for summarize_sync_health."""

    def test_counts_per_state(self, now: datetime) -> None:
        snapshots = [
            classify(now),
            classify(now),
            classify(now, last_synced_at=None),
            classify(now, sync_status="syncing"),
            classify(now, sync_error="x"),
            classify(now, last_synced_at=now - timedelta(days=1)),
        ]

        summary = summarize_sync_health(snapshots, STALE_AFTER_MS)

        assert summary.total == 6
        assert summary.healthy == 2
        assert summary.never_synced == 1
        assert summary.syncing == 1
        assert summary.error == 1
        assert summary.stale == 1
        assert summary.stale_threshold_ms == STALE_AFTER_MS

    def test_empty(self) -> None:
        summary = summarize_sync_health([], 1000)

        assert summary.total == 0
        assert summary.healthy == 0


@pytest.mark.unit
class TestFormatDurationShort:
    """Tests for format_duration_short."""

    @pytest.mark.parametrize(
        ("ms", "expected"),
        [
            (None, "n/a"),
            (0, "<1m"),
            (59_999, "<1m"),
            (5 * 60_000, "5m"),
            (3 * 3_600_000 + 59 * 60_000, "3h"),
            (2 * 86_400_000, "2d"),
        ],
    )
    def test_labels(self, ms: int | None, expected: str) -> None:
        assert format_duration_short(ms) == expected
