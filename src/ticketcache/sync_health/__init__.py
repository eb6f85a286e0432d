"""Sync Health Classifier - Freshness and error state of the ticket cache."""

from ticketcache.sync_health.classifier import (
    classify_sync_health,
    format_duration_short,
    summarize_sync_health,
)
from ticketcache.sync_health.models import (
    SyncHealthSnapshot,
    SyncHealthState,
    SyncHealthSummary,
    SyncStatus,
)

__all__ = [
    "SyncHealthSnapshot",
    "SyncHealthState",
    "SyncHealthSummary",
    "SyncStatus",
    "classify_sync_health",
    "format_duration_short",
    "summarize_sync_health",
]
