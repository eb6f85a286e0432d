"""Sync health endpoints."""

from datetime import UTC, datetime

from fastapi import APIRouter

from ticketcache.api.dependencies import SelectedReposDep, SettingsDep, StateStoreDep
from ticketcache.api.models import (
    APIResponse,
    SpaceSyncHealthResponse,
    SyncHealthResponse,
    sync_health_to_response,
    sync_summary_to_response,
)
from ticketcache.state_store import TrackedRepo
from ticketcache.sync_health import SyncHealthSnapshot, classify_sync_health, summarize_sync_health

router = APIRouter(tags=["sync-health"])


def _classify(repo: TrackedRepo, now: datetime, stale_after_ms: int) -> SyncHealthSnapshot:
    return classify_sync_health(
        sync_status=repo.sync_status,
        sync_error=repo.sync_error,
        last_synced_at=repo.last_synced_at,
        now=now,
        stale_after_ms=stale_after_ms,
    )


@router.get("/repos/{owner}/{repo}/sync-health", response_model=APIResponse[SyncHealthResponse])
def get_repo_sync_health(
    owner: str, repo: str, store: StateStoreDep, settings: SettingsDep
) -> APIResponse[SyncHealthResponse]:
    """Classify one repository's cache health."""
    tracked = store.get_repo(f"{owner}/{repo}")
    snapshot = _classify(tracked, datetime.now(UTC), settings.sync_stale_after_ms)
    return APIResponse(data=sync_health_to_response(tracked.full_name, snapshot))


@router.get("/space/sync-health", response_model=APIResponse[SpaceSyncHealthResponse])
def get_space_sync_health(
    repos: SelectedReposDep, settings: SettingsDep
) -> APIResponse[SpaceSyncHealthResponse]:
    """Classify every selected repository and count them per state."""
    now = datetime.now(UTC)
    stale_after_ms = settings.sync_stale_after_ms
    snapshots = [(r.full_name, _classify(r, now, stale_after_ms)) for r in repos]
    summary = summarize_sync_health((s for _, s in snapshots), stale_after_ms)
    return APIResponse(
        data=SpaceSyncHealthResponse(
            repos=[sync_health_to_response(name, s) for name, s in snapshots],
            summary=sync_summary_to_response(summary),
        )
    )
