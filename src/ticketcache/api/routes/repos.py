"""Tracked repository endpoints and the sync job's snapshot write."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, status

from ticketcache.api.dependencies import StateStoreDep, guard_mutation
from ticketcache.api.models import (
    APIResponse,
    RepoCreate,
    RepoResponse,
    SnapshotWrite,
    SnapshotWriteResponse,
)
from ticketcache.state_store import PRRecord, TicketRecord
from ticketcache.sync_health import SyncStatus

router = APIRouter(prefix="/repos", tags=["repos"])


@router.get("", response_model=APIResponse[list[RepoResponse]])
def list_repos(store: StateStoreDep) -> APIResponse[list[RepoResponse]]:
    """List tracked repositories."""
    repos = store.list_repos()
    return APIResponse(data=[RepoResponse.model_validate(r) for r in repos])


@router.post(
    "",
    response_model=APIResponse[RepoResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(guard_mutation("repo-enable"))],
)
def create_repo(body: RepoCreate, store: StateStoreDep) -> APIResponse[RepoResponse]:
    """Start tracking a repository."""
    created = store.create_repo(body.repo, enabled=body.enabled)
    return APIResponse(data=RepoResponse.model_validate(created))


@router.put(
    "/{owner}/{repo}/snapshot",
    response_model=APIResponse[SnapshotWriteResponse],
    dependencies=[Depends(guard_mutation("snapshot-write"))],
)
def write_snapshot(
    owner: str, repo: str, body: SnapshotWrite, store: StateStoreDep
) -> APIResponse[SnapshotWriteResponse]:
    """Write the sync job's view of a repository.

    Ticket and PR lists replace the cached rows when present. A successful
    sync that omits ``last_synced_at`` is stamped with the current time.
    """
    full_name = f"{owner}/{repo}"
    now = datetime.now(UTC)

    ticket_count = None
    if body.tickets is not None:
        cached = store.replace_tickets(
            full_name,
            [
                TicketRecord(
                    full_id=t.id,
                    title=t.title,
                    state=t.state,
                    priority=t.priority,
                    created_at=t.created_at,
                    labels=t.labels,
                )
                for t in body.tickets
            ],
            cached_at=now,
        )
        ticket_count = len(cached)

    pr_count = None
    if body.prs is not None:
        linked = store.replace_ticket_prs(
            full_name,
            [
                PRRecord(
                    ticket_key=pr.ticket_key,
                    pr_number=pr.pr_number,
                    url=pr.url,
                    title=pr.title,
                    open=pr.open,
                    merged=pr.merged,
                    mergeable_state=pr.mergeable_state,
                    checks_state=pr.checks_state,
                )
                for pr in body.prs
            ],
        )
        pr_count = len(linked)

    last_synced_at = body.sync.last_synced_at
    completed = body.sync.sync_status is SyncStatus.IDLE and body.tickets is not None
    if last_synced_at is None and completed:
        last_synced_at = now

    updated = store.update_sync_state(
        full_name,
        sync_status=body.sync.sync_status,
        sync_error=body.sync.sync_error,
        last_synced_at=last_synced_at,
    )
    return APIResponse(
        data=SnapshotWriteResponse(
            repo=updated.full_name,
            sync_status=updated.sync_status,
            tickets=ticket_count,
            prs=pr_count,
        )
    )
