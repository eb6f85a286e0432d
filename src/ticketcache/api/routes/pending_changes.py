"""Pending-change status endpoints."""

from typing import Any

from fastapi import APIRouter, Body, Depends, Query

from ticketcache.api.dependencies import ForgeClientDep, StateStoreDep, guard_mutation
from ticketcache.api.models import APIResponse, PendingChangeResponse
from ticketcache.pending_changes import (
    LegacyPRStatusPayload,
    PRStatusPayload,
    next_change_status,
    normalize_pr_status,
    parse_pr_status_payload,
)
from ticketcache.state_store import PendingChangeRecord, StateStore

router = APIRouter(prefix="/repos/{owner}/{repo}/pending-changes", tags=["pending-changes"])


def _apply_status(
    store: StateStore,
    full_name: str,
    pr_number: int,
    payload: PRStatusPayload | LegacyPRStatusPayload,
) -> PendingChangeRecord:
    current = store.get_pending_change(full_name, pr_number)
    signals = normalize_pr_status(payload)
    new_status = next_change_status(current.status, signals)
    return store.update_pending_change_status(
        full_name, pr_number, new_status, auto_merge=signals.auto_merge
    )


@router.get("", response_model=APIResponse[list[PendingChangeResponse]])
def list_pending_changes(
    owner: str,
    repo: str,
    store: StateStoreDep,
    unresolved: bool = Query(default=False, description="Only changes not yet merged or closed"),
) -> APIResponse[list[PendingChangeResponse]]:
    """List a repository's pending changes."""
    changes = store.list_pending_changes(f"{owner}/{repo}", unresolved_only=unresolved)
    return APIResponse(data=[PendingChangeResponse.model_validate(c) for c in changes])


@router.put(
    "/{pr_number}/status",
    response_model=APIResponse[PendingChangeResponse],
    dependencies=[Depends(guard_mutation("pr-status"))],
)
def update_status(
    owner: str,
    repo: str,
    pr_number: int,
    store: StateStoreDep,
    payload: dict[str, Any] = Body(...),
) -> APIResponse[PendingChangeResponse]:
    """Apply a PR status report in either the current or the legacy shape."""
    parsed = parse_pr_status_payload(payload)
    change = _apply_status(store, f"{owner}/{repo}", pr_number, parsed)
    return APIResponse(data=PendingChangeResponse.model_validate(change))


@router.post(
    "/{pr_number}/refresh",
    response_model=APIResponse[PendingChangeResponse],
    dependencies=[Depends(guard_mutation("pr-refresh"))],
)
def refresh_status(
    owner: str,
    repo: str,
    pr_number: int,
    store: StateStoreDep,
    forge: ForgeClientDep,
) -> APIResponse[PendingChangeResponse]:
    """Fetch the PR's status from the forge once and apply it."""
    full_name = f"{owner}/{repo}"
    # Fail fast on unknown changes before contacting the forge
    store.get_pending_change(full_name, pr_number)
    payload = forge.get_pr_status(full_name, pr_number)
    change = _apply_status(store, full_name, pr_number, payload)
    return APIResponse(data=PendingChangeResponse.model_validate(change))
