"""Cached ticket endpoints: listing, query resolution and change requests."""

from fastapi import APIRouter, Depends, Query, status

from ticketcache.api.dependencies import StateStoreDep, guard_mutation
from ticketcache.api.models import (
    APIResponse,
    PendingChangeResponse,
    TicketChangeCreate,
    TicketMatchResponse,
    TicketResponse,
    ticket_match_to_response,
)
from ticketcache.identity import TicketIndexEntry, build_index, resolve_ticket
from ticketcache.state_store import StateStore

router = APIRouter(prefix="/repos/{owner}/{repo}/tickets", tags=["tickets"])


def _resolve(store: StateStore, full_name: str, query: str, ci: bool) -> TicketIndexEntry:
    entries = build_index((t.id, t.title) for t in store.list_tickets(full_name))
    return resolve_ticket(entries, query, ci=ci)


@router.get("", response_model=APIResponse[list[TicketResponse]])
def list_tickets(owner: str, repo: str, store: StateStoreDep) -> APIResponse[list[TicketResponse]]:
    """List a repository's cached tickets."""
    tickets = store.list_tickets(f"{owner}/{repo}")
    return APIResponse(data=[TicketResponse.model_validate(t) for t in tickets])


@router.get("/resolve", response_model=APIResponse[TicketMatchResponse])
def resolve(
    owner: str,
    repo: str,
    store: StateStoreDep,
    q: str = Query(..., description="Full ID, display ID, short ID, ID prefix or title"),
    ci: bool = Query(default=False, description="Exact full or short IDs only"),
) -> APIResponse[TicketMatchResponse]:
    """Resolve a ticket query to exactly one ticket."""
    match = _resolve(store, f"{owner}/{repo}", q, ci)
    return APIResponse(data=ticket_match_to_response(match))


@router.post(
    "/{ticket}/changes",
    response_model=APIResponse[PendingChangeResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(guard_mutation("ticket-change"))],
)
def create_ticket_change(
    owner: str, repo: str, ticket: str, body: TicketChangeCreate, store: StateStoreDep
) -> APIResponse[PendingChangeResponse]:
    """Record a ticket change whose PR is being opened."""
    full_name = f"{owner}/{repo}"
    match = _resolve(store, full_name, ticket, ci=False)
    change = store.create_pending_change(
        full_name,
        ticket_id=match.full_id,
        summary=body.summary,
        pr_number=body.pr_number,
        pr_url=body.pr_url,
    )
    return APIResponse(data=PendingChangeResponse.model_validate(change))
