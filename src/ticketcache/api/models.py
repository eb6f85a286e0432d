"""Pydantic models for REST API."""

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from ticketcache.attention import AttentionFeed, AttentionItem, reason_details
from ticketcache.identity import TicketIndexEntry
from ticketcache.pending_changes import PendingChangeStatus
from ticketcache.sync_health import (
    SyncHealthSnapshot,
    SyncHealthSummary,
    SyncStatus,
    format_duration_short,
)

T = TypeVar("T")

REPO_PATTERN = r"^[\w\-\.]+/[\w\-\.]+$"


class APIResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    data: T | None = None
    error: str | None = None
    details: dict[str, Any] | None = None


# Repository models


class RepoCreate(BaseModel):
    """Request model for tracking a repository."""

    repo: str = Field(..., min_length=3, max_length=255, pattern=REPO_PATTERN)
    enabled: bool = True


class RepoResponse(BaseModel):
    """Response model for a tracked repository."""

    model_config = ConfigDict(from_attributes=True)

    full_name: str
    owner: str
    repo: str
    enabled: bool
    sync_status: str
    sync_error: str | None
    last_synced_at: datetime | None
    created_at: datetime
    updated_at: datetime


# Snapshot write models (used by the sync job)


class TicketInput(BaseModel):
    """One ticket as read from the ticket files."""

    id: str = Field(..., min_length=1, max_length=26)
    title: str = Field(..., max_length=500)
    state: str = Field(..., min_length=1, max_length=32)
    priority: str = Field(default="p2", max_length=8)
    created_at: datetime | None = None
    labels: list[str] = Field(default_factory=list)


class LinkedPRInput(BaseModel):
    """One forge PR linked to a ticket."""

    ticket_key: str = Field(..., min_length=1, max_length=26)
    pr_number: int = Field(..., gt=0)
    url: str
    title: str | None = None
    open: bool = True
    merged: bool | None = None
    mergeable_state: str | None = None
    checks_state: str = "unknown"


class SyncStateInput(BaseModel):
    """Sync job status."""

    sync_status: SyncStatus
    sync_error: str | None = None
    last_synced_at: datetime | None = None


class SnapshotWrite(BaseModel):
    """Request model for writing a repository snapshot.

    Omitted ticket or PR lists leave the cached rows untouched, so a failed
    sync can report its status alone.
    """

    sync: SyncStateInput
    tickets: list[TicketInput] | None = None
    prs: list[LinkedPRInput] | None = None


class SnapshotWriteResponse(BaseModel):
    """Response model for a snapshot write."""

    repo: str
    sync_status: str
    tickets: int | None
    prs: int | None


# Ticket models


class TicketResponse(BaseModel):
    """Response model for a cached ticket."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    short_id: str
    display_id: str
    title: str
    state: str
    priority: str
    labels: list[str]
    created_at: datetime | None
    cached_at: datetime


class TicketMatchResponse(BaseModel):
    """Response model for a resolved ticket query."""

    id: str
    short_id: str
    display_id: str
    title: str


def ticket_match_to_response(entry: TicketIndexEntry) -> TicketMatchResponse:
    """Convert a TicketIndexEntry to TicketMatchResponse."""
    return TicketMatchResponse(
        id=entry.full_id,
        short_id=entry.short_id,
        display_id=entry.display_id,
        title=entry.title,
    )


# Pending change models


class TicketChangeCreate(BaseModel):
    """Request model for recording a ticket change."""

    summary: str = Field(..., min_length=1, max_length=500)
    pr_number: int | None = Field(default=None, gt=0)
    pr_url: str | None = None


class PendingChangeResponse(BaseModel):
    """Response model for a pending change."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    ticket_id: str
    pr_number: int | None
    pr_url: str | None
    summary: str
    status: PendingChangeStatus
    auto_merge: bool
    created_at: datetime
    updated_at: datetime


# Sync health models


class SyncHealthResponse(BaseModel):
    """Response model for one repository's sync health."""

    repo: str
    state: str
    sync_status: str
    last_synced_at: datetime | None
    age_ms: int | None
    age_label: str | None
    stale_age_ms: int | None
    stale_after_ms: int
    is_stale: bool
    has_error: bool
    error_message: str | None


class SyncHealthSummaryResponse(BaseModel):
    """Per-state counts across repositories."""

    model_config = ConfigDict(from_attributes=True)

    total: int
    healthy: int
    stale: int
    error: int
    syncing: int
    never_synced: int
    stale_threshold_ms: int


class SpaceSyncHealthResponse(BaseModel):
    """Response model for space-wide sync health."""

    repos: list[SyncHealthResponse]
    summary: SyncHealthSummaryResponse


def sync_health_to_response(repo: str, snapshot: SyncHealthSnapshot) -> SyncHealthResponse:
    """Convert a SyncHealthSnapshot to SyncHealthResponse."""
    return SyncHealthResponse(
        repo=repo,
        state=snapshot.state.value,
        sync_status=snapshot.sync_status.value,
        last_synced_at=snapshot.last_synced_at,
        age_ms=snapshot.age_ms,
        age_label=format_duration_short(snapshot.age_ms) if snapshot.age_ms is not None else None,
        stale_age_ms=snapshot.stale_age_ms,
        stale_after_ms=snapshot.stale_after_ms,
        is_stale=snapshot.is_stale,
        has_error=snapshot.has_error,
        error_message=snapshot.error_message,
    )


def sync_summary_to_response(summary: SyncHealthSummary) -> SyncHealthSummaryResponse:
    """Convert a SyncHealthSummary to SyncHealthSummaryResponse."""
    return SyncHealthSummaryResponse.model_validate(summary)


# Attention models


class ReasonDetailResponse(BaseModel):
    """Human-readable attention reason."""

    model_config = ConfigDict(from_attributes=True)

    code: str
    label: str
    description: str
    rank: int


class LinkedPRResponse(BaseModel):
    """PR linked to an attention item."""

    model_config = ConfigDict(from_attributes=True)

    pr_number: int
    url: str
    title: str | None
    open: bool
    merged: bool | None
    mergeable_state: str | None
    checks_state: str


class AttentionItemResponse(BaseModel):
    """One ticket in the attention feed."""

    repo: str
    ticket_id: str
    short_id: str
    display_id: str
    title: str
    state: str
    priority: str
    primary_reason: str
    reasons: list[ReasonDetailResponse]
    created_at: datetime | None
    cached_at: datetime | None
    prs: list[LinkedPRResponse]
    has_pending_change: bool
    merge_readiness: str


class RepoAttentionResponse(BaseModel):
    """Per-repository attention counts."""

    model_config = ConfigDict(from_attributes=True)

    repo: str
    total_tickets: int
    attention_tickets: int


class AttentionTotalsResponse(BaseModel):
    """Attention totals across the selected repositories."""

    model_config = ConfigDict(from_attributes=True)

    repos_selected: int
    tickets_total: int
    tickets_attention: int


class AttentionFeedResponse(BaseModel):
    """Response model for the attention feed."""

    items: list[AttentionItemResponse]
    repos: list[RepoAttentionResponse]
    totals: AttentionTotalsResponse
    loaded_at: datetime
    reason_catalog: list[ReasonDetailResponse]


def attention_item_to_response(item: AttentionItem) -> AttentionItemResponse:
    """Convert an AttentionItem to AttentionItemResponse."""
    return AttentionItemResponse(
        repo=item.repo,
        ticket_id=item.ticket_key,
        short_id=item.short_id,
        display_id=item.display_id,
        title=item.title,
        state=item.state,
        priority=item.priority,
        primary_reason=item.primary_reason.value,
        reasons=[ReasonDetailResponse.model_validate(d) for d in reason_details(item.reasons)],
        created_at=item.created_at,
        cached_at=item.cached_at,
        prs=[LinkedPRResponse.model_validate(pr) for pr in item.prs],
        has_pending_change=item.has_pending_change,
        merge_readiness=item.merge_readiness.value,
    )


def attention_feed_to_response(feed: AttentionFeed) -> AttentionFeedResponse:
    """Convert an AttentionFeed to AttentionFeedResponse."""
    return AttentionFeedResponse(
        items=[attention_item_to_response(item) for item in feed.items],
        repos=[RepoAttentionResponse.model_validate(r) for r in feed.repos],
        totals=AttentionTotalsResponse.model_validate(feed.totals),
        loaded_at=feed.loaded_at,
        reason_catalog=[ReasonDetailResponse.model_validate(d) for d in feed.reason_catalog],
    )


# Auth models


class CSRFTokenResponse(BaseModel):
    """Anti-forgery token issued to the caller."""

    token: str
    header_name: str
    cookie_name: str
