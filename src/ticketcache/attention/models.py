"""Data models for the Attention Aggregator."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime  # noqa: TC003 - dataclass field type
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ticketcache.pending_changes import PendingChange


class AttentionReason(StrEnum):
    """Triage triggers that put a ticket in the attention feed."""

    BLOCKED = "blocked"
    CI_FAILING = "ci_failing"
    STALE_IN_PROGRESS = "stale_in_progress"
    PR_WAITING_REVIEW = "pr_waiting_review"
    PENDING_PR = "pending_pr"


class MergeReadiness(StrEnum):
    """How close a ticket's open PRs are to merging."""

    CONFLICT = "CONFLICT"
    FAILING_CHECKS = "FAILING_CHECKS"
    WAITING_REVIEW = "WAITING_REVIEW"
    UNKNOWN = "UNKNOWN"
    MERGEABLE_NOW = "MERGEABLE_NOW"


@dataclass(frozen=True)
class ReasonDetail:
    """Human-facing description of an attention reason."""

    code: AttentionReason
    label: str
    description: str
    rank: int


REASON_META: dict[AttentionReason, ReasonDetail] = {
    AttentionReason.BLOCKED: ReasonDetail(
        AttentionReason.BLOCKED,
        "Blocked",
        "Ticket state is blocked and needs unblocking work.",
        0,
    ),
    AttentionReason.CI_FAILING: ReasonDetail(
        AttentionReason.CI_FAILING,
        "CI failing",
        "At least one linked PR has failing checks.",
        1,
    ),
    AttentionReason.STALE_IN_PROGRESS: ReasonDetail(
        AttentionReason.STALE_IN_PROGRESS,
        "Stale in progress",
        "Ticket is in progress and its cache entry is older than the threshold.",
        2,
    ),
    AttentionReason.PR_WAITING_REVIEW: ReasonDetail(
        AttentionReason.PR_WAITING_REVIEW,
        "Open PR",
        "Ticket has an open linked PR that likely needs reviewer attention.",
        3,
    ),
    AttentionReason.PENDING_PR: ReasonDetail(
        AttentionReason.PENDING_PR,
        "Pending change",
        "A pending ticket-change PR exists and has not merged yet.",
        4,
    ),
}


def reason_details(reasons: Iterable[AttentionReason]) -> list[ReasonDetail]:
    """Unique reason details ordered by rank."""
    return sorted({REASON_META[reason] for reason in reasons}, key=lambda d: d.rank)


def reason_catalog() -> list[ReasonDetail]:
    """All reasons, ordered by rank."""
    return reason_details(REASON_META)


@dataclass
class AttentionTicket:
    """Cached ticket fields the aggregator reads.

    Identifiers come from the Identity Resolver and are never re-derived here.
    """

    full_id: str
    short_id: str
    display_id: str
    title: str
    state: str
    priority: str
    created_at: datetime | None = None
    cached_at: datetime | None = None
    labels: list[str] = field(default_factory=list)


@dataclass
class LinkedPR:
    """A PR linked to a ticket, keyed by the ticket's full or short ID."""

    ticket_key: str
    pr_number: int
    url: str
    title: str | None = None
    open: bool = True
    merged: bool | None = None
    mergeable_state: str | None = None
    checks_state: str = "unknown"


@dataclass
class RepoSnapshot:
    """Everything the aggregator needs for one repository."""

    repo: str
    tickets: list[AttentionTicket] = field(default_factory=list)
    prs: list[LinkedPR] = field(default_factory=list)
    pending_changes: list[PendingChange] = field(default_factory=list)


@dataclass
class AttentionItem:
    """A ticket needing attention, with the reasons that put it there."""

    repo: str
    ticket_key: str
    short_id: str
    display_id: str
    title: str
    state: str
    priority: str
    reasons: list[AttentionReason]
    created_at: datetime | None = None
    cached_at: datetime | None = None
    prs: list[LinkedPR] = field(default_factory=list)
    has_pending_change: bool = False
    merge_readiness: MergeReadiness = MergeReadiness.UNKNOWN

    @property
    def primary_reason(self) -> AttentionReason:
        """Highest-precedence reason."""
        return min(self.reasons, key=lambda reason: REASON_META[reason].rank)


@dataclass
class RepoAttentionSummary:
    """Ticket counts for one repository."""

    repo: str
    total_tickets: int = 0
    attention_tickets: int = 0


@dataclass
class AttentionTotals:
    """Ticket counts across all evaluated repositories."""

    repos_selected: int = 0
    tickets_total: int = 0
    tickets_attention: int = 0


@dataclass
class AttentionFeed:
    """Ranked attention items plus the repositories considered."""

    items: list[AttentionItem]
    repos: list[RepoAttentionSummary]
    totals: AttentionTotals
    loaded_at: datetime
    reason_catalog: list[ReasonDetail] = field(default_factory=reason_catalog)
