"""AttentionAggregator - Joins tickets to PRs and pending changes and ranks them."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from ticketcache.attention.models import (
    REASON_META,
    AttentionFeed,
    AttentionItem,
    AttentionReason,
    AttentionTotals,
    MergeReadiness,
    RepoAttentionSummary,
)
from ticketcache.pending_changes import ChecksState, is_unresolved, map_checks_state

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from ticketcache.attention.models import AttentionTicket, LinkedPR, RepoSnapshot

logger = logging.getLogger(__name__)

DEFAULT_STALE_AFTER_MS = 24 * 60 * 60 * 1000  # 24 hours

PRIORITY_ORDER = {"p0": 0, "p1": 1, "p2": 2, "p3": 3}
UNKNOWN_PRIORITY = "unknown"
UNKNOWN_PRIORITY_RANK = 99

_READINESS_ORDER = {
    MergeReadiness.CONFLICT: 0,
    MergeReadiness.FAILING_CHECKS: 1,
    MergeReadiness.WAITING_REVIEW: 2,
    MergeReadiness.UNKNOWN: 3,
    MergeReadiness.MERGEABLE_NOW: 4,
}

_EARLIEST = datetime.min.replace(tzinfo=UTC)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def priority_rank(priority: object) -> int:
    """Sort rank of a priority tier; unknown tiers and non-string values sort last."""
    if not isinstance(priority, str):
        return UNKNOWN_PRIORITY_RANK
    return PRIORITY_ORDER.get(priority.strip().lower(), UNKNOWN_PRIORITY_RANK)


def compute_reasons(
    ticket: AttentionTicket,
    prs: Sequence[LinkedPR],
    has_pending_change: bool,
    now: datetime,
    stale_after_ms: int = DEFAULT_STALE_AFTER_MS,
) -> list[AttentionReason]:
    """Every attention reason that applies to a ticket, ordered by precedence.

    Missing optional fields contribute no reason.
    """
    reasons: list[AttentionReason] = []
    state = (ticket.state or "").strip().lower()

    if state == "blocked":
        reasons.append(AttentionReason.BLOCKED)
    if any(map_checks_state(pr.checks_state) is ChecksState.FAIL for pr in prs):
        reasons.append(AttentionReason.CI_FAILING)
    if state == "in_progress" and isinstance(ticket.cached_at, datetime):
        age = _as_utc(now) - _as_utc(ticket.cached_at)
        if age.total_seconds() * 1000 > stale_after_ms:
            reasons.append(AttentionReason.STALE_IN_PROGRESS)
    if any(pr.open and not pr.merged for pr in prs):
        reasons.append(AttentionReason.PR_WAITING_REVIEW)
    if has_pending_change:
        reasons.append(AttentionReason.PENDING_PR)

    return reasons


def _pr_readiness(pr: LinkedPR) -> MergeReadiness:
    mergeable = (pr.mergeable_state or "").lower()
    checks = map_checks_state(pr.checks_state)
    if mergeable == "dirty":
        return MergeReadiness.CONFLICT
    if checks is ChecksState.FAIL:
        return MergeReadiness.FAILING_CHECKS
    if mergeable == "blocked":
        return MergeReadiness.WAITING_REVIEW
    if mergeable == "clean" and checks is ChecksState.PASS:
        return MergeReadiness.MERGEABLE_NOW
    return MergeReadiness.UNKNOWN


def derive_merge_readiness(prs: Sequence[LinkedPR]) -> MergeReadiness:
    """Least-ready state among a ticket's open, unmerged PRs."""
    open_prs = [pr for pr in prs if pr.open and not pr.merged]
    if not open_prs:
        return MergeReadiness.UNKNOWN
    return min((_pr_readiness(pr) for pr in open_prs), key=_READINESS_ORDER.__getitem__)


def attention_sort_key(item: AttentionItem) -> tuple[int, int, bool, datetime]:
    """Reason precedence, then priority tier, then creation time (missing first)."""
    reason_rank = min(REASON_META[reason].rank for reason in item.reasons)
    created = item.created_at
    return (
        reason_rank,
        priority_rank(item.priority),
        created is not None,
        _as_utc(created) if created is not None else _EARLIEST,
    )


def sort_attention_items(items: Iterable[AttentionItem]) -> list[AttentionItem]:
    """Stable global ordering of attention items."""
    return sorted(items, key=attention_sort_key)


class _TicketKeys:
    """Maps PR / pending-change keys onto ticket full IDs.

    Keys match a full ID, or a short ID when exactly one ticket in the
    snapshot carries it.
    """

    def __init__(self, tickets: Sequence[AttentionTicket]) -> None:
        self._by_full_id = {t.full_id.lower(): t.full_id for t in tickets}
        by_short: dict[str, list[str]] = defaultdict(list)
        for ticket in tickets:
            if isinstance(ticket.short_id, str):
                by_short[ticket.short_id.lower()].append(ticket.full_id)
        self._by_short_id = {k: v[0] for k, v in by_short.items() if len(v) == 1}

    def lookup(self, key: object) -> str | None:
        if not isinstance(key, str):
            return None
        needle = key.strip().lower()
        return self._by_full_id.get(needle) or self._by_short_id.get(needle)


class AttentionAggregator:
    """Builds the ranked attention feed from per-repository snapshots.

    Each repository is evaluated independently and the results are merged
    before one global sort. Repository identity is not a sort key.
    """

    def __init__(self, stale_after_ms: int = DEFAULT_STALE_AFTER_MS) -> None:
        """Initialize the aggregator.

        Args:
            stale_after_ms: Cache age beyond which an in-progress ticket is stale.
        """
        self.stale_after_ms = stale_after_ms

    def evaluate_repo(
        self, snapshot: RepoSnapshot, now: datetime
    ) -> tuple[list[AttentionItem], RepoAttentionSummary]:
        """Attention items (unsorted) and ticket counts for one repository.

        Tickets without a string ID are skipped with a warning, as are PRs and
        pending changes whose key matches no ticket.
        """
        tickets = []
        for ticket in snapshot.tickets:
            if isinstance(getattr(ticket, "full_id", None), str):
                tickets.append(ticket)
            else:
                logger.warning("Skipping ticket without an ID in %s: %r", snapshot.repo, ticket)
        keys = _TicketKeys(tickets)

        prs_by_ticket: dict[str, list[LinkedPR]] = defaultdict(list)
        for pr in snapshot.prs:
            full_id = keys.lookup(pr.ticket_key)
            if full_id is None:
                logger.warning(
                    "Skipping PR #%s in %s: no unique ticket for key %r",
                    pr.pr_number,
                    snapshot.repo,
                    pr.ticket_key,
                )
                continue
            prs_by_ticket[full_id].append(pr)

        pending: set[str] = set()
        for change in snapshot.pending_changes:
            full_id = keys.lookup(change.ticket_id)
            if full_id is None:
                logger.warning(
                    "Skipping pending change in %s: no unique ticket for key %r",
                    snapshot.repo,
                    change.ticket_id,
                )
                continue
            if is_unresolved(change.status):
                pending.add(full_id)

        items: list[AttentionItem] = []
        for ticket in tickets:
            try:
                item = self._evaluate_ticket(
                    snapshot.repo,
                    ticket,
                    prs_by_ticket.get(ticket.full_id, []),
                    ticket.full_id in pending,
                    now,
                )
            except (AttributeError, TypeError, ValueError):
                logger.warning(
                    "Skipping malformed ticket %r in %s",
                    ticket.full_id,
                    snapshot.repo,
                    exc_info=True,
                )
                continue
            if item is not None:
                items.append(item)

        summary = RepoAttentionSummary(
            repo=snapshot.repo,
            total_tickets=len(snapshot.tickets),
            attention_tickets=len(items),
        )
        return items, summary

    def _evaluate_ticket(
        self,
        repo: str,
        ticket: AttentionTicket,
        prs: list[LinkedPR],
        has_pending_change: bool,
        now: datetime,
    ) -> AttentionItem | None:
        reasons = compute_reasons(ticket, prs, has_pending_change, now, self.stale_after_ms)
        if not reasons:
            return None
        return AttentionItem(
            repo=repo,
            ticket_key=ticket.full_id,
            short_id=ticket.short_id,
            display_id=ticket.display_id,
            title=ticket.title,
            state=ticket.state,
            priority=ticket.priority if isinstance(ticket.priority, str) else UNKNOWN_PRIORITY,
            reasons=reasons,
            created_at=ticket.created_at if isinstance(ticket.created_at, datetime) else None,
            cached_at=ticket.cached_at,
            prs=prs,
            has_pending_change=has_pending_change,
            merge_readiness=derive_merge_readiness(prs),
        )

    def aggregate(
        self, snapshots: Sequence[RepoSnapshot], now: datetime | None = None
    ) -> AttentionFeed:
        """Evaluate every repository and return the globally ranked feed.

        Args:
            snapshots: One snapshot per repository.
            now: Evaluation time (defaults to the current UTC time).

        Returns:
            AttentionFeed with sorted items and per-repository summaries.
        """
        now = now or datetime.now(UTC)
        collected: list[AttentionItem] = []
        summaries: list[RepoAttentionSummary] = []

        for snapshot in snapshots:
            items, summary = self.evaluate_repo(snapshot, now)
            collected.extend(items)
            summaries.append(summary)
            logger.debug(
                "Repo %s: %d of %d tickets need attention",
                snapshot.repo,
                summary.attention_tickets,
                summary.total_tickets,
            )

        totals = AttentionTotals(
            repos_selected=len(snapshots),
            tickets_total=sum(s.total_tickets for s in summaries),
            tickets_attention=len(collected),
        )
        return AttentionFeed(
            items=sort_attention_items(collected),
            repos=summaries,
            totals=totals,
            loaded_at=now,
        )
