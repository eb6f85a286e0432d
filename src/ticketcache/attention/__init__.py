"""Attention Aggregator - Ranked "needs attention" feed across repositories."""

from ticketcache.attention.aggregator import (
    DEFAULT_STALE_AFTER_MS,
    AttentionAggregator,
    attention_sort_key,
    compute_reasons,
    derive_merge_readiness,
    priority_rank,
    sort_attention_items,
)
from ticketcache.attention.models import (
    REASON_META,
    AttentionFeed,
    AttentionItem,
    AttentionReason,
    AttentionTicket,
    AttentionTotals,
    LinkedPR,
    MergeReadiness,
    ReasonDetail,
    RepoAttentionSummary,
    RepoSnapshot,
    reason_catalog,
    reason_details,
)

__all__ = [
    "DEFAULT_STALE_AFTER_MS",
    "REASON_META",
    "AttentionAggregator",
    "AttentionFeed",
    "AttentionItem",
    "AttentionReason",
    "AttentionTicket",
    "AttentionTotals",
    "LinkedPR",
    "MergeReadiness",
    "ReasonDetail",
    "RepoAttentionSummary",
    "RepoSnapshot",
    "attention_sort_key",
    "compute_reasons",
    "derive_merge_readiness",
    "priority_rank",
    "reason_catalog",
    "reason_details",
    "sort_attention_items",
]
