"""Pending changes - Lifecycle status of ticket-change PRs."""

from ticketcache.pending_changes.exceptions import (
    InvalidStatusPayloadError,
    PendingChangeError,
)
from ticketcache.pending_changes.models import (
    ChangeError,
    ChecksState,
    ChecksSummary,
    LegacyPRStatusPayload,
    PendingChange,
    PendingChangeStatus,
    PRStatusPayload,
    PRStatusSignals,
    ReviewsSummary,
)
from ticketcache.pending_changes.status import (
    TERMINAL_STATUSES,
    is_unresolved,
    map_change_status,
    map_checks_state,
    next_change_status,
    normalize_pr_status,
    parse_pr_status_payload,
)

__all__ = [
    "TERMINAL_STATUSES",
    "ChangeError",
    "ChecksState",
    "ChecksSummary",
    "InvalidStatusPayloadError",
    "LegacyPRStatusPayload",
    "PRStatusPayload",
    "PRStatusSignals",
    "PendingChange",
    "PendingChangeError",
    "PendingChangeStatus",
    "ReviewsSummary",
    "is_unresolved",
    "map_change_status",
    "map_checks_state",
    "next_change_status",
    "normalize_pr_status",
    "parse_pr_status_payload",
]
