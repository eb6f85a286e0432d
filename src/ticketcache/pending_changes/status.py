"""Pending-change status mapping and payload normalization."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Annotated, Any

from pydantic import Field, TypeAdapter, ValidationError

from ticketcache.pending_changes.exceptions import InvalidStatusPayloadError
from ticketcache.pending_changes.models import (
    ChecksState,
    LegacyPRStatusPayload,
    PendingChangeStatus,
    PRStatusPayload,
    PRStatusSignals,
)

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = frozenset(
    {
        PendingChangeStatus.MERGED,
        PendingChangeStatus.FAILED,
        PendingChangeStatus.CLOSED,
    }
)

_RESOLVED_STATUSES = frozenset({PendingChangeStatus.MERGED, PendingChangeStatus.CLOSED})

_CHECKS_ALIASES = {
    "pass": ChecksState.PASS,
    "success": ChecksState.PASS,
    "fail": ChecksState.FAIL,
    "failure": ChecksState.FAIL,
    "error": ChecksState.FAIL,
    "running": ChecksState.RUNNING,
    "pending": ChecksState.RUNNING,
}

_LEGACY_KEYS = frozenset({"mergeableState", "checks_state", "error_message"})

_PAYLOAD_ADAPTER: TypeAdapter[PRStatusPayload | LegacyPRStatusPayload] = TypeAdapter(
    Annotated[PRStatusPayload | LegacyPRStatusPayload, Field(discriminator="kind")]
)


def map_checks_state(raw: str | ChecksState | None) -> ChecksState:
    """Map a forge combined-status (or already summarized) value to ChecksState."""
    if raw is None:
        return ChecksState.UNKNOWN
    return _CHECKS_ALIASES.get(str(raw).strip().lower(), ChecksState.UNKNOWN)


def map_change_status(
    merged: bool | None,
    mergeable_state: str | None,
    checks_state: str | ChecksState | None,
) -> PendingChangeStatus:
    """Map raw PR attributes to a lifecycle status.

    Rules are evaluated in order, first match wins: merged, conflict (dirty),
    failing checks, blocked on review, clean with passing checks. Anything
    else lands in pending_checks.
    """
    checks = map_checks_state(checks_state)
    mergeable = (mergeable_state or "").strip().lower()

    if merged is True:
        return PendingChangeStatus.MERGED
    if mergeable == "dirty":
        return PendingChangeStatus.CONFLICT
    if checks is ChecksState.FAIL:
        return PendingChangeStatus.PENDING_CHECKS
    if mergeable == "blocked":
        return PendingChangeStatus.WAITING_REVIEW
    if mergeable == "clean" and checks is ChecksState.PASS:
        return PendingChangeStatus.MERGEABLE
    return PendingChangeStatus.PENDING_CHECKS


def is_unresolved(status: str | PendingChangeStatus) -> bool:
    """Whether a pending change still awaits an outcome (not merged, not closed)."""
    return str(status) not in _RESOLVED_STATUSES


def _payload_kind(raw: Mapping[str, Any]) -> str:
    kind = raw.get("kind")
    if isinstance(kind, str):
        return kind
    if isinstance(raw.get("checks"), Mapping) or isinstance(raw.get("error"), Mapping):
        return "current"
    if _LEGACY_KEYS & raw.keys():
        return "legacy"
    return "current"


def parse_pr_status_payload(
    raw: Mapping[str, Any],
) -> PRStatusPayload | LegacyPRStatusPayload:
    """Tag and validate a PR status payload in either supported shape.

    Raises:
        InvalidStatusPayloadError: If the payload fails validation.
    """
    tagged = {**raw, "kind": _payload_kind(raw)}
    try:
        return _PAYLOAD_ADAPTER.validate_python(tagged)
    except ValidationError as e:
        raise InvalidStatusPayloadError(f"Invalid PR status payload: {e}") from e


def normalize_pr_status(payload: PRStatusPayload | LegacyPRStatusPayload) -> PRStatusSignals:
    """Reduce either payload shape to the signals the mapper consumes."""
    if isinstance(payload, LegacyPRStatusPayload):
        return PRStatusSignals(
            merged=payload.merged,
            mergeable_state=payload.mergeable_state,
            checks_state=map_checks_state(payload.checks_state),
            closed=(payload.state or "").lower() == "closed",
            auto_merge=payload.auto_merge,
            error=payload.error_message or None,
        )

    mergeable_state = payload.mergeable_state
    if mergeable_state is None and payload.mergeable is False:
        mergeable_state = "dirty"
    return PRStatusSignals(
        merged=payload.merged,
        mergeable_state=mergeable_state,
        checks_state=map_checks_state(payload.checks.state),
        closed=(payload.state or "").lower() == "closed",
        auto_merge=payload.auto_merge,
        error=(payload.error.message or payload.error.code) if payload.error else None,
    )


def next_change_status(
    current: str | PendingChangeStatus,
    signals: PRStatusSignals,
) -> PendingChangeStatus:
    """Status a pending change moves to after observing fresh PR signals.

    Terminal statuses never change. A reported error fails the change; a
    merge wins over everything else; a PR closed without merging closes the
    change; an auto-merge request is reported until the PR merges or
    conflicts.
    """
    current_status = PendingChangeStatus(current)
    if current_status in TERMINAL_STATUSES:
        return current_status

    if signals.error:
        logger.warning("Pending change failed: %s", signals.error)
        return PendingChangeStatus.FAILED

    mapped = map_change_status(signals.merged, signals.mergeable_state, signals.checks_state)
    if mapped is PendingChangeStatus.MERGED:
        return mapped
    if signals.closed:
        return PendingChangeStatus.CLOSED
    if signals.auto_merge and mapped is not PendingChangeStatus.CONFLICT:
        return PendingChangeStatus.AUTO_MERGE_ENABLED
    return mapped
