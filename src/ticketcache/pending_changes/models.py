"""Data models for pending changes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class PendingChangeStatus(StrEnum):
    """Lifecycle status of a ticket-change PR."""

    CREATING_PR = "creating_pr"
    PENDING_CHECKS = "pending_checks"
    WAITING_REVIEW = "waiting_review"
    MERGEABLE = "mergeable"
    AUTO_MERGE_ENABLED = "auto_merge_enabled"
    MERGED = "merged"
    CONFLICT = "conflict"
    FAILED = "failed"
    CLOSED = "closed"


class ChecksState(StrEnum):
    """Summarized CI state of a PR head commit."""

    PASS = "pass"
    FAIL = "fail"
    RUNNING = "running"
    UNKNOWN = "unknown"


@dataclass
class PendingChange:
    """A ticket-affecting change request filed against the forge.

    Attributes:
        ticket_id: Full ID of the ticket the change applies to.
        status: Current lifecycle status.
        pr_number: PR number once the PR exists.
        pr_url: PR URL once the PR exists.
        summary: Short description such as "state → blocked".
    """

    ticket_id: str
    status: PendingChangeStatus
    pr_number: int | None = None
    pr_url: str | None = None
    summary: str = ""


# Status payloads. Two shapes reach us at the boundary; the adapter tags them
# with ``kind`` before validation.


class ChecksSummary(BaseModel):
    """Nested checks block of the current payload."""

    state: str = "unknown"


class ReviewsSummary(BaseModel):
    """Nested reviews block of the current payload."""

    required: bool = False
    approvals_count: int | None = None


class ChangeError(BaseModel):
    """Nested error block of the current payload."""

    code: str = "unknown"
    message: str = ""


class PRStatusPayload(BaseModel):
    """Current PR status payload shape."""

    kind: Literal["current"] = "current"
    pr_url: str | None = None
    pr_number: int | None = None
    state: str | None = None
    merged: bool | None = None
    mergeable: bool | None = None
    mergeable_state: str | None = None
    checks: ChecksSummary = Field(default_factory=ChecksSummary)
    reviews: ReviewsSummary = Field(default_factory=ReviewsSummary)
    auto_merge: bool = False
    error: ChangeError | None = None


class LegacyPRStatusPayload(BaseModel):
    """Legacy flat PR status payload shape."""

    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["legacy"] = "legacy"
    state: str | None = None
    merged: bool | None = None
    mergeable_state: str | None = Field(default=None, alias="mergeableState")
    checks_state: str | None = None
    auto_merge: bool = False
    error_message: str | None = None


@dataclass(frozen=True)
class PRStatusSignals:
    """Normalized PR signals consumed by the status mapper."""

    merged: bool | None
    mergeable_state: str | None
    checks_state: ChecksState
    closed: bool = False
    auto_merge: bool = False
    error: str | None = None
