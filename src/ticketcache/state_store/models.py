"""SQLAlchemy models for State Store."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime  # noqa: TC003 - used at runtime for SQLAlchemy
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
)

from ticketcache.pending_changes import PendingChangeStatus
from ticketcache.sync_health import SyncStatus


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class TrackedRepo(Base):
    """A repository whose tickets are cached, with its sync bookkeeping."""

    __tablename__ = "repos"

    full_name: Mapped[str] = mapped_column(String(255), primary_key=True)
    owner: Mapped[str] = mapped_column(String(255), nullable=False)
    repo: Mapped[str] = mapped_column(String(255), nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    sync_status: Mapped[str] = mapped_column(String(20), nullable=False)
    sync_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_synced_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    tickets: Mapped[list[CachedTicket]] = relationship(
        "CachedTicket", back_populates="tracked_repo", cascade="all, delete-orphan"
    )

    def __init__(
        self,
        full_name: str,
        enabled: bool = True,
        sync_status: str = SyncStatus.IDLE.value,
        sync_error: str | None = None,
        last_synced_at: datetime | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.full_name = full_name
        self.owner, _, self.repo = full_name.partition("/")
        self.enabled = enabled
        self.sync_status = sync_status
        self.sync_error = sync_error
        self.last_synced_at = last_synced_at

    def __repr__(self) -> str:
        return f"<TrackedRepo(full_name={self.full_name!r}, sync_status={self.sync_status!r})>"


class CachedTicket(Base):
    """Cached ticket row; identifiers are assigned when the snapshot is written."""

    __tablename__ = "tickets"

    repo_full_name: Mapped[str] = mapped_column(
        String(255), ForeignKey("repos.full_name", ondelete="CASCADE"), primary_key=True
    )
    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    short_id: Mapped[str] = mapped_column(String(8), nullable=False, index=True)
    display_id: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    state: Mapped[str] = mapped_column(String(32), nullable=False)
    priority: Mapped[str] = mapped_column(String(8), nullable=False)
    labels: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    cached_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    tracked_repo: Mapped[TrackedRepo] = relationship("TrackedRepo", back_populates="tickets")

    def __repr__(self) -> str:
        return f"<CachedTicket(id={self.id!r}, display_id={self.display_id!r})>"


class TicketPR(Base):
    """Cached PR linked to a ticket."""

    __tablename__ = "ticket_prs"

    repo_full_name: Mapped[str] = mapped_column(
        String(255), ForeignKey("repos.full_name", ondelete="CASCADE"), primary_key=True
    )
    pr_number: Mapped[int] = mapped_column(Integer, primary_key=True)
    ticket_key: Mapped[str] = mapped_column(String(26), nullable=False, index=True)
    url: Mapped[str] = mapped_column(String(500), nullable=False)
    title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    state: Mapped[str] = mapped_column(String(16), nullable=False)
    merged: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    mergeable_state: Mapped[str | None] = mapped_column(String(32), nullable=True)
    checks_state: Mapped[str] = mapped_column(String(16), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<TicketPR(pr_number={self.pr_number!r}, ticket_key={self.ticket_key!r})>"


class PendingChangeRecord(Base):
    """A ticket-change PR tracked until it merges, fails or closes."""

    __tablename__ = "pending_changes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    repo_full_name: Mapped[str] = mapped_column(
        String(255), ForeignKey("repos.full_name", ondelete="CASCADE"), nullable=False
    )
    ticket_id: Mapped[str] = mapped_column(String(26), nullable=False, index=True)
    pr_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    pr_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    summary: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False)
    auto_merge: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    def __init__(
        self,
        repo_full_name: str,
        ticket_id: str,
        id: str | None = None,
        summary: str = "",
        status: str = PendingChangeStatus.CREATING_PR.value,
        pr_number: int | None = None,
        pr_url: str | None = None,
        auto_merge: bool = False,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_uuid()
        self.repo_full_name = repo_full_name
        self.ticket_id = ticket_id
        self.summary = summary
        self.status = status
        self.pr_number = pr_number
        self.pr_url = pr_url
        self.auto_merge = auto_merge

    @property
    def change_status(self) -> PendingChangeStatus:
        """Get status as PendingChangeStatus enum."""
        return PendingChangeStatus(self.status)

    def __repr__(self) -> str:
        return (
            f"<PendingChangeRecord(id={self.id!r}, ticket_id={self.ticket_id!r}, "
            f"status={self.status!r})>"
        )


# Write-side inputs from the synchronization job


@dataclass
class TicketRecord:
    """A ticket as read from the authoritative ticket files."""

    full_id: str
    title: str
    state: str
    priority: str
    created_at: datetime | None = None
    labels: list[str] = field(default_factory=list)


@dataclass
class PRRecord:
    """A forge PR linked to a ticket."""

    ticket_key: str
    pr_number: int
    url: str
    title: str | None = None
    open: bool = True
    merged: bool | None = None
    mergeable_state: str | None = None
    checks_state: str = "unknown"
