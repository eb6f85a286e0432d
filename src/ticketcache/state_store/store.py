"""StateStore - Main API for State Store operations."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import delete, literal_column, select

from ticketcache.attention.models import AttentionTicket, LinkedPR, RepoSnapshot
from ticketcache.identity import assign_identities, normalize_full_id
from ticketcache.pending_changes import PendingChange, PendingChangeStatus, is_unresolved
from ticketcache.state_store.database import Database
from ticketcache.state_store.exceptions import (
    PendingChangeNotFoundError,
    RepoExistsError,
    RepoNotFoundError,
)
from ticketcache.state_store.models import (
    CachedTicket,
    PendingChangeRecord,
    TicketPR,
    TrackedRepo,
)
from ticketcache.sync_health import SyncStatus

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.orm import Session

    from ticketcache.state_store.models import PRRecord, TicketRecord

logger = logging.getLogger(__name__)

# SQLite rowid breaks ties between rows created in the same instant
_INSERT_ORDER = literal_column("pending_changes.rowid")


def _utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def _to_naive_utc(value: datetime | None) -> datetime | None:
    # SQLite DateTime columns hold naive values; everything is stored in UTC
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def normalize_repo_name(full_name: str) -> str:
    """Canonical ``owner/repo`` form (stripped, lower-case)."""
    return full_name.strip().strip("/").lower()


class StateStore:
    """Main API for State Store operations.

    Provides operations for tracked repositories, cached tickets, linked PRs
    and pending changes. Ticket identities are assigned when a snapshot is
    written so readers always see collision-free display IDs.
    """

    def __init__(self, db_path: str = "ticketcache.db") -> None:
        """Initialize State Store with SQLite database.

        Creates database and tables if they don't exist.

        Args:
            db_path: Path to SQLite database file
        """
        self._db = Database(db_path)
        self._db.create_tables()

    def close(self) -> None:
        """Close the database connection."""
        self._db.close()

    def _require_repo(self, session: Session, full_name: str) -> TrackedRepo:
        repo = session.get(TrackedRepo, normalize_repo_name(full_name))
        if repo is None:
            raise RepoNotFoundError(f"Repository '{full_name}' is not tracked")
        return repo

    # --- Repository Operations ---

    def create_repo(self, full_name: str, enabled: bool = True) -> TrackedRepo:
        """Start tracking a repository.

        Args:
            full_name: Repository in "owner/repo" format
            enabled: Whether the repository is included in space-wide views

        Returns:
            Created TrackedRepo (never synced)

        Raises:
            RepoExistsError: If the repository is already tracked
            ValueError: If the name is not in "owner/repo" format
        """
        name = normalize_repo_name(full_name)
        owner, _, repo_name = name.partition("/")
        if not owner or not repo_name or "/" in repo_name:
            raise ValueError(f"Repository must be in 'owner/repo' format, got '{full_name}'")

        session = self._db.get_session()
        try:
            if session.get(TrackedRepo, name) is not None:
                raise RepoExistsError(f"Repository '{name}' is already tracked")
            repo = TrackedRepo(full_name=name, enabled=enabled)
            session.add(repo)
            session.commit()
            session.refresh(repo)
            logger.info("Tracking repository %s", name)
            return repo
        finally:
            session.close()

    def get_repo(self, full_name: str) -> TrackedRepo:
        """Get a tracked repository.

        Raises:
            RepoNotFoundError: If the repository is not tracked
        """
        session = self._db.get_session()
        try:
            return self._require_repo(session, full_name)
        finally:
            session.close()

    def list_repos(self, enabled_only: bool = False) -> list[TrackedRepo]:
        """List tracked repositories ordered by name."""
        session = self._db.get_session()
        try:
            stmt = select(TrackedRepo).order_by(TrackedRepo.full_name)
            if enabled_only:
                stmt = stmt.where(TrackedRepo.enabled.is_(True))
            return list(session.execute(stmt).scalars().all())
        finally:
            session.close()

    def update_sync_state(
        self,
        full_name: str,
        sync_status: SyncStatus | str,
        sync_error: str | None = None,
        last_synced_at: datetime | None = None,
    ) -> TrackedRepo:
        """Record the sync job's status for a repository.

        ``last_synced_at`` is only overwritten when provided, so a failed sync
        keeps the time of the last successful one.

        Args:
            full_name: Repository in "owner/repo" format
            sync_status: idle, syncing or error
            sync_error: Error message of the last attempt (cleared when None)
            last_synced_at: Completion time of a successful sync

        Returns:
            The updated TrackedRepo

        Raises:
            RepoNotFoundError: If the repository is not tracked
        """
        session = self._db.get_session()
        try:
            repo = self._require_repo(session, full_name)
            repo.sync_status = str(sync_status)
            repo.sync_error = sync_error
            if last_synced_at is not None:
                repo.last_synced_at = _to_naive_utc(last_synced_at)
            session.commit()
            session.refresh(repo)
            return repo
        finally:
            session.close()

    # --- Ticket Operations ---

    def replace_tickets(
        self,
        full_name: str,
        tickets: Sequence[TicketRecord],
        cached_at: datetime | None = None,
    ) -> list[CachedTicket]:
        """Replace a repository's cached tickets with a fresh snapshot.

        Short and display IDs are assigned over the whole snapshot. When the
        snapshot repeats a full ID, the last record wins.

        Args:
            full_name: Repository in "owner/repo" format
            tickets: Every ticket currently in the repository
            cached_at: Time the snapshot was read (defaults to now)

        Returns:
            Cached tickets ordered by full ID

        Raises:
            RepoNotFoundError: If the repository is not tracked
        """
        stamp = _to_naive_utc(cached_at) or _utcnow()
        by_id = {normalize_full_id(t.full_id): t for t in tickets if t.full_id.strip()}
        identities = assign_identities(by_id)

        session = self._db.get_session()
        try:
            repo = self._require_repo(session, full_name)
            session.execute(
                delete(CachedTicket).where(CachedTicket.repo_full_name == repo.full_name)
            )
            rows = []
            for full_id in sorted(by_id):
                record = by_id[full_id]
                identity = identities[full_id]
                rows.append(
                    CachedTicket(
                        repo_full_name=repo.full_name,
                        id=full_id,
                        short_id=identity.short_id,
                        display_id=identity.display_id,
                        title=record.title,
                        state=record.state,
                        priority=record.priority,
                        labels=list(record.labels),
                        created_at=_to_naive_utc(record.created_at),
                        cached_at=stamp,
                    )
                )
            session.add_all(rows)
            session.commit()
            logger.info("Cached %d tickets for %s", len(rows), repo.full_name)
            return rows
        finally:
            session.close()

    def list_tickets(self, full_name: str) -> list[CachedTicket]:
        """List a repository's cached tickets ordered by full ID.

        Raises:
            RepoNotFoundError: If the repository is not tracked
        """
        session = self._db.get_session()
        try:
            repo = self._require_repo(session, full_name)
            stmt = (
                select(CachedTicket)
                .where(CachedTicket.repo_full_name == repo.full_name)
                .order_by(CachedTicket.id)
            )
            return list(session.execute(stmt).scalars().all())
        finally:
            session.close()

    # --- Linked PR Operations ---

    def replace_ticket_prs(self, full_name: str, prs: Sequence[PRRecord]) -> list[TicketPR]:
        """Replace a repository's linked PRs.

        Raises:
            RepoNotFoundError: If the repository is not tracked
        """
        by_number = {pr.pr_number: pr for pr in prs}

        session = self._db.get_session()
        try:
            repo = self._require_repo(session, full_name)
            session.execute(delete(TicketPR).where(TicketPR.repo_full_name == repo.full_name))
            rows = [
                TicketPR(
                    repo_full_name=repo.full_name,
                    pr_number=number,
                    ticket_key=pr.ticket_key.strip(),
                    url=pr.url,
                    title=pr.title,
                    state="open" if pr.open else "closed",
                    merged=pr.merged,
                    mergeable_state=pr.mergeable_state,
                    checks_state=pr.checks_state,
                )
                for number, pr in sorted(by_number.items())
            ]
            session.add_all(rows)
            session.commit()
            return rows
        finally:
            session.close()

    def list_ticket_prs(self, full_name: str) -> list[TicketPR]:
        """List a repository's linked PRs ordered by PR number.

        Raises:
            RepoNotFoundError: If the repository is not tracked
        """
        session = self._db.get_session()
        try:
            repo = self._require_repo(session, full_name)
            stmt = (
                select(TicketPR)
                .where(TicketPR.repo_full_name == repo.full_name)
                .order_by(TicketPR.pr_number)
            )
            return list(session.execute(stmt).scalars().all())
        finally:
            session.close()

    # --- Pending Change Operations ---

    def create_pending_change(
        self,
        full_name: str,
        ticket_id: str,
        summary: str = "",
        pr_number: int | None = None,
        pr_url: str | None = None,
    ) -> PendingChangeRecord:
        """Record a ticket change whose PR is being opened.

        The change starts in ``creating_pr``.

        Raises:
            RepoNotFoundError: If the repository is not tracked
        """
        session = self._db.get_session()
        try:
            repo = self._require_repo(session, full_name)
            change = PendingChangeRecord(
                repo_full_name=repo.full_name,
                ticket_id=normalize_full_id(ticket_id),
                summary=summary,
                pr_number=pr_number,
                pr_url=pr_url,
                created_at=_utcnow(),
            )
            session.add(change)
            session.commit()
            session.refresh(change)
            logger.info(
                "Pending change %s for ticket %s in %s", change.id, change.ticket_id, repo.full_name
            )
            return change
        finally:
            session.close()

    def get_pending_change(self, full_name: str, pr_number: int) -> PendingChangeRecord:
        """Get the most recent pending change for a PR.

        Raises:
            RepoNotFoundError: If the repository is not tracked
            PendingChangeNotFoundError: If no change references the PR
        """
        session = self._db.get_session()
        try:
            repo = self._require_repo(session, full_name)
            return self._require_change(session, repo, pr_number)
        finally:
            session.close()

    def _require_change(
        self, session: Session, repo: TrackedRepo, pr_number: int
    ) -> PendingChangeRecord:
        stmt = (
            select(PendingChangeRecord)
            .where(
                PendingChangeRecord.repo_full_name == repo.full_name,
                PendingChangeRecord.pr_number == pr_number,
            )
            .order_by(PendingChangeRecord.created_at.desc(), _INSERT_ORDER.desc())
            .limit(1)
        )
        change = session.execute(stmt).scalar_one_or_none()
        if change is None:
            raise PendingChangeNotFoundError(
                f"No pending change for PR #{pr_number} in '{repo.full_name}'"
            )
        return change

    def update_pending_change_status(
        self,
        full_name: str,
        pr_number: int,
        status: PendingChangeStatus | str,
        auto_merge: bool | None = None,
    ) -> PendingChangeRecord:
        """Store the status observed for a pending change.

        Args:
            full_name: Repository in "owner/repo" format
            pr_number: PR the change was filed as
            status: New lifecycle status
            auto_merge: Whether auto-merge is requested (unchanged when None)

        Returns:
            The updated PendingChangeRecord

        Raises:
            RepoNotFoundError: If the repository is not tracked
            PendingChangeNotFoundError: If no change references the PR
        """
        new_status = PendingChangeStatus(status)
        session = self._db.get_session()
        try:
            repo = self._require_repo(session, full_name)
            change = self._require_change(session, repo, pr_number)
            if change.status != new_status.value:
                logger.info(
                    "PR #%d in %s: %s -> %s",
                    pr_number,
                    repo.full_name,
                    change.status,
                    new_status.value,
                )
            change.status = new_status.value
            if auto_merge is not None:
                change.auto_merge = auto_merge
            session.commit()
            session.refresh(change)
            return change
        finally:
            session.close()

    def list_pending_changes(
        self, full_name: str, unresolved_only: bool = False
    ) -> list[PendingChangeRecord]:
        """List a repository's pending changes, oldest first.

        Raises:
            RepoNotFoundError: If the repository is not tracked
        """
        session = self._db.get_session()
        try:
            repo = self._require_repo(session, full_name)
            stmt = (
                select(PendingChangeRecord)
                .where(PendingChangeRecord.repo_full_name == repo.full_name)
                .order_by(PendingChangeRecord.created_at, _INSERT_ORDER)
            )
            changes = list(session.execute(stmt).scalars().all())
            if unresolved_only:
                changes = [c for c in changes if is_unresolved(c.status)]
            return changes
        finally:
            session.close()

    # --- Snapshot ---

    def load_snapshot(self, full_name: str) -> RepoSnapshot:
        """Assemble the attention input for one repository.

        Raises:
            RepoNotFoundError: If the repository is not tracked
        """
        repo = self.get_repo(full_name)
        tickets = [
            AttentionTicket(
                full_id=t.id,
                short_id=t.short_id,
                display_id=t.display_id,
                title=t.title,
                state=t.state,
                priority=t.priority,
                created_at=t.created_at,
                cached_at=t.cached_at,
                labels=list(t.labels or []),
            )
            for t in self.list_tickets(repo.full_name)
        ]
        prs = [
            LinkedPR(
                ticket_key=pr.ticket_key,
                pr_number=pr.pr_number,
                url=pr.url,
                title=pr.title,
                open=pr.state == "open",
                merged=pr.merged,
                mergeable_state=pr.mergeable_state,
                checks_state=pr.checks_state,
            )
            for pr in self.list_ticket_prs(repo.full_name)
        ]
        changes = [
            PendingChange(
                ticket_id=c.ticket_id,
                status=PendingChangeStatus(c.status),
                pr_number=c.pr_number,
                pr_url=c.pr_url,
                summary=c.summary,
            )
            for c in self.list_pending_changes(repo.full_name)
        ]
        return RepoSnapshot(repo=repo.full_name, tickets=tickets, prs=prs, pending_changes=changes)
