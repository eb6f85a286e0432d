"""State Store - Persistent cache of repositories, tickets, PRs and pending changes."""

from ticketcache.state_store.exceptions import (
    PendingChangeNotFoundError,
    RepoExistsError,
    RepoNotFoundError,
    StateStoreError,
)
from ticketcache.state_store.models import (
    CachedTicket,
    PendingChangeRecord,
    PRRecord,
    TicketPR,
    TicketRecord,
    TrackedRepo,
)
from ticketcache.state_store.store import StateStore, normalize_repo_name

__all__ = [
    "CachedTicket",
    "PRRecord",
    "PendingChangeNotFoundError",
    "PendingChangeRecord",
    "RepoExistsError",
    "RepoNotFoundError",
    "StateStore",
    "StateStoreError",
    "TicketPR",
    "TicketRecord",
    "TrackedRepo",
    "normalize_repo_name",
]
