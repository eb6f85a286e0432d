"""Ticket identity assignment and query resolution."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import TYPE_CHECKING

from ticketcache.identity.exceptions import AmbiguousTicketError, TicketNotFoundError
from ticketcache.identity.models import TicketIdentity, TicketIndexEntry

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

logger = logging.getLogger(__name__)

SHORT_ID_LENGTH = 8
DISPLAY_PREFIX = "TK-"


def normalize_full_id(full_id: str) -> str:
    """Canonical (stripped, upper-case) form of a full ID."""
    return full_id.strip().upper()


def short_id(full_id: str) -> str:
    """First 8 characters of a full ID, lower-case."""
    return normalize_full_id(full_id)[:SHORT_ID_LENGTH].lower()


def format_display_id(short: str, sequence: int = 1) -> str:
    """Build a display ID; sequences above 1 get a ``-N`` suffix."""
    base = f"{DISPLAY_PREFIX}{short}"
    if sequence <= 1:
        return base
    return f"{base}-{sequence}"


def assign_identities(full_ids: Iterable[str]) -> dict[str, TicketIdentity]:
    """Assign short and display IDs for every ticket in a repository snapshot.

    Tickets are grouped by short ID. Within a group, members are ranked by
    ascending full ID (creation order for sortable IDs): the first keeps the
    unsuffixed display ID, the k-th gets ``-k``. The result depends only on
    the set of IDs, never on input order.

    Args:
        full_ids: Full ticket IDs. Duplicates are ignored.

    Returns:
        Mapping of normalized full ID to its TicketIdentity.
    """
    groups: dict[str, list[str]] = defaultdict(list)
    for full_id in {normalize_full_id(raw) for raw in full_ids}:
        if not full_id:
            continue
        groups[short_id(full_id)].append(full_id)

    identities: dict[str, TicketIdentity] = {}
    for short, members in groups.items():
        members.sort()
        if len(members) > 1:
            logger.debug("Short ID %s shared by %d tickets", short, len(members))
        for position, full_id in enumerate(members, start=1):
            identities[full_id] = TicketIdentity(
                full_id=full_id,
                short_id=short,
                display_id=format_display_id(short, position),
            )
    return identities


def build_index(tickets: Iterable[tuple[str, str]]) -> list[TicketIndexEntry]:
    """Build resolvable index entries from ``(full_id, title)`` pairs.

    Returns entries ordered by full ID.
    """
    titles: dict[str, str] = {}
    for full_id, title in tickets:
        titles[normalize_full_id(full_id)] = title

    identities = assign_identities(titles)
    return [
        TicketIndexEntry(
            full_id=identity.full_id,
            short_id=identity.short_id,
            display_id=identity.display_id,
            title=titles[identity.full_id],
        )
        for identity in sorted(identities.values(), key=lambda i: i.full_id)
    ]


def _pick(
    query: str,
    entries: Sequence[TicketIndexEntry],
    predicate: Callable[[TicketIndexEntry], bool],
) -> TicketIndexEntry | None:
    matches = [entry for entry in entries if predicate(entry)]
    if len(matches) > 1:
        raise AmbiguousTicketError(query, matches)
    return matches[0] if matches else None


def resolve_ticket(
    entries: Sequence[TicketIndexEntry],
    query: str,
    ci: bool = False,
) -> TicketIndexEntry:
    """Resolve a user-supplied query to exactly one ticket.

    In ci mode only exact full-ID or short-ID matches count. Interactively the
    tiers are tried in order: exact full ID, exact display ID, exact short ID,
    full-ID prefix, then case-insensitive title substring. The first tier with
    any match decides; several matches at that tier are ambiguous.

    Args:
        entries: Index entries for one repository snapshot.
        query: Full ID, display ID, short ID, ID prefix or title fragment.
        ci: Non-interactive mode (exact identifiers only).

    Returns:
        The single matching entry.

    Raises:
        TicketNotFoundError: No ticket matched.
        AmbiguousTicketError: Several tickets matched at the deciding tier.
    """
    trimmed = query.strip()
    if not trimmed:
        raise TicketNotFoundError(query)

    needle = trimmed.lower()

    if ci:
        matches = [
            entry
            for entry in entries
            if entry.full_id.lower() == needle or entry.short_id.lower() == needle
        ]
        if len(matches) > 1:
            raise AmbiguousTicketError(trimmed, matches)
        if not matches:
            raise TicketNotFoundError(trimmed)
        return matches[0]

    tiers: list[Callable[[TicketIndexEntry], bool]] = [
        lambda e: e.full_id.lower() == needle,
        lambda e: e.display_id.lower() == needle,
        lambda e: e.short_id.lower() == needle,
        lambda e: e.full_id.lower().startswith(needle),
        lambda e: needle in e.title.lower(),
    ]
    for predicate in tiers:
        match = _pick(trimmed, entries, predicate)
        if match is not None:
            return match

    raise TicketNotFoundError(trimmed)
