"""Data models for the Identity Resolver."""

from dataclasses import dataclass


@dataclass(frozen=True)
class TicketIdentity:
    """Identifiers derived from a ticket's full ID.

    Attributes:
        full_id: 26-character sortable ID, upper-case.
        short_id: First 8 characters of the full ID, lower-case. Not unique.
        display_id: Human-facing ID, unique within a repository snapshot.
    """

    full_id: str
    short_id: str
    display_id: str


@dataclass(frozen=True)
class TicketIndexEntry:
    """A resolvable ticket: its identity plus the title used for search."""

    full_id: str
    short_id: str
    display_id: str
    title: str = ""
