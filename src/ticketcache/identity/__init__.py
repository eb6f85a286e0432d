"""Identity Resolver - Short/display identifiers and ticket query resolution."""

from ticketcache.identity.exceptions import (
    AmbiguousTicketError,
    TicketNotFoundError,
    TicketResolutionError,
)
from ticketcache.identity.models import TicketIdentity, TicketIndexEntry
from ticketcache.identity.resolver import (
    DISPLAY_PREFIX,
    SHORT_ID_LENGTH,
    assign_identities,
    build_index,
    format_display_id,
    normalize_full_id,
    resolve_ticket,
    short_id,
)

__all__ = [
    "DISPLAY_PREFIX",
    "SHORT_ID_LENGTH",
    "AmbiguousTicketError",
    "TicketIdentity",
    "TicketIndexEntry",
    "TicketNotFoundError",
    "TicketResolutionError",
    "assign_identities",
    "build_index",
    "format_display_id",
    "normalize_full_id",
    "resolve_ticket",
    "short_id",
]
