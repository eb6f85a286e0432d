"""Custom exceptions for the Identity Resolver."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ticketcache.identity.models import TicketIndexEntry


class TicketResolutionError(Exception):
    """Base exception for ticket resolution errors."""

    code = "resolution_error"

    def __init__(self, query: str, message: str) -> None:
        super().__init__(message)
        self.query = query

    def to_dict(self) -> dict[str, Any]:
        """Structured detail for API responses."""
        return {"code": self.code, "query": self.query}


class TicketNotFoundError(TicketResolutionError):
    """No ticket matched the query."""

    code = "ticket_not_found"

    def __init__(self, query: str) -> None:
        super().__init__(query, f"Ticket not found: {query}")


class AmbiguousTicketError(TicketResolutionError):
    """More than one ticket matched the query at the same tier."""

    code = "ambiguous_id"

    def __init__(self, query: str, candidates: list[TicketIndexEntry]) -> None:
        self.candidates = sorted(candidates, key=lambda entry: entry.full_id)
        options = "\n- ".join(
            f"{entry.display_id} ({entry.full_id})" for entry in self.candidates
        )
        super().__init__(query, f"Ambiguous ticket id '{query}'. Use one of:\n- {options}")

    def to_dict(self) -> dict[str, Any]:
        detail = super().to_dict()
        detail["matches"] = [
            {
                "id": entry.full_id,
                "short_id": entry.short_id,
                "display_id": entry.display_id,
            }
            for entry in self.candidates
        ]
        return detail
