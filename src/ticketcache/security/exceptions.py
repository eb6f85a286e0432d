"""Custom exceptions for the security layer."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ticketcache.security.mutation_guard import GuardRejection


class SecurityError(Exception):
    """Base exception for security errors."""


class MutationRejectedError(SecurityError):
    """A mutation was rejected by the guard (rate limit or forgery check)."""

    def __init__(self, rejection: GuardRejection) -> None:
        super().__init__(f"Mutation rejected: {rejection.reason.value}")
        self.rejection = rejection


class MissingCredentialsError(SecurityError):
    """The request carries no bearer credential."""


class UntrackedRepoAccessError(SecurityError):
    """A repository filter names repositories that are not tracked."""

    def __init__(self, repos: list[str]) -> None:
        super().__init__(f"Repositories not tracked: {', '.join(repos)}")
        self.repos = repos
