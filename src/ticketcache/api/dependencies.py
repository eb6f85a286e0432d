"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

import hashlib
from collections.abc import Callable, Generator  # noqa: TC003
from typing import Annotated

from fastapi import Depends, Header, Query, Request

from ticketcache.config import Settings, get_settings
from ticketcache.forge import ForgeClient
from ticketcache.security import (
    CSRF_COOKIE_NAME,
    CSRF_HEADER_NAME,
    InMemoryRateLimitStore,
    MissingCredentialsError,
    MutationGuard,
    MutationRequest,
    RateLimiter,
    UntrackedRepoAccessError,
    client_address,
    request_origin,
)
from ticketcache.state_store import StateStore, TrackedRepo, normalize_repo_name


def get_app_settings(request: Request) -> Settings:
    """Dependency that provides the settings the app was created with."""
    settings = getattr(request.app.state, "settings", None)
    return settings if settings is not None else get_settings()


# Type alias for dependency injection
SettingsDep = Annotated[Settings, Depends(get_app_settings)]

# Global StateStore instance (initialized on app startup)
_state_store: StateStore | None = None


def init_state_store(db_path: str = "ticketcache.db") -> StateStore:
    """Initialize the global StateStore instance."""
    global _state_store  # noqa: PLW0603
    _state_store = StateStore(db_path)
    return _state_store


def close_state_store() -> None:
    """Close the global StateStore instance."""
    global _state_store  # noqa: PLW0603
    if _state_store is not None:
        _state_store.close()
        _state_store = None


def get_state_store() -> Generator[StateStore, None, None]:
    """Dependency that provides the StateStore instance."""
    if _state_store is None:
        raise RuntimeError("StateStore not initialized. Call init_state_store() first.")
    yield _state_store


# Type alias for dependency injection
StateStoreDep = Annotated[StateStore, Depends(get_state_store)]

# Global MutationGuard instance; its limiter state lives as long as the process
_mutation_guard: MutationGuard | None = None


def init_mutation_guard(settings: Settings) -> MutationGuard:
    """Initialize the global MutationGuard with an in-memory rate limiter."""
    global _mutation_guard  # noqa: PLW0603
    _mutation_guard = MutationGuard(
        limiter=RateLimiter(InMemoryRateLimitStore()),
        canonical_origin=settings.canonical_origin,
        enforcement_enabled=settings.csrf_protection_enabled,
        default_limit=settings.mutation_limit,
        default_window_ms=settings.mutation_window_ms,
    )
    return _mutation_guard


def close_mutation_guard() -> None:
    """Drop the global MutationGuard instance."""
    global _mutation_guard  # noqa: PLW0603
    _mutation_guard = None


def get_mutation_guard() -> Generator[MutationGuard, None, None]:
    """Dependency that provides the MutationGuard instance."""
    if _mutation_guard is None:
        raise RuntimeError("MutationGuard not initialized. Call init_mutation_guard() first.")
    yield _mutation_guard


# Type alias for dependency injection
MutationGuardDep = Annotated[MutationGuard, Depends(get_mutation_guard)]

# Global ForgeClient instance (initialized on app startup)
_forge_client: ForgeClient | None = None


def init_forge_client(settings: Settings) -> ForgeClient:
    """Initialize the global ForgeClient instance."""
    global _forge_client  # noqa: PLW0603
    token = settings.forge_token.get_secret_value() if settings.forge_token else None
    _forge_client = ForgeClient(token=token, base_url=settings.forge_api_url)
    return _forge_client


def close_forge_client() -> None:
    """Close the global ForgeClient instance."""
    global _forge_client  # noqa: PLW0603
    if _forge_client is not None:
        _forge_client.close()
        _forge_client = None


def get_forge_client() -> Generator[ForgeClient, None, None]:
    """Dependency that provides the ForgeClient instance."""
    if _forge_client is None:
        raise RuntimeError("ForgeClient not initialized. Call init_forge_client() first.")
    yield _forge_client


# Type alias for dependency injection
ForgeClientDep = Annotated[ForgeClient, Depends(get_forge_client)]


def get_caller_identity(authorization: Annotated[str | None, Header()] = None) -> str:
    """Dependency that derives a stable caller identity from the bearer credential.

    The credential itself is never stored; the identity is a digest of it.

    Raises:
        MissingCredentialsError: If no bearer credential is present
    """
    scheme, _, credential = (authorization or "").partition(" ")
    credential = credential.strip()
    if scheme.lower() != "bearer" or not credential:
        raise MissingCredentialsError("Missing bearer credential")
    digest = hashlib.sha256(credential.encode("utf-8")).hexdigest()
    return f"caller-{digest[:16]}"


# Type alias for dependency injection
CallerIdentityDep = Annotated[str, Depends(get_caller_identity)]


def guard_mutation(bucket: str) -> Callable[..., None]:
    """Build a dependency that runs the mutation guard for a bucket.

    Args:
        bucket: Rate-limit bucket shared by the guarded routes

    Returns:
        Dependency for a route's ``dependencies`` list. It raises
        MutationRejectedError when the guard rejects the request.
    """

    def dependency(request: Request, guard: MutationGuardDep, identity: CallerIdentityDep) -> None:
        headers = request.headers
        guard.enforce(
            MutationRequest(
                bucket=bucket,
                identity=identity,
                source_address=client_address(
                    headers.get("x-forwarded-for"),
                    headers.get("x-real-ip"),
                    request.client.host if request.client else None,
                ),
                origin=request_origin(headers.get("origin"), headers.get("referer")),
                csrf_header_token=headers.get(CSRF_HEADER_NAME),
                csrf_cookie_token=request.cookies.get(CSRF_COOKIE_NAME),
            )
        )

    return dependency


def get_selected_repos(
    store: StateStoreDep,
    repos: Annotated[
        list[str] | None,
        Query(description="Repositories to include (owner/repo, repeated or comma-separated)"),
    ] = None,
) -> list[TrackedRepo]:
    """Dependency that resolves a space-wide repository filter.

    Without a filter every enabled repository is selected. A filter naming
    any repository that is not tracked is rejected as a whole.

    Raises:
        UntrackedRepoAccessError: If the filter names untracked repositories
    """
    tracked = store.list_repos()
    if not repos:
        return [repo for repo in tracked if repo.enabled]

    by_name = {repo.full_name: repo for repo in tracked}
    requested: list[str] = []
    for value in repos:
        for name in value.split(","):
            normalized = normalize_repo_name(name)
            if normalized and normalized not in requested:
                requested.append(normalized)

    unknown = [name for name in requested if name not in by_name]
    if unknown:
        raise UntrackedRepoAccessError(unknown)
    return [by_name[name] for name in requested]


# Type alias for dependency injection
SelectedReposDep = Annotated[list[TrackedRepo], Depends(get_selected_repos)]
