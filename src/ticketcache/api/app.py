"""FastAPI application setup."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ticketcache import __version__
from ticketcache.api.dependencies import (
    close_forge_client,
    close_mutation_guard,
    close_state_store,
    get_caller_identity,
    init_forge_client,
    init_mutation_guard,
    init_state_store,
)
from ticketcache.api.models import APIResponse
from ticketcache.api.routes import attention, auth, pending_changes, repos, sync_health, tickets
from ticketcache.config import Settings, get_settings
from ticketcache.forge import ForgeError
from ticketcache.identity import AmbiguousTicketError, TicketNotFoundError
from ticketcache.logging import sanitize_for_log
from ticketcache.pending_changes import InvalidStatusPayloadError
from ticketcache.security import (
    MissingCredentialsError,
    MutationRejectedError,
    UntrackedRepoAccessError,
)
from ticketcache.state_store import (
    PendingChangeNotFoundError,
    RepoExistsError,
    RepoNotFoundError,
    StateStoreError,
)

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings: Settings = app.state.settings

    # Startup
    init_state_store(settings.db_path)
    init_mutation_guard(settings)
    init_forge_client(settings)
    logger.info(
        "ticketcache started (db=%s, csrf_protection=%s)",
        settings.db_path,
        settings.csrf_protection_enabled,
    )

    yield
    # Shutdown
    close_forge_client()
    close_mutation_guard()
    close_state_store()


def _error(status_code: int, message: str, details: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=APIResponse[None](data=None, error=message, details=details).model_dump(),
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="ticketcache API",
        description="REST API for ticketcache - cached ticket state, sync health and attention",
        version=__version__,
        lifespan=lifespan,
    )

    # Store config for lifespan manager
    app.state.settings = settings if settings is not None else get_settings()

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[app.state.settings.canonical_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(TicketNotFoundError)
    async def ticket_not_found_handler(_request: Request, exc: TicketNotFoundError) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, str(exc), exc.to_dict())

    @app.exception_handler(AmbiguousTicketError)
    async def ambiguous_ticket_handler(
        _request: Request, exc: AmbiguousTicketError
    ) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, "Ambiguous ticket id", exc.to_dict())

    @app.exception_handler(RepoNotFoundError)
    async def repo_not_found_handler(_request: Request, _exc: RepoNotFoundError) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, "Repository not found")

    @app.exception_handler(RepoExistsError)
    async def repo_exists_handler(_request: Request, _exc: RepoExistsError) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, "Repository is already tracked")

    @app.exception_handler(PendingChangeNotFoundError)
    async def pending_change_not_found_handler(
        _request: Request, _exc: PendingChangeNotFoundError
    ) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, "Pending change not found")

    @app.exception_handler(StateStoreError)
    async def state_store_error_handler(_request: Request, _exc: StateStoreError) -> JSONResponse:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    @app.exception_handler(InvalidStatusPayloadError)
    async def invalid_payload_handler(
        _request: Request, exc: InvalidStatusPayloadError
    ) -> JSONResponse:
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc))

    @app.exception_handler(MissingCredentialsError)
    async def missing_credentials_handler(
        _request: Request, _exc: MissingCredentialsError
    ) -> JSONResponse:
        response = _error(status.HTTP_401_UNAUTHORIZED, "Authentication required")
        response.headers["WWW-Authenticate"] = "Bearer"
        return response

    @app.exception_handler(MutationRejectedError)
    async def mutation_rejected_handler(
        _request: Request, exc: MutationRejectedError
    ) -> JSONResponse:
        rejection = exc.rejection
        message = (
            "Rate limit exceeded"
            if rejection.status_code == status.HTTP_429_TOO_MANY_REQUESTS
            else "Forbidden"
        )
        response = _error(rejection.status_code, message, {"reason": rejection.reason.value})
        response.headers.update(rejection.headers())
        return response

    @app.exception_handler(UntrackedRepoAccessError)
    async def untracked_repo_handler(
        _request: Request, exc: UntrackedRepoAccessError
    ) -> JSONResponse:
        return _error(
            status.HTTP_403_FORBIDDEN,
            "Repository filter names untracked repositories",
            {"repos": exc.repos},
        )

    @app.exception_handler(ForgeError)
    async def forge_error_handler(_request: Request, exc: ForgeError) -> JSONResponse:
        logger.warning("Forge request failed: %s", sanitize_for_log(str(exc)))
        return _error(status.HTTP_502_BAD_GATEWAY, "Forge request failed")

    # Include routers; every route requires a caller identity
    authenticated = [Depends(get_caller_identity)]
    app.include_router(auth.router, prefix="/api/v1", dependencies=authenticated)
    app.include_router(repos.router, prefix="/api/v1", dependencies=authenticated)
    app.include_router(tickets.router, prefix="/api/v1", dependencies=authenticated)
    app.include_router(pending_changes.router, prefix="/api/v1", dependencies=authenticated)
    app.include_router(sync_health.router, prefix="/api/v1", dependencies=authenticated)
    app.include_router(attention.router, prefix="/api/v1", dependencies=authenticated)

    return app


# Default app instance
app = create_app()
