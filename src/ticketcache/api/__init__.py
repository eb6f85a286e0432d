"""REST API - FastAPI application exposing the ticket cache."""

from ticketcache.api.app import create_app

__all__ = ["create_app"]
