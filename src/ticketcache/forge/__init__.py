"""Forge client - Reads pull request status from the code-hosting forge."""

from ticketcache.forge.client import ForgeClient
from ticketcache.forge.exceptions import ForgeError

__all__ = [
    "ForgeClient",
    "ForgeError",
]
