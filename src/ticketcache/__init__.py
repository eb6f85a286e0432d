"""ticketcache - Derived ticket cache state: identity, sync health, attention, guards."""

__version__ = "0.1.0"
