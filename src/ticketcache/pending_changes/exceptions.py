"""Custom exceptions for pending changes."""


class PendingChangeError(Exception):
    """Base exception for pending change errors."""


class InvalidStatusPayloadError(PendingChangeError):
    """PR status payload matches neither the current nor the legacy shape."""
