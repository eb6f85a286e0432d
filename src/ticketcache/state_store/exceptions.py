"""Custom exceptions for State Store."""


class StateStoreError(Exception):
    """Base exception for State Store errors."""


class RepoNotFoundError(StateStoreError):
    """Repository is not tracked."""


class RepoExistsError(StateStoreError):
    """Repository is already tracked."""


class PendingChangeNotFoundError(StateStoreError):
    """No pending change for the given repository and PR number."""
