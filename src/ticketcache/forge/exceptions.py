"""Custom exceptions for the forge client."""


class ForgeError(Exception):
    """Forge API request failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
