"""Exception hierarchy for the shortener core."""

from typing import Optional


class ShortenerError(Exception):
    """Base class for all shortener errors."""


class InvalidURIError(ShortenerError, ValueError):
    """Raised when a URI is not a valid absolute URI."""


class NotFoundError(ShortenerError, LookupError):
    """Raised when a short code is unknown."""


class RowDeletedError(ShortenerError):
    """Raised when a short code exists but has been soft-deleted."""


class ConflictError(ShortenerError):
    """Raised when a URI has already been shortened.

    Not a failure: ``code`` holds the code previously issued for the URI.
    """

    def __init__(self, code: str, message: Optional[str] = None):
        super().__init__(message or f"URI already shortened as '{code}'")
        self.code = code


class StorageError(ShortenerError):
    """Raised on storage failures."""


class StorageUnavailableError(StorageError):
    """Raised when the storage backend cannot be reached."""
