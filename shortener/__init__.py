"""Core of the shortener: code generation, storage backends and the coder."""

from .shortcode import ShortCodeGenerator
from .coder import Coder, build_coder, new_coder
from .errors import (
    ShortenerError,
    InvalidURIError,
    NotFoundError,
    RowDeletedError,
    ConflictError,
    StorageError,
    StorageUnavailableError,
)

__all__ = [
    "ShortCodeGenerator",
    "Coder",
    "new_coder",
    "build_coder",
    "ShortenerError",
    "InvalidURIError",
    "NotFoundError",
    "RowDeletedError",
    "ConflictError",
    "StorageError",
    "StorageUnavailableError",
]
