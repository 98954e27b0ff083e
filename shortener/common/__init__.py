"""Common utilities for the shortener."""

from .validators import is_valid_uri
from .url_builder import build_short_url
from .logging_config import setup_logging, get_logger

__all__ = [
    "is_valid_uri",
    "build_short_url",
    "setup_logging",
    "get_logger",
]
