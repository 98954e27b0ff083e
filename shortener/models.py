"""Data models for the shortener."""

from dataclasses import dataclass
from typing import NamedTuple


@dataclass
class ShortLink:
    """A short code mapped to its original URI."""
    
    code: str
    original_uri: str
    owner_id: int = 0
    deleted: bool = False


@dataclass(frozen=True)
class DeletionRequest:
    """A pending request to soft-delete one code owned by one user."""
    
    owner_id: int
    code: str


@dataclass
class UserURL:
    """One entry of a user's history."""
    
    code: str
    original_uri: str


class StorageStats(NamedTuple):
    """Counts reported by a storage backend."""
    
    urls: int
    users: int
