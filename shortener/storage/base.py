"""Abstract base class for shortener storage backends."""

from abc import ABC, abstractmethod
from typing import List

from ..models import DeletionRequest, StorageStats, UserURL


class StorageBase(ABC):
    """Capability contract shared by every storage backend."""

    #: Human readable backend name, reported in logs and health output.
    name = "base"

    @abstractmethod
    async def get(self, code: str, owner_id: int = 0) -> str:
        """Get the original URI for a short code.

        Args:
            code: The short code to lookup
            owner_id: Requesting user (lookups are not restricted by owner)

        Returns:
            The original URI

        Raises:
            NotFoundError: If the code does not exist
            RowDeletedError: If the code has been soft-deleted
        """

    @abstractmethod
    async def set(self, uri: str, owner_id: int = 0) -> str:
        """Generate a short code for a URI and persist the mapping.

        Args:
            uri: The original URI (already validated)
            owner_id: Owner of the new mapping (0 = anonymous)

        Returns:
            The new short code

        Raises:
            ConflictError: If the backend already holds this URI; carries
                the existing code
            StorageError: On any other storage failure
        """

    @abstractmethod
    async def get_by_user(self, owner_id: int) -> List[UserURL]:
        """List the non-deleted mappings owned by a user.

        Args:
            owner_id: The owner to look up

        Returns:
            List of mappings, empty if the user has none
        """

    @abstractmethod
    async def soft_delete(self, requests: List[DeletionRequest]) -> None:
        """Mark the rows matching each (code, owner_id) pair as deleted.

        Requests that match no row are ignored.

        Args:
            requests: Batch of deletion requests
        """

    @abstractmethod
    async def health_check(self) -> None:
        """Check the backend is reachable.

        Raises:
            StorageUnavailableError: If it is not
        """

    @abstractmethod
    async def stats(self) -> StorageStats:
        """Get storage statistics.

        Returns:
            Number of stored URLs and number of distinct owners
        """

    async def close(self) -> None:
        """Release backend resources."""
