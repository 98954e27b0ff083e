"""In-memory storage backend."""

import logging
from typing import Dict, List, Optional

from ..errors import NotFoundError, RowDeletedError, StorageError
from ..models import DeletionRequest, ShortLink, StorageStats, UserURL
from ..shortcode import ShortCodeGenerator
from .base import StorageBase


class MemoryStorage(StorageBase):
    """Keeps every mapping in a dict for the lifetime of the process.

    The same URI may be stored under several codes: this backend does not
    enforce uniqueness of URIs.
    """

    name = "memory"

    def __init__(
        self,
        short_code_generator: Optional[ShortCodeGenerator] = None,
        max_collision_retries: int = 5,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize in-memory storage.

        Args:
            short_code_generator: Optional short code generator
            max_collision_retries: Attempts before giving up on a colliding code
            logger: Optional logger instance
        """
        self.generator = short_code_generator or ShortCodeGenerator()
        self.max_collision_retries = max_collision_retries
        self.logger = logger or logging.getLogger(__name__)
        self._links: Dict[str, ShortLink] = {}

    async def get(self, code: str, owner_id: int = 0) -> str:
        link = self._links.get(code)
        if link is None:
            raise NotFoundError(f"Short code '{code}' not found")
        if link.deleted:
            raise RowDeletedError(f"Short code '{code}' has been deleted")
        return link.original_uri

    async def set(self, uri: str, owner_id: int = 0) -> str:
        link = self._insert(uri, owner_id)
        self.logger.debug(f"Stored {link.code} -> {uri} (owner {owner_id})")
        return link.code

    async def get_by_user(self, owner_id: int) -> List[UserURL]:
        return [
            UserURL(code=link.code, original_uri=link.original_uri)
            for link in self._links.values()
            if link.owner_id == owner_id and not link.deleted
        ]

    async def soft_delete(self, requests: List[DeletionRequest]) -> None:
        self._mark_deleted(requests)

    async def health_check(self) -> None:
        return None

    async def stats(self) -> StorageStats:
        owners = {link.owner_id for link in self._links.values()}
        return StorageStats(urls=len(self._links), users=len(owners))

    def _new_code(self) -> str:
        """Generate a code not yet present in the map."""
        for _ in range(self.max_collision_retries):
            code = self.generator.generate_random()
            if code not in self._links:
                return code
            self.logger.warning(f"Generated short code collided: {code}")
        raise StorageError("Unable to generate unique short code after multiple attempts")

    def _insert(self, uri: str, owner_id: int) -> ShortLink:
        link = ShortLink(code=self._new_code(), original_uri=uri, owner_id=owner_id)
        self._links[link.code] = link
        return link

    def _mark_deleted(self, requests: List[DeletionRequest]) -> int:
        """Flag matching rows as deleted and return how many changed."""
        changed = 0
        for request in requests:
            link = self._links.get(request.code)
            if link is None or link.owner_id != request.owner_id or link.deleted:
                continue
            link.deleted = True
            changed += 1
        return changed
