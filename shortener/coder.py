"""Coder: translates between URIs and short codes over a storage backend."""

import asyncio
import logging
from typing import Awaitable, List, Optional, TypeVar

from .cache import RedisCache
from .common.validators import is_valid_uri
from .deletion import DeletionWorker
from .errors import ConflictError, InvalidURIError, NotFoundError, StorageUnavailableError
from .models import DeletionRequest, StorageStats, UserURL
from .storage import build_storage
from .storage.base import StorageBase

T = TypeVar("T")


class Coder:
    """Mediates between callers and the storage backend it was built with.

    Every operation accepts an optional ``timeout`` in seconds; when it
    expires the call fails with StorageUnavailableError and nothing is
    returned.
    """

    def __init__(
        self,
        storage: StorageBase,
        cache: Optional[RedisCache] = None,
        logger: Optional[logging.Logger] = None,
        queue_size: int = 1024,
        flush_interval: float = 10.0,
    ):
        """Initialize coder.

        The deletion worker starts immediately when an event loop is running,
        otherwise on the first call to :meth:`delete_urls`.

        Args:
            storage: Storage backend
            cache: Optional cache for code lookups
            logger: Optional logger
            queue_size: Capacity of the pending deletion queue
            flush_interval: Seconds between deletion flushes
        """
        self.storage = storage
        self.cache = cache
        self.logger = logger or logging.getLogger(__name__)
        self._deletions: "asyncio.Queue[DeletionRequest]" = asyncio.Queue(maxsize=queue_size)
        self.worker = DeletionWorker(
            storage=storage,
            queue=self._deletions,
            flush_interval=flush_interval,
            cache=cache,
            logger=self.logger,
        )

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            self.worker.start()

    async def _call(self, awaitable: Awaitable[T], timeout: Optional[float]) -> T:
        if timeout is None:
            return await awaitable
        try:
            return await asyncio.wait_for(awaitable, timeout)
        except asyncio.TimeoutError as e:
            raise StorageUnavailableError(f"Storage call timed out after {timeout}s") from e

    def _validate(self, uri: str) -> None:
        is_valid, error = is_valid_uri(uri)
        if not is_valid:
            raise InvalidURIError(f"Invalid URI: {error}")

    async def to_code(self, uri: str, owner_id: int = 0, timeout: Optional[float] = None) -> str:
        """Shorten a URI.

        Args:
            uri: Absolute URI to shorten
            owner_id: Owner of the mapping (0 = anonymous)
            timeout: Optional timeout in seconds

        Returns:
            The new short code

        Raises:
            InvalidURIError: If the URI is not a valid absolute URI
            ConflictError: If the backend already holds the URI; ``code``
                carries the existing short code
        """
        self._validate(uri)
        code = await self._call(self.storage.set(uri, owner_id), timeout)
        self.logger.info(f"Created short URL: {code} -> {uri}")
        return code

    async def to_codes(
        self,
        uris: List[str],
        owner_id: int = 0,
        timeout: Optional[float] = None,
    ) -> List[str]:
        """Shorten several URIs at once.

        All URIs are validated before anything is stored. A URI the backend
        already holds yields its existing code.

        Returns:
            Codes in the order of ``uris``
        """
        for uri in uris:
            self._validate(uri)

        async def encode_all() -> List[str]:
            codes = []
            for uri in uris:
                try:
                    codes.append(await self.storage.set(uri, owner_id))
                except ConflictError as e:
                    codes.append(e.code)
            return codes

        codes = await self._call(encode_all(), timeout)
        self.logger.info(f"Created {len(codes)} short URLs in batch")
        return codes

    async def to_uri(self, code: str, owner_id: int = 0, timeout: Optional[float] = None) -> str:
        """Resolve a short code.

        Raises:
            NotFoundError: If the code is unknown
            RowDeletedError: If the code has been deleted
        """
        if self.cache:
            cached_uri = await self.cache.get_uri(code)
            if cached_uri:
                self.logger.debug(f"Cache hit for {code}")
                return cached_uri

        generation = self.worker.generation
        uri = await self._call(self.storage.get(code, owner_id), timeout)
        if not uri:
            raise NotFoundError(f"Short code '{code}' not found")

        # A flush during the read may have deleted and evicted this code
        if self.cache and self.worker.generation == generation:
            await self.cache.set_uri(code, uri)

        return uri

    async def get_history(self, owner_id: int, timeout: Optional[float] = None) -> List[UserURL]:
        """List the live mappings owned by a user."""
        return await self._call(self.storage.get_by_user(owner_id), timeout)

    async def health_check(self, timeout: Optional[float] = None) -> None:
        """Check the storage backend is reachable."""
        await self._call(self.storage.health_check(), timeout)

    async def get_stats(self, timeout: Optional[float] = None) -> StorageStats:
        """Get the number of stored URLs and distinct users."""
        return await self._call(self.storage.stats(), timeout)

    async def delete_urls(self, codes: List[str], owner_id: int) -> None:
        """Queue codes for asynchronous soft deletion.

        Returns once the requests are queued; they reach storage on the next
        worker flush. Waits only while the queue is full.
        """
        self.worker.start()
        for code in codes:
            await self._deletions.put(DeletionRequest(owner_id=owner_id, code=code))
        self.logger.info(f"Queued {len(codes)} deletions for user {owner_id}")

    async def flush_deletions(self) -> int:
        """Apply queued deletions without waiting for the next tick."""
        return await self.worker.flush()

    async def close(self) -> None:
        """Stop the deletion worker and close the cache and storage."""
        await self.worker.stop()
        if self.cache:
            await self.cache.close()
        await self.storage.close()


def new_coder(storage: StorageBase, **kwargs) -> Coder:
    """Create a coder over the given storage backend."""
    return Coder(storage, **kwargs)


async def build_coder(config, logger: Optional[logging.Logger] = None) -> Coder:
    """Wire the storage backend, optional cache and coder described by ``config``."""
    logger = logger or logging.getLogger(__name__)
    storage = build_storage(config, logger=logger)

    cache = None
    if config.redis_url:
        cache = RedisCache(config.redis_url, ttl_seconds=config.cache_ttl_seconds, logger=logger)
        await cache.connect()

    logger.info(
        f"Coder ready: {storage.name} storage, cache {'on' if cache and cache.active else 'off'}, "
        f"deletions flushed every {config.deletion_flush_interval_seconds}s"
    )
    return Coder(
        storage,
        cache=cache,
        logger=logger,
        queue_size=config.deletion_queue_size,
        flush_interval=config.deletion_flush_interval_seconds,
    )
