"""Redis cache for resolved short codes."""

import logging
from typing import Iterable, Optional

import redis.asyncio as redis

KEY_PREFIX = "shortener:uri:"


class RedisCache:
    """Caches ``code -> URI`` lookups in Redis.

    The cache is advisory. When Redis is unreachable at startup the cache
    disables itself, and any later error is logged and treated as a miss, so
    the storage backend stays the source of truth.
    """

    def __init__(
        self,
        redis_url: Optional[str] = None,
        ttl_seconds: int = 3600,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize Redis cache.

        Args:
            redis_url: Redis connection URL (e.g., redis://localhost:6379/0);
                ``None`` disables the cache
            ttl_seconds: Lifetime of cached entries
            logger: Optional logger instance
        """
        self.redis_url = redis_url
        self.ttl_seconds = ttl_seconds
        self.logger = logger or logging.getLogger(__name__)
        self.enabled = redis_url is not None
        self.client: Optional[redis.Redis] = None

    @staticmethod
    def key_for(code: str) -> str:
        return f"{KEY_PREFIX}{code}"

    @property
    def active(self) -> bool:
        return self.enabled and self.client is not None

    async def connect(self) -> None:
        """Open the client and ping it; disable the cache on failure."""
        if not self.enabled:
            return

        self.client = redis.from_url(self.redis_url, encoding="utf-8", decode_responses=True)
        try:
            await self.client.ping()
        except (redis.RedisError, OSError) as e:
            self.logger.error(f"Redis unreachable, caching disabled: {e}")
            await self.close()
            self.enabled = False
            return

        self.logger.info(f"Redis cache connected (ttl={self.ttl_seconds}s)")

    async def get_uri(self, code: str) -> Optional[str]:
        """Cached URI for ``code``, or None on a miss."""
        if not self.active:
            return None
        try:
            return await self.client.get(self.key_for(code))
        except redis.RedisError as e:
            self.logger.error(f"Cache read failed for {code}: {e}")
            return None

    async def set_uri(self, code: str, uri: str) -> bool:
        """Cache ``uri`` under ``code``; returns False if nothing was written."""
        if not self.active:
            return False
        try:
            await self.client.setex(self.key_for(code), self.ttl_seconds, uri)
        except redis.RedisError as e:
            self.logger.error(f"Cache write failed for {code}: {e}")
            return False
        return True

    async def evict_codes(self, codes: Iterable[str]) -> int:
        """Drop cached entries for ``codes``; returns how many existed."""
        keys = sorted({self.key_for(code) for code in codes})
        if not self.active or not keys:
            return 0
        try:
            return await self.client.delete(*keys)
        except redis.RedisError as e:
            self.logger.error(f"Cache eviction of {len(keys)} codes failed: {e}")
            return 0

    async def close(self) -> None:
        if self.client is not None:
            await self.client.aclose()
            self.client = None
