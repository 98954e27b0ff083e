"""PostgreSQL storage backend."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Dict, List, Optional

import asyncpg

from ..errors import (
    ConflictError,
    NotFoundError,
    RowDeletedError,
    StorageError,
    StorageUnavailableError,
)
from ..models import DeletionRequest, StorageStats, UserURL
from ..shortcode import ShortCodeGenerator
from .base import StorageBase

# Failures meaning the server could not be reached or the call timed out
_UNAVAILABLE_ERRORS = (
    OSError,
    asyncio.TimeoutError,
    asyncpg.PostgresConnectionError,
    asyncpg.InterfaceError,
)


class DatabaseStorage(StorageBase):
    """PostgreSQL implementation of the storage contract.

    Both ``code`` and ``uri`` carry a unique constraint. Re-submitting a URI
    that is already stored raises :class:`ConflictError` with the code the
    first insert received, which makes encoding idempotent even when two
    requests race on the same URI.
    """

    name = "database"

    CODE_CONSTRAINT = "urls_code_key"
    URI_CONSTRAINT = "urls_uri_key"

    CREATE_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS urls (
        code VARCHAR NOT NULL CONSTRAINT urls_code_key UNIQUE,
        uri VARCHAR NOT NULL CONSTRAINT urls_uri_key UNIQUE,
        user_id INTEGER NOT NULL DEFAULT 0,
        is_deleted BOOLEAN NOT NULL DEFAULT FALSE
    );
    CREATE INDEX IF NOT EXISTS urls_user_id_idx ON urls (user_id);
    """

    def __init__(
        self,
        dsn: str,
        short_code_generator: Optional[ShortCodeGenerator] = None,
        max_collision_retries: int = 5,
        pool_max_size: int = 10,
        connection_timeout_seconds: float = 30.0,
        create_tables: bool = True,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize database storage.

        No connection is opened until the first operation.

        Args:
            dsn: PostgreSQL connection string
            short_code_generator: Optional short code generator
            max_collision_retries: Attempts before giving up on a colliding code
            pool_max_size: Maximum size of connection pool
            connection_timeout_seconds: Connect and command timeout in seconds
            create_tables: Create the ``urls`` table if it is missing
            logger: Optional logger instance
        """
        self.dsn = dsn
        self.generator = short_code_generator or ShortCodeGenerator()
        self.max_collision_retries = max_collision_retries
        self.pool_max_size = pool_max_size
        self.connection_timeout_seconds = connection_timeout_seconds
        self.create_tables = create_tables
        self.logger = logger or logging.getLogger(__name__)

        # Connection pool (will be created per event loop)
        self._pools: Dict[int, asyncpg.Pool] = {}
        self._pool_lock = asyncio.Lock()

    async def _get_pool(self) -> asyncpg.Pool:
        """Get or create connection pool for current event loop."""
        loop_id = id(asyncio.get_running_loop())

        if loop_id not in self._pools:
            async with self._pool_lock:
                if loop_id not in self._pools:
                    self.logger.debug(f"Creating connection pool for loop {loop_id}")
                    pool = await asyncpg.create_pool(
                        dsn=self.dsn,
                        min_size=1,
                        max_size=self.pool_max_size,
                        timeout=self.connection_timeout_seconds,
                        command_timeout=self.connection_timeout_seconds,
                    )
                    if self.create_tables:
                        async with pool.acquire() as conn:
                            await conn.execute(self.CREATE_TABLE_SQL)
                    self._pools[loop_id] = pool

        return self._pools[loop_id]

    @asynccontextmanager
    async def _get_connection(self):
        """Get a database connection from the pool.

        Connection-level failures are raised as StorageUnavailableError.
        """
        try:
            pool = await self._get_pool()
            async with pool.acquire() as conn:
                yield conn
        except _UNAVAILABLE_ERRORS as e:
            raise StorageUnavailableError(f"Database unavailable: {e}") from e

    async def get(self, code: str, owner_id: int = 0) -> str:
        async with self._get_connection() as conn:
            row = await conn.fetchrow(
                "SELECT uri, is_deleted FROM urls WHERE code = $1",
                code,
            )

        if row is None:
            raise NotFoundError(f"Short code '{code}' not found")
        if row["is_deleted"]:
            raise RowDeletedError(f"Short code '{code}' has been deleted")
        return row["uri"]

    async def set(self, uri: str, owner_id: int = 0) -> str:
        async with self._get_connection() as conn:
            for _ in range(self.max_collision_retries):
                code = self.generator.generate_random()
                try:
                    await conn.execute(
                        "INSERT INTO urls (code, uri, user_id) VALUES ($1, $2, $3)",
                        code,
                        uri,
                        owner_id,
                    )
                except asyncpg.UniqueViolationError as e:
                    if e.constraint_name == self.CODE_CONSTRAINT:
                        self.logger.warning(f"Generated short code collided: {code}")
                        continue

                    # The URI is already stored: hand back the winner's code
                    existing = await conn.fetchval(
                        "SELECT code FROM urls WHERE uri = $1",
                        uri,
                    )
                    if existing is None:
                        raise StorageError(f"Unique violation on {uri} without a stored row") from e
                    self.logger.debug(f"URI already shortened: {existing} -> {uri}")
                    raise ConflictError(existing) from e

                self.logger.debug(f"Stored {code} -> {uri} (owner {owner_id})")
                return code

        raise StorageError("Unable to generate unique short code after multiple attempts")

    async def get_by_user(self, owner_id: int) -> List[UserURL]:
        async with self._get_connection() as conn:
            rows = await conn.fetch(
                "SELECT code, uri FROM urls WHERE user_id = $1 AND NOT is_deleted",
                owner_id,
            )

        return [UserURL(code=row["code"], original_uri=row["uri"]) for row in rows]

    async def soft_delete(self, requests: List[DeletionRequest]) -> None:
        if not requests:
            return

        async with self._get_connection() as conn:
            result = await conn.execute(
                """
                UPDATE urls SET is_deleted = TRUE
                FROM unnest($1::varchar[], $2::integer[]) AS d(code, user_id)
                WHERE urls.code = d.code AND urls.user_id = d.user_id
                """,
                [r.code for r in requests],
                [r.owner_id for r in requests],
            )

        self.logger.debug(f"Soft delete of {len(requests)} requests: {result}")

    async def health_check(self) -> None:
        try:
            async with self._get_connection() as conn:
                await conn.fetchval("SELECT 1")
        except asyncpg.PostgresError as e:
            raise StorageUnavailableError(f"Health check failed: {e}") from e

    async def stats(self) -> StorageStats:
        async with self._get_connection() as conn:
            row = await conn.fetchrow(
                "SELECT COUNT(*) AS urls, COUNT(DISTINCT user_id) AS users FROM urls"
            )

        return StorageStats(urls=row["urls"], users=row["users"])

    async def close(self) -> None:
        """Close all database connections."""
        for loop_id, pool in self._pools.items():
            try:
                await pool.close()
                self.logger.debug(f"Closed connection pool for loop {loop_id}")
            except Exception as e:
                self.logger.error(f"Error closing pool for loop {loop_id}: {e}")

        self._pools.clear()
