"""Background worker that batches soft-delete requests."""

import asyncio
import logging
from contextlib import suppress
from enum import Enum
from typing import List, Optional

from .cache import RedisCache
from .models import DeletionRequest
from .storage.base import StorageBase


class WorkerState(str, Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"
    FLUSHING = "flushing"


class DeletionWorker:
    """Collects deletion requests from a queue and flushes them periodically.

    Every ``flush_interval`` seconds the accumulated requests go to storage in
    a single ``soft_delete`` call. A failed batch is logged and dropped, never
    requeued, so each request is applied at most once.
    """

    def __init__(
        self,
        storage: StorageBase,
        queue: "asyncio.Queue[DeletionRequest]",
        flush_interval: float = 10.0,
        cache: Optional[RedisCache] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize deletion worker.

        Args:
            storage: Storage backend receiving the batches
            queue: Queue fed by the producers
            flush_interval: Seconds between flushes
            cache: Optional cache to evict flushed codes from
            logger: Optional logger
        """
        self.storage = storage
        self.queue = queue
        self.flush_interval = flush_interval
        self.cache = cache
        self.logger = logger or logging.getLogger(__name__)
        self.state = WorkerState.IDLE
        # Bumped after every applied batch; readers compare it to avoid
        # caching a URI that was deleted while they were reading it
        self.generation = 0
        self._pending: List[DeletionRequest] = []
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def pending(self) -> int:
        """Number of accumulated requests not yet flushed."""
        return len(self._pending) + self.queue.qsize()

    def start(self) -> None:
        """Start the worker task on the running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name="deletion-worker"
        )
        self.logger.debug(f"Deletion worker started (flush every {self.flush_interval}s)")

    async def stop(self) -> None:
        """Stop the worker, flushing what has already been accumulated."""
        if self._task is not None:
            self._task.cancel()
            with suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        await self.flush()

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.flush_interval
        # Kept across timeouts: cancelling a get that already dequeued an
        # item would lose it
        getter: Optional[asyncio.Task] = None

        try:
            while True:
                timeout = deadline - loop.time()
                if timeout > 0:
                    if getter is None:
                        getter = loop.create_task(self.queue.get())
                    done, _ = await asyncio.wait({getter}, timeout=timeout)
                    if getter in done:
                        self._accept(getter.result())
                        getter = None
                    continue

                await self.flush()
                deadline = loop.time() + self.flush_interval
        finally:
            if getter is not None:
                if getter.done() and not getter.cancelled():
                    self._accept(getter.result())
                else:
                    getter.cancel()

    def _accept(self, request: DeletionRequest) -> None:
        self._pending.append(request)
        self.queue.task_done()
        if self.state is WorkerState.IDLE:
            self.state = WorkerState.ACCUMULATING

    async def flush(self) -> int:
        """Send every accumulated request to storage now.

        Returns:
            Number of requests applied (0 for an empty or failed batch)
        """
        while not self.queue.empty():
            self._accept(self.queue.get_nowait())

        if not self._pending:
            return 0

        batch, self._pending = self._pending, []
        self.state = WorkerState.FLUSHING
        try:
            await self.storage.soft_delete(batch)
        except Exception as e:
            self.logger.error(f"Dropping {len(batch)} deletion requests after storage error: {e}")
            return 0
        finally:
            self.state = WorkerState.ACCUMULATING if self._pending else WorkerState.IDLE

        self.generation += 1
        if self.cache is not None:
            await self.cache.evict_codes(r.code for r in batch)

        self.logger.info(f"Flushed {len(batch)} deletion requests")
        return len(batch)
