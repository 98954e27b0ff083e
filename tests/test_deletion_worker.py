"""Tests for the background deletion worker."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from shortener.deletion import DeletionWorker, WorkerState
from shortener.errors import RowDeletedError, StorageUnavailableError
from shortener.models import DeletionRequest


@pytest.fixture
def queue():
    return asyncio.Queue(maxsize=16)


class TestDeletionWorker:
    """Test batching, flushing and failure handling."""

    async def test_flush_applies_batch(self, memory_storage, queue, sample_urls):
        codes = [await memory_storage.set(uri, owner_id=1) for uri in sample_urls[:2]]
        worker = DeletionWorker(memory_storage, queue, flush_interval=60)

        for code in codes:
            await queue.put(DeletionRequest(owner_id=1, code=code))

        assert worker.pending == 2
        assert await worker.flush() == 2
        assert worker.pending == 0
        assert worker.state is WorkerState.IDLE

        for code in codes:
            with pytest.raises(RowDeletedError):
                await memory_storage.get(code)

    async def test_flush_empty_skips_storage(self, queue):
        storage = AsyncMock()
        worker = DeletionWorker(storage, queue)

        assert await worker.flush() == 0
        storage.soft_delete.assert_not_awaited()

    async def test_periodic_flush(self, memory_storage, queue, sample_urls):
        code = await memory_storage.set(sample_urls[0], owner_id=1)
        worker = DeletionWorker(memory_storage, queue, flush_interval=0.05)
        worker.start()

        try:
            await queue.put(DeletionRequest(owner_id=1, code=code))
            await asyncio.sleep(0.3)

            with pytest.raises(RowDeletedError):
                await memory_storage.get(code)
            assert worker.pending == 0
        finally:
            await worker.stop()

    async def test_one_storage_call_per_tick(self, queue):
        storage = AsyncMock()
        worker = DeletionWorker(storage, queue, flush_interval=0.1)
        worker.start()

        try:
            for i in range(5):
                await queue.put(DeletionRequest(owner_id=1, code=f"code{i}"))
            await asyncio.sleep(0.25)
        finally:
            await worker.stop()

        storage.soft_delete.assert_awaited_once()
        assert len(storage.soft_delete.call_args.args[0]) == 5

    async def test_failed_batch_is_dropped(self, queue, sample_urls):
        storage = AsyncMock()
        storage.soft_delete.side_effect = StorageUnavailableError("down")
        worker = DeletionWorker(storage, queue, flush_interval=60)

        await queue.put(DeletionRequest(owner_id=1, code="AAAAAAAA"))

        assert await worker.flush() == 0
        assert worker.pending == 0
        assert worker.state is WorkerState.IDLE

        # Nothing is retried on the next flush
        storage.soft_delete.side_effect = None
        assert await worker.flush() == 0
        storage.soft_delete.assert_awaited_once()

    async def test_worker_survives_failed_batch(self, queue):
        storage = AsyncMock()
        storage.soft_delete.side_effect = [StorageUnavailableError("down"), None]
        worker = DeletionWorker(storage, queue, flush_interval=0.05)
        worker.start()

        try:
            await queue.put(DeletionRequest(owner_id=1, code="AAAAAAAA"))
            await asyncio.sleep(0.2)
            await queue.put(DeletionRequest(owner_id=1, code="BBBBBBBB"))
            await asyncio.sleep(0.2)

            assert worker.running
        finally:
            await worker.stop()

        assert storage.soft_delete.await_count == 2
        assert storage.soft_delete.call_args.args[0] == [DeletionRequest(owner_id=1, code="BBBBBBBB")]

    async def test_stop_flushes_pending(self, queue):
        storage = AsyncMock()
        worker = DeletionWorker(storage, queue, flush_interval=60)
        worker.start()

        await queue.put(DeletionRequest(owner_id=2, code="AAAAAAAA"))
        await asyncio.sleep(0)
        await worker.stop()

        assert not worker.running
        storage.soft_delete.assert_awaited_once_with([DeletionRequest(owner_id=2, code="AAAAAAAA")])

    async def test_start_is_idempotent(self, queue):
        worker = DeletionWorker(AsyncMock(), queue, flush_interval=60)
        worker.start()
        task = worker._task

        worker.start()

        assert worker._task is task
        await worker.stop()

    async def test_flush_evicts_cache(self, queue):
        storage = AsyncMock()
        cache = AsyncMock()
        worker = DeletionWorker(storage, queue, cache=cache)

        await queue.put(DeletionRequest(owner_id=1, code="AAAAAAAA"))
        await worker.flush()

        cache.evict_codes.assert_awaited_once()
        assert list(cache.evict_codes.call_args.args[0]) == ["AAAAAAAA"]

    async def test_request_enqueued_right_before_stop(self, queue):
        storage = AsyncMock()
        worker = DeletionWorker(storage, queue, flush_interval=60)
        worker.start()
        await asyncio.sleep(0)

        request = DeletionRequest(owner_id=3, code="CCCCCCCC")
        queue.put_nowait(request)
        await worker.stop()

        storage.soft_delete.assert_awaited_once_with([request])
        assert worker.pending == 0

    async def test_no_request_lost_across_ticks(self, queue):
        """Requests arriving while ticks expire are all applied exactly once."""
        storage = AsyncMock()
        worker = DeletionWorker(storage, queue, flush_interval=0.01)
        worker.start()

        sent = [DeletionRequest(owner_id=1, code=f"{i:08d}") for i in range(40)]
        try:
            for request in sent:
                await queue.put(request)
                await asyncio.sleep(0.003)
        finally:
            await worker.stop()

        applied = [r for call in storage.soft_delete.await_args_list for r in call.args[0]]
        assert applied == sent
        assert storage.soft_delete.await_count > 1

    async def test_generation_counts_applied_batches(self, queue):
        storage = AsyncMock()
        worker = DeletionWorker(storage, queue, flush_interval=60)

        assert await worker.flush() == 0
        assert worker.generation == 0

        await queue.put(DeletionRequest(owner_id=1, code="AAAAAAAA"))
        await worker.flush()
        assert worker.generation == 1

        storage.soft_delete.side_effect = StorageUnavailableError("down")
        await queue.put(DeletionRequest(owner_id=1, code="BBBBBBBB"))
        await worker.flush()
        assert worker.generation == 1
