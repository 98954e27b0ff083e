"""Tests that concurrent callers get correct, independent results."""

import asyncio

import pytest

from shortener.storage import FileStorage


class TestConcurrentCoder:
    """Many simultaneous coder calls."""

    async def test_concurrent_encodes_get_distinct_codes(self, coder):
        uris = [f"https://example.com/page/{i}" for i in range(200)]

        codes = await asyncio.gather(*(coder.to_code(uri, i % 5) for i, uri in enumerate(uris)))

        assert len(set(codes)) == len(uris)
        resolved = await asyncio.gather(*(coder.to_uri(code) for code in codes))
        assert list(resolved) == uris

    async def test_concurrent_deletes_from_many_users(self, coder):
        owned = {}
        for owner in range(1, 6):
            owned[owner] = [await coder.to_code(f"https://example.com/{owner}/{i}", owner) for i in range(10)]

        await asyncio.gather(*(coder.delete_urls(codes, owner) for owner, codes in owned.items()))
        await coder.flush_deletions()

        for owner in owned:
            assert await coder.get_history(owner) == []

    async def test_concurrent_file_writes(self, storage_path):
        storage = FileStorage(file_path=storage_path)

        codes = await asyncio.gather(*(storage.set(f"https://example.com/{i}") for i in range(50)))

        reloaded = FileStorage(file_path=storage_path)
        assert await reloaded.stats() == (50, 1)
        for i, code in enumerate(codes):
            assert await reloaded.get(code) == f"https://example.com/{i}"


@pytest.mark.asyncio
class TestConcurrentConnections:
    """Prove the server handles many simultaneous requests."""

    async def test_concurrent_ping(self, client):
        responses = await asyncio.gather(*(client.get("/ping") for _ in range(50)))

        assert all(r.status_code == 200 for r in responses)

    async def test_concurrent_shorten(self, client):
        concurrency = 50
        responses = await asyncio.gather(*(
            client.post("/api/shorten", json={"url": f"https://example.com/concurrent/{i}"})
            for i in range(concurrency)
        ))

        assert all(r.status_code == 201 for r in responses)
        results = {r.json()["result"] for r in responses}
        assert len(results) == concurrency
