"""
Unit tests for the asyncio reader/writer lock.
"""

import asyncio

import pytest

from openapi_mcp.rwlock import AsyncRWLock


class TestAsyncRWLock:
    """Test shared and exclusive acquisition."""

    @pytest.mark.asyncio
    async def test_readers_share(self):
        lock = AsyncRWLock()

        await lock.acquire_read()
        await asyncio.wait_for(lock.acquire_read(), timeout=1)

        assert lock.readers == 2
        await lock.release_read()
        await lock.release_read()
        assert lock.readers == 0

    @pytest.mark.asyncio
    async def test_writer_waits_for_readers(self):
        lock = AsyncRWLock()
        events = []

        async def writer():
            async with lock.write():
                events.append("write")

        await lock.acquire_read()
        task = asyncio.create_task(writer())
        await asyncio.sleep(0.01)

        assert not lock.locked_for_write
        events.append("read done")
        await lock.release_read()
        await asyncio.wait_for(task, timeout=1)

        assert events == ["read done", "write"]

    @pytest.mark.asyncio
    async def test_waiting_writer_blocks_new_readers(self):
        lock = AsyncRWLock()
        events = []

        async def writer():
            async with lock.write():
                events.append("write")

        async def reader():
            async with lock.read():
                events.append("read")

        await lock.acquire_read()
        write_task = asyncio.create_task(writer())
        await asyncio.sleep(0.01)
        read_task = asyncio.create_task(reader())
        await asyncio.sleep(0.01)

        assert events == []
        await lock.release_read()
        await asyncio.wait_for(asyncio.gather(write_task, read_task), timeout=1)

        assert events == ["write", "read"]

    @pytest.mark.asyncio
    async def test_cancelled_writer_releases_readers(self):
        lock = AsyncRWLock()

        await lock.acquire_read()
        task = asyncio.create_task(lock.acquire_write())
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        await asyncio.wait_for(lock.acquire_read(), timeout=1)
        assert lock.readers == 2
