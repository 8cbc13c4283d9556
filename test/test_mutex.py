"""Tests for the FIFO write mutex."""

import asyncio
import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from DbpiaRelay.infra.mutex import FifoMutex


class TestFifoMutex(unittest.IsolatedAsyncioTestCase):
    async def test_task_bodies_never_interleave(self):
        mutex = FifoMutex()
        events: list[int] = []

        async def body(n):
            events.append(n)
            await asyncio.sleep(0.01)
            events.append(n)
            return n

        results = await asyncio.gather(
            mutex.run_exclusive(lambda: body(1)),
            mutex.run_exclusive(lambda: body(2)),
        )

        self.assertEqual(results, [1, 2])
        self.assertEqual(events, [1, 1, 2, 2])
        self.assertFalse(mutex.locked())

    async def test_lock_released_when_task_raises(self):
        mutex = FifoMutex()

        async def boom():
            raise RuntimeError("boom")

        with self.assertRaises(RuntimeError):
            await mutex.run_exclusive(boom)

        self.assertFalse(mutex.locked())
        self.assertEqual(await mutex.run_exclusive(lambda: asyncio.sleep(0, result="ok")), "ok")

    async def test_grants_in_arrival_order(self):
        mutex = FifoMutex()
        order: list[int] = []
        release = await mutex.acquire()

        async def waiter(n):
            async with mutex:
                order.append(n)

        tasks = [asyncio.ensure_future(waiter(n)) for n in range(4)]
        await asyncio.sleep(0)
        release()
        await asyncio.gather(*tasks)

        self.assertEqual(order, [0, 1, 2, 3])

    async def test_cancelled_waiter_is_skipped(self):
        mutex = FifoMutex()
        order: list[str] = []
        release = await mutex.acquire()

        async def waiter(name):
            async with mutex:
                order.append(name)

        cancelled = asyncio.ensure_future(waiter("cancelled"))
        survivor = asyncio.ensure_future(waiter("survivor"))
        await asyncio.sleep(0)
        cancelled.cancel()
        await asyncio.sleep(0)
        release()
        await survivor

        self.assertEqual(order, ["survivor"])
        self.assertFalse(mutex.locked())

    async def test_release_is_idempotent(self):
        mutex = FifoMutex()
        release = await mutex.acquire()
        release()
        release()
        self.assertFalse(mutex.locked())


if __name__ == "__main__":
    unittest.main()
