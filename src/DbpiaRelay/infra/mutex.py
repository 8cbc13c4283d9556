"""FIFO exclusive lock for serializing storage writes."""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

T = TypeVar("T")

Release = Callable[[], None]


class FifoMutex:
    """Asyncio mutex that grants the lock strictly in arrival order.

    Task bodies run under :meth:`run_exclusive` never interleave, even when they
    await internally.
    """

    def __init__(self) -> None:
        self._locked = False
        self._waiters: deque[asyncio.Future[None]] = deque()
        self._context_release: Release | None = None

    def locked(self) -> bool:
        """Return True when some caller holds the lock."""
        return self._locked

    async def acquire(self) -> Release:
        """Acquire the lock, waiting behind earlier callers.

        Returns:
            Callback that releases the lock; call it exactly once.
        """
        if not self._locked:
            self._locked = True
            return self._releaser()

        future = asyncio.get_running_loop().create_future()
        self._waiters.append(future)
        try:
            await future
        except asyncio.CancelledError:
            if future.done() and not future.cancelled():
                # Lock was already handed over; pass it on.
                self._release()
            elif future in self._waiters:
                self._waiters.remove(future)
            raise
        return self._releaser()

    async def run_exclusive(self, task: Callable[[], Awaitable[T]]) -> T:
        """Run ``task`` while holding the lock.

        Args:
            task: Zero-argument coroutine function.

        Returns:
            Whatever ``task`` returns.
        """
        release = await self.acquire()
        try:
            return await task()
        finally:
            release()

    async def __aenter__(self) -> FifoMutex:
        self._context_release = await self.acquire()
        return self

    async def __aexit__(self, *args: Any) -> None:
        release = self._context_release
        self._context_release = None
        if release is not None:
            release()

    def _releaser(self) -> Release:
        released = False

        def release() -> None:
            nonlocal released
            if released:
                return
            released = True
            self._release()

        return release

    def _release(self) -> None:
        """Hand the lock to the next live waiter, or unlock."""
        while self._waiters:
            future = self._waiters.popleft()
            if not future.done():
                future.set_result(None)
                return
        self._locked = False
