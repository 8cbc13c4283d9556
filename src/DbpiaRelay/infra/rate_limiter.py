"""Sliding-window admission control for outbound API calls.

At most ``limit`` calls are admitted in any trailing ``window`` seconds. Callers
beyond that wait in a FIFO queue that a timer drains as slots free up. A caller
whose estimated wait exceeds ``max_queue_delay`` is rejected up front instead of
queued.
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from DbpiaRelay.errors import RateLimitedError
from DbpiaRelay.utils.log import log

T = TypeVar("T")

DEFAULT_MAX_QUEUE_DELAY = 10.0


@dataclass(slots=True)
class _Waiter:
    future: asyncio.Future[float]
    enqueued_at: float


class SlidingWindowRateLimiter:
    """FIFO sliding-window rate limiter for asyncio callers.

    Example:
        limiter = SlidingWindowRateLimiter(limit=60, window=60.0)
        result = await limiter.schedule(lambda: client.fetch(params))
    """

    def __init__(
        self,
        *,
        limit: int,
        window: float,
        max_queue_delay: float = DEFAULT_MAX_QUEUE_DELAY,
    ) -> None:
        """Initialize limiter state.

        Args:
            limit: Calls admitted per window.
            window: Window length in seconds.
            max_queue_delay: Longest estimated wait, in seconds, a caller may queue for.

        Raises:
            ValueError: If ``limit`` or ``window`` is not positive.
        """
        if limit <= 0:
            raise ValueError("limit must be positive")
        if window <= 0:
            raise ValueError("window must be positive")
        self.limit = limit
        self.window = window
        self.max_queue_delay = max_queue_delay
        self._timestamps: deque[float] = deque()
        self._queue: deque[_Waiter] = deque()
        self._timer: asyncio.TimerHandle | None = None

    @property
    def queued(self) -> int:
        """Number of callers currently waiting."""
        return len(self._queue)

    async def acquire(self) -> float:
        """Wait for an admission slot.

        Returns:
            Seconds spent queued (0.0 when admitted immediately).

        Raises:
            RateLimitedError: If the estimated wait exceeds ``max_queue_delay``.
        """
        loop = asyncio.get_running_loop()
        now = loop.time()
        self._prune(now)

        if len(self._timestamps) < self.limit and not self._queue:
            self._timestamps.append(now)
            return 0.0

        estimated_wait = self._estimate_wait(len(self._queue), now)
        if estimated_wait > self.max_queue_delay:
            log.warning(
                "Rate limit rejection: estimated wait %.3fs > %.3fs (queued=%d)",
                estimated_wait,
                self.max_queue_delay,
                len(self._queue),
            )
            raise RateLimitedError(estimated_wait)

        waiter = _Waiter(future=loop.create_future(), enqueued_at=now)
        self._queue.append(waiter)
        log.debug("Rate limit queued: position=%d estimated_wait=%.3fs", len(self._queue), estimated_wait)
        self._drain()
        try:
            return await waiter.future
        except asyncio.CancelledError:
            if waiter in self._queue:
                self._queue.remove(waiter)
            raise

    async def schedule(self, task: Callable[[], Awaitable[T]]) -> T:
        """Acquire a slot, then run ``task``.

        Args:
            task: Zero-argument coroutine function.

        Returns:
            Whatever ``task`` returns.
        """
        await self.acquire()
        return await task()

    def _estimate_wait(self, queue_index: int, now: float) -> float:
        """Best-effort wait estimate for the caller at ``queue_index``."""
        estimated = 0.0
        if len(self._timestamps) >= self.limit:
            slot = queue_index % self.limit
            reference = self._timestamps[slot] if slot < len(self._timestamps) else self._timestamps[0]
            estimated = max(0.0, reference + self.window - now)
        estimated += (queue_index // self.limit) * self.window
        return estimated

    def _prune(self, now: float) -> None:
        """Drop admissions that left the trailing window."""
        cutoff = now - self.window
        while self._timestamps and self._timestamps[0] <= cutoff:
            self._timestamps.popleft()

    def _drain(self) -> None:
        """Admit queued callers while slots remain, then re-arm the timer."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        loop = asyncio.get_running_loop()
        now = loop.time()
        self._prune(now)

        while self._queue and len(self._timestamps) < self.limit:
            waiter = self._queue.popleft()
            if waiter.future.done():
                # Cancelled while waiting; give the slot to the next caller.
                continue
            self._timestamps.append(now)
            waiter.future.set_result(now - waiter.enqueued_at)

        if self._queue:
            delay = max(0.0, self._timestamps[0] + self.window - now)
            self._timer = loop.call_later(delay, self._drain)
