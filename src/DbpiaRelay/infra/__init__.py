"""Asyncio concurrency primitives shared by the query pipeline."""

from __future__ import annotations

from DbpiaRelay.infra.mutex import FifoMutex
from DbpiaRelay.infra.rate_limiter import SlidingWindowRateLimiter

__all__ = ["FifoMutex", "SlidingWindowRateLimiter"]
