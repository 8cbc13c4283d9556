"""Query cache and rate limit configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from DbpiaRelay.config.common import (
    expect_float,
    expect_int,
    get_optional_value,
    get_section,
)


@dataclass(frozen=True, slots=True)
class CacheConfig:
    """Query cache settings."""

    ttl_days: float


@dataclass(frozen=True, slots=True)
class RateLimitConfig:
    """Outbound call budget.

    Attributes:
        per_minute: Calls admitted per 60-second window.
        max_queue_delay: Longest estimated queue wait in seconds before rejection.
    """

    per_minute: int
    max_queue_delay: float


def load_cache(raw: Mapping[str, Any]) -> CacheConfig:
    """Load cache domain config from raw mapping."""
    section = get_section(raw, "cache", required=False)
    return CacheConfig(
        ttl_days=expect_float(get_optional_value(section, "ttl_days", 7), "cache.ttl_days"),
    )


def check_cache(config: CacheConfig) -> None:
    """Validate cache domain constraints."""
    if config.ttl_days < 0:
        raise ValueError("cache.ttl_days must be >= 0")


def load_rate_limit(raw: Mapping[str, Any]) -> RateLimitConfig:
    """Load rate limit domain config from raw mapping."""
    section = get_section(raw, "rate_limit", required=False)
    return RateLimitConfig(
        per_minute=expect_int(get_optional_value(section, "per_minute", 60), "rate_limit.per_minute"),
        max_queue_delay=expect_float(
            get_optional_value(section, "max_queue_delay", 10.0),
            "rate_limit.max_queue_delay",
        ),
    )


def check_rate_limit(config: RateLimitConfig) -> None:
    """Validate rate limit domain constraints."""
    if config.per_minute <= 0:
        raise ValueError("rate_limit.per_minute must be positive")
    if config.max_queue_delay < 0:
        raise ValueError("rate_limit.max_queue_delay must be >= 0")
