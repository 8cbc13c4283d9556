"""Query service layer for DbpiaRelay.

Provides the query orchestrator and the factory that wires it to storage,
transport and the shared concurrency primitives.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from DbpiaRelay.infra.mutex import FifoMutex
from DbpiaRelay.infra.rate_limiter import SlidingWindowRateLimiter
from DbpiaRelay.services.query import QueryService
from DbpiaRelay.sources.dbpia.client import DbpiaApiClient
from DbpiaRelay.storage import create_storage

if TYPE_CHECKING:
    from DbpiaRelay.config import AppConfig

RATE_LIMIT_WINDOW = 60.0


def create_query_service(config: AppConfig) -> QueryService:
    """Create a query service with its own limiter, mutex and storage.

    Args:
        config: Application configuration.

    Returns:
        Configured QueryService instance. Call ``close()`` when done.
    """
    db_manager, article_store, cache_store = create_storage(config)
    client = DbpiaApiClient(
        base_url=config.dbpia.base_url,
        timeout=config.dbpia.timeout,
        max_retries=config.dbpia.max_retries,
        retry_backoff=config.dbpia.retry_backoff,
    )
    limiter = SlidingWindowRateLimiter(
        limit=config.rate_limit.per_minute,
        window=RATE_LIMIT_WINDOW,
        max_queue_delay=config.rate_limit.max_queue_delay,
    )
    return QueryService(
        db_manager=db_manager,
        article_store=article_store,
        cache_store=cache_store,
        client=client,
        limiter=limiter,
        write_mutex=FifoMutex(),
        api_key=config.dbpia.api_key,
        business_api_key=config.dbpia.business_api_key,
        ttl_days=config.cache.ttl_days,
    )


__all__ = [
    "QueryService",
    "create_query_service",
]
