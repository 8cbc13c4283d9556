"""Query orchestration: cache, admission, fetch, normalize, persist."""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping, Optional

from DbpiaRelay.core.models import CacheRecord, QueryMeta, QueryResult
from DbpiaRelay.core.query import QueryRequest, filter_params
from DbpiaRelay.errors import QueryValidationError
from DbpiaRelay.sources.dbpia.normalize import normalize_response
from DbpiaRelay.sources.dbpia.parser import parse_xml
from DbpiaRelay.storage.query_cache import DEFAULT_TTL_DAYS, compute_expires_at, make_cache_key
from DbpiaRelay.utils.log import log

if TYPE_CHECKING:
    from DbpiaRelay.infra.mutex import FifoMutex
    from DbpiaRelay.infra.rate_limiter import SlidingWindowRateLimiter
    from DbpiaRelay.sources.dbpia.client import DbpiaApiClient
    from DbpiaRelay.storage.articles import ArticleStore
    from DbpiaRelay.storage.db import DatabaseManager
    from DbpiaRelay.storage.query_cache import QueryCacheStore

TOOL_SEARCH = "dbpia_search"
TOOL_SEARCH_ADVANCED = "dbpia_search_advanced"
TOOL_TOP_PAPERS = "dbpia_top_papers"
TOOL_DETAIL = "dbpia_detail"
TOOL_LOCAL_FALLBACK = "dbpia_local_search_fallback"


@dataclass(slots=True)
class QueryService:
    """Application service that answers DBpia queries through the local cache.

    One instance owns the shared limiter and write mutex; every concurrent
    query must go through the same instance for admission and write ordering
    to hold.
    """

    db_manager: DatabaseManager
    article_store: ArticleStore
    cache_store: QueryCacheStore
    client: DbpiaApiClient
    limiter: SlidingWindowRateLimiter
    write_mutex: FifoMutex
    api_key: str = ""
    business_api_key: str = ""
    ttl_days: float = DEFAULT_TTL_DAYS

    async def run_query(self, request: QueryRequest) -> QueryResult:
        """Answer one request from cache or upstream.

        Args:
            request: Logical query.

        Returns:
            Normalized result; identical in shape on cache hit and miss.

        Raises:
            RateLimitedError: Admission refused.
            TransportError: Upstream failed after retries.
            ParseError: Upstream body is not well-formed XML.
        """
        cache_key = make_cache_key(
            tool=request.tool,
            target=request.target,
            params=request.params,
            page=request.page,
            pagecount=request.pagecount,
        )

        if not request.refresh:
            cached = await asyncio.to_thread(self.cache_store.get, cache_key)
            if cached is not None:
                log.debug("Cache hit: tool=%s key=%s", request.tool, cache_key[:12])
                return QueryResult.from_dict(json.loads(cached.result_json))

        params: dict[str, Any] = {**request.params, "target": request.target}
        if request.page:
            params["page"] = request.page
        if request.pagecount:
            params["pagecount"] = request.pagecount
        key = request.api_key_override or self.api_key
        if key:
            params["key"] = key

        response = await self.limiter.schedule(lambda: self.client.fetch(params))
        result = normalize_response(parse_xml(response.text), request.target)
        log.info(
            "Fetched %s: target=%s items=%d total=%s",
            request.tool,
            request.target,
            len(result.items),
            result.meta.total,
        )

        record = CacheRecord(
            cache_key=cache_key,
            tool=request.tool,
            params_json=json.dumps(dict(request.params), ensure_ascii=False, sort_keys=True, default=str),
            result_json=json.dumps(result.to_dict(), ensure_ascii=False),
            fetched_at=int(time.time()),
            expires_at=compute_expires_at(self.ttl_days),
        )
        await self.write_mutex.run_exclusive(lambda: asyncio.to_thread(self._persist, result, record))
        return result

    def _persist(self, result: QueryResult, record: CacheRecord) -> None:
        """Write articles and the cache record in one transaction."""
        with self.db_manager.transaction():
            self.article_store.upsert_articles(result.items)
            self.cache_store.set(record)
        log.debug("Persisted %d articles and cache key=%s", len(result.items), record.cache_key[:12])

    async def search(
        self,
        params: Mapping[str, Any] | None = None,
        *,
        page: int | None = None,
        pagecount: int | None = None,
        refresh: bool = False,
    ) -> QueryResult:
        """Run a basic keyword search."""
        return await self.run_query(
            QueryRequest(
                tool=TOOL_SEARCH,
                target="se",
                params=filter_params(params),
                page=page,
                pagecount=pagecount,
                refresh=refresh,
            )
        )

    async def search_advanced(
        self,
        params: Mapping[str, Any] | None = None,
        *,
        page: int | None = None,
        pagecount: int | None = None,
        refresh: bool = False,
    ) -> QueryResult:
        """Run an advanced search with field-specific parameters."""
        return await self.run_query(
            QueryRequest(
                tool=TOOL_SEARCH_ADVANCED,
                target="se_adv",
                params=filter_params(params),
                page=page,
                pagecount=pagecount,
                refresh=refresh,
            )
        )

    async def top_papers(
        self,
        params: Mapping[str, Any] | None = None,
        *,
        page: int | None = None,
        pagecount: int | None = None,
        refresh: bool = False,
    ) -> QueryResult:
        """Fetch the most-read papers for a period.

        Raises:
            QueryValidationError: If ``pyear`` is given without ``pmonth``.
        """
        filtered = filter_params(params)
        if "pyear" in filtered and "pmonth" not in filtered:
            raise QueryValidationError("pmonth is required when pyear is given")
        return await self.run_query(
            QueryRequest(
                tool=TOOL_TOP_PAPERS,
                target="rated_art",
                params=filtered,
                page=page,
                pagecount=pagecount,
                refresh=refresh,
            )
        )

    async def detail(self, article_id: str, *, refresh: bool = False) -> QueryResult:
        """Fetch the detail record of one article.

        Uses the business API key when one is configured.
        """
        if not article_id or not article_id.strip():
            raise QueryValidationError("article_id must not be empty")
        return await self.run_query(
            QueryRequest(
                tool=TOOL_DETAIL,
                target="detail",
                params={"id": article_id.strip()},
                refresh=refresh,
                api_key_override=self.business_api_key or None,
            )
        )

    async def local_search(
        self,
        query: str,
        *,
        remote_fallback: bool = False,
        page: Optional[int] = None,
        pagecount: Optional[int] = None,
    ) -> QueryResult:
        """Search persisted articles, optionally falling back to the API.

        Args:
            query: Free-text needle matched against title, authors and raw JSON.
            remote_fallback: Run an advanced search when nothing matches locally.
            page: Page for the fallback search.
            pagecount: Page size for the fallback search.

        Returns:
            Local matches (newest year first), or the fallback result.
        """
        rows = await asyncio.to_thread(self.article_store.search_local, query)
        if rows or not remote_fallback:
            log.info("Local search: query=%r matches=%d", query, len(rows))
            return QueryResult(
                items=tuple(row.to_article() for row in rows),
                raw_json={},
                meta=QueryMeta(total=len(rows)),
            )

        log.info("Local search empty, falling back to remote: query=%r", query)
        return await self.run_query(
            QueryRequest(
                tool=TOOL_LOCAL_FALLBACK,
                target="se_adv",
                params={"searchall": query},
                page=page,
                pagecount=pagecount,
            )
        )

    def close(self) -> None:
        """Release the HTTP session and the database connection."""
        self.client.close()
        self.db_manager.close()
