"""DBpia API client.

Calls the DBpia search endpoint over HTTP, decodes the declared charset and
retries transient failures with exponential backoff.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional
from urllib.parse import urlencode

import requests

from DbpiaRelay.errors import FetchTimeoutError, TransportError
from DbpiaRelay.utils.log import log

DEFAULT_BASE_URL = "http://api.dbpia.co.kr"
DEFAULT_PATH = "/v2/search/search.xml"

DEFAULT_TIMEOUT = 10.0
DEFAULT_MAX_RETRIES = 2
DEFAULT_RETRY_BACKOFF = 1.0

HEADERS = {
    "User-Agent": "dbpia-relay/0.1",
    "Accept": "application/xml",
}

_CHARSET_RE = re.compile(r"charset=([^;]+)", re.IGNORECASE)
_UTF8_NAMES = {"utf-8", "utf8"}


@dataclass(frozen=True, slots=True)
class FetchResult:
    """Decoded response of a successful request."""

    url: str
    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    text: str = ""


def build_url(params: Mapping[str, Any], base_url: str = DEFAULT_BASE_URL) -> str:
    """Build the search URL from query parameters.

    Args:
        params: Query parameters; entries whose value is None are omitted.
        base_url: Scheme and host of the API.

    Returns:
        Absolute URL with the encoded query string.
    """
    pairs = [(key, _format_value(value)) for key, value in params.items() if value is not None]
    url = base_url.rstrip("/") + DEFAULT_PATH
    if not pairs:
        return url
    return f"{url}?{urlencode(pairs)}"


def decode_body(content: bytes, content_type: str | None) -> str:
    """Decode a response body according to its ``Content-Type`` charset.

    Args:
        content: Raw response bytes.
        content_type: Value of the ``Content-Type`` header, if any.

    Returns:
        Decoded text. UTF-8 is used when no charset is declared or the declared
        charset is unknown.
    """
    match = _CHARSET_RE.search(content_type or "")
    charset = match.group(1).strip().strip('"').lower() if match else "utf-8"
    if charset in _UTF8_NAMES:
        return content.decode("utf-8", errors="replace")
    try:
        return content.decode(charset, errors="replace")
    except LookupError:
        log.warning("Unknown response charset %r, decoding as utf-8", charset)
        return content.decode("utf-8", errors="replace")


class DbpiaApiClient:
    """Low-level HTTP client for the DBpia search API.

    Responsible only for making network requests and returning decoded XML.
    Parsing and domain mapping are handled elsewhere. Blocking ``requests``
    calls run in a worker thread so the event loop keeps serving other queries.
    """

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_backoff: float = DEFAULT_RETRY_BACKOFF,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize the client with a reusable HTTP session.

        Args:
            base_url: Scheme and host of the API.
            timeout: Per-attempt deadline in seconds.
            max_retries: Retries after the first attempt.
            retry_backoff: Base backoff in seconds; doubled on each retry.
            session: Optional pre-built session (mainly for tests).
        """
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self._session = session or requests.Session()

    def close(self) -> None:
        """Close the underlying HTTP session and release pooled connections."""
        self._session.close()

    def __enter__(self) -> DbpiaApiClient:
        """Enter context manager."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit context manager and close session."""
        self.close()

    async def fetch(self, params: Mapping[str, Any]) -> FetchResult:
        """Fetch the XML response for one logical request.

        Args:
            params: Query parameters, including ``target`` and ``key``.

        Returns:
            Decoded response.

        Raises:
            TransportError: Non-2xx status or connection failure. 5xx responses
                are retried first; anything else is raised immediately.
            FetchTimeoutError: Every attempt exceeded its deadline.
        """
        url = build_url(params, self.base_url)
        last_err: TransportError | None = None

        for attempt in range(self.max_retries + 1):
            try:
                log.debug("DBpia request attempt %d/%d", attempt + 1, self.max_retries + 1)
                return await self._fetch_once(url)
            except TransportError as e:
                last_err = e
                if not e.retryable or attempt >= self.max_retries:
                    raise

            delay = self.retry_backoff * (2**attempt)
            log.warning("DBpia retrying in %.2fs after attempt %d (error=%s)", delay, attempt + 1, last_err)
            await asyncio.sleep(delay)

        raise TransportError(f"DBpia request failed after {self.max_retries + 1} attempts: {last_err}")

    async def _fetch_once(self, url: str) -> FetchResult:
        """Run one bounded request attempt.

        Args:
            url: Fully built request URL.

        Returns:
            Decoded response on 2xx.

        Raises:
            TransportError: Non-2xx status or connection failure.
            FetchTimeoutError: The attempt exceeded ``self.timeout``.
        """
        try:
            resp = await asyncio.wait_for(
                asyncio.to_thread(self._session.get, url, headers=HEADERS, timeout=self.timeout),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, requests.exceptions.Timeout) as e:
            raise FetchTimeoutError(f"Request timed out after {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Request failed: {e}") from e

        if not 200 <= resp.status_code < 300:
            raise TransportError(f"HTTP Error: {resp.status_code} {resp.reason or ''}".rstrip(), status=resp.status_code)

        headers = {str(key).lower(): str(value) for key, value in resp.headers.items()}
        text = decode_body(resp.content, headers.get("content-type"))
        log.debug("DBpia response ok: status=%s bytes=%s", resp.status_code, len(resp.content))
        return FetchResult(url=url, status=resp.status_code, headers=headers, text=text)


def _format_value(value: Any) -> str:
    """Stringify a query parameter value."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
