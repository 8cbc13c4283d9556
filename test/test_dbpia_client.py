"""Tests for the DBpia HTTP client: URL building, decoding and retries."""

import sys
import time
import unittest
from pathlib import Path
from unittest.mock import MagicMock

import requests

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from DbpiaRelay.errors import FetchTimeoutError, TransportError
from DbpiaRelay.sources.dbpia.client import DbpiaApiClient, build_url, decode_body

_XML = "<root><result><total>1</total></result></root>"


def _response(status: int, body: bytes = b"", content_type: str = "text/xml; charset=utf-8", reason: str = ""):
    resp = MagicMock()
    resp.status_code = status
    resp.reason = reason
    resp.headers = {"Content-Type": content_type}
    resp.content = body
    return resp


def _client(session, **kwargs) -> DbpiaApiClient:
    kwargs.setdefault("retry_backoff", 0.05)
    kwargs.setdefault("timeout", 2.0)
    return DbpiaApiClient(base_url="http://api.example.test", session=session, **kwargs)


class TestBuildUrl(unittest.TestCase):
    def test_omits_none_values(self):
        url = build_url({"target": "se", "searchall": "ai", "page": None}, "http://api.example.test")
        self.assertEqual(url, "http://api.example.test/v2/search/search.xml?target=se&searchall=ai")

    def test_encodes_unicode_and_bools(self):
        url = build_url({"searchall": "인공지능", "freeyn": True}, "http://api.example.test/")
        self.assertIn("searchall=%EC%9D%B8%EA%B3%B5%EC%A7%80%EB%8A%A5", url)
        self.assertIn("freeyn=true", url)
        self.assertTrue(url.startswith("http://api.example.test/v2/search/search.xml?"))


class TestDecodeBody(unittest.TestCase):
    def test_euc_kr_matches_utf8_decoding(self):
        text = "<title>한국어 논문</title>"
        self.assertEqual(
            decode_body(text.encode("euc-kr"), "text/xml; charset=EUC-KR"),
            decode_body(text.encode("utf-8"), "text/xml; charset=utf-8"),
        )

    def test_missing_charset_defaults_to_utf8(self):
        self.assertEqual(decode_body("제목".encode("utf-8"), None), "제목")

    def test_unknown_charset_falls_back_to_utf8(self):
        self.assertEqual(decode_body("제목".encode("utf-8"), "text/xml; charset=x-nonexistent"), "제목")


class TestFetch(unittest.IsolatedAsyncioTestCase):
    async def test_success_returns_decoded_text(self):
        session = MagicMock()
        session.get.return_value = _response(200, _XML.encode("utf-8"))
        client = _client(session)

        result = await client.fetch({"target": "se", "key": "k"})

        self.assertEqual(result.status, 200)
        self.assertEqual(result.text, _XML)
        self.assertEqual(result.headers["content-type"], "text/xml; charset=utf-8")
        session.get.assert_called_once()

    async def test_retries_server_error_with_backoff(self):
        session = MagicMock()
        session.get.side_effect = [_response(500, reason="Server Error"), _response(200, _XML.encode("utf-8"))]
        client = _client(session, retry_backoff=0.1)

        start = time.monotonic()
        result = await client.fetch({"target": "se"})
        elapsed = time.monotonic() - start

        self.assertEqual(result.status, 200)
        self.assertEqual(session.get.call_count, 2)
        self.assertGreaterEqual(elapsed, 0.09)

    async def test_client_error_is_not_retried(self):
        session = MagicMock()
        session.get.return_value = _response(401, reason="Unauthorized")
        client = _client(session)

        with self.assertRaises(TransportError) as ctx:
            await client.fetch({"target": "se"})

        self.assertEqual(ctx.exception.status, 401)
        self.assertIn("HTTP Error: 401", str(ctx.exception))
        self.assertEqual(session.get.call_count, 1)

    async def test_exhausted_retries_raise_last_error(self):
        session = MagicMock()
        session.get.return_value = _response(503, reason="Unavailable")
        client = _client(session, max_retries=2)

        with self.assertRaises(TransportError) as ctx:
            await client.fetch({"target": "se"})

        self.assertEqual(ctx.exception.status, 503)
        self.assertEqual(session.get.call_count, 3)

    async def test_zero_retries_makes_single_attempt(self):
        session = MagicMock()
        session.get.return_value = _response(502, reason="Bad Gateway")
        client = _client(session, max_retries=0)

        with self.assertRaises(TransportError) as ctx:
            await client.fetch({"target": "se"})

        self.assertEqual(ctx.exception.status, 502)
        self.assertEqual(session.get.call_count, 1)

    async def test_timeout_is_retried(self):
        session = MagicMock()
        session.get.side_effect = [requests.exceptions.ReadTimeout("slow"), _response(200, _XML.encode("utf-8"))]
        client = _client(session)

        result = await client.fetch({"target": "se"})

        self.assertEqual(result.status, 200)
        self.assertEqual(session.get.call_count, 2)

    async def test_timeout_on_every_attempt_raises_fetch_timeout(self):
        session = MagicMock()
        session.get.side_effect = requests.exceptions.ConnectTimeout("slow")
        client = _client(session, max_retries=1)

        with self.assertRaises(FetchTimeoutError):
            await client.fetch({"target": "se"})
        self.assertEqual(session.get.call_count, 2)

    async def test_connection_error_is_not_retried(self):
        session = MagicMock()
        session.get.side_effect = requests.exceptions.ConnectionError("refused")
        client = _client(session)

        with self.assertRaises(TransportError) as ctx:
            await client.fetch({"target": "se"})

        self.assertIsNone(ctx.exception.status)
        self.assertEqual(session.get.call_count, 1)


if __name__ == "__main__":
    unittest.main()
