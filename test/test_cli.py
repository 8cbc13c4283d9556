"""Smoke tests for the click CLI with the query service patched out."""

import json
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

from click.testing import CliRunner

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from DbpiaRelay.cli.ui import cli
from DbpiaRelay.core.models import NormalizedArticle, QueryMeta, QueryResult
from DbpiaRelay.errors import TransportError
from DbpiaRelay.utils.log import log

_CONFIG_YAML = """
log:
  level: WARNING
storage:
  db_path: {db_path}
"""

_RESULT = QueryResult(
    items=(NormalizedArticle(id="N1", title="논문", authors=("Kim",), year="2022"),),
    raw_json={"root": {}},
    meta=QueryMeta(total=1),
)


class TestCli(unittest.TestCase):
    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        root = Path(self._tmpdir.name)
        self.config_path = root / "config.yml"
        self.config_path.write_text(_CONFIG_YAML.format(db_path=root / "relay.db"), encoding="utf-8")

        self.service = MagicMock()
        for name in ("search", "search_advanced", "top_papers", "detail", "local_search"):
            setattr(self.service, name, AsyncMock(return_value=_RESULT))
        patcher = patch("DbpiaRelay.cli.runner.create_query_service", return_value=self.service)
        self.factory = patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(log.handlers.clear)

    def tearDown(self) -> None:
        self._tmpdir.cleanup()

    def _invoke(self, *args: str):
        return CliRunner().invoke(cli, ["--config", str(self.config_path), *args])

    def test_search_prints_result_json(self) -> None:
        result = self._invoke("search", "딥러닝", "--page", "2")

        self.assertEqual(result.exit_code, 0, result.output)
        payload = json.loads(result.stdout)
        self.assertEqual(payload["items"][0]["id"], "N1")
        self.assertEqual(payload["meta"]["total"], 1)
        self.service.search.assert_awaited_once()
        args, kwargs = self.service.search.call_args
        self.assertEqual(args[0]["searchall"], "딥러닝")
        self.assertEqual(kwargs["page"], 2)
        self.service.close.assert_called_once()

    def test_advanced_search_routes_author_filter(self) -> None:
        result = self._invoke("search", "ai", "--advanced", "--author", "Kim")

        self.assertEqual(result.exit_code, 0, result.output)
        args, _ = self.service.search_advanced.call_args
        self.assertEqual(args[0]["searchauthor"], "Kim")

    def test_top_detail_and_local_commands(self) -> None:
        for command, method in (
            (["top", "--year", "2023", "--month", "05"], "top_papers"),
            (["detail", "NODE1", "--refresh"], "detail"),
            (["local", "graph", "--remote-fallback"], "local_search"),
        ):
            with self.subTest(command=command[0]):
                result = self._invoke(*command)
                self.assertEqual(result.exit_code, 0, result.output)
                getattr(self.service, method).assert_awaited()

        _, kwargs = self.service.detail.call_args
        self.assertTrue(kwargs["refresh"])
        _, kwargs = self.service.local_search.call_args
        self.assertTrue(kwargs["remote_fallback"])

    def test_failure_aborts_and_closes_service(self) -> None:
        self.service.search = AsyncMock(side_effect=TransportError("HTTP Error: 401", status=401))

        result = self._invoke("search", "ai")

        self.assertNotEqual(result.exit_code, 0)
        self.service.close.assert_called_once()


if __name__ == "__main__":
    unittest.main()
