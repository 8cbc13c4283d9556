"""Tests for layered config parsing, env overlay and YAML defaults merge."""

import sys
import tempfile
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from DbpiaRelay.config import load_config, load_config_with_defaults, parse_config_dict


def _base_raw_config() -> dict:
    return {
        "log": {"level": "INFO", "to_file": False, "dir": "log"},
        "dbpia": {
            "base_url": "http://api.dbpia.co.kr",
            "api_key_env": "DBPIA_API_KEY",
            "business_api_key_env": "DBPIA_BUSINESS_API_KEY",
            "timeout": 10,
            "max_retries": 2,
            "retry_backoff": 1.0,
        },
        "cache": {"ttl_days": 7},
        "rate_limit": {"per_minute": 60, "max_queue_delay": 10.0},
        "storage": {"db_path": "database/dbpia.sqlite"},
    }


class TestConfigLayering(unittest.TestCase):
    def test_parse_success_nested_access(self) -> None:
        cfg = parse_config_dict(_base_raw_config(), environ={})
        self.assertEqual(cfg.runtime.level, "INFO")
        self.assertEqual(cfg.dbpia.base_url, "http://api.dbpia.co.kr")
        self.assertEqual(cfg.dbpia.timeout, 10.0)
        self.assertEqual(cfg.cache.ttl_days, 7.0)
        self.assertEqual(cfg.rate_limit.per_minute, 60)
        self.assertEqual(cfg.storage.db_path, "database/dbpia.sqlite")
        self.assertEqual(cfg.dbpia.api_key, "")

    def test_optional_sections_fall_back_to_defaults(self) -> None:
        cfg = parse_config_dict({"storage": {"db_path": "x.db"}}, environ={})
        self.assertEqual(cfg.runtime.level, "INFO")
        self.assertEqual(cfg.dbpia.max_retries, 2)
        self.assertEqual(cfg.rate_limit.max_queue_delay, 10.0)

    def test_missing_storage_db_path_raises(self) -> None:
        raw = _base_raw_config()
        raw["storage"] = {}
        with self.assertRaisesRegex(ValueError, "storage.db_path"):
            parse_config_dict(raw, environ={})

    def test_wrong_type_error_contains_key(self) -> None:
        raw = _base_raw_config()
        raw["rate_limit"]["per_minute"] = "fast"
        with self.assertRaisesRegex(TypeError, "rate_limit.per_minute"):
            parse_config_dict(raw, environ={})

    def test_non_positive_rate_limit_rejected(self) -> None:
        raw = _base_raw_config()
        raw["rate_limit"]["per_minute"] = 0
        with self.assertRaisesRegex(ValueError, "rate_limit.per_minute"):
            parse_config_dict(raw, environ={})

    def test_api_keys_read_from_configured_env_names(self) -> None:
        raw = _base_raw_config()
        raw["dbpia"]["api_key_env"] = "MY_KEY"
        env = {"MY_KEY": " secret ", "DBPIA_BUSINESS_API_KEY": "biz"}
        cfg = parse_config_dict(raw, environ=env)
        self.assertEqual(cfg.dbpia.api_key, "secret")
        self.assertEqual(cfg.dbpia.business_api_key, "biz")

    def test_env_overlay_overrides_file_values(self) -> None:
        env = {
            "DBPIA_BASE_URL": "https://proxy.example.test",
            "DBPIA_QUERY_TTL_DAYS": "0.5",
            "DBPIA_RATE_LIMIT_PER_MINUTE": "5",
        }
        raw = _base_raw_config()
        cfg = parse_config_dict(raw, environ=env)
        self.assertEqual(cfg.dbpia.base_url, "https://proxy.example.test")
        self.assertEqual(cfg.cache.ttl_days, 0.5)
        self.assertEqual(cfg.rate_limit.per_minute, 5)
        self.assertEqual(raw, _base_raw_config())

    def test_blank_env_values_are_ignored(self) -> None:
        cfg = parse_config_dict(_base_raw_config(), environ={"DBPIA_RATE_LIMIT_PER_MINUTE": "  "})
        self.assertEqual(cfg.rate_limit.per_minute, 60)

    def test_non_numeric_env_value_raises(self) -> None:
        with self.assertRaisesRegex(ValueError, "DBPIA_RATE_LIMIT_PER_MINUTE"):
            parse_config_dict(_base_raw_config(), environ={"DBPIA_RATE_LIMIT_PER_MINUTE": "many"})


_DEFAULT_YAML = """
log:
  level: INFO
dbpia:
  base_url: http://api.dbpia.co.kr
  timeout: 10
cache:
  ttl_days: 7
storage:
  db_path: database/dbpia.sqlite
"""

_OVERRIDE_YAML = """
log:
  level: debug
cache:
  ttl_days: 1
"""


class TestConfigOverride(unittest.TestCase):
    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        root = Path(self._tmpdir.name)
        self.default_path = root / "default.yml"
        self.override_path = root / "custom.yml"
        self.default_path.write_text(_DEFAULT_YAML, encoding="utf-8")
        self.override_path.write_text(_OVERRIDE_YAML, encoding="utf-8")

    def tearDown(self) -> None:
        self._tmpdir.cleanup()

    def test_override_merges_into_defaults(self) -> None:
        cfg = load_config_with_defaults(self.override_path, default_path=self.default_path, environ={})
        self.assertEqual(cfg.runtime.level, "DEBUG")
        self.assertEqual(cfg.cache.ttl_days, 1.0)
        self.assertEqual(cfg.dbpia.timeout, 10.0)
        self.assertEqual(cfg.storage.db_path, "database/dbpia.sqlite")

    def test_load_config_reads_single_file(self) -> None:
        cfg = load_config(self.default_path, environ={})
        self.assertEqual(cfg.cache.ttl_days, 7.0)

    def test_shipped_default_config_parses(self) -> None:
        cfg = load_config(REPO_ROOT / "config" / "default.yml", environ={})
        self.assertEqual(cfg.rate_limit.per_minute, 60)
        self.assertEqual(cfg.dbpia.api_key_env, "DBPIA_API_KEY")


if __name__ == "__main__":
    unittest.main()
