"""Application config orchestration and YAML loading entrypoints."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from DbpiaRelay.config.cache import (
    CacheConfig,
    RateLimitConfig,
    check_cache,
    check_rate_limit,
    load_cache,
    load_rate_limit,
)
from DbpiaRelay.config.common import parse_env_number
from DbpiaRelay.config.dbpia import DbpiaConfig, check_dbpia, load_dbpia
from DbpiaRelay.config.runtime import RuntimeConfig, check_runtime, load_runtime
from DbpiaRelay.config.storage import StorageConfig, check_storage, load_storage

DEFAULT_CONFIG_PATH = Path("config/default.yml")

# Environment variable -> (section, field, integer?)
_ENV_OVERRIDES: dict[str, tuple[str, str, bool | None]] = {
    "DBPIA_BASE_URL": ("dbpia", "base_url", None),
    "DBPIA_QUERY_TTL_DAYS": ("cache", "ttl_days", False),
    "DBPIA_RATE_LIMIT_PER_MINUTE": ("rate_limit", "per_minute", True),
}


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application root configuration."""

    runtime: RuntimeConfig
    dbpia: DbpiaConfig
    cache: CacheConfig
    rate_limit: RateLimitConfig
    storage: StorageConfig


def parse_config_dict(raw: Mapping[str, Any], environ: Mapping[str, str] | None = None) -> AppConfig:
    """Parse a config mapping into AppConfig.

    Args:
        raw: Root configuration mapping.
        environ: Environment for overrides and API keys; defaults to ``os.environ``.

    Returns:
        Validated configuration.
    """
    env = os.environ if environ is None else environ
    raw = apply_env_overrides(raw, env)

    runtime = load_runtime(raw)
    dbpia = load_dbpia(raw, env)
    cache = load_cache(raw)
    rate_limit = load_rate_limit(raw)
    storage = load_storage(raw)

    check_runtime(runtime)
    check_dbpia(dbpia)
    check_cache(cache)
    check_rate_limit(rate_limit)
    check_storage(storage)

    return AppConfig(
        runtime=runtime,
        dbpia=dbpia,
        cache=cache,
        rate_limit=rate_limit,
        storage=storage,
    )


def load_config(path: Path, environ: Mapping[str, str] | None = None) -> AppConfig:
    """Load YAML config file without default merge."""
    return load_config_with_defaults(path, default_path=path, environ=environ)


def load_config_with_defaults(
    config_path: Path,
    default_path: Path = DEFAULT_CONFIG_PATH,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    """Load config by merging defaults and optional override."""
    base = parse_yaml(default_path.read_text(encoding="utf-8"))
    if config_path == default_path:
        return parse_config_dict(base, environ)
    override = parse_yaml(config_path.read_text(encoding="utf-8"))
    return parse_config_dict(merge_config_dicts(base, override), environ)


def apply_env_overrides(raw: Mapping[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    """Overlay supported environment variables on a config mapping.

    Args:
        raw: Root configuration mapping.
        environ: Environment mapping.

    Returns:
        New mapping with overrides applied; blank variables are ignored.
    """
    overrides: dict[str, Any] = {}
    for env_name, (section, field, integer) in _ENV_OVERRIDES.items():
        value = environ.get(env_name, "")
        if not value.strip():
            continue
        parsed: Any = value.strip() if integer is None else parse_env_number(value, env_name, integer=integer)
        overrides.setdefault(section, {})[field] = parsed
    return merge_config_dicts(raw, overrides)


def parse_yaml(text: str) -> dict[str, Any]:
    """Parse raw YAML text into a mapping."""
    data = yaml.safe_load(text) or {}
    if not isinstance(data, Mapping):
        raise ValueError("Config root must be a mapping/object")
    return dict(data)


def merge_config_dicts(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge two config mappings."""
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], Mapping) and isinstance(value, Mapping):
            merged[key] = merge_config_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged
