"""Public configuration API for DbpiaRelay."""

from __future__ import annotations

from DbpiaRelay.config.app import (
    AppConfig,
    load_config,
    load_config_with_defaults,
    parse_config_dict,
)
from DbpiaRelay.config.cache import CacheConfig, RateLimitConfig
from DbpiaRelay.config.dbpia import DbpiaConfig
from DbpiaRelay.config.runtime import RuntimeConfig
from DbpiaRelay.config.storage import StorageConfig

__all__ = [
    "AppConfig",
    "CacheConfig",
    "DbpiaConfig",
    "RateLimitConfig",
    "RuntimeConfig",
    "StorageConfig",
    "load_config",
    "load_config_with_defaults",
    "parse_config_dict",
]
