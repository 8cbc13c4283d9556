"""Logging configuration (the ``log`` section)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from DbpiaRelay.config.common import expect_bool, expect_str, get_optional_value, get_section

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True, slots=True)
class RuntimeConfig:
    """How the CLI reports progress.

    Attributes:
        level: Console log level name, upper-cased.
        to_file: Mirror every record to ``<dir>/<action>/`` as well.
        dir: Base directory for log files.
    """

    level: str = "INFO"
    to_file: bool = False
    dir: str = "log"


def load_runtime(raw: Mapping[str, Any]) -> RuntimeConfig:
    """Read the optional ``log`` section; missing keys keep their defaults."""
    section = get_section(raw, "log", required=False)
    defaults = RuntimeConfig()
    level = expect_str(get_optional_value(section, "level", defaults.level), "log.level")
    return RuntimeConfig(
        level=level.strip().upper(),
        to_file=expect_bool(get_optional_value(section, "to_file", defaults.to_file), "log.to_file"),
        dir=expect_str(get_optional_value(section, "dir", defaults.dir), "log.dir"),
    )


def check_runtime(config: RuntimeConfig) -> None:
    """Reject unknown level names and an empty log directory."""
    if config.level not in LOG_LEVELS:
        raise ValueError(f"log.level must be one of {', '.join(LOG_LEVELS)}, got {config.level!r}")
    if config.to_file and not config.dir.strip():
        raise ValueError("log.dir must not be empty when log.to_file is true")
