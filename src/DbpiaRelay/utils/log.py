"""DbpiaRelay logging utilities.

Library modules only ever call ``log.<level>``; handlers are attached once by
the CLI through :func:`configure_logging`. Lines look like
``10-17 09:30:12 [WARN] DBpia retrying in 1.00s ...``.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Final

LOG_FORMAT: Final = "%(asctime)s [%(levelabbr)s] %(message)s"
DATE_FORMAT: Final = "%m-%d %H:%M:%S"

_LEVEL_ABBREV: Final[dict[int, str]] = {
    logging.DEBUG: "DEBG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERRO",
    logging.CRITICAL: "CRIT",
}

log = logging.getLogger("DbpiaRelay")


class _AbbrevLevelFormatter(logging.Formatter):
    """Formatter exposing a four-letter ``levelabbr`` record attribute."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 - stdlib name
        record.levelabbr = _LEVEL_ABBREV.get(record.levelno, record.levelname[:4])
        return super().format(record)


def log_file_path(action: str, log_dir: str = "log", *, now: datetime | None = None) -> Path:
    """Return the per-run log file path ``<log_dir>/<action>/<action>_<stamp>.log``."""
    stamp = (now or datetime.now()).strftime("%m%d%H%M%S")
    return Path(log_dir or "log") / action / f"{action}_{stamp}.log"


def configure_logging(
    *,
    level: str = "INFO",
    action: str | None = None,
    log_to_file: bool = False,
    log_dir: str = "log",
) -> None:
    """Attach handlers to the package logger, replacing earlier ones.

    Console output goes to stderr so command output on stdout stays parseable.
    The optional file handler always records DEBUG.

    Args:
        level: Console level name (e.g., INFO, DEBUG).
        action: CLI action name; required for file logging.
        log_to_file: Whether to mirror logs to a per-run file.
        log_dir: Base directory for log files.
    """
    console_level = logging.getLevelName((level or "INFO").upper())
    if not isinstance(console_level, int):
        console_level = logging.INFO

    formatter = _AbbrevLevelFormatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    for handler in list(log.handlers):
        log.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(formatter)
    log.addHandler(console)

    file_level = console_level
    if log_to_file and action:
        path = log_file_path(action, log_dir)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        log.addHandler(file_handler)
        file_level = logging.DEBUG

    log.setLevel(min(console_level, file_level))
    log.propagate = False
