"""CLI package for DbpiaRelay command orchestration."""

from __future__ import annotations

__all__ = ["CommandRunner", "main"]

from DbpiaRelay.cli.runner import CommandRunner
from DbpiaRelay.cli.ui import cli


def main() -> None:
    """Run DbpiaRelay CLI.

    Entry point referenced by console script in pyproject.toml.
    """
    cli()
