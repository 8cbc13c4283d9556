"""Command runner for coordinating CLI execution.

Manages logging configuration, the query service lifecycle and error handling
for command execution.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import click

from DbpiaRelay.config import AppConfig
from DbpiaRelay.core.models import QueryResult
from DbpiaRelay.services import QueryService, create_query_service
from DbpiaRelay.utils.log import configure_logging, log

Operation = Callable[[QueryService], Awaitable[QueryResult]]


class CommandRunner:
    """Runs one service operation with proper resource management."""

    def __init__(self, config: AppConfig) -> None:
        """Initialize command runner.

        Args:
            config: Application configuration.
        """
        self.config = config

    def run(self, action: str, operation: Operation) -> QueryResult:
        """Execute ``operation`` against a freshly built query service.

        Args:
            action: The CLI command name (e.g., 'search').
            operation: Coroutine function receiving the service.

        Returns:
            Result of the operation.

        Raises:
            click.Abort: When the operation fails.
        """
        configure_logging(
            level=self.config.runtime.level,
            action=action,
            log_to_file=self.config.runtime.to_file,
            log_dir=self.config.runtime.dir,
        )
        try:
            service = create_query_service(self.config)
            try:
                return asyncio.run(operation(service))
            finally:
                service.close()
        except Exception as e:  # noqa: BLE001 - cli boundary
            log.error("%s failed: %s", action.capitalize(), e)
            raise click.Abort from e
