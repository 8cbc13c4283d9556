"""Exception taxonomy for the query pipeline.

Every failure raised by the relay derives from :class:`RelayError` so callers can
catch the whole family at a boundary, while still branching on the concrete
type when retry decisions matter.
"""

from __future__ import annotations


class RelayError(Exception):
    """Base class for all DbpiaRelay errors."""


class TransportError(RelayError):
    """Upstream request failed with a non-2xx status or a connection error.

    Attributes:
        status: HTTP status code, or None when no response was received.
    """

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status

    @property
    def retryable(self) -> bool:
        """Whether the failure is a server-side error worth retrying."""
        return self.status is not None and 500 <= self.status < 600


class FetchTimeoutError(TransportError, TimeoutError):
    """A single transport attempt exceeded its deadline."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status=None)

    @property
    def retryable(self) -> bool:
        return True


class RateLimitedError(RelayError):
    """Admission was refused because the estimated queue wait is too long.

    Attributes:
        estimated_wait: Estimated wait in seconds that triggered the rejection.
    """

    def __init__(self, estimated_wait: float) -> None:
        super().__init__(f"Rate limit exceeded. Estimated wait: {estimated_wait * 1000:.0f}ms")
        self.estimated_wait = estimated_wait


class ParseError(RelayError):
    """Upstream payload is not well-formed XML."""


class QueryValidationError(RelayError, ValueError):
    """Request arguments are inconsistent and were rejected before any I/O."""
