"""Query request model and parameter helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Optional

from DbpiaRelay.errors import QueryValidationError

Target = Literal["se", "se_adv", "rated_art", "detail"]

TARGETS: tuple[str, ...] = ("se", "se_adv", "rated_art", "detail")

WHITELISTED_PARAMS: tuple[str, ...] = (
    "searchall",
    "searchauthor",
    "searchpublisher",
    "searchbook",
    "pyear",
    "pmonth",
    "category",
    "freeyn",
    "priceyn",
    "sorttype",
    "sortorder",
    "pyear_start",
    "pyear_end",
    "itype",
    "collection",
)


@dataclass(frozen=True, slots=True)
class QueryRequest:
    """One logical query against the DBpia API.

    Attributes:
        tool: Caller-facing operation name; part of the cache key.
        target: DBpia ``target`` collection.
        params: Search parameters (without ``target``/``page``/``key``).
        page: Optional page number.
        pagecount: Optional page size.
        refresh: Bypass the cache read (the result is still cached).
        api_key_override: API key that takes precedence over the default one.
    """

    tool: str
    target: Target
    params: Mapping[str, Any] = field(default_factory=dict)
    page: Optional[int] = None
    pagecount: Optional[int] = None
    refresh: bool = False
    api_key_override: Optional[str] = None

    def __post_init__(self) -> None:
        if self.target not in TARGETS:
            raise QueryValidationError(f"Unsupported target: {self.target}")


def filter_params(params: Mapping[str, Any] | None) -> dict[str, Any]:
    """Keep only whitelisted search parameters.

    Args:
        params: Raw caller parameters.

    Returns:
        Parameters restricted to :data:`WHITELISTED_PARAMS`, dropping None values.

    Raises:
        QueryValidationError: If ``itype`` and ``collection`` are both given.
    """
    filtered: dict[str, Any] = {}
    for key in WHITELISTED_PARAMS:
        value = (params or {}).get(key)
        if value is not None:
            filtered[key] = value

    if "itype" in filtered and "collection" in filtered:
        raise QueryValidationError("itype and collection are mutually exclusive")
    return filtered
