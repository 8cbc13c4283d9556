"""DBpia API domain configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from DbpiaRelay.config.common import (
    expect_float,
    expect_int,
    expect_str,
    get_optional_value,
    get_section,
)
from DbpiaRelay.sources.dbpia.client import (
    DEFAULT_BASE_URL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_BACKOFF,
    DEFAULT_TIMEOUT,
)


@dataclass(frozen=True, slots=True)
class DbpiaConfig:
    """Store validated DBpia transport settings and resolved credentials."""

    base_url: str
    timeout: float
    max_retries: int
    retry_backoff: float
    api_key_env: str
    api_key: str
    business_api_key_env: str
    business_api_key: str


def load_dbpia(raw: Mapping[str, Any], environ: Mapping[str, str]) -> DbpiaConfig:
    """Load dbpia domain config from raw mapping.

    Args:
        raw: Root configuration mapping.
        environ: Environment used to resolve API keys.

    Returns:
        Parsed DBpia configuration.

    Raises:
        TypeError: If config types are invalid.
    """
    section = get_section(raw, "dbpia", required=False)
    api_key_env = expect_str(get_optional_value(section, "api_key_env", "DBPIA_API_KEY"), "dbpia.api_key_env")
    business_api_key_env = expect_str(
        get_optional_value(section, "business_api_key_env", "DBPIA_BUSINESS_API_KEY"),
        "dbpia.business_api_key_env",
    )
    return DbpiaConfig(
        base_url=expect_str(get_optional_value(section, "base_url", DEFAULT_BASE_URL), "dbpia.base_url"),
        timeout=expect_float(get_optional_value(section, "timeout", DEFAULT_TIMEOUT), "dbpia.timeout"),
        max_retries=expect_int(get_optional_value(section, "max_retries", DEFAULT_MAX_RETRIES), "dbpia.max_retries"),
        retry_backoff=expect_float(
            get_optional_value(section, "retry_backoff", DEFAULT_RETRY_BACKOFF),
            "dbpia.retry_backoff",
        ),
        api_key_env=api_key_env,
        api_key=environ.get(api_key_env, "").strip(),
        business_api_key_env=business_api_key_env,
        business_api_key=environ.get(business_api_key_env, "").strip(),
    )


def check_dbpia(config: DbpiaConfig) -> None:
    """Validate dbpia domain constraints.

    A missing API key is not an error here: cached reads and local search work
    without one, and the upstream reports the problem on the first fetch.
    """
    if not config.base_url.startswith(("http://", "https://")):
        raise ValueError("dbpia.base_url must start with http:// or https://")
    if config.timeout <= 0:
        raise ValueError("dbpia.timeout must be positive")
    if config.max_retries < 0:
        raise ValueError("dbpia.max_retries must be >= 0")
    if config.retry_backoff < 0:
        raise ValueError("dbpia.retry_backoff must be >= 0")
    if not config.api_key_env.strip():
        raise ValueError("dbpia.api_key_env must not be empty")
