"""Shared helpers for configuration loading and validation.

Loaders pass the full dotted key (``rate_limit.per_minute``) to every helper so
error messages point straight at the offending YAML entry.
"""

from __future__ import annotations

from typing import Any, Mapping


def get_section(raw: Mapping[str, Any], key: str, *, required: bool) -> Mapping[str, Any]:
    """Return the mapping stored under ``key`` in the root config.

    Raises:
        ValueError: If ``required`` and the section is absent.
        TypeError: If the section is present but not a mapping.
    """
    section = raw.get(key)
    if section is None:
        if required:
            raise ValueError(f"Missing required config: {key}")
        return {}
    if not isinstance(section, Mapping):
        raise TypeError(f"{key} must be an object")
    return section


def get_required_value(section: Mapping[str, Any], field: str, config_key: str) -> Any:
    """Return ``section[field]``, raising ValueError naming ``config_key`` when absent."""
    if field not in section:
        raise ValueError(f"Missing required config: {config_key}")
    return section[field]


def get_optional_value(section: Mapping[str, Any], field: str, default: Any) -> Any:
    """Return ``section[field]``; absent keys and explicit YAML nulls yield ``default``."""
    value = section.get(field)
    return default if value is None else value


def expect_str(value: Any, config_key: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{config_key} must be a string")
    return value


def expect_bool(value: Any, config_key: str) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"{config_key} must be a boolean")
    return value


def expect_int(value: Any, config_key: str) -> int:
    """Validate an integer; booleans are rejected even though they subclass int."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{config_key} must be an integer")
    return value


def expect_float(value: Any, config_key: str) -> float:
    """Validate a number and widen it to float."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{config_key} must be a number")
    return float(value)


def parse_env_number(value: str, env_name: str, *, integer: bool) -> int | float:
    """Parse a numeric environment variable.

    Args:
        value: Raw environment value.
        env_name: Variable name for error messages.
        integer: Whether an integer is required.

    Raises:
        ValueError: If the value is not numeric.
    """
    text = value.strip()
    try:
        return int(text) if integer else float(text)
    except ValueError as e:
        kind = "an integer" if integer else "a number"
        raise ValueError(f"{env_name} must be {kind}, got {value!r}") from e
