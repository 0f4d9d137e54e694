"""Environment variable loaders for configuration."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .errors import InvalidConfigurationValueError, MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Sequence

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def require_env_vars(names: Sequence[str]) -> dict[str, str]:
    """Return the given environment variables or raise if any are missing/blank."""

    missing: list[str] = []
    values: dict[str, str] = {}
    for name in names:
        value = os.getenv(name)
        if value is None or not value.strip():
            missing.append(name)
            continue
        values[name] = value.strip()

    if missing:
        missing_list = ", ".join(sorted(missing))
        raise MissingConfigurationError(f"Missing configuration for: {missing_list}")

    return values


def _raw(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def int_from_env(name: str, default: int, *, minimum: int = 0) -> int:
    raw = _raw(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise InvalidConfigurationValueError(name, raw, "an integer") from None
    if value < minimum:
        raise InvalidConfigurationValueError(name, raw, f"an integer >= {minimum}")
    return value


def float_from_env(name: str, default: float) -> float:
    raw = _raw(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise InvalidConfigurationValueError(name, raw, "a number") from None
    if value <= 0:
        raise InvalidConfigurationValueError(name, raw, "a positive number")
    return value


def bool_from_env(name: str, default: bool) -> bool:  # noqa: FBT001
    raw = _raw(name)
    if raw is None:
        return default
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise InvalidConfigurationValueError(name, raw, "a boolean")


def choice_from_env(name: str, default: str, choices: Sequence[str]) -> str:
    raw = _raw(name)
    if raw is None:
        return default
    lowered = raw.lower()
    if lowered not in choices:
        raise InvalidConfigurationValueError(name, raw, "one of " + ", ".join(choices))
    return lowered
