"""
Breaker Configuration
=====================
Backoff policy settings, with environment overrides.
"""

import os
from dataclasses import dataclass
from typing import Callable, TypeVar

T = TypeVar("T")

DEFAULT_BACKOFF = 1.0    # Seconds to wait before the first retry
DEFAULT_FACTOR = 2.0     # Multiplier applied to the wait after each retry
DEFAULT_MAX_TRIES = 15   # Retries after the first attempt before giving up


@dataclass(frozen=True)
class BreakerConfig:
    """Backoff policy for a breaker. Values are not range-checked."""
    backoff: float = DEFAULT_BACKOFF
    factor: float = DEFAULT_FACTOR
    max_tries: int = DEFAULT_MAX_TRIES

    @classmethod
    def from_env(cls, prefix: str = "BREAKER_") -> "BreakerConfig":
        """
        Build a config from ``{prefix}BACKOFF_SECONDS``, ``{prefix}FACTOR``
        and ``{prefix}MAX_TRIES``. Unset variables keep their defaults.
        """
        return cls(
            backoff=_env(f"{prefix}BACKOFF_SECONDS", float, DEFAULT_BACKOFF),
            factor=_env(f"{prefix}FACTOR", float, DEFAULT_FACTOR),
            max_tries=_env(f"{prefix}MAX_TRIES", int, DEFAULT_MAX_TRIES),
        )


def _env(name: str, parse: Callable[[str], T], default: T) -> T:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return parse(raw)
    except ValueError:
        raise ValueError(f"Invalid value for {name}: {raw!r}") from None
