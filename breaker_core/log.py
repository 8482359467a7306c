"""
Breaker Logging
===============
Logger capability used by the breaker, plus structlog setup helpers.

Any object with structlog-style ``warning(event, **kw)`` and
``error(event, **kw)`` methods can be passed to a breaker.

Usage:
    from breaker_core.log import configure_logging, get_logger

    configure_logging(level="DEBUG")
    breaker = Breaker.default(get_logger())
"""

import logging
import math
import sys
from typing import Any, Optional, Protocol

import structlog


class Logger(Protocol):
    """What the breaker needs from a logger."""

    def warning(self, event: str, **kw: Any) -> Any:
        ...

    def error(self, event: str, **kw: Any) -> Any:
        ...


class NopLogger:
    """Drops every message."""

    def warning(self, event: str, **kw: Any) -> None:
        pass

    def error(self, event: str, **kw: Any) -> None:
        pass


def get_logger(name: Optional[str] = None, **initial_values: Any):
    """Get a structlog logger tagged with ``component="breaker"``."""
    initial_values.setdefault("component", "breaker")
    return structlog.get_logger(name or "breaker_core", **initial_values)


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """
    Configure structlog for breaker output.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR)
        json_logs: Render JSON lines instead of the console format
    """
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def format_delay(seconds: float) -> str:
    """Format a delay the way durations read in log lines: 100ms, 1.6s, 2m8s."""
    if not math.isfinite(seconds):
        return str(float(seconds))
    if seconds < 0:
        return "-" + format_delay(-seconds)
    if seconds == 0:
        return "0s"
    if seconds < 0.001:
        return f"{seconds * 1e6:g}µs"
    if seconds < 1:
        return f"{seconds * 1e3:g}ms"
    if seconds < 60:
        return f"{seconds:g}s"

    minutes, secs = divmod(seconds, 60)
    if minutes < 60:
        return f"{int(minutes)}m{secs:g}s"
    hours, minutes = divmod(minutes, 60)
    return f"{int(hours)}h{int(minutes)}m{secs:g}s"
