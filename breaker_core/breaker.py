"""
Breaker Core
============
Exponential-backoff retry executor.

Each call waits ``backoff * factor ** retry`` between attempts, for up to
``max_tries`` retries after the first attempt. ``max_tries = 0`` means the
operation runs once and is never retried.

Example:
    breaker = Breaker(logger, backoff=0.5, factor=2, max_tries=5)

    try:
        data = breaker.do(fetch_data, token=token)
    except MaxRetriesError as e:
        log.error("fetch_failed", error=str(e.last_exception))
"""

import asyncio
import inspect
from functools import wraps
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog

from .cancellation import CancelToken, background
from .config import DEFAULT_BACKOFF, DEFAULT_FACTOR, DEFAULT_MAX_TRIES, BreakerConfig
from .exceptions import FatalError, MaxRetriesError, is_kind
from .log import Logger, NopLogger, format_delay

_logger = structlog.get_logger(__name__)

T = TypeVar("T")

_ASYNC_POLL_INTERVAL = 0.05  # seconds between token checks while sleeping


async def _wait_async(token: CancelToken, delay: float) -> None:
    """Sleep for ``delay`` seconds or until the token is cancelled."""
    loop = asyncio.get_running_loop()
    end = loop.time() + max(delay, 0)
    while not token.cancelled:
        remaining = end - loop.time()
        if not remaining > 0:
            return
        await asyncio.sleep(min(remaining, _ASYNC_POLL_INTERVAL))


class Breaker:
    """
    Retry executor with exponential backoff.

    The instance only holds its policy, so one breaker can serve many
    concurrent calls. Retry state lives inside each call.
    """

    __slots__ = ("_log", "_backoff", "_factor", "_max_tries")

    def __init__(
        self,
        logger: Optional[Logger],
        backoff: float,
        factor: float,
        max_tries: int,
    ):
        self._log = logger if logger is not None else NopLogger()
        self._backoff = backoff
        self._factor = factor
        self._max_tries = max_tries

    @classmethod
    def default(cls, logger: Optional[Logger] = None) -> "Breaker":
        """Breaker with 1s backoff, factor 2, 15 retries."""
        return cls(logger, DEFAULT_BACKOFF, DEFAULT_FACTOR, DEFAULT_MAX_TRIES)

    @classmethod
    def from_config(cls, config: BreakerConfig, logger: Optional[Logger] = None) -> "Breaker":
        return cls(logger, config.backoff, config.factor, config.max_tries)

    @property
    def logger(self) -> Logger:
        return self._log

    @property
    def backoff(self) -> float:
        return self._backoff

    @property
    def factor(self) -> float:
        return self._factor

    @property
    def max_tries(self) -> int:
        return self._max_tries

    def __repr__(self) -> str:
        return (
            f"Breaker(backoff={self._backoff!r}, factor={self._factor!r}, "
            f"max_tries={self._max_tries!r})"
        )

    def _on_failure(self, exc: Exception, try_count: int, delay: float) -> None:
        """Raise if ``exc`` ends the call, otherwise log the upcoming retry."""
        if is_kind(exc, FatalError):
            raise exc

        if try_count >= self._max_tries:
            self._log.error(
                "breaker_max_retries_exhausted",
                max_tries=self._max_tries,
            )
            raise MaxRetriesError(self._max_tries, exc) from exc

        self._log.warning(
            "breaker_retrying",
            backoff_delay=format_delay(delay),
            attempt=try_count + 1,
            error=str(exc),
        )

    def do(self, fn: Callable[[], T], token: Optional[CancelToken] = None) -> T:
        """
        Call ``fn`` until it returns, retrying failures with backoff.

        Args:
            fn: Zero-argument callable; raising an ``Exception`` is a failure
            token: Cancellation token, checked before every attempt and
                raced against the wait between attempts

        Returns:
            Whatever ``fn`` returned

        Raises:
            The token's error if cancelled, the operation's error if it is
            fatal, or MaxRetriesError once retries are exhausted.
        """
        if token is None:
            token = background()
        delay = float(self._backoff)
        try_count = 0

        while True:
            err = token.error()
            if err is not None:
                raise err.with_traceback(None)

            try:
                return fn()
            except Exception as e:
                self._on_failure(e, try_count, delay)

            token.wait(delay)
            delay *= self._factor
            try_count += 1

    async def do_async(
        self,
        fn: Callable[[], Awaitable[T]],
        token: Optional[CancelToken] = None,
    ) -> T:
        """Same as ``do`` for a coroutine function. Sleeps with asyncio, polling the token."""
        if token is None:
            token = background()
        delay = float(self._backoff)
        try_count = 0

        while True:
            err = token.error()
            if err is not None:
                raise err.with_traceback(None)

            try:
                return await fn()
            except Exception as e:
                self._on_failure(e, try_count, delay)

            await _wait_async(token, delay)
            delay *= self._factor
            try_count += 1


def do(
    fn: Callable[[], T],
    logger: Optional[Logger],
    backoff: float,
    factor: float,
    max_tries: int,
    token: Optional[CancelToken] = None,
) -> T:
    """Build a breaker and run ``fn`` through it once."""
    return Breaker(logger, backoff, factor, max_tries).do(fn, token=token)


def with_breaker(
    backoff: float = DEFAULT_BACKOFF,
    factor: float = DEFAULT_FACTOR,
    max_tries: int = DEFAULT_MAX_TRIES,
    logger: Optional[Logger] = None,
):
    """
    Decorator that runs every call of the wrapped function through a breaker.

    Works for plain and ``async`` functions.

    Usage:
        @with_breaker(backoff=0.5, max_tries=5, logger=get_logger())
        def fetch_data():
            ...
    """
    breaker = Breaker(logger, backoff, factor, max_tries)

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        _logger.debug("breaker_wrapped", func=func.__name__, breaker=repr(breaker))

        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                return await breaker.do_async(lambda: func(*args, **kwargs))

            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs):
            return breaker.do(lambda: func(*args, **kwargs))

        return wrapper

    return decorator
