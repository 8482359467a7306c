"""
Self-Healing Exponential Backoff
================================
Retry loop that forgives slow failures.

If a failed attempt ran for longer than twice the base backoff, the
downstream is assumed to have recovered in between, so the retry counter
and the delay start over. There is no fatal classification here; use
``Breaker`` when the operation needs to stop retries itself.
"""

import time
from typing import Callable, Optional, TypeVar

from .cancellation import CancelToken, background
from .exceptions import ExhaustedRetriesError
from .log import Logger, NopLogger, format_delay

T = TypeVar("T")


def exp_backoff_retry(
    fn: Callable[[CancelToken], T],
    logger: Optional[Logger],
    backoff: float,
    factor: float,
    max_tries: int,
    token: Optional[CancelToken] = None,
) -> T:
    """
    Call ``fn(token)`` with exponential backoff, resetting after slow failures.

    ``max_tries = 1`` means retry only once when an error occurs.

    Raises:
        The token's error if cancelled, or ExhaustedRetriesError once
        retries are exhausted.
    """
    if logger is None:
        logger = NopLogger()
    if token is None:
        token = background()

    delay = float(backoff)
    try_count = 0

    while True:
        err = token.error()
        if err is not None:
            raise err.with_traceback(None)

        started = time.monotonic()
        try:
            return fn(token)
        except Exception as e:
            if time.monotonic() - started > 2 * backoff:
                delay = float(backoff)
                try_count = 0

            logger.warning(
                "breaker_backing_off",
                backoff_delay=format_delay(delay),
                attempt=try_count + 1,
                error=str(e),
            )

            if try_count >= max_tries:
                logger.error("breaker_retries_exhausted", max_tries=max_tries)
                raise ExhaustedRetriesError(max_tries, e) from e

        token.wait(delay)
        delay *= factor
        try_count += 1
