"""
Breaker Exceptions
==================
Sentinel exception kinds and wrap-aware kind testing.
"""

from typing import Optional, Type, Union


class BreakerError(Exception):
    """Base class for errors produced by the breaker."""


class FatalError(BreakerError):
    """
    Raised by an operation to stop retrying immediately.

    Either raise it directly, wrap the real cause with
    ``FatalError.wrap(exc)``, or raise your own error ``from FatalError()``.
    """

    def __init__(self, message: str = "breaker: fatal error"):
        super().__init__(message)

    @classmethod
    def wrap(cls, cause: BaseException, message: Optional[str] = None) -> "FatalError":
        err = cls(message or f"breaker: fatal error: {cause}")
        err.__cause__ = cause
        return err


class MaxRetriesError(BreakerError):
    """Raised when the retry budget is spent. Chained to the last failure."""

    def __init__(self, max_tries: int, last_exception: Optional[BaseException] = None):
        self.max_tries = max_tries
        self.last_exception = last_exception
        message = "breaker: hit max retries"
        if last_exception is not None:
            message = f"{message}: {last_exception}"
        super().__init__(message)


class ExhaustedRetriesError(BreakerError):
    """Raised by ``exp_backoff_retry`` when its retry budget is spent."""

    def __init__(self, max_tries: int, last_exception: Optional[BaseException] = None):
        self.max_tries = max_tries
        self.last_exception = last_exception
        message = "breaker: exhausted all retry attempts"
        if last_exception is not None:
            message = f"{message}: {last_exception}"
        super().__init__(message)


Kind = Union[Type[BaseException], BaseException]


def unwrap(exc: BaseException) -> Optional[BaseException]:
    """Return the error ``exc`` explicitly wraps, if any."""
    return exc.__cause__


def is_kind(exc: Optional[BaseException], kind: Kind) -> bool:
    """
    Test whether ``exc`` or anything it wraps matches ``kind``.

    ``kind`` is either an exception class (matched with ``isinstance``) or a
    specific exception instance (matched by identity). Only explicit
    chaining (``raise ... from ...``) is followed.
    """
    seen = set()
    while exc is not None and id(exc) not in seen:
        seen.add(id(exc))
        if isinstance(kind, type):
            if isinstance(exc, kind):
                return True
        elif exc is kind:
            return True
        exc = unwrap(exc)
    return False
