"""
Cancellation
============
Cooperative cancellation tokens for breaker calls.

A token is checked by the breaker before every attempt and raced against
the wait between attempts. It never interrupts a running operation.

Usage:
    token = CancelToken.with_timeout(30)
    breaker.do(fetch, token=token)

    # From another thread
    token.cancel()
"""

import threading
import time
from typing import List, Optional


class OperationCancelled(Exception):
    """Default cause of a cancelled token."""

    def __init__(self, message: str = "context canceled"):
        super().__init__(message)


class DeadlineExceeded(OperationCancelled):
    """Cause of a token whose deadline has passed."""

    def __init__(self, message: str = "context deadline exceeded"):
        super().__init__(message)


class CancelToken:
    """
    Thread-safe cancellation signal with an optional deadline and parent.

    A child token is cancelled when its parent is, with the parent's cause.
    Deadlines use ``time.monotonic()``.
    """

    def __init__(
        self,
        parent: Optional["CancelToken"] = None,
        deadline: Optional[float] = None,
    ):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._cause: Optional[BaseException] = None
        self._children: List["CancelToken"] = []
        self._parent: Optional["CancelToken"] = None
        self._deadline = deadline

        if parent is not None:
            if parent._deadline is not None:
                if self._deadline is None or parent._deadline < self._deadline:
                    self._deadline = parent._deadline
            self._parent = parent
            parent._add_child(self)
            self._check_deadline()

    @classmethod
    def with_timeout(cls, seconds: float, parent: Optional["CancelToken"] = None) -> "CancelToken":
        return cls(parent=parent, deadline=time.monotonic() + seconds)

    @classmethod
    def with_deadline(cls, deadline: float, parent: Optional["CancelToken"] = None) -> "CancelToken":
        return cls(parent=parent, deadline=deadline)

    @property
    def deadline(self) -> Optional[float]:
        return self._deadline

    def _add_child(self, child: "CancelToken") -> None:
        now = time.monotonic()
        with self._lock:
            cause = self._cause
            expired = []
            if cause is None:
                # drop expired children nobody polls anymore
                live = []
                for existing in self._children:
                    if existing._deadline is not None and now >= existing._deadline:
                        expired.append(existing)
                    else:
                        live.append(existing)
                live.append(child)
                self._children = live

        for existing in expired:
            existing._check_deadline()
        if cause is not None:
            child.cancel(cause)

    def _remove_child(self, child: "CancelToken") -> None:
        with self._lock:
            try:
                self._children.remove(child)
            except ValueError:
                pass

    def cancel(self, cause: Optional[BaseException] = None) -> None:
        """Trigger the token and detach it from its parent. First cause wins."""
        with self._lock:
            if self._cause is not None:
                return
            self._cause = cause if cause is not None else OperationCancelled()
            children, self._children = self._children, []
            parent, self._parent = self._parent, None
            self._event.set()

        for child in children:
            child.cancel(self._cause)
        if parent is not None:
            parent._remove_child(self)

    def _check_deadline(self) -> None:
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self.cancel(DeadlineExceeded())

    @property
    def cancelled(self) -> bool:
        self._check_deadline()
        return self._event.is_set()

    def error(self) -> Optional[BaseException]:
        """The cancellation cause, or None while the token is live."""
        self._check_deadline()
        return self._cause

    def wait(self, timeout: float) -> bool:
        """
        Block for up to ``timeout`` seconds.

        Returns True as soon as the token is cancelled, False if the full
        timeout elapsed first. Any timeout is accepted, including ``inf``.
        """
        if self.cancelled:
            return True
        if not timeout > 0:
            return False

        end = time.monotonic() + timeout
        while True:
            now = time.monotonic()
            remaining = end - now
            if self._deadline is not None:
                remaining = min(remaining, self._deadline - now)
            if remaining <= 0:
                return self.cancelled
            if self._event.wait(min(remaining, threading.TIMEOUT_MAX)):
                return True


def background() -> CancelToken:
    """A fresh token with no deadline and no parent."""
    return CancelToken()
