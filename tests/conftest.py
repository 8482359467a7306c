"""
Shared fixtures for breaker tests.
"""

import threading
from typing import Any, Dict, List, Tuple

import pytest


class RecordingLogger:
    """Logger that keeps every call so tests can count them by level."""

    def __init__(self):
        self._lock = threading.Lock()
        self.records: List[Tuple[str, str, Dict[str, Any]]] = []

    def warning(self, event: str, **kw: Any) -> None:
        with self._lock:
            self.records.append(("warning", event, kw))

    def error(self, event: str, **kw: Any) -> None:
        with self._lock:
            self.records.append(("error", event, kw))

    def count(self, level: str) -> int:
        with self._lock:
            return sum(1 for record in self.records if record[0] == level)

    def reset(self) -> None:
        with self._lock:
            self.records.clear()


class Flaky:
    """Operation that fails ``failures`` times, then returns ``result``."""

    def __init__(self, failures: int, result: Any = "ok", exc: type = ConnectionError):
        self.failures = failures
        self.result = result
        self.exc = exc
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc(f"attempt {self.calls} failed")
        return self.result


@pytest.fixture
def recorder() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def flaky():
    return Flaky
