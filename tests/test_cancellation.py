"""
Unit Tests for Cancellation Tokens
==================================
"""

import threading
import time

from breaker_core import CancelToken, DeadlineExceeded, OperationCancelled, background


class TestCancelToken:
    """Tests for CancelToken."""

    def test_live_token(self):
        token = CancelToken()

        assert not token.cancelled
        assert token.error() is None

    def test_cancel_default_cause(self):
        token = CancelToken()
        token.cancel()

        assert token.cancelled
        assert isinstance(token.error(), OperationCancelled)
        assert str(token.error()) == "context canceled"

    def test_first_cause_wins(self):
        first = RuntimeError("first")
        token = CancelToken()
        token.cancel(first)
        token.cancel(RuntimeError("second"))

        assert token.error() is first

    def test_error_is_stable(self):
        token = CancelToken()
        token.cancel()

        assert token.error() is token.error()

    def test_deadline(self):
        token = CancelToken.with_timeout(0.02)
        time.sleep(0.05)

        assert token.cancelled
        assert isinstance(token.error(), DeadlineExceeded)

    def test_parent_cancels_child(self):
        parent = CancelToken()
        child = CancelToken(parent=parent)
        cause = RuntimeError("stop")
        parent.cancel(cause)

        assert child.error() is cause

    def test_child_of_cancelled_parent(self):
        parent = CancelToken()
        parent.cancel()

        assert CancelToken(parent=parent).cancelled

    def test_child_cancel_leaves_parent(self):
        parent = CancelToken()
        child = CancelToken(parent=parent)
        child.cancel()

        assert not parent.cancelled

    def test_child_inherits_earlier_deadline(self):
        parent = CancelToken.with_timeout(0.01)
        child = CancelToken.with_timeout(60, parent=parent)

        assert child.deadline == parent.deadline

    def test_cancelled_children_detach(self):
        """Children leave the parent once cancelled on their own."""
        parent = CancelToken()
        children = [CancelToken(parent=parent) for _ in range(100)]
        for child in children:
            child.cancel()

        assert parent._children == []
        assert not parent.cancelled

    def test_expired_children_detach(self):
        """Already-expired children never stay attached to the parent."""
        parent = CancelToken()
        for _ in range(1000):
            CancelToken.with_timeout(0.0, parent=parent)

        assert parent._children == []

    def test_children_detach_when_deadline_observed(self):
        parent = CancelToken()
        children = [CancelToken.with_timeout(0.01, parent=parent) for _ in range(10)]
        time.sleep(0.03)

        assert all(child.cancelled for child in children)
        assert parent._children == []

    def test_expired_children_pruned_on_add(self):
        """Expired children nobody checks are dropped when a sibling joins."""
        parent = CancelToken()
        for _ in range(10):
            CancelToken.with_timeout(0.01, parent=parent)
        time.sleep(0.03)
        live = CancelToken(parent=parent)

        assert parent._children == [live]


class TestWait:
    """Tests for CancelToken.wait."""

    def test_wait_full_timeout(self):
        token = CancelToken()
        start = time.monotonic()

        assert token.wait(0.02) is False
        assert time.monotonic() - start >= 0.015

    def test_wait_interrupted(self):
        token = CancelToken()
        threading.Timer(0.02, token.cancel).start()
        start = time.monotonic()

        assert token.wait(5) is True
        assert time.monotonic() - start < 2

    def test_wait_stops_at_deadline(self):
        token = CancelToken.with_timeout(0.02)
        start = time.monotonic()

        assert token.wait(5) is True
        assert time.monotonic() - start < 2

    def test_wait_non_positive(self):
        assert CancelToken().wait(0) is False
        assert CancelToken().wait(-1) is False

    def test_wait_infinite_timeout(self):
        """Timeouts beyond the platform limit are waited in chunks."""
        token = CancelToken()
        threading.Timer(0.02, token.cancel).start()

        assert token.wait(float("inf")) is True

    def test_wait_huge_timeout(self):
        token = CancelToken()
        threading.Timer(0.02, token.cancel).start()

        assert token.wait(threading.TIMEOUT_MAX * 10) is True

    def test_wait_nan_timeout(self):
        assert CancelToken().wait(float("nan")) is False

    def test_background_tokens_are_independent(self):
        token = background()
        token.cancel()

        assert not background().cancelled
