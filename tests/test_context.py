"""
Tests for the cancellation context
"""

import threading
import time

import pytest

from dbretry.context import Context, background
from dbretry.errors import Cancelled


class TestContext:
    def test_background_is_live(self):
        ctx = background()
        assert not ctx.cancelled
        assert ctx.remaining() is None
        ctx.check()

    def test_cancel(self):
        ctx = Context()
        ctx.cancel()
        assert ctx.cancelled
        with pytest.raises(Cancelled, match="cancelled"):
            ctx.check()

    def test_expired_deadline(self):
        ctx = Context(timeout=0)
        assert ctx.cancelled
        with pytest.raises(Cancelled, match="deadline"):
            ctx.check()

    def test_child_shares_cancel_flag(self):
        parent = Context()
        child = parent.with_timeout(60)
        parent.cancel()
        assert child.cancelled

    def test_child_keeps_tighter_deadline(self):
        parent = Context(timeout=0)
        child = parent.with_timeout(60)
        assert child.cancelled

    def test_sleep_zero(self):
        Context().sleep(0)


class TestInterruptibleSleep:
    def test_cancel_wakes_sleeper(self):
        ctx = Context()
        timer = threading.Timer(0.05, ctx.cancel)
        timer.start()
        start = time.monotonic()
        try:
            with pytest.raises(Cancelled):
                ctx.sleep(10)
        finally:
            timer.cancel()
        assert time.monotonic() - start < 5

    def test_deadline_cuts_sleep_short(self):
        ctx = Context(timeout=0.05)
        start = time.monotonic()
        with pytest.raises(Cancelled, match="deadline"):
            ctx.sleep(10)
        assert time.monotonic() - start < 5
