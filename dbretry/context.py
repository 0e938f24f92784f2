"""
Cancellation token passed into every retrying call.
"""
from __future__ import annotations

import threading
import time

from dbretry.errors import Cancelled


class Context:
    """
    A cancel flag plus an optional deadline.

    ``sleep`` waits on the flag rather than calling :func:`time.sleep`, so a
    ``cancel()`` from another thread wakes a backing‑off retry loop at once.
    """

    def __init__(
        self,
        timeout: float | None = None,
        *,
        _event: threading.Event | None = None,
        _deadline: float | None = None,
    ) -> None:
        self._event = _event or threading.Event()
        self._deadline = _deadline
        if timeout is not None:
            self._deadline = _min_deadline(self._deadline, time.monotonic() + timeout)

    def with_timeout(self, timeout: float) -> Context:
        """Child context that shares the cancel flag and has the tighter deadline."""
        return Context(timeout, _event=self._event, _deadline=self._deadline)

    def cancel(self) -> None:
        self._event.set()

    def remaining(self) -> float | None:
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    @property
    def cancelled(self) -> bool:
        return self._event.is_set() or self.remaining() == 0.0

    def check(self) -> None:
        """Raise :class:`Cancelled` if the context is done."""
        if self._event.is_set():
            raise Cancelled("context cancelled")
        if self.remaining() == 0.0:
            raise Cancelled("context deadline exceeded")

    def sleep(self, seconds: float) -> None:
        self.check()
        left = self.remaining()
        if left is not None and left < seconds:
            self._event.wait(left)
        else:
            self._event.wait(seconds)
        self.check()


def _min_deadline(a: float | None, b: float) -> float:
    return b if a is None else min(a, b)


def background() -> Context:
    """Return a context that is never cancelled unless ``cancel()`` is called."""
    return Context()
