"""
Pytest configuration and shared fixtures.

``FakeDatabase`` stands in for a ``dbretry.driver.Database``: it hands out
connections whose statements are only made visible in ``committed`` on
``commit()``, which is enough to observe atomicity without a server.
"""

import sys
from pathlib import Path
from unittest.mock import Mock

import pytest
import structlog

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from dbretry.config import default_policy, set_default_policy  # noqa: E402
from dbretry.context import Context  # noqa: E402
from dbretry.driver import Database  # noqa: E402


class RecordingContext(Context):
    """Context whose ``sleep`` records the duration instead of waiting."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.sleeps = []

    def sleep(self, seconds):
        self.check()
        self.sleeps.append(seconds)
        self.check()


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn
        self._rows = []

    def execute(self, sql, params=None):
        db = self.conn.db
        db.calls.append(("execute", sql))
        db.params.append(params)
        db.raise_next(sql)
        self.conn.pending.append(sql)
        self._rows = list(db.rows.get(sql, []))

    def fetchone(self):
        return self._rows.pop(0) if self._rows else None

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


class FakeConnection:
    def __init__(self, db):
        self.db = db
        self.pending = []

    def start_transaction(self):
        self.db.calls.append("begin")
        self.db.raise_next("begin")

    def cursor(self, buffered=False):
        return FakeCursor(self)

    def commit(self):
        self.db.calls.append("commit")
        self.db.raise_next("commit")
        self.db.committed.extend(self.pending)
        self.pending = []

    def rollback(self):
        self.db.calls.append("rollback")
        self.pending = []
        self.db.raise_next("rollback")

    def close(self):
        self.db.calls.append("close")
        self.pending = []
        self.db.raise_next("close")


class FakeDatabase(Database):
    """
    A real :class:`Database` whose pool is the fake itself.

    ``failures[key]`` is a list of exceptions raised, one per call, by the
    statement (or ``"begin"`` / ``"commit"`` / ``"rollback"`` / ``"close"``)
    named *key*.
    Once the list is used up the call succeeds.  ``always[key]`` raises on
    every call.
    """

    def __init__(self):
        super().__init__(pool=self)
        self.failures = {}
        self.always = {}
        self.rows = {}
        self.calls = []
        self.params = []
        self.committed = []
        self.checkouts = 0
        self.on_failure = None

    def raise_next(self, key):
        err = None
        if key in self.always:
            err = self.always[key]
        elif self.failures.get(key):
            err = self.failures[key].pop(0)
        if err is not None:
            if self.on_failure:
                self.on_failure(err)
            raise err

    def count(self, call):
        return sum(1 for c in self.calls if c == call)

    def get_connection(self):
        self.checkouts += 1
        return FakeConnection(self)


@pytest.fixture
def db():
    return FakeDatabase()


@pytest.fixture
def ctx():
    return RecordingContext()


@pytest.fixture
def log():
    return Mock()


@pytest.fixture(autouse=True)
def _restore_defaults():
    previous = default_policy()
    yield
    set_default_policy(previous)
    structlog.reset_defaults()
