"""
Exception hierarchy shared by the executors.

Every failure surfaced by :func:`dbretry.exec_with_retry` and
:func:`dbretry.query_row_with_retry` is a :class:`DBRetryError`.  The
underlying driver error is always reachable through ``__cause__``.
"""
from __future__ import annotations

import enum
import typing as t


class ErrorKind(enum.Enum):
    """Tag produced by a classifier for one observed failure."""

    TRANSIENT = "transient"
    FATAL = "fatal"


class DBRetryError(Exception):
    """Base class for every error raised by dbretry."""


class ClassifiedError(DBRetryError):
    """
    A driver error together with its :class:`ErrorKind`.

    Only :func:`dbretry.classify.classify_error` builds these; use
    :class:`TransientError` / :class:`FatalError` for ``isinstance`` checks.
    """

    kind: ErrorKind

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"{self.kind.value} error: {cause}")
        self.cause = cause


class TransientError(ClassifiedError):
    kind = ErrorKind.TRANSIENT


class FatalError(ClassifiedError):
    kind = ErrorKind.FATAL


class RollbackError(DBRetryError):
    """``ROLLBACK`` itself failed while unwinding a failed statement.  Logged, never raised."""

    def __init__(self, statement: str, cause: BaseException) -> None:
        super().__init__(f"rollback after [{statement}] failed: {cause}")
        self.statement = statement
        self.cause = cause


class RetryExhausted(DBRetryError):
    """Every attempt failed with a transient error."""

    def __init__(
        self,
        target: str | t.Sequence[str],
        attempts: int,
        last_error: BaseException | None,
    ) -> None:
        if isinstance(target, str):
            what = f"query sql [{target}]"
        else:
            what = f"exec sqls {list(target)!r}"
        super().__init__(f"{what} failed after {attempts} attempt(s): {last_error}")
        self.target = target
        self.attempts = attempts
        self.last_error = last_error


class Cancelled(DBRetryError):
    """The :class:`~dbretry.context.Context` was cancelled or its deadline passed."""


class NoRowsError(DBRetryError):
    """A single‑row query produced no row."""


class ScanError(DBRetryError):
    """Destination count does not match the number of result columns."""
