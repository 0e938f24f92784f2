"""
Decide whether a failed attempt is worth repeating.

A classifier is any callable ``(BaseException) -> ErrorKind``.  The default
one understands mysql.connector errors, including the TiDB/TiKV server
codes.  Errors it cannot recognise are retried, never failed fast.
"""
from __future__ import annotations

import socket
import typing as t

import mysql.connector

from dbretry.constants import BAD_CONN_ERRNOS, TRANSIENT_ERRNOS
from dbretry.errors import ClassifiedError, ErrorKind, FatalError, TransientError

Classifier = t.Callable[[BaseException], ErrorKind]

# socket‑level failures only; other OSErrors fall through to the default
_NETWORK_ERRORS = (ConnectionError, TimeoutError, socket.gaierror, socket.herror)


def _chain(err: BaseException) -> t.Iterator[BaseException]:
    """Yield *err* and every exception it was raised ``from``."""
    seen: set[int] = set()
    cur: BaseException | None = err
    while cur is not None and id(cur) not in seen:
        seen.add(id(cur))
        yield cur
        cur = cur.__cause__


def root_cause(err: BaseException) -> BaseException:
    *_, last = _chain(err)
    return last


def _errno(err: BaseException) -> int | None:
    if not isinstance(err, mysql.connector.Error):
        return None
    errno = getattr(err, "errno", None)
    # mysql.connector uses -1 when the error carries no code
    if isinstance(errno, int) and errno > 0:
        return errno
    return None


class MySQLClassifier:
    """
    Rule‑based classifier for mysql.connector.

    Rules, first match wins:

    1. a bad‑connection errno anywhere in the ``__cause__`` chain → transient
    2. root cause is a network error (connection, timeout, resolver) →
       transient only if it timed out
    3. root cause is a driver error with a numeric errno → transient only for
       ``transient_errnos``
    4. anything else → transient
    """

    def __init__(
        self,
        *,
        bad_conn_errnos: t.Iterable[int] = BAD_CONN_ERRNOS,
        transient_errnos: t.Iterable[int] = TRANSIENT_ERRNOS,
    ) -> None:
        self.bad_conn_errnos = frozenset(bad_conn_errnos)
        self.transient_errnos = frozenset(transient_errnos)

    def __call__(self, err: BaseException) -> ErrorKind:
        if any(_errno(e) in self.bad_conn_errnos for e in _chain(err)):
            return ErrorKind.TRANSIENT

        cause = root_cause(err)

        if isinstance(cause, _NETWORK_ERRORS):
            return ErrorKind.TRANSIENT if isinstance(cause, TimeoutError) else ErrorKind.FATAL

        errno = _errno(cause)
        if errno is not None:
            return ErrorKind.TRANSIENT if errno in self.transient_errnos else ErrorKind.FATAL

        return ErrorKind.TRANSIENT


classify: Classifier = MySQLClassifier()


def classify_error(err: BaseException, classifier: Classifier = classify) -> ClassifiedError:
    """Tag *err* with *classifier* and wrap it in the matching exception type."""
    if classifier(err) is ErrorKind.FATAL:
        return FatalError(err)
    return TransientError(err)
