from __future__ import annotations

import typing as t

from dbretry import retry
from dbretry.classify import Classifier, classify
from dbretry.config import RetryPolicy, default_policy
from dbretry.context import Context
from dbretry.errors import NoRowsError, ScanError


def query_row_with_retry(
    ctx: Context,
    db: t.Any,
    query: str,
    dest: t.MutableSequence[t.Any] | None = None,
    policy: RetryPolicy | None = None,
    *,
    params: t.Sequence[t.Any] | dict[str, t.Any] | None = None,
    classifier: Classifier = classify,
    logger: t.Any = None,
) -> tuple:
    """
    Run *query* and return its first row, retrying like ``exec_with_retry``
    but without a transaction.

    When *dest* is given it must hold one slot per result column; the slots
    are overwritten with the row values of the successful attempt.

    Zero rows raise :class:`~dbretry.errors.NoRowsError` and a *dest* of the
    wrong length raises :class:`~dbretry.errors.ScanError`.  Neither is a
    driver error, so both are retried like any unrecognised failure.
    """
    log = logger or retry.logger
    row = retry.run_with_retry(
        ctx,
        lambda: _query_row(db, query, params, dest, log),
        target=query,
        label="query",
        policy=policy or default_policy(),
        classifier=classifier,
        log=log,
    )
    if dest is not None:
        dest[:] = row
    return row


def _query_row(
    db: t.Any,
    query: str,
    params: t.Any,
    dest: t.MutableSequence[t.Any] | None,
    log: t.Any,
) -> tuple:
    log.debug("query_sql", sql=query)
    with db.connection() as conn, conn.cursor(buffered=True) as cur:
        cur.execute(query, params)
        row = cur.fetchone()
    if row is None:
        raise NoRowsError(f"query sql [{query}] returned no rows")
    row = tuple(row)
    if dest is not None and len(dest) != len(row):
        raise ScanError(f"expected {len(row)} destination(s), got {len(dest)}")
    return row
