"""
Run an ordered batch of statements in one transaction, retrying the whole
batch on transient failures.
"""
from __future__ import annotations

import typing as t

from dbretry import retry
from dbretry.classify import Classifier, classify
from dbretry.config import RetryPolicy, default_policy
from dbretry.context import Context
from dbretry.errors import RollbackError


def exec_with_retry(
    ctx: Context,
    db: t.Any,
    sqls: t.Sequence[str],
    policy: RetryPolicy | None = None,
    *,
    classifier: Classifier = classify,
    logger: t.Any = None,
) -> None:
    """
    Execute *sqls* in order inside a single transaction.

    Either every statement commits or none does.  A failed attempt is rolled
    back and classified: fatal errors raise :class:`~dbretry.errors.FatalError`
    at once, transient ones are retried per *policy* (the process default
    when omitted) and finally raise :class:`~dbretry.errors.RetryExhausted`
    carrying the batch and the last cause.

    An empty batch returns immediately without touching *db*.
    """
    if isinstance(sqls, str):
        raise TypeError("sqls must be a sequence of statements, not a single string")
    if not sqls:
        return

    log = logger or retry.logger
    sqls = list(sqls)
    retry.run_with_retry(
        ctx,
        lambda: _execute_batch(db, sqls, log),
        target=sqls,
        label="exec",
        policy=policy or default_policy(),
        classifier=classifier,
        log=log,
    )


def _execute_batch(db: t.Any, sqls: list[str], log: t.Any) -> None:
    with db.connection() as conn:
        try:
            conn.start_transaction()
        except Exception as err:
            log.error("exec_begin_failed", sqls=sqls, error=str(err))
            raise

        with conn.cursor(buffered=True) as cur:
            for stmt in sqls:
                log.debug("exec_sql", sql=stmt)
                try:
                    cur.execute(stmt)
                except Exception as err:
                    log.warning("exec_sql_failed", sql=stmt, error=str(err))
                    _rollback(conn, stmt, log)
                    # the statement error is what gets classified, not the rollback's
                    raise

        try:
            conn.commit()
        except Exception as err:
            log.error("exec_commit_failed", sqls=sqls, error=str(err))
            raise


def _rollback(conn: t.Any, stmt: str, log: t.Any) -> None:
    try:
        conn.rollback()
    except Exception as rerr:
        log.error("exec_rollback_failed", error=str(RollbackError(stmt, rerr)))
