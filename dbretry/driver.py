from __future__ import annotations
import itertools
import typing as t
import structlog
from mysql.connector import pooling
from contextlib import contextmanager

from dbretry.config import Environment

_pool_ids = itertools.count(1)

logger = structlog.get_logger("dbretry")


class Database:
    """
    The shared handle the executors run against.

    Wraps a driver connection pool, which is safe to use from many threads.
    Each ``connection()`` checks out one connection for the exclusive use
    of the caller and always hands it back to the pool.  If the body
    raised, a failure while handing the connection back is logged and the
    body's exception propagates unchanged.
    """

    def __init__(self, pool: pooling.MySQLConnectionPool) -> None:
        self.pool = pool

    @contextmanager
    def connection(self) -> t.Iterator[t.Any]:
        conn = self.pool.get_connection()
        try:
            yield conn
        except BaseException:
            try:
                conn.close()
            except Exception as err:
                logger.warning("connection_close_failed", error=str(err))
            raise
        conn.close()

    def ping(self) -> None:
        """Round‑trip ``SELECT 1``; raises the driver error on failure."""
        with self.connection() as conn, conn.cursor(buffered=True) as cur:
            cur.execute("SELECT 1")
            cur.fetchone()


def connect(env: Environment, *, ping: bool = True) -> Database:
    """
    Build a connection pool for *env* and, unless ``ping=False``, verify the
    server answers before handing it out.

    Connections run with ``autocommit`` on; the statement executor opens an
    explicit transaction for every batch it runs.
    """
    pool = pooling.MySQLConnectionPool(
        pool_name=f"dbretry-{env.name}-{next(_pool_ids)}",
        pool_size=env.pool_size,
        autocommit=True,
        charset="utf8mb4",
        **env.dsn(),
    )
    db = Database(pool)
    if ping:
        db.ping()
    return db
