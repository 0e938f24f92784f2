"""
dbretry – retrying, all‑or‑nothing SQL execution for MySQL‑protocol backends.
"""
from __future__ import annotations

__version__ = "0.3.0"

from dbretry.classify import MySQLClassifier, classify, classify_error
from dbretry.config import RetryPolicy, default_policy, set_default_policy
from dbretry.context import Context, background
from dbretry.errors import (
    Cancelled,
    ClassifiedError,
    DBRetryError,
    ErrorKind,
    FatalError,
    NoRowsError,
    RetryExhausted,
    RollbackError,
    ScanError,
    TransientError,
)
from dbretry.executor import exec_with_retry
from dbretry.query import query_row_with_retry

__all__ = [
    "Cancelled",
    "ClassifiedError",
    "Context",
    "DBRetryError",
    "ErrorKind",
    "FatalError",
    "MySQLClassifier",
    "NoRowsError",
    "RetryExhausted",
    "RetryPolicy",
    "RollbackError",
    "ScanError",
    "TransientError",
    "background",
    "classify",
    "classify_error",
    "default_policy",
    "exec_with_retry",
    "query_row_with_retry",
    "set_default_policy",
]
