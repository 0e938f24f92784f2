"""
The attempt / classify / back‑off loop shared by both executors.
"""
from __future__ import annotations

import typing as t

import structlog

from dbretry.classify import Classifier, classify_error
from dbretry.config import RetryPolicy
from dbretry.context import Context
from dbretry.errors import Cancelled, FatalError, RetryExhausted

T = t.TypeVar("T")

logger = structlog.get_logger("dbretry")


def run_with_retry(
    ctx: Context,
    attempt: t.Callable[[], T],
    *,
    target: str | t.Sequence[str],
    label: str,
    policy: RetryPolicy,
    classifier: Classifier,
    log: t.Any,
) -> T:
    """
    Call *attempt* until it returns, fails fatally, or *policy* runs out.

    Before every attempt after the first the loop sleeps ``policy.backoff``
    on *ctx*.  The context is checked before each attempt and before each
    sleep; a cancelled context raises :class:`~dbretry.errors.Cancelled`
    without another attempt, chained from the last transient error if any.
    """
    last_error: BaseException | None = None

    for i in range(policy.max_attempts):
        try:
            if i > 0:
                ctx.sleep(policy.backoff)
                log.warning(f"{label}_retry", attempt=i + 1, target=target)
            ctx.check()
        except Cancelled as exc:
            raise exc from last_error

        try:
            return attempt()
        except Exception as err:
            classified = classify_error(err, classifier)
            if isinstance(classified, FatalError):
                log.error(f"{label}_fatal", attempt=i + 1, target=target, error=str(err))
                raise classified from err
            log.warning(f"{label}_transient", attempt=i + 1, target=target, error=str(err))
            last_error = err

    raise RetryExhausted(target, policy.max_attempts, last_error) from last_error
