#!/usr/bin/env python3
"""
dbretry – run SQL against a MySQL‑protocol server with retries.

• ``exec``   statements from the command line and/or a file, in one transaction
• ``query``  a single‑row SELECT, printed tab‑separated
• ``count``  rows of one table
• ``ping``   check the environment is reachable

Connection details and the retry policy come from ``dbretry.config.yml``
(override with ``-c``); ``--max-attempts`` / ``--backoff`` override the
policy for one invocation.
"""
from __future__ import annotations

import logging
import pathlib
import sys

import click
import mysql.connector
import structlog

from dbretry import __version__
from dbretry.config import ConfigError, Environment, RetryPolicy, load, parse_duration
from dbretry.context import Context
from dbretry.driver import connect
from dbretry.errors import DBRetryError
from dbretry.executor import exec_with_retry
from dbretry.query import query_row_with_retry
from dbretry.utils import split_sql, unique_table


def _configure_logging(verbose: int) -> None:
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def _load_env(ctx, _param, value) -> Environment:
    try:
        return load(ctx.obj["config_path"], value)
    except ConfigError as exc:
        click.echo(f"Config error: {exc}", err=True)
        sys.exit(1)


def _policy(env: Environment, max_attempts: int | None, backoff: str | None) -> RetryPolicy:
    changes = {}
    if max_attempts is not None:
        changes["max_attempts"] = max_attempts
    if backoff is not None:
        changes["backoff"] = parse_duration(backoff)
    return env.retry.replace(**changes)


def _common_opts(fn):
    opts = [
        click.option("-e", "--env", callback=_load_env, expose_value=True),
        click.option("--max-attempts", type=click.IntRange(min=1)),
        click.option("--backoff", help="e.g. 3s, 500ms"),
        click.option("--timeout", type=float, help="give up after this many seconds"),
    ]
    for opt in reversed(opts):
        fn = opt(fn)
    return fn


def _run(fn):
    """Turn library errors into a message on stderr and exit status 1."""
    try:
        return fn()
    except (DBRetryError, ConfigError, mysql.connector.Error) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


@click.group()
@click.option(
    "-c", "--config", "config_path", type=click.Path(), help="env config YAML"
)
@click.option("-v", "--verbose", count=True, help="-v info, -vv debug")
@click.pass_context
def main(ctx, config_path, verbose):
    _configure_logging(verbose)
    ctx.obj = {"config_path": pathlib.Path(config_path) if config_path else None}


@main.command()
def version():
    click.echo(__version__)


@main.command()
@click.option("-e", "--env", callback=_load_env, expose_value=True)
def ping(env):
    _run(lambda: connect(env))
    click.echo(f"✅  {env.name} ({env.host}:{env.port}) is reachable.")


@main.command("exec")
@_common_opts
@click.option(
    "-f", "--file", "sql_file",
    type=click.Path(exists=True, dir_okay=False),
    help="SQL script, appended after any STATEMENT arguments",
)
@click.argument("statements", nargs=-1)
def exec_cmd(env, max_attempts, backoff, timeout, sql_file, statements):
    sqls = list(statements)
    if sql_file:
        sqls.extend(split_sql(pathlib.Path(sql_file).read_text(encoding="utf-8")))
    if not sqls:
        click.echo("Nothing to execute.")
        return

    policy = _run(lambda: _policy(env, max_attempts, backoff))
    db = _run(lambda: connect(env))
    _run(lambda: exec_with_retry(Context(timeout), db, sqls, policy))
    click.echo(f"✅  Committed {len(sqls)} statement(s).")


@main.command()
@_common_opts
@click.argument("sql")
def query(env, max_attempts, backoff, timeout, sql):
    policy = _run(lambda: _policy(env, max_attempts, backoff))
    db = _run(lambda: connect(env))
    row = _run(lambda: query_row_with_retry(Context(timeout), db, sql, policy=policy))
    click.echo("\t".join("NULL" if v is None else str(v) for v in row))


@main.command()
@_common_opts
@click.argument("schema")
@click.argument("table")
def count(env, max_attempts, backoff, timeout, schema, table):
    policy = _run(lambda: _policy(env, max_attempts, backoff))
    db = _run(lambda: connect(env))
    dest = [None]
    _run(lambda: query_row_with_retry(
        Context(timeout), db, f"SELECT COUNT(*) FROM {unique_table(schema, table)}",
        dest, policy,
    ))
    click.echo(dest[0])


if __name__ == "__main__":
    main()
