"""
Generic helpers used by the CLI.
"""
from __future__ import annotations
import sqlparse


def split_sql(sql: str) -> list[str]:
    """
    Split a string containing one or many SQL statements into individual
    statements **safely** (aware of literals, comments, delimiters, etc.).
    """
    return [s.strip() for s in sqlparse.split(sql) if s.strip()]


def unique_table(schema: str, table: str) -> str:
    """Return the quoted name `` `schema`.`table` ``, doubling embedded backticks."""
    return f"`{_escape(schema)}`.`{_escape(table)}`"


def _escape(ident: str) -> str:
    return ident.replace("`", "``")
