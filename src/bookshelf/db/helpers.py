# ABOUTME: Thin wrappers for running parameterized SQL on the live connection.
# ABOUTME: Rows come back as sqlite3.Row and are mapped to records by the callers.

import sqlite3
from collections.abc import Sequence
from typing import Any

Params = Sequence[Any]


def exec_select(conn: sqlite3.Connection, sql: str, params: Params = ()) -> list[sqlite3.Row]:
    """Run a SELECT and return every row."""
    return conn.execute(sql, tuple(params)).fetchall()


def exec_select_one(
    conn: sqlite3.Connection, sql: str, params: Params = ()
) -> sqlite3.Row | None:
    """Run a SELECT and return the first row, or None when nothing matched."""
    return conn.execute(sql, tuple(params)).fetchone()


def exec_run(conn: sqlite3.Connection, sql: str, params: Params = ()) -> int:
    """Run an INSERT, UPDATE, or DELETE and return the number of affected rows."""
    return conn.execute(sql, tuple(params)).rowcount


def exec_count(conn: sqlite3.Connection, sql: str, params: Params = ()) -> int:
    """Run a single-value aggregate query and return it as an int (0 when empty)."""
    row = exec_select_one(conn, sql, params)
    if row is None or row[0] is None:
        return 0
    return int(row[0])


def placeholders(values: Sequence[Any]) -> str:
    """Build a `?, ?, ?` list for an IN clause."""
    return ", ".join("?" for _ in values)


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so user input matches literally (use with ESCAPE '\\')."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
