"""Test helpers: mock psycopg connections to the target database."""

from collections.abc import Sequence
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock


def make_target_connection(
    *,
    columns: Sequence[str] = (),
    rows: Sequence[tuple[Any, ...]] = (),
    explain_rows: Sequence[tuple[Any, ...]] = (),
    fail_on: str | None = None,
    error: Exception | None = None,
) -> MagicMock:
    """
    Build a mock connection whose cursor returns ``rows`` for the main query
    and ``explain_rows`` for EXPLAIN.

    - fail_on: substring of the SQL that makes ``execute`` raise ``error``.

    The cursor is the same object whether or not it is used as a context
    manager; ``conn.cursor_mock`` exposes it.
    """
    conn = MagicMock(name="conn")
    cur = MagicMock(name="cursor")
    cur.__enter__.return_value = cur
    cur.__exit__.return_value = False
    conn.cursor.return_value = cur
    conn.cursor_mock = cur

    state: dict[str, Any] = {"last_sql": ""}

    def _execute(sql: Any, params: Any = None) -> None:
        text = str(sql)
        state["last_sql"] = text
        if fail_on is not None and fail_on in text:
            raise error or RuntimeError("execute failed")
        if "EXPLAIN" in text:
            cur.description = [SimpleNamespace(name="QUERY PLAN")]
        else:
            cur.description = [SimpleNamespace(name=c) for c in columns]

    def _fetchall() -> list[Any]:
        if "EXPLAIN" in state["last_sql"]:
            return list(explain_rows)
        return list(rows)

    cur.execute.side_effect = _execute
    cur.fetchall.side_effect = _fetchall
    return conn


def executed_sql(conn: MagicMock) -> list[str]:
    """SQL strings passed to the cursor, in order."""
    return [str(c.args[0]) for c in conn.cursor_mock.execute.call_args_list]
