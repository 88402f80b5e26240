"""
Connection helpers for the target database.
"""

from typing import Any

import psycopg

from data_explorer.core.config import settings


def connect(conninfo: str | None = None) -> psycopg.Connection:
    """
    Open a connection to the target database.

    - conninfo: libpq connection string or URL; defaults to
      ``settings.explorer_conninfo``.

    The connection is left in non-autocommit mode so every query runs inside
    a transaction the caller controls.
    """
    return psycopg.connect(
        conninfo or settings.explorer_conninfo,
        connect_timeout=settings.EXTERNAL_DB_CONNECT_TIMEOUT,
        autocommit=False,
    )


def set_statement_timeout(cur: Any) -> None:
    """
    Apply EXTERNAL_DB_STATEMENT_TIMEOUT to the current transaction only.

    ``SET LOCAL`` is discarded at transaction end, so nothing leaks into
    pooled connections.
    """
    timeout_sec = settings.EXTERNAL_DB_STATEMENT_TIMEOUT
    if timeout_sec is None or timeout_sec <= 0:
        return
    cur.execute(f"SET LOCAL statement_timeout = {int(timeout_sec * 1000)}")


def rows_to_strings(rows: list[tuple[Any, ...]]) -> list[list[str | None]]:
    """Render every value as text; SQL NULL stays ``None``."""
    return [[None if v is None else str(v) for v in row] for row in rows]
