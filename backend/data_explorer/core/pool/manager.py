"""
Connection pool for the target database.

Explorer requests each check out one connection for the whole request (schema
version lookup, introspection, the run itself). Idle connections are kept up
to EXTERNAL_DB_POOL_SIZE; on checkout they are discarded when older than
EXTERNAL_DB_POOL_MAX_AGE_SEC, pinged when they sat idle for a while, and
rolled back so no transaction survives between requests.
"""

import logging
import threading
import time
from collections import deque
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

import psycopg

from data_explorer.core.config import settings

from .connect import connect

_log = logging.getLogger(__name__)

_PING_AFTER_IDLE_SEC = 30.0


@dataclass
class _Idle:
    conn: Any
    opened_at: float
    idle_since: float


class PoolManager:
    """Pool of psycopg connections to a single conninfo."""

    def __init__(self, conninfo: str | None = None) -> None:
        self._conninfo = conninfo or settings.explorer_conninfo
        self._max_idle: int = settings.EXTERNAL_DB_POOL_SIZE
        self._max_age: float = float(settings.EXTERNAL_DB_POOL_MAX_AGE_SEC)
        self._idle: deque[_Idle] = deque()
        self._opened_at: dict[int, float] = {}
        self._in_use = 0
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Checkout / return
    # ------------------------------------------------------------------

    def get_connection(self) -> Any:
        """Check out a usable connection, reusing an idle one when possible."""
        while True:
            entry = self._take_idle()
            if entry is None:
                break
            if self._usable(entry):
                self._mark_checked_out(entry.conn, entry.opened_at)
                return entry.conn
            self._discard(entry.conn)

        _log.debug("Opening new target database connection")
        conn = connect(self._conninfo)
        self._mark_checked_out(conn, time.monotonic())
        return conn

    def release(self, conn: Any) -> None:
        """Give a connection back; it is pooled if there is room, closed otherwise."""
        with self._lock:
            self._in_use = max(self._in_use - 1, 0)
            opened_at = self._opened_at.pop(id(conn), time.monotonic())
        try:
            conn.rollback()
        except psycopg.Error as e:
            _log.debug("Dropping connection that failed to roll back: %s", e)
            self._discard(conn)
            return

        with self._lock:
            if len(self._idle) < self._max_idle:
                self._idle.append(_Idle(conn, opened_at, time.monotonic()))
                return
        self._discard(conn)

    @contextmanager
    def connection(self) -> Iterator[Any]:
        conn = self.get_connection()
        try:
            yield conn
        finally:
            self.release(conn)

    def dispose(self) -> None:
        """Close every idle connection. Checked-out connections close on release."""
        with self._lock:
            idle = list(self._idle)
            self._idle.clear()
        for entry in idle:
            self._discard(entry.conn)
        if idle:
            _log.info("Closed %d pooled target database connections", len(idle))

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {"idle_connections": len(self._idle), "in_use": self._in_use}

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _take_idle(self) -> _Idle | None:
        with self._lock:
            return self._idle.pop() if self._idle else None

    def _mark_checked_out(self, conn: Any, opened_at: float) -> None:
        with self._lock:
            self._in_use += 1
            self._opened_at[id(conn)] = opened_at

    def _usable(self, entry: _Idle) -> bool:
        now = time.monotonic()
        if now - entry.opened_at > self._max_age:
            return False
        try:
            if now - entry.idle_since > _PING_AFTER_IDLE_SEC:
                with entry.conn.cursor() as cur:
                    cur.execute("SELECT 1")
            entry.conn.rollback()
        except psycopg.Error:
            return False
        return True

    @staticmethod
    def _discard(conn: Any) -> None:
        try:
            conn.close()
        except psycopg.Error as e:
            _log.debug("Error closing connection: %s", e)


_pool_manager: PoolManager | None = None
_pool_lock = threading.Lock()


def get_pool_manager() -> PoolManager:
    """Process-wide PoolManager for ``settings.explorer_conninfo``."""
    global _pool_manager
    if _pool_manager is None:
        with _pool_lock:
            if _pool_manager is None:
                _pool_manager = PoolManager()
    return _pool_manager
