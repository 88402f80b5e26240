"""
Connection pool for the target database queries run against.

The target is PostgreSQL, reached with psycopg through a conninfo string
supplied by the host (``EXPLORER_DATABASE_URL``).
"""

from .connect import connect, rows_to_strings
from .health import health_check
from .manager import PoolManager, get_pool_manager

__all__ = [
    "connect",
    "rows_to_strings",
    "health_check",
    "PoolManager",
    "get_pool_manager",
]
