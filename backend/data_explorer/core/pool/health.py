"""
Connection health check for the target database.
"""

from typing import Any

import psycopg


def health_check(conn: Any) -> bool:
    """
    Run SELECT 1 and return True if no exception. Always rolls back.
    """
    try:
        with conn.cursor() as cur:
            cur.execute("SELECT 1")
            cur.fetchone()
        return True
    except psycopg.Error:
        return False
    finally:
        try:
            conn.rollback()
        except psycopg.Error:
            pass
