"""
Probes behind /utils/liveness/ and /utils/health-check/.

Both return ``(ok, failures)`` where ``failures`` names the dependencies that
did not answer: "postgres" (template store), "target_db" and "redis".
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from data_explorer.core.config import settings
from data_explorer.core.db import engine
from data_explorer.core.pool import get_pool_manager, health_check
from data_explorer.core.redis_client import ping as redis_ping

logger = logging.getLogger(__name__)


def check_postgres() -> bool:
    """SELECT 1 on the store database."""
    try:
        with Session(engine) as session:
            session.exec(select(1)).first()
    except SQLAlchemyError:
        logger.warning("Store database check failed", exc_info=True)
        return False
    return True


def check_target_db() -> bool:
    """SELECT 1 on a pooled target database connection."""
    try:
        with get_pool_manager().connection() as conn:
            return health_check(conn)
    except Exception:
        logger.warning("Target database check failed", exc_info=True)
        return False


def check_redis() -> bool:
    return redis_ping()


def liveness_check() -> tuple[bool, list[str]]:
    # Nothing to check: answering at all means the event loop is alive.
    return (True, [])


def readiness_check() -> tuple[bool, list[str]]:
    """Every required dependency; Redis only counts when CACHE_ENABLED."""
    checks = [("postgres", check_postgres), ("target_db", check_target_db)]
    if settings.CACHE_ENABLED:
        checks.append(("redis", check_redis))

    failures = [name for name, check in checks if not check()]
    if failures:
        logger.warning("Readiness check failed: %s", ", ".join(failures))
    return (not failures, failures)
