"""
Shared Redis client for the query-id allocation lock and readiness checks.

All Redis access goes through this module so there is exactly one client
per process.
"""

import logging
import threading

import redis

from data_explorer.core.config import settings

_LOG = logging.getLogger(__name__)

_lock = threading.Lock()
_client: "redis.Redis | None" = None
_tried = False


def get_redis() -> "redis.Redis | None":
    """Return the shared Redis client.

    Returns ``None`` when ``CACHE_ENABLED`` is ``False`` or the initial ping
    fails; callers fall back to in-process locking.
    """
    global _client, _tried
    if _tried:
        return _client
    with _lock:
        if _tried:
            return _client
        _tried = True
        _client = _create_client()
        return _client


def _create_client() -> "redis.Redis | None":
    if not settings.CACHE_ENABLED:
        return None
    try:
        r = redis.Redis.from_url(settings.redis_url, decode_responses=True)
        r.ping()
        return r
    except redis.RedisError as e:
        _LOG.debug("Redis unavailable: %s", e)
        return None


def reset() -> None:
    """Forget the cached client so the next call reconnects."""
    global _client, _tried
    with _lock:
        _client = None
        _tried = False


def ping() -> bool:
    """Quick health check: True if Redis answers PING."""
    client = _client if _tried else _create_client()
    if client is None:
        return False
    try:
        return bool(client.ping())
    except redis.RedisError:
        return False
