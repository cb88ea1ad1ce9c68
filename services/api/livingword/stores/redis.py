"""Redis store for distributed generation locks.

Verses themselves live in PostgreSQL (the single source of truth). Redis only
holds short-lived locks so that several workers missing the same verse key at
once don't all call the content provider.

If Redis is not initialized, helpers raise RuntimeError and callers proceed
without a lock.
"""

import logging

import redis.asyncio as redis

from livingword.settings import get_settings

# Key prefixes
PREFIX_LOCK = "lock:"

# Redis client (initialized on startup)
_redis: redis.Redis | None = None
logger = logging.getLogger("uvicorn.error")


async def init_redis() -> None:
    """Initialize Redis connection."""
    global _redis
    settings = get_settings()
    _redis = redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
    )
    # Validate connectivity early (especially for `rediss://` in production).
    await _redis.ping()
    logger.info("Redis connected")


async def close_redis() -> None:
    """Close Redis connection."""
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


def _get_redis() -> redis.Redis:
    """Get Redis client instance."""
    if _redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis


# Delete the lock only while it still holds our token.
_RELEASE_IF_OWNER = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


async def acquire_lock(key: str, ttl: int, token: str = "1") -> bool:
    """Acquire a distributed lock.

    Args:
        key: Lock key (e.g., a verse key).
        ttl: Lock timeout in seconds.
        token: Owner value stored in the lock, checked again on release.

    Returns:
        True if lock acquired, False if already locked.
    """
    # SET NX (only if not exists) with TTL
    result = await _get_redis().set(f"{PREFIX_LOCK}{key}", token, nx=True, ex=ttl)
    return result is not None


async def release_lock(key: str, token: str = "1") -> bool:
    """Release a distributed lock if `token` still owns it.

    Returns False when the lock expired and was taken by someone else.
    """
    deleted = await _get_redis().eval(_RELEASE_IF_OWNER, 1, f"{PREFIX_LOCK}{key}", token)
    return bool(deleted)
