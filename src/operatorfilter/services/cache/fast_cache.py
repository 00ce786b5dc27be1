"""Fast key/value cache with expiry in front of the durable store.

Two backends share the ``FastCache`` protocol:
- ``RedisFastCache`` for deployments with a shared Redis
- ``MemoryFastCache`` (cachetools) for single-process deployments

Both treat backend failures as a miss on read and a no-op on write.
"""

import time
from collections.abc import Callable
from typing import Any, Protocol

import redis.asyncio as redis
import structlog
from cachetools import TLRUCache
from redis.exceptions import RedisError

from operatorfilter.config.settings import get_settings
from operatorfilter.constants.filter import MEMORY_CACHE_MAX_SIZE

log = structlog.get_logger(__name__)


class FastCache(Protocol):
    """Ephemeral string cache with per-key expiry."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def health_check(self) -> dict[str, Any]: ...

    async def close(self) -> None: ...


class RedisFastCache:
    """Redis-backed fast cache.

    Example:
        cache = RedisFastCache("redis://localhost:6379/0")
        await cache.set("blacklist:0xabc...", "[]", ttl_seconds=86400)
    """

    def __init__(self, url: str) -> None:
        self._url = url
        self._redis: redis.Redis = redis.from_url(url, decode_responses=True)

    async def get(self, key: str) -> str | None:
        try:
            value: str | None = await self._redis.get(key)
            return value
        except RedisError as e:
            log.warning("fast_cache_unavailable", op="get", key=key, error=str(e))
            return None

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._redis.set(key, value, ex=ttl_seconds)
        except RedisError as e:
            log.warning("fast_cache_unavailable", op="set", key=key, error=str(e))

    async def delete(self, key: str) -> None:
        try:
            await self._redis.delete(key)
        except RedisError as e:
            log.warning("fast_cache_unavailable", op="delete", key=key, error=str(e))

    async def health_check(self) -> dict[str, Any]:
        try:
            await self._redis.ping()
            return {"backend": "redis", "status": "connected", "healthy": True}
        except RedisError as e:
            log.error("fast_cache_health_check_failed", error=str(e))
            return {"backend": "redis", "status": "error", "healthy": False, "error": str(e)}

    async def close(self) -> None:
        await self._redis.aclose()
        log.info("fast_cache_closed", backend="redis")


def _expires_at(_key: str, value: tuple[str, int], now: float) -> float:
    return now + value[1]


class MemoryFastCache:
    """In-process fast cache with per-entry expiry.

    Entries are stored as ``(value, ttl_seconds)`` so ``TLRUCache`` can
    compute each entry's expiry.
    """

    def __init__(
        self,
        max_size: int = MEMORY_CACHE_MAX_SIZE,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cache: TLRUCache = TLRUCache(maxsize=max_size, ttu=_expires_at, timer=timer)

    async def get(self, key: str) -> str | None:
        entry = self._cache.get(key)
        return entry[0] if entry is not None else None

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._cache[key] = (value, ttl_seconds)

    async def delete(self, key: str) -> None:
        self._cache.pop(key, None)

    async def health_check(self) -> dict[str, Any]:
        return {
            "backend": "memory",
            "status": "connected",
            "healthy": True,
            "size": len(self._cache),
        }

    async def close(self) -> None:
        self._cache.clear()


# Singleton instance
_fast_cache: FastCache | None = None


async def get_fast_cache() -> FastCache:
    """Get or create the fast cache singleton for the configured backend."""
    global _fast_cache
    if _fast_cache is None:
        settings = get_settings()
        if settings.redis_url:
            _fast_cache = RedisFastCache(settings.redis_url)
        else:
            _fast_cache = MemoryFastCache()
        log.info("fast_cache_initialized", backend="redis" if settings.redis_url else "memory")
    return _fast_cache


async def close_fast_cache() -> None:
    """Close and clear the fast cache singleton."""
    global _fast_cache
    if _fast_cache is not None:
        await _fast_cache.close()
        _fast_cache = None
