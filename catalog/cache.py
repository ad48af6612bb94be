"""
Read-through cache for catalog snapshots.

``CacheManager`` is the facade the service layer talks to.  It stores
JSON-serialised snapshots in a pluggable ``CacheBackend``:

- ``RedisCacheBackend``: production backend (redis-py asyncio client).
- ``InMemoryCacheBackend``: process-local dict with per-key expiry, used by
  the test suite and for single-process development.

With no backend attached the manager is disabled: reads miss and writes
are skipped, so every request goes to the database.  Once a backend is
attached its errors are not caught here.
"""
import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable

import redis.asyncio as redis

from catalog.config import settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------

class CacheBackend(ABC):
    """Minimal key/value contract used by ``CacheManager``."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        ...

    @abstractmethod
    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        ...

    @abstractmethod
    async def delete(self, *keys: str) -> int:
        """Remove *keys*; return how many existed."""

    async def close(self) -> None:
        return None


class RedisCacheBackend(CacheBackend):
    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCacheBackend":
        return cls(
            redis.from_url(
                url,
                decode_responses=True,
                socket_connect_timeout=2,
                socket_timeout=2,
            )
        )

    async def ping(self) -> bool:
        return await self._client.ping()

    async def get(self, key: str) -> str | None:
        return await self._client.get(key)

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        await self._client.set(key, value, ex=ttl)

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return await self._client.delete(*keys)

    async def close(self) -> None:
        await self._client.aclose()


class InMemoryCacheBackend(CacheBackend):
    """Dict-backed store; expired entries are dropped lazily on read."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._data: dict[str, tuple[str, float | None]] = {}

    async def get(self, key: str) -> str | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            return None
        return value

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        expires_at = self._clock() + ttl if ttl is not None else None
        self._data[key] = (value, expires_at)

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self._data.pop(key, None) is not None:
                removed += 1
        return removed

    async def close(self) -> None:
        self._data.clear()


# ---------------------------------------------------------------------------
# Facade
# ---------------------------------------------------------------------------

class CacheManager:
    def __init__(self, backend: CacheBackend | None = None) -> None:
        self._backend = backend
        self._hits: int = 0
        self._misses: int = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self, kind: str | None = None) -> None:
        """
        Attach the backend named by *kind* (defaults to
        ``settings.CACHE_BACKEND``).  Called once at application startup.

        An unreachable Redis leaves the cache disabled rather than failing
        startup.
        """
        kind = (kind or settings.CACHE_BACKEND).lower()
        if kind == "memory":
            self._backend = InMemoryCacheBackend()
            logger.info("Using in-memory cache")
        elif kind == "redis":
            backend = RedisCacheBackend.from_url(settings.REDIS_URL)
            try:
                await backend.ping()
            except redis.RedisError as exc:
                logger.warning("Redis ping failed, cache disabled: %s", exc)
                await backend.close()
                return
            self._backend = backend
            logger.info("Redis connected: %s", settings.REDIS_URL)
        else:
            logger.info("Cache disabled (CACHE_BACKEND=%s)", kind)

    async def disconnect(self) -> None:
        """Release the backend.  Called once at application shutdown."""
        if self._backend is not None:
            await self._backend.close()
            self._backend = None

    def use(self, backend: CacheBackend | None) -> None:
        """Swap the backend in place and reset the counters."""
        self._backend = backend
        self._hits = 0
        self._misses = 0

    @property
    def enabled(self) -> bool:
        return self._backend is not None

    # ------------------------------------------------------------------
    # Core cache operations
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Any:
        """Return the decoded value for *key*, or None on a miss."""
        if self._backend is None:
            self._misses += 1
            return None
        data = await self._backend.get(key)
        if data is None:
            self._misses += 1
            logger.debug("Cache MISS key=%r", key)
            return None
        self._hits += 1
        logger.debug("Cache HIT key=%r", key)
        return json.loads(data)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store *value* under *key* with an optional TTL in seconds."""
        if self._backend is None:
            return
        await self._backend.set(key, json.dumps(value, default=str), ttl)

    async def remember(
        self,
        key: str,
        ttl: int,
        loader: Callable[[], Awaitable[Any]],
    ) -> Any:
        """
        Return the snapshot under *key*, calling *loader* on a miss and
        storing its result for *ttl* seconds.

        A ``None`` result is returned but not stored, so an entity created
        after a failed lookup is visible on the next read.
        """
        cached = await self.get(key)
        if cached is not None:
            return cached
        value = await loader()
        if value is not None:
            await self.set(key, value, ttl=ttl)
        return value

    async def forget(self, *keys: str) -> None:
        """Invalidate *keys* synchronously."""
        if self._backend is None or not keys:
            return
        removed = await self._backend.delete(*keys)
        logger.debug("Cache invalidated %d of %d key(s): %s", removed, len(keys), keys)

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    @property
    def stats(self) -> dict:
        """Return a snapshot of hit/miss counters for the metrics endpoint."""
        total = self._hits + self._misses
        return {
            "backend": type(self._backend).__name__ if self._backend else None,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
        }


# Default instance handed out by ``catalog.dependencies.get_cache``.
cache = CacheManager()
