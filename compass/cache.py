"""Advisory key/value cache used by the matching and strategy engines.

Three backends share the same async ``get / setex / delete`` surface:

- ``NullCache``: never stores anything (engine behaves as uncached).
- ``MemoryCache``: in-process dict with per-key expiry, the default.
- ``RedisCache``: ``redis.asyncio`` client, enabled by ``REDIS_URL``.

Engines never call a backend directly; they go through ``read_json`` /
``write_json`` / ``invalidate`` which swallow and log backend failures so a
broken cache can never fail a computation.
"""
from __future__ import annotations

import json
import logging
import time
from typing import Any, Protocol

import redis.asyncio as redis

from compass.config import Settings, get_settings

log = logging.getLogger(__name__)


class Cache(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def setex(self, key: str, ttl: int, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...


class NullCache:
    async def get(self, key: str) -> str | None:
        return None

    async def setex(self, key: str, ttl: int, value: str) -> None:
        return None

    async def delete(self, key: str) -> None:
        return None


class MemoryCache:
    """Process-local cache with per-key TTL (seconds)."""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._store: dict[str, tuple[float, str]] = {}

    async def get(self, key: str) -> str | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            self._store.pop(key, None)
            return None
        return value

    async def setex(self, key: str, ttl: int, value: str) -> None:
        now = self._clock()
        self._purge_expired(now)
        self._store[key] = (now + ttl, value)

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def _purge_expired(self, now: float) -> None:
        expired = [k for k, (expires_at, _) in self._store.items() if now >= expires_at]
        for key in expired:
            del self._store[key]

    def __len__(self) -> int:
        return len(self._store)


class RedisCache:
    def __init__(self, url: str, client: redis.Redis | None = None):
        self.url = url
        self._client = client

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.from_url(self.url, encoding="utf-8", decode_responses=True)
        return self._client

    async def get(self, key: str) -> str | None:
        return await self.client.get(key)

    async def setex(self, key: str, ttl: int, value: str) -> None:
        await self.client.setex(key, ttl, value)

    async def delete(self, key: str) -> None:
        await self.client.delete(key)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def build_cache(settings: Settings | None = None) -> Cache:
    """Pick a cache backend from settings."""
    settings = settings or get_settings()
    if settings.cache_disabled:
        return NullCache()
    if settings.redis_url:
        return RedisCache(settings.redis_url)
    return MemoryCache()


# ---------------------------------------------------------------------------
# Failure-tolerant helpers
# ---------------------------------------------------------------------------


async def read_json(cache: Cache | None, key: str) -> Any | None:
    if cache is None:
        return None
    try:
        raw = await cache.get(key)
    except Exception as exc:
        log.warning("Cache read failed for %s: %s", key, exc)
        return None
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        log.warning("Discarding unparseable cache entry %s", key)
        return None


async def write_json(cache: Cache | None, key: str, ttl: int, payload: Any) -> bool:
    if cache is None:
        return False
    try:
        await cache.setex(key, ttl, json.dumps(payload, default=str))
    except Exception as exc:
        log.warning("Cache write failed for %s: %s", key, exc)
        return False
    return True


async def invalidate(cache: Cache | None, key: str) -> bool:
    if cache is None:
        return False
    try:
        await cache.delete(key)
    except Exception as exc:
        log.warning("Cache delete failed for %s: %s", key, exc)
        return False
    return True
