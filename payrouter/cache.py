"""Shared cache handles for graphs and prices.

The router never owns a process-wide cache: components receive a SharedCache
at construction. Values are JSON strings so the same handle works in-process
and against Redis.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import Protocol

import redis.asyncio as redis
import structlog

logger = structlog.get_logger()


class SharedCache(Protocol):
    """Key/value store with TTL semantics, last write wins."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str, ttl: int) -> None: ...

    async def delete(self, key: str) -> None: ...


class MemoryCache:
    """In-process SharedCache with per-entry expiry.

    Args:
        clock: Source of the current time in seconds (injectable for tests)
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._store: dict[str, tuple[float, str]] = {}
        self.get_calls = 0
        self.set_calls = 0

    async def get(self, key: str) -> str | None:
        self.get_calls += 1
        entry = self._store.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if expires_at > self._clock():
            return value
        del self._store[key]
        return None

    async def set(self, key: str, value: str, ttl: int) -> None:
        self.set_calls += 1
        self._store[key] = (self._clock() + ttl, value)

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def __len__(self) -> int:
        return len(self._store)


class RedisCache:
    """SharedCache backed by Redis (redis.asyncio).

    Args:
        url: Redis connection URL, used when no client is given
        client: Existing redis.asyncio client speaking str values
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None) -> None:
        if client is None:
            if url is None:
                raise ValueError("RedisCache needs a url or a client")
            client = redis.from_url(url, decode_responses=True)
        self._client = client

    async def get(self, key: str) -> str | None:
        value = await self._client.get(key)
        if isinstance(value, bytes):
            return value.decode()
        return value

    async def set(self, key: str, value: str, ttl: int) -> None:
        await self._client.setex(key, ttl, value)

    async def delete(self, key: str) -> None:
        await self._client.delete(key)

    async def close(self) -> None:
        await self._client.aclose()


async def cache_read(cache: SharedCache, key: str, timeout: float) -> str | None:
    """Read a key, treating any cache failure as a miss."""
    try:
        return await asyncio.wait_for(cache.get(key), timeout=timeout)
    except Exception as e:
        logger.warning("cache_read_failed", key=key, error=str(e) or type(e).__name__)
        return None


async def cache_write(cache: SharedCache, key: str, value: str, ttl: int, timeout: float) -> None:
    """Write a key; a failed write is logged and otherwise ignored."""
    try:
        await asyncio.wait_for(cache.set(key, value, ttl), timeout=timeout)
    except Exception as e:
        logger.warning("cache_write_failed", key=key, error=str(e) or type(e).__name__)


__all__ = ["SharedCache", "MemoryCache", "RedisCache", "cache_read", "cache_write"]
