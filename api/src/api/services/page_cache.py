"""Redis-backed JSON cache for public content, keyed by site path."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import Any

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "pagecache:"


def cache_key(path: str) -> str:
    return f"{CACHE_KEY_PREFIX}{path}"


class PageCache:
    """Cached payloads for the site paths the CMS webhook revalidates.

    Redis failures never fail a request: reads degrade to misses and
    writes are dropped with a warning.
    """

    def __init__(self, redis_client: Any, *, ttl_seconds: int = 3600) -> None:
        self._redis = redis_client
        self._ttl = max(1, int(ttl_seconds))

    @classmethod
    def from_url(cls, redis_url: str, *, ttl_seconds: int = 3600) -> PageCache:
        return cls(aioredis.from_url(redis_url), ttl_seconds=ttl_seconds)

    async def get(self, path: str) -> Any | None:
        try:
            cached = await self._redis.get(cache_key(path))
        except Exception as e:
            logger.warning("Page cache read failed for %s: %s", path, e)
            return None
        if not cached:
            return None
        try:
            return json.loads(cached)
        except ValueError:
            logger.warning("Discarding undecodable page cache entry for %s", path)
            return None

    async def set(self, path: str, payload: Any) -> None:
        try:
            await self._redis.set(cache_key(path), json.dumps(payload), ex=self._ttl)
        except Exception as e:
            logger.warning("Page cache write failed for %s: %s", path, e)

    async def invalidate(self, paths: Iterable[str]) -> list[str]:
        """Drop the cached entries for ``paths`` and return them in order.

        Unlike reads and writes, a failed delete propagates to the caller.
        """
        ordered = list(dict.fromkeys(paths))
        if not ordered:
            return []
        await self._redis.delete(*(cache_key(path) for path in ordered))
        logger.info("Invalidated cached paths: %s", ", ".join(ordered))
        return ordered

    async def aclose(self) -> None:
        await self._redis.aclose()
