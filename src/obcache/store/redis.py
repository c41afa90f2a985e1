"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Redis-backed cache store.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from .base import MISS, StoreLookup

logger = logging.getLogger("obcache.store.redis")


class RedisStore:
    """
    Redis-backed store for caches shared across processes.

    Keys are written as ``{prefix}:{key}`` and values are JSON encoded. The
    store namespace is its prefix: ``reset()`` removes only keys under that
    prefix, so two caches configured with the same prefix share (and clear)
    one keyspace. Identically named wrapped functions in those caches collide.

    Every client call is contained: failures are logged and degrade to a miss
    for reads and to a no-op for writes.

    Args:
        redis: A ``redis.asyncio.Redis`` client instance.
        prefix: Key prefix for namespacing.
        ttl_s: Optional expiry applied to every write.
        scan_count: ``SCAN`` batch hint used by ``reset`` and ``keycount``.
    """

    backend_id = "redis"

    def __init__(
        self,
        redis: Any,
        *,
        prefix: str = "obcache",
        ttl_s: float | None = None,
        scan_count: int = 500,
    ) -> None:
        if not prefix:
            raise ValueError("prefix must be non-empty")
        if ttl_s is not None and ttl_s <= 0:
            raise ValueError("ttl_s must be > 0 when set")
        self._redis = redis
        self._prefix = prefix
        self._ttl_s = ttl_s
        self._scan_count = scan_count

    @property
    def prefix(self) -> str:
        return self._prefix

    def _key(self, key: str) -> str:
        """Redis key storing one cache entry."""
        return f"{self._prefix}:{key}"

    def _pattern(self) -> str:
        """Glob matching every key owned by this store."""
        return f"{self._prefix}:*"

    async def get(self, key: str) -> StoreLookup:
        try:
            blob = await self._redis.get(self._key(key))
        except Exception as exc:
            logger.warning("redis get failed for %s: %s", key, exc)
            return MISS
        if blob is None:
            return MISS
        if isinstance(blob, bytes):
            blob = blob.decode("utf-8")
        try:
            return StoreLookup(json.loads(blob), True)
        except ValueError:
            logger.warning("discarding undecodable redis entry %s", key)
            return MISS

    async def set(self, key: str, value: Any) -> None:
        try:
            payload = json.dumps(value, ensure_ascii=True)
        except (TypeError, ValueError) as exc:
            logger.warning("not caching %s, value is not JSON serializable: %s", key, exc)
            return
        if json.loads(payload) != value:
            logger.warning(
                "not caching %s, value does not survive a JSON round trip", key
            )
            return
        try:
            if self._ttl_s is None:
                await self._redis.set(self._key(key), payload)
            else:
                await self._redis.setex(
                    self._key(key), int(max(1, self._ttl_s)), payload
                )
        except Exception as exc:
            logger.warning("redis set failed for %s: %s", key, exc)

    async def expire(self, key: str) -> None:
        try:
            await self._redis.delete(self._key(key))
        except Exception as exc:
            logger.warning("redis delete failed for %s: %s", key, exc)

    async def reset(self) -> None:
        removed = 0
        try:
            batch: list[Any] = []
            async for name in self._redis.scan_iter(
                match=self._pattern(), count=self._scan_count
            ):
                batch.append(name)
                if len(batch) >= self._scan_count:
                    removed += await self._redis.delete(*batch)
                    batch = []
            if batch:
                removed += await self._redis.delete(*batch)
        except Exception as exc:
            logger.warning("redis reset of %s failed: %s", self._prefix, exc)
            return
        logger.debug("removed %d keys under %s", removed, self._prefix)

    async def keycount(self) -> int:
        count = 0
        try:
            async for _ in self._redis.scan_iter(
                match=self._pattern(), count=self._scan_count
            ):
                count += 1
        except Exception as exc:
            logger.warning("redis keycount of %s failed: %s", self._prefix, exc)
            return 0
        return count

    async def size(self) -> int:
        """Sum of the stored payload lengths under this prefix."""
        total = 0
        try:
            async for name in self._redis.scan_iter(
                match=self._pattern(), count=self._scan_count
            ):
                total += await self._redis.strlen(name)
        except Exception as exc:
            logger.warning("redis size of %s failed: %s", self._prefix, exc)
            return 0
        return total
