"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: store/memory.py.
"""

from __future__ import annotations

import json
import logging
import time
from threading import Lock
from typing import Any

from cachetools import Cache, LRUCache, TTLCache

from .base import MISS, StoreEntry, StoreLookup

logger = logging.getLogger("obcache.store.memory")


class LocalBoundedStore:
    """
    Process-local bounded store.

    Eviction is delegated to ``cachetools``: an ``LRUCache`` by default, or a
    ``TTLCache`` when ``max_age_s`` is set. Entries do not survive a restart.
    """

    backend_id = "memory"

    def __init__(self, *, max_size: int = 1000, max_age_s: float | None = None) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be > 0")
        if max_age_s is not None and max_age_s <= 0:
            raise ValueError("max_age_s must be > 0 when set")
        self.max_size = max_size
        self.max_age_s = max_age_s
        self._rows: Cache = (
            TTLCache(maxsize=max_size, ttl=max_age_s)
            if max_age_s is not None
            else LRUCache(maxsize=max_size)
        )
        self._lock = Lock()

    async def get(self, key: str) -> StoreLookup:
        with self._lock:
            row = self._rows.get(key)
        if row is None:
            return MISS
        return StoreLookup(row.value, True)

    async def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._rows[key] = StoreEntry(value=value, stored_at_s=time.time())

    async def expire(self, key: str) -> None:
        with self._lock:
            self._rows.pop(key, None)

    async def reset(self) -> None:
        with self._lock:
            self._rows.clear()
        logger.debug("cleared local store")

    async def keycount(self) -> int:
        with self._lock:
            return len(self._rows)

    async def size(self) -> int:
        """Length of the JSON encoding of every cached value."""
        values = self.values()
        return len(json.dumps(values, default=repr))

    def values(self) -> list[Any]:
        """Snapshot of the cached values."""
        with self._lock:
            rows = [self._rows.get(key) for key in list(self._rows)]
        return [row.value for row in rows if row is not None]
