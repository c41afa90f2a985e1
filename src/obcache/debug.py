"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Read-only diagnostics over named cache instances.
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Any

from .cache import Cache

logger = logging.getLogger("obcache.debug")

_CACHES: dict[str, Cache] = {}
_LOCK = Lock()


def register(cache: Cache, name: str) -> None:
    """Expose `cache` under `name`; re-registering a name replaces it."""
    key = name.strip()
    if not key:
        raise ValueError("debug name must be non-empty")
    with _LOCK:
        _CACHES[key] = cache
    logger.debug("registered cache %s", key)


def unregister(name: str) -> None:
    with _LOCK:
        _CACHES.pop(name.strip(), None)


def registered() -> list[str]:
    with _LOCK:
        return sorted(_CACHES.keys())


async def describe(cache: Cache) -> dict[str, Any]:
    """Stats and store figures for one cache instance."""
    return {
        "backend": cache.store.backend_id,
        "stats": cache.stats.as_dict(),
        "keycount": await cache.store.keycount(),
        "size": await cache.store.size(),
        "next_reset_at": cache.next_reset_at,
    }


async def snapshot() -> dict[str, dict[str, Any]]:
    """Describe every registered cache instance."""
    with _LOCK:
        caches = dict(_CACHES)
    return {name: await describe(cache) for name, cache in sorted(caches.items())}


def create_debug_router(path: str = "/obcache"):
    """Build an APIRouter serving the registered caches' diagnostics."""
    try:
        from fastapi import APIRouter, HTTPException
    except ImportError:
        raise ImportError(
            "FastAPI is required for the obcache debug router. "
            "Install it with: pip install fastapi"
        )

    router = APIRouter()
    base = "/" + path.strip("/") if path.strip("/") else ""

    @router.get(base or "/")
    async def obcache_snapshot():
        return await snapshot()

    @router.get(f"{base}/{{name}}")
    async def obcache_cache(name: str):
        with _LOCK:
            cache = _CACHES.get(name)
        if cache is None:
            raise HTTPException(status_code=404, detail=f"Unknown cache '{name}'")
        return await describe(cache)

    return router
