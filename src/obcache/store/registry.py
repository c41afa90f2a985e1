"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: store/registry.py.
"""

from __future__ import annotations

from collections.abc import Callable
from threading import Lock
from typing import TYPE_CHECKING, Any

from ..errors import StoreBackendError
from .base import StoreAdapter
from .memory import LocalBoundedStore

if TYPE_CHECKING:
    from ..settings import CacheOptions

StoreFactory = Callable[["CacheOptions"], StoreAdapter]

_REGISTRY: dict[str, StoreFactory] = {}
_LOCK = Lock()


def register_store_backend(
    name: str,
    factory: StoreFactory,
    *,
    overwrite: bool = False,
) -> None:
    """Register one store factory under `name`."""
    key = name.strip().lower()
    if not key:
        raise StoreBackendError("Store backend name must be non-empty")

    with _LOCK:
        if key in _REGISTRY and not overwrite:
            raise StoreBackendError(f"Store backend already registered: {key}")
        _REGISTRY[key] = factory


def create_store(options: "CacheOptions") -> StoreAdapter:
    """Build the store selected by `options.store`."""
    key = options.store.strip().lower()
    with _LOCK:
        factory = _REGISTRY.get(key)
    if factory is None:
        raise StoreBackendError(f"Unknown store backend '{options.store}'")
    return factory(options)


def list_store_backends() -> list[str]:
    """List registered store backend names."""
    with _LOCK:
        return sorted(_REGISTRY.keys())


def _local_store(options: "CacheOptions") -> StoreAdapter:
    return LocalBoundedStore(max_size=options.max_size, max_age_s=options.max_age_s)


def _redis_store(options: "CacheOptions") -> StoreAdapter:
    from .redis import RedisStore

    client = options.redis_client
    if client is None:
        client = redis_client_from_url(options.redis_url or "redis://localhost:6379/0")
    return RedisStore(client, prefix=options.redis_prefix, ttl_s=options.redis_ttl_s)


def redis_client_from_url(url: str) -> Any:
    """Build a ``redis.asyncio.Redis`` client for `url`."""
    try:
        import redis.asyncio as redis
    except ModuleNotFoundError as exc:  # pragma: no cover
        raise RuntimeError(
            "Redis store backend requires `redis` to be installed."
        ) from exc
    return redis.Redis.from_url(url)


for _name in ("memory", "lru", "inmemory", "in_memory", "local"):
    register_store_backend(_name, _local_store)
register_store_backend("redis", _redis_store)
