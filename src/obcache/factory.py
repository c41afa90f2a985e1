"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Factory helpers for building cache instances from options or the environment.
"""

from __future__ import annotations

from typing import Any

from .cache import Cache
from .settings import CacheOptions


def create_cache(options: CacheOptions | None = None, **overrides: Any) -> Cache:
    """
    Create a cache instance.

    Args:
        options: Base options. Defaults to a local bounded store.
        **overrides: `CacheOptions` fields replacing those of `options`.
    """
    resolved = (options or CacheOptions()).with_overrides(**overrides)
    return Cache(resolved)


def create_cache_from_env(*, redis_client: Any | None = None) -> Cache:
    """
    Create a cache instance from `OBCACHE_*` environment variables.

    Backends:
    - `memory` (default)
    - `redis`

    Uses the provided `redis_client` when supplied instead of building one from
    the configured URL.
    """
    options = CacheOptions.from_env()
    if redis_client is not None:
        options = options.with_overrides(redis_client=redis_client)
    return Cache(options)
