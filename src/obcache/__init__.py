"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

obcache turns asynchronous functions into cache-aware versions of themselves.
"""

from .cache import Cache
from .errors import (
    CacheExemptError,
    InvalidArgumentError,
    KeyGenerationError,
    ObcacheError,
    StoreBackendError,
)
from .factory import create_cache, create_cache_from_env
from .keys import generate_key
from .settings import CacheOptions, ResetOptions
from .stats import StatsSnapshot
from .store import (
    LocalBoundedStore,
    RedisStore,
    StoreAdapter,
    StoreLookup,
    create_store,
    list_store_backends,
    register_store_backend,
)
from .wrapped import CachedCoroutineFunction, CachedFunction, CachedHandle

__all__ = [
    "Cache",
    "CacheOptions",
    "ResetOptions",
    "StatsSnapshot",
    "CachedHandle",
    "CachedFunction",
    "CachedCoroutineFunction",
    "generate_key",
    "create_cache",
    "create_cache_from_env",
    "StoreAdapter",
    "StoreLookup",
    "LocalBoundedStore",
    "RedisStore",
    "create_store",
    "list_store_backends",
    "register_store_backend",
    "ObcacheError",
    "InvalidArgumentError",
    "KeyGenerationError",
    "CacheExemptError",
    "StoreBackendError",
]
