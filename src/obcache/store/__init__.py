"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: store/__init__.py.
"""

from .base import MISS, StoreAdapter, StoreEntry, StoreLookup
from .memory import LocalBoundedStore
from .redis import RedisStore
from .registry import (
    create_store,
    list_store_backends,
    redis_client_from_url,
    register_store_backend,
)

__all__ = [
    "MISS",
    "StoreAdapter",
    "StoreEntry",
    "StoreLookup",
    "LocalBoundedStore",
    "RedisStore",
    "create_store",
    "list_store_backends",
    "redis_client_from_url",
    "register_store_backend",
]
