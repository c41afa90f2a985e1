"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Defines the error taxonomy shared by the cache engine and its stores.
"""

from __future__ import annotations

from typing import Any


class ObcacheError(Exception):
    """Base class for every error raised by obcache."""


class InvalidArgumentError(ObcacheError, TypeError):
    """Raised synchronously when a caller misuses the cache API."""


class KeyGenerationError(ObcacheError, ValueError):
    """Raised when call arguments cannot be turned into a stable cache key."""


class StoreBackendError(ObcacheError, RuntimeError):
    """Raised when store backend registration or resolution fails."""


class CacheExemptError(ObcacheError):
    """
    Marker error meaning "report success, but do not cache this result".

    Callback-style functions pass it as the error argument next to the result
    they want delivered. Coroutine functions raise it with ``result=`` set.
    The engine strips it before the caller sees anything.
    """

    def __init__(self, message: str = "", *, result: Any = None) -> None:
        super().__init__(message)
        self.result = result
