"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Cache-aware wrappers produced by ``Cache.wrap``.

Every invocation follows the same protocol: derive the key, check the reset
schedule, look the key up, then either deliver the cached value (hit) or run the
original function and write its result back in the background (miss).
Concurrent misses for one key are not de-duplicated; the last write wins.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

from .errors import CacheExemptError, InvalidArgumentError
from .keys import generate_key

if TYPE_CHECKING:
    from .cache import Cache

logger = logging.getLogger("obcache.wrapped")

Callback = Callable[[BaseException | None, Any], Any]


class CachedHandle:
    """Opaque handle shared by every wrapper a cache instance hands out."""

    def __init__(self, cache: "Cache", fn: Callable[..., Any], name: str) -> None:
        self._cache = cache
        self._fn = fn
        self._name = name
        self.__doc__ = getattr(fn, "__doc__", None)

    @property
    def name(self) -> str:
        """Immutable name token; the namespace root of every key of this function."""
        return self._name

    @property
    def cache(self) -> "Cache":
        return self._cache

    @property
    def original(self) -> Callable[..., Any]:
        return self._fn

    def key(self, args: Sequence[Any]) -> str:
        return generate_key(self._name, args)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._name}>"


class CachedFunction(CachedHandle):
    """
    Wrapper for callback-style functions ``fn(*args, callback)``.

    The wrapper takes the same positional arguments plus a trailing
    ``callback(error, result)`` and must be called with an event loop running.
    """

    def __call__(self, *args: Any) -> None:
        if not args or not callable(args[-1]):
            raise InvalidArgumentError(
                f"last argument to {self._name} should be a callable"
            )
        asyncio.get_running_loop()  # raises when no loop is running
        call_args = args[:-1]
        callback: Callback = args[-1]
        key = self.key(call_args)
        reset_task = self._cache._check_reset()
        logger.debug("fetching from cache %s", key)
        self._cache._spawn(self._run, key, call_args, callback, reset_task)

    async def _run(
        self,
        key: str,
        args: tuple[Any, ...],
        callback: Callback,
        reset_task: asyncio.Task[None] | None,
    ) -> None:
        if reset_task is not None:
            await reset_task
        lookup = await self._cache._lookup(key)
        if lookup.present:
            logger.debug("cache hit %s", key)
            self._cache._stats.record_hit()
            asyncio.get_running_loop().call_soon(callback, None, lookup.value)
            return

        logger.debug("cache miss %s", key)
        self._cache._stats.record_miss()
        done = _Completion(self, key, callback)
        try:
            self._fn(*args, done)
        except Exception as exc:
            if done.called:
                raise
            done(exc, None)


class _Completion:
    """Completion handed to the original function on a miss."""

    def __init__(self, owner: CachedFunction, key: str, callback: Callback) -> None:
        self._owner = owner
        self._key = key
        self._callback = callback
        self.called = False

    def __call__(self, error: BaseException | None = None, result: Any = None) -> None:
        if self.called:
            logger.warning(
                "completion of %s called more than once, ignoring", self._owner.name
            )
            return
        self.called = True

        if error is None:
            logger.debug("saving key %s", self._key)
            self._owner.cache._save(self._key, result)
        elif isinstance(error, CacheExemptError):
            # Exempt results are reported as successes and never written.
            logger.debug("skipping cache for %s, overwriting error", self._key)
            error = None
        self._callback(error, result)


class CachedCoroutineFunction(CachedHandle):
    """
    Wrapper for coroutine functions.

    Calling it derives the key immediately, so unusable arguments fail at call
    time; awaiting the result checks the reset schedule and performs the
    lookup. An original raising ``CacheExemptError`` yields the error's
    ``result`` without caching it.
    """

    def __call__(self, *args: Any) -> Any:
        key = self.key(args)
        logger.debug("fetching from cache %s", key)
        return self._run(key, args)

    async def _run(self, key: str, args: tuple[Any, ...]) -> Any:
        reset_task = self._cache._check_reset()
        if reset_task is not None:
            await reset_task
        lookup = await self._cache._lookup(key)
        if lookup.present:
            logger.debug("cache hit %s", key)
            self._cache._stats.record_hit()
            return lookup.value

        logger.debug("cache miss %s", key)
        self._cache._stats.record_miss()
        try:
            result = await self._fn(*args)
        except CacheExemptError as exc:
            logger.debug("skipping cache for %s, returning exempt result", key)
            return exc.result
        logger.debug("saving key %s", key)
        self._cache._save(key, result)
        return result
