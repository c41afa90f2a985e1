"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Cache instance: owns a store, stats and the reset schedule, and hands out
cache-aware wrappers.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Callable, Coroutine, Sequence
from threading import Lock
from types import MethodType
from typing import Any

from .errors import InvalidArgumentError
from .schedule import ResetSchedule
from .settings import CacheOptions
from .stats import CacheStats, StatsSnapshot
from .store.base import MISS, StoreAdapter, StoreLookup
from .store.registry import create_store
from .wrapped import CachedCoroutineFunction, CachedFunction, CachedHandle

logger = logging.getLogger("obcache")


class Cache:
    """
    One cache instance.

    Every function wrapped by an instance shares its store and its stats.
    Instances are isolated from each other unless they point at the same
    remote namespace, in which case wrapped functions with the same name token
    read and write the same keys.

    Args:
        options: Instance options. Defaults to a local bounded store.
        store: Explicit store adapter; bypasses backend resolution.
        clock: Wall-clock source in epoch seconds, used by the reset schedule.
    """

    def __init__(
        self,
        options: CacheOptions | None = None,
        *,
        store: StoreAdapter | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.options = options or CacheOptions()
        self.store: StoreAdapter = store if store is not None else create_store(self.options)
        self._clock = clock
        self._stats = CacheStats()
        self._schedule = (
            ResetSchedule(self.options.reset, now=clock())
            if self.options.reset is not None
            else None
        )
        self._lock = Lock()
        self._wrap_count = 0
        self._names: set[str] = set()
        self._pending: set[asyncio.Task[Any]] = set()
        logger.debug("created cache with %s store", self.store.backend_id)

    @property
    def stats(self) -> StatsSnapshot:
        """Current hit/miss/reset counters."""
        return self._stats.snapshot()

    @property
    def next_reset_at(self) -> float | None:
        return None if self._schedule is None else self._schedule.next_reset_at

    def wrap(
        self,
        fn: Callable[..., Any],
        receiver: Any = None,
        *,
        name: str | None = None,
    ) -> CachedFunction | CachedCoroutineFunction:
        """
        Build the cache-aware version of `fn`.

        Callback-style functions (last parameter is a ``callback(error, result)``)
        get a ``CachedFunction``; coroutine functions get a
        ``CachedCoroutineFunction``. Usable as a decorator.

        Args:
            fn: Function to wrap.
            receiver: Optional object `fn` is bound to as its first argument.
            name: Explicit name token. Must be unique within this instance.
                Defaults to the function's qualified name plus the instance's
                wrap counter.
        """
        if not callable(fn):
            raise InvalidArgumentError("only callables can be wrapped")
        fname = self._assign_name(fn, name)
        target = MethodType(fn, receiver) if receiver is not None else fn

        logger.debug("wrapping function %s", fname)
        if inspect.iscoroutinefunction(fn):
            return CachedCoroutineFunction(self, target, fname)
        return CachedFunction(self, target, fname)

    def cached(
        self, name: str | None = None
    ) -> Callable[[Callable[..., Any]], CachedFunction | CachedCoroutineFunction]:
        """Decorator form of `wrap` with an explicit name token."""

        def decorate(fn: Callable[..., Any]) -> CachedFunction | CachedCoroutineFunction:
            return self.wrap(fn, name=name)

        return decorate

    def key_for(self, fn: CachedHandle, args: Sequence[Any] = ()) -> str:
        """Return the key this instance derives for calling `fn` with `args`."""
        if not isinstance(fn, CachedHandle) or fn.cache is not self:
            raise InvalidArgumentError("not a function wrapped by this cache")
        if isinstance(args, (str, bytes)) or not isinstance(args, Sequence):
            raise InvalidArgumentError("args must be a sequence of call arguments")
        return fn.key(args)

    def warmup(
        self, fn: CachedHandle, args: Sequence[Any], value: Any
    ) -> asyncio.Task[None]:
        """
        Seed the entry `fn(*args)` would read with `value`.

        Skips the original function and leaves stats untouched. Validation
        errors are raised immediately; the returned task completes once the
        store write has been issued.
        """
        key = self.key_for(fn, args)
        logger.debug("warming up cache for %s with key %s", fn.name, key)
        return self._spawn(self.store.set, key, value)

    def invalidate(
        self, fn: CachedHandle, args: Sequence[Any] = ()
    ) -> asyncio.Task[None]:
        """Remove the entry `fn(*args)` would read. Leaves stats untouched."""
        key = self.key_for(fn, args)
        logger.debug("invalidating cache for %s with key %s", fn.name, key)
        return self._spawn(self.store.expire, key)

    async def drain(self) -> None:
        """Wait for every lookup, write and reset scheduled so far."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _assign_name(self, fn: Callable[..., Any], name: str | None) -> str:
        with self._lock:
            if name is not None:
                if not isinstance(name, str) or not name:
                    raise InvalidArgumentError("name must be a non-empty string")
                if name in self._names:
                    raise InvalidArgumentError(f"name already used in this cache: {name}")
            else:
                base = (
                    getattr(fn, "__qualname__", None)
                    or getattr(fn, "__name__", None)
                    or "_"
                )
                name = f"{base}{self._wrap_count}"
                while name in self._names:
                    self._wrap_count += 1
                    name = f"{base}{self._wrap_count}"
            self._wrap_count += 1
            self._names.add(name)
            return name

    def _check_reset(self) -> asyncio.Task[None] | None:
        """Fire the periodic reset when due; returns the store reset task."""
        if self._schedule is None or not self._schedule.check(self._clock()):
            return None
        self._stats.record_reset()
        logger.debug(
            "resetting cache, next reset at %s", self._schedule.next_reset_at
        )
        return self._spawn(self._reset)

    async def _reset(self) -> None:
        try:
            await self.store.reset()
        except Exception:
            logger.exception("store reset failed, keeping existing entries")

    async def _lookup(self, key: str) -> StoreLookup:
        try:
            return await self.store.get(key)
        except Exception:
            logger.exception("store get failed for %s, treating as miss", key)
            return MISS

    def _save(self, key: str, value: Any) -> None:
        self._spawn(self.store.set, key, value)

    def _spawn(
        self, factory: Callable[..., Coroutine[Any, Any, Any]], *args: Any
    ) -> asyncio.Task[Any]:
        loop = asyncio.get_running_loop()
        task = loop.create_task(factory(*args))
        self._pending.add(task)
        task.add_done_callback(self._forget)
        return task

    def _forget(self, task: asyncio.Task[Any]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("background cache task failed", exc_info=exc)
