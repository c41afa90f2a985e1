from __future__ import annotations

import asyncio

import pytest

from obcache import (
    Cache,
    CacheExemptError,
    CacheOptions,
    CachedFunction,
    InvalidArgumentError,
    KeyGenerationError,
    LocalBoundedStore,
    ResetOptions,
)


def run_async(coro):
    return asyncio.run(coro)


def _adder(calls: list[tuple[int, int]]):
    def add(a, b, callback):
        calls.append((a, b))
        callback(None, a + b)

    return add


def call(fn, *args) -> asyncio.Future:
    future = asyncio.get_running_loop().create_future()
    fn(*args, lambda err, res: future.set_result((err, res)))
    return future


class _SpyStore(LocalBoundedStore):
    def __init__(self) -> None:
        super().__init__(max_size=100)
        self.gets: list[str] = []

    async def get(self, key):
        self.gets.append(key)
        return await super().get(key)


def test_miss_executes_original_once_and_populates_store():
    async def scenario() -> None:
        cache = Cache()
        calls: list[tuple[int, int]] = []
        add = cache.wrap(_adder(calls))

        err, res = await call(add, 2, 3)
        await cache.drain()

        assert (err, res) == (None, 5)
        assert calls == [(2, 3)]
        assert cache.stats.as_dict() == {"hit": 0, "miss": 1, "reset": 0}
        lookup = await cache.store.get(cache.key_for(add, (2, 3)))
        assert lookup.present
        assert lookup.value == 5

    run_async(scenario())


def test_hit_serves_stored_value_without_running_original():
    async def scenario() -> None:
        cache = Cache()
        calls: list[tuple[int, int]] = []
        add = cache.wrap(_adder(calls))

        await call(add, 2, 3)
        await cache.drain()
        err, res = await call(add, 2, 3)

        assert (err, res) == (None, 5)
        assert calls == [(2, 3)]
        assert cache.stats.hit == 1
        assert cache.stats.miss == 1

    run_async(scenario())


def test_hit_is_never_delivered_on_the_callers_turn():
    async def scenario() -> None:
        cache = Cache()
        add = cache.wrap(_adder([]))
        await cache.warmup(add, (1, 1), 2)

        delivered: list[object] = []
        add(1, 1, lambda err, res: delivered.append(res))
        assert delivered == []

        await cache.drain()
        assert delivered == [2]
        assert cache.stats.hit == 1

    run_async(scenario())


def test_cached_none_result_is_a_hit():
    async def scenario() -> None:
        cache = Cache()
        calls: list[str] = []

        def lookup(name, callback):
            calls.append(name)
            callback(None, None)

        cached = cache.wrap(lookup)
        await call(cached, "missing")
        await cache.drain()
        assert await call(cached, "missing") == (None, None)
        assert calls == ["missing"]
        assert cache.stats.hit == 1

    run_async(scenario())


def test_cache_exempt_error_is_reported_as_success_and_not_stored():
    async def scenario() -> None:
        cache = Cache()
        calls: list[str] = []

        def fetch(url, callback):
            calls.append(url)
            callback(CacheExemptError("partial page"), "partial")

        cached = cache.wrap(fetch)
        assert await call(cached, "/a") == (None, "partial")
        await cache.drain()

        assert await cache.store.keycount() == 0
        assert not (await cache.store.get(cache.key_for(cached, ("/a",)))).present

        assert await call(cached, "/a") == (None, "partial")
        assert calls == ["/a", "/a"]
        assert cache.stats.miss == 2

    run_async(scenario())


def test_original_errors_are_forwarded_and_not_cached():
    async def scenario() -> None:
        cache = Cache()
        boom = ValueError("boom")

        def fails(x, callback):
            callback(boom, None)

        cached = cache.wrap(fails)
        err, res = await call(cached, 1)
        await cache.drain()

        assert err is boom
        assert res is None
        assert await cache.store.keycount() == 0

    run_async(scenario())


def test_original_raising_before_completion_is_forwarded():
    async def scenario() -> None:
        cache = Cache()

        def explodes(x, callback):
            raise KeyError(x)

        err, res = await call(cache.wrap(explodes), "k")
        assert isinstance(err, KeyError)
        assert res is None

    run_async(scenario())


def test_completion_called_twice_reaches_caller_once():
    async def scenario() -> None:
        cache = Cache()

        def chatty(x, callback):
            callback(None, x)
            callback(None, x * 2)

        seen: list[object] = []
        cache.wrap(chatty)(4, lambda err, res: seen.append(res))
        await cache.drain()
        assert seen == [4]

    run_async(scenario())


def test_warmup_then_invalidate_round_trip():
    async def scenario() -> None:
        cache = Cache()
        calls: list[tuple[int, int]] = []
        add = cache.wrap(_adder(calls))

        await cache.warmup(add, (1, 2), 99)
        assert cache.stats.as_dict() == {"hit": 0, "miss": 0, "reset": 0}
        assert await call(add, 1, 2) == (None, 99)
        assert calls == []

        await cache.invalidate(add, (1, 2))
        assert await call(add, 1, 2) == (None, 3)
        assert calls == [(1, 2)]
        assert cache.stats.hit == 1
        assert cache.stats.miss == 1

    run_async(scenario())


def test_missing_callback_fails_before_store_access():
    store = _SpyStore()
    cache = Cache(store=store)
    add = cache.wrap(_adder([]))

    with pytest.raises(InvalidArgumentError, match="should be a callable"):
        add(1, 2)
    with pytest.raises(InvalidArgumentError):
        add()
    assert store.gets == []
    assert cache.stats.miss == 0


def test_warmup_and_invalidate_reject_foreign_functions():
    cache = Cache()
    other = Cache()
    foreign = other.wrap(_adder([]))

    def plain(a, callback):
        callback(None, a)

    with pytest.raises(InvalidArgumentError):
        cache.warmup(plain, (1,), 1)
    with pytest.raises(InvalidArgumentError):
        cache.invalidate(foreign, (1, 2))
    with pytest.raises(InvalidArgumentError):
        cache.warmup(cache.wrap(plain), "1", 1)


def test_calling_without_running_loop_raises():
    cache = Cache()
    add = cache.wrap(_adder([]))
    with pytest.raises(RuntimeError):
        add(1, 2, lambda err, res: None)


def test_reset_fires_once_per_check_without_catch_up():
    async def scenario() -> None:
        now = [1000.0]
        cache = Cache(
            CacheOptions(reset=ResetOptions(interval_s=10)), clock=lambda: now[0]
        )
        calls: list[tuple[int, int]] = []
        add = cache.wrap(_adder(calls))
        assert cache.next_reset_at == 1010.0

        await call(add, 1, 1)
        await cache.drain()

        now[0] = 1010.0
        await call(add, 1, 1)
        assert cache.stats.reset == 0
        assert cache.stats.hit == 1

        now[0] = 1045.0
        assert await call(add, 1, 1) == (None, 2)
        await cache.drain()
        assert cache.stats.reset == 1
        assert cache.next_reset_at == 1020.0
        assert calls == [(1, 1), (1, 1)]
        assert cache.stats.miss == 2

    run_async(scenario())


def test_reset_honours_explicit_first_reset_time():
    async def scenario() -> None:
        cache = Cache(
            CacheOptions(reset=ResetOptions(interval_s=60, first_reset_at=500.0)),
            clock=lambda: 1000.0,
        )
        add = cache.wrap(_adder([]))
        await cache.warmup(add, (1, 1), 7)

        assert await call(add, 1, 1) == (None, 2)
        assert cache.stats.reset == 1
        assert cache.next_reset_at == 560.0

    run_async(scenario())


def test_name_tokens_are_unique_per_instance():
    cache = Cache()
    first = cache.wrap(lambda a, callback: callback(None, a))
    second = cache.wrap(lambda a, callback: callback(None, a))

    assert isinstance(first, CachedFunction)
    assert first.name != second.name
    assert cache.key_for(first, (1,)) != cache.key_for(second, (1,))

    named = cache.wrap(_adder([]), name="add")
    assert named.name == "add"
    with pytest.raises(InvalidArgumentError, match="already used"):
        cache.wrap(_adder([]), name="add")


def test_instances_sharing_a_store_collide_on_equal_names():
    async def scenario() -> None:
        shared = LocalBoundedStore()
        left = Cache(store=shared)
        right = Cache(store=shared)
        left_add = left.wrap(_adder([]), name="add")
        right_calls: list[tuple[int, int]] = []
        right_add = right.wrap(_adder(right_calls), name="add")

        await left.warmup(left_add, (1, 1), "from-left")
        assert await call(right_add, 1, 1) == (None, "from-left")
        assert right_calls == []

    run_async(scenario())


def test_wrap_binds_receiver():
    class Directory:
        def __init__(self) -> None:
            self.prefix = "user:"

        def lookup(self, ident, callback):
            callback(None, self.prefix + ident)

    async def scenario() -> None:
        cache = Cache()
        directory = Directory()
        cached = cache.wrap(Directory.lookup, directory)
        assert await call(cached, "42") == (None, "user:42")

    run_async(scenario())


def test_store_read_failure_degrades_to_miss():
    class _FailingStore(LocalBoundedStore):
        async def get(self, key):
            raise ConnectionError("store down")

    async def scenario() -> None:
        cache = Cache(store=_FailingStore())
        calls: list[tuple[int, int]] = []
        add = cache.wrap(_adder(calls))
        assert await call(add, 1, 2) == (None, 3)
        assert await call(add, 1, 2) == (None, 3)
        assert calls == [(1, 2), (1, 2)]
        assert cache.stats.miss == 2

    run_async(scenario())


def test_concurrent_misses_are_not_deduplicated():
    async def scenario() -> None:
        cache = Cache()
        calls: list[int] = []

        def slow(x, callback):
            calls.append(x)
            asyncio.get_running_loop().call_later(0.01, callback, None, x)

        cached = cache.wrap(slow)
        results = await asyncio.gather(call(cached, 5), call(cached, 5))
        assert results == [(None, 5), (None, 5)]
        assert calls == [5, 5]
        assert cache.stats.miss == 2

    run_async(scenario())


class _ResetFailsStore(LocalBoundedStore):
    async def reset(self):
        raise ConnectionError("store down")


def test_failing_store_reset_still_delivers_result():
    async def scenario() -> None:
        now = [0.0]
        cache = Cache(
            CacheOptions(reset=ResetOptions(interval_s=10)),
            store=_ResetFailsStore(),
            clock=lambda: now[0],
        )
        calls: list[tuple[int, int]] = []
        add = cache.wrap(_adder(calls))

        now[0] = 11.0
        delivered: list[tuple[object, object]] = []
        add(2, 2, lambda err, res: delivered.append((err, res)))
        await cache.drain()

        assert delivered == [(None, 4)]
        assert cache.stats.reset == 1
        assert calls == [(2, 2)]

    run_async(scenario())


def test_unusable_arguments_do_not_trigger_reset():
    async def scenario() -> None:
        now = [0.0]
        cache = Cache(
            CacheOptions(reset=ResetOptions(interval_s=10)), clock=lambda: now[0]
        )
        add = cache.wrap(_adder([]))
        await cache.warmup(add, (1, 1), 2)

        now[0] = 11.0
        with pytest.raises(KeyGenerationError):
            add(object(), 1, lambda err, res: None)
        await cache.drain()

        assert cache.stats.reset == 0
        assert cache.next_reset_at == 10.0
        assert await cache.store.keycount() == 1

    run_async(scenario())
