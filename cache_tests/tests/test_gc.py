import asyncio
import gc
import logging
import weakref

import pytest

from localcache.core.cache import LocalCache
from localcache.core.gc import start_gc, sweep_expired
from localcache.core.store import OrderedStore
from localcache.core.ttl_index import TTLIndex


class _State:
    def __init__(self) -> None:
        self.store = OrderedStore()
        self.ttl = TTLIndex()


def test_sweep_expired_stops_at_first_live_record():
    store = OrderedStore()
    ttl = TTLIndex()
    for key, expiry in [("c", 30), ("a", 10), ("b", 20), ("d", 20)]:
        store.upsert(key, key.upper())
        ttl.set(key, expiry)
    store.upsert("forever", "F")

    assert sweep_expired(store, ttl, now=20) == 3

    assert list(store) == [("c", "C"), ("forever", "F")]
    assert list(ttl) == [("c", 30)]
    assert ttl.is_dirty is False


def test_sweep_expired_tolerates_keys_missing_from_store():
    store = OrderedStore()
    ttl = TTLIndex()
    ttl.set("ghost", 1)

    assert sweep_expired(store, ttl, now=5) == 1
    assert len(ttl) == 0


def test_start_gc_without_loop_is_deferred(clock, caplog):
    with caplog.at_level(logging.DEBUG, logger="localcache.core.gc"):
        assert start_gc(_State(), interval=1.0, time_func=clock) is None

    assert "sweep deferred" in caplog.text


@pytest.mark.asyncio
async def test_sweep_purges_without_reads(clock):
    # Scenario F
    c = LocalCache(gc_interval=0.01, time_func=clock)

    c.set("a", 1, ttl=1)
    c.set("b", 2, ttl=2)
    c.set("c", 3, ttl=60)
    c.set("d", 4)
    clock.advance(3)

    await asyncio.sleep(0.1)

    assert c.count() == 2
    assert list(c) == [("c", 3), ("d", 4)]


@pytest.fixture
def idle_cache(clock):
    # Built outside any running loop
    return LocalCache(gc_interval=0.01, time_func=clock)


@pytest.mark.asyncio
async def test_sweep_is_armed_lazily_for_caches_built_outside_a_loop(idle_cache, clock):
    assert idle_cache._gc["timer"] is None

    idle_cache.set("a", 1, ttl=0)
    assert idle_cache._gc["timer"] is not None

    clock.advance(1)
    await asyncio.sleep(0.1)

    assert idle_cache.count() == 0


@pytest.mark.asyncio
async def test_dropped_cache_is_collected_and_sweep_cancelled(clock):
    c = LocalCache(gc_interval=0.01, time_func=clock)
    c.set("a", 1, ttl=5)
    timer = c._gc["timer"]
    assert timer.is_running is True

    ref = weakref.ref(c)
    del c
    gc.collect()

    assert ref() is None
    assert timer.is_running is False


@pytest.mark.asyncio
async def test_sweep_stops_itself_once_state_is_gone(clock):
    state = _State()
    timer = start_gc(state, interval=0.01, time_func=clock)
    assert timer is not None and timer.is_running

    del state
    gc.collect()
    await asyncio.sleep(0.1)

    assert timer.is_running is False


def test_sweep_resorts_after_new_and_changed_expiries():
    store = OrderedStore()
    ttl = TTLIndex()
    for key, expiry in [("a", 10), ("b", 50), ("c", 60)]:
        store.upsert(key, key.upper())
        ttl.set(key, expiry)

    assert sweep_expired(store, ttl, now=10) == 1
    assert ttl.is_dirty is False

    # New key expiring before the survivors, and an existing key moved earlier
    store.upsert("d", "D")
    ttl.set("d", 20)
    ttl.set("c", 15)
    assert ttl.is_dirty is True

    assert sweep_expired(store, ttl, now=20) == 2
    assert list(store) == [("b", "B")]
    assert list(ttl) == [("b", 50)]
