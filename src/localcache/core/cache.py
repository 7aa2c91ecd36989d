"""In-memory cache with per-entry TTL expiry and optional LRU eviction.

Iterating over the cache yields (key, value) pairs from least-recently-used
to most-recently-used. Expired entries are dropped lazily on `get` and
periodically by a background sweep running on the asyncio event loop.

Not thread-safe: all calls, including sweep ticks, are expected to run on
the thread that owns the event loop.
"""

from __future__ import annotations

import asyncio
import math
import time
import weakref
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Iterator, NoReturn, Optional, Tuple, TypeVar

from localcache.config import DEFAULT_GC_INTERVAL
from localcache.core.errors import ConfigurationError, InvalidArgumentError, InvalidValueError
from localcache.core.gc import start_gc, sweep_expired
from localcache.core.interval import Interval
from localcache.core.store import OrderedStore
from localcache.core.ttl_index import TTLIndex

T = TypeVar("T")


@dataclass(eq=False)
class _CacheState(Generic[T]):
    # Owned by exactly one LocalCache; the sweep only holds a weakref to it
    store: OrderedStore[T]
    ttl: TTLIndex = field(default_factory=TTLIndex)


def _cancel_gc(holder: dict) -> None:
    timer = holder.get("timer")
    if timer is not None:
        timer.cancel()


class LocalCache(Generic[T]):
    """Local key/value cache usable as a bounded LRU.

    Params:
      - size_limit: maximum number of entries; None for unbounded.
      - gc_interval: seconds between sweeps of expired entries.
      - time_func: clock returning seconds since epoch.
      - loop: event loop for the sweep; defaults to the running loop.

    Raises:
      ConfigurationError if size_limit < 1 or gc_interval is not a positive finite number.
    """

    def __init__(
        self,
        size_limit: Optional[int] = None,
        gc_interval: Optional[float] = None,
        *,
        time_func: Callable[[], float] = time.time,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        if size_limit is not None:
            if isinstance(size_limit, bool) or not isinstance(size_limit, int) or size_limit < 1:
                raise ConfigurationError(f"Invalid size_limit, must be > 0: {size_limit!r}")

        interval = DEFAULT_GC_INTERVAL if gc_interval is None else gc_interval
        valid = not isinstance(interval, bool) and isinstance(interval, (int, float))
        if not valid or not math.isfinite(interval) or interval <= 0:
            raise ConfigurationError(f"Invalid gc_interval, must be > 0: {interval!r}")

        self._gc_interval = float(interval)
        self._time = time_func
        self._loop = loop
        self._state: _CacheState[T] = _CacheState(store=OrderedStore(size_limit=size_limit))

        # The finalizer must not reference self, so the timer lives in a holder
        self._gc: dict = {"timer": None}
        weakref.finalize(self, _cancel_gc, self._gc)

        self._ensure_gc()

    @property
    def size_limit(self) -> Optional[int]:
        return self._state.store.size_limit

    @property
    def gc_interval(self) -> float:
        return self._gc_interval

    def get(self, key: str) -> Optional[T]:
        """Return the cached value, or None on a miss or an expired entry."""
        self._check_key(key)
        self._ensure_gc()
        state = self._state

        value = state.store.pop(key)
        if value is None:
            return None

        # Expired entries are purged by the read itself
        if state.ttl.is_expired(key, self._now()):
            state.ttl.clear(key)
            return None

        state.store.push(key, value)
        return value

    def set(self, key: str, value: T, ttl: Optional[int] = None) -> None:
        """Store `value` under `key`, expiring after `ttl` seconds (None: never)."""
        self._check_key(key)
        if value is None:
            raise InvalidValueError(f"Cannot store None in {type(self).__name__}")
        if ttl is not None and (isinstance(ttl, bool) or not isinstance(ttl, int)):
            raise InvalidArgumentError(f"Invalid cache TTL ({ttl!r}); integer >= 0 or None required")
        if ttl is not None and ttl < 0:
            raise InvalidArgumentError(f"Invalid cache TTL ({ttl}); integer >= 0 or None required")

        self._ensure_gc()
        state = self._state

        if ttl is None:
            state.ttl.clear(key)
        else:
            state.ttl.set(key, self._now() + ttl)

        evicted = state.store.upsert(key, value)
        if evicted is not None:
            # Evicted keys must not leave a stale expiry behind
            state.ttl.clear(evicted)

    def delete(self, key: str) -> bool:
        """Remove `key`. Returns True if it was stored."""
        self._check_key(key)
        self._ensure_gc()
        state = self._state
        existed = state.store.remove(key)
        state.ttl.clear(key)
        return existed

    def count(self) -> int:
        # May include entries that expired but were not read or swept yet
        return len(self._state.store)

    def collect_garbage(self) -> int:
        """Run one sweep now. Returns the number of expired entries purged."""
        state = self._state
        return sweep_expired(state.store, state.ttl, self._now())

    def __len__(self) -> int:
        return self.count()

    def __iter__(self) -> Iterator[Tuple[str, T]]:
        return iter(self._state.store)

    # --- cloning / serialization are not supported ---

    def __copy__(self) -> NoReturn:
        raise TypeError(f"Cloning {type(self).__name__} is not supported")

    def __deepcopy__(self, memo: Any) -> NoReturn:
        raise TypeError(f"Cloning {type(self).__name__} is not supported")

    def __reduce_ex__(self, protocol: Any) -> NoReturn:
        raise TypeError(f"Serializing {type(self).__name__} is not supported")

    # --- helpers ---

    def _now(self) -> int:
        return int(self._time())

    def _check_key(self, key: object) -> None:
        if not isinstance(key, str):
            raise InvalidArgumentError(f"Cache keys must be str, got {type(key).__name__}")

    def _ensure_gc(self) -> None:
        # Arms the sweep once a loop is available; re-arms if its loop closed
        timer: Optional[Interval] = self._gc["timer"]
        if timer is not None and timer.is_running:
            return
        if self._loop is not None and self._loop.is_closed():
            return

        self._gc["timer"] = start_gc(
            self._state,
            interval=self._gc_interval,
            time_func=self._time,
            loop=self._loop,
        )
