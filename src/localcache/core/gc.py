"""Background reclamation of expired cache entries.

The sweep sees the cache state only through a weak reference: once the
owning cache is gone the next tick notices and stops the timer, so a
discarded cache is never kept alive by its own sweeper.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from typing import Any, Callable, Optional

from localcache.core.interval import Interval
from localcache.core.store import OrderedStore
from localcache.core.ttl_index import TTLIndex

logger = logging.getLogger(__name__)


def sweep_expired(store: OrderedStore[Any], ttl_index: TTLIndex, now: int) -> int:
    """Purge every entry whose expiry is <= now. Returns the number of keys purged."""
    ttl_index.sort_if_dirty()

    expired = ttl_index.pop_expired(now)
    for key in expired:
        store.remove(key)

    return len(expired)


def _make_sweep(state_ref: "weakref.ref[Any]", time_func: Callable[[], float]) -> Callable[[], bool]:
    def _sweep() -> bool:
        state = state_ref()
        if state is None:
            logger.debug("Cache state collected; stopping sweep")
            return False

        purged = sweep_expired(state.store, state.ttl, int(time_func()))
        if purged:
            logger.debug("Swept %d expired cache entries", purged)
        return True

    return _sweep


def start_gc(
    state: Any,
    *,
    interval: float,
    time_func: Callable[[], float],
    loop: Optional[asyncio.AbstractEventLoop] = None,
) -> Optional[Interval]:
    """Arm the periodic sweep for `state` (an object with `store` and `ttl`).

    Returns None when no event loop is available yet; callers retry later.
    """
    if loop is None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; sweep deferred")
            return None

    timer = Interval(interval, _make_sweep(weakref.ref(state), time_func), loop=loop)
    logger.debug("Cache sweep armed every %.3fs", interval)
    return timer
