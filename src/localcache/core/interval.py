"""
Repeating timer on an asyncio event loop.

Runs a callback every `interval` seconds via loop.call_later. The timer holds
no reference to whoever created it beyond the callback itself, so owners that
want to be collectable should pass a callback that only closes over weak
references. A callback returning False stops the timer for good.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Interval:
    def __init__(
        self,
        interval: float,
        callback: Callable[[], Optional[bool]],
        *,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self._interval = float(interval)
        self._callback: Optional[Callable[[], Optional[bool]]] = callback
        self._loop = loop or asyncio.get_running_loop()
        self._handle: Optional[asyncio.TimerHandle] = None
        self._schedule()

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        return self._handle is not None and not self._loop.is_closed()

    def cancel(self) -> None:
        # Safe to call repeatedly and after the loop has closed.
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._callback = None

    def _schedule(self) -> None:
        if self._callback is None or self._loop.is_closed():
            self._handle = None
            return
        self._handle = self._loop.call_later(self._interval, self._tick)

    def _tick(self) -> None:
        callback = self._callback
        if callback is None:
            return

        try:
            keep_going = callback()
        except Exception:
            # Faults stay inside the timer; the schedule survives them.
            logger.exception("Interval callback failed")
            keep_going = True

        if keep_going is False:
            logger.debug("Interval callback asked to stop")
            self.cancel()
            return

        self._schedule()
