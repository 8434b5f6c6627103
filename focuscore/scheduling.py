"""Clock and repeating-callback abstractions.

The Clock Timer and the crossfade scheduler never sleep or count ticks
themselves: they read a ``Clock`` and ask a ``Scheduler`` for repeating
callbacks, so tests can drive both with a fake clock.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, tzinfo
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class Clock(Protocol):
    def time(self) -> float:
        """Wall-clock seconds since the epoch."""

    def now(self) -> datetime:
        """Aware datetime for record timestamps."""


class CancellationHandle(Protocol):
    @property
    def cancelled(self) -> bool: ...

    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def schedule_repeating(
        self, interval: float, callback: Callable[[], None]
    ) -> CancellationHandle: ...


class SystemClock:
    """Real wall clock.

    ``time.time`` keeps advancing while the process is suspended, which is
    what lets elapsed time survive backgrounding.
    """

    def __init__(self, tz: tzinfo | None = None) -> None:
        self.tz = tz

    def time(self) -> float:
        return time.time()

    def now(self) -> datetime:
        return datetime.fromtimestamp(self.time(), self.tz).astimezone(self.tz)


class _AsyncioHandle:
    def __init__(self, loop: asyncio.AbstractEventLoop, interval: float, callback: Callable[[], None]) -> None:
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self._cancelled = False
        self._timer: asyncio.TimerHandle | None = loop.call_later(interval, self._fire)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def _fire(self) -> None:
        if self._cancelled:
            return
        # Re-arm before running so the callback may cancel us.
        self._timer = self._loop.call_later(self._interval, self._fire)
        try:
            self._callback()
        except Exception:
            logger.exception("Repeating callback failed")

    def cancel(self) -> None:
        self._cancelled = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


class AsyncioScheduler:
    """Repeating callbacks on an asyncio event loop (one logical thread)."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> _AsyncioHandle:
        if interval <= 0:
            raise ValueError("interval must be positive")
        loop = self._loop or asyncio.get_running_loop()
        return _AsyncioHandle(loop, interval, callback)
