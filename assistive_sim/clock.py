from __future__ import annotations

import heapq
import itertools
import logging
import time
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)


class Clock(Protocol):
    """Monotonic clock abstraction.

    Engines depend on this interface (through a Scheduler) rather than calling
    real time directly.
    """

    def now(self) -> float:
        """Return monotonic seconds."""


class RealClock:
    """Production clock backed by time.monotonic()."""

    def now(self) -> float:
        return time.monotonic()


class TimerHandle:
    """Cancellable reference to one scheduled callback."""

    __slots__ = ("_due_s", "_callback", "_cancelled", "_fired")

    def __init__(self, due_s: float, callback: Callable[[], None]) -> None:
        self._due_s = float(due_s)
        self._callback = callback
        self._cancelled = False
        self._fired = False

    @property
    def due_s(self) -> float:
        return self._due_s

    @property
    def pending(self) -> bool:
        return not (self._cancelled or self._fired)

    def cancel(self) -> None:
        self._cancelled = True

    def _fire(self) -> None:
        self._fired = True
        self._callback()


class Scheduler:
    """One-shot timed callbacks driven by an injected Clock.

    Nothing fires on its own: the host calls pump() once per frame (or a test
    calls it after advancing a fake clock). While a callback runs, "now" is its
    due time, so a callback that reschedules itself with call_later(1.0, ...)
    keeps a steady one-per-second cadence even if pump() was called late.
    """

    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self._queue: list[tuple[float, int, TimerHandle]] = []
        self._seq = itertools.count()
        self._firing_at_s: float | None = None

    @property
    def clock(self) -> Clock:
        return self._clock

    def now(self) -> float:
        if self._firing_at_s is not None:
            return self._firing_at_s
        return self._clock.now()

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        if delay_s < 0:
            raise ValueError("delay_s must be >= 0")
        handle = TimerHandle(self.now() + float(delay_s), callback)
        heapq.heappush(self._queue, (handle.due_s, next(self._seq), handle))
        return handle

    def pending_count(self) -> int:
        return sum(1 for _, _, h in self._queue if h.pending)

    def pump(self) -> int:
        """Fire every callback due at or before the clock's current time.

        Returns the number of callbacks fired.
        """

        limit_s = self._clock.now()
        fired = 0
        while self._queue and self._queue[0][0] <= limit_s:
            due_s, _, handle = heapq.heappop(self._queue)
            if not handle.pending:
                continue
            self._firing_at_s = due_s
            try:
                handle._fire()
            finally:
                self._firing_at_s = None
            fired += 1
        return fired

    def clear(self) -> None:
        for _, _, handle in self._queue:
            handle.cancel()
        self._queue.clear()
        logger.debug("scheduler cleared")
