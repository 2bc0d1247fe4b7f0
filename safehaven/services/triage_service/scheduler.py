"""Schedulers for the simulated "agent is composing" delay.

A session never starts its own timers. It asks an injected Scheduler to
run a callback after a delay and keeps the returned handle so the reply
can be cancelled on teardown.

- ClockScheduler: cooperative; callbacks fire only inside run_due(), on
  the caller's thread. With ManualClock it runs on virtual time.
- AsyncioScheduler: delegates to the event loop's call_later.
"""
import asyncio
import heapq
import itertools
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple


Callback = Callable[[], None]


class ScheduledCall:
    """Cancellation handle for one scheduled callback."""

    def __init__(
        self,
        callback: Callback,
        due_at: float,
        on_cancel: Optional[Callback] = None,
    ):
        self.callback = callback
        self.due_at = due_at
        self._on_cancel = on_cancel
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        """Prevent the callback from running. No-op once fired."""
        if self.fired or self.cancelled:
            return
        self.cancelled = True
        if self._on_cancel is not None:
            self._on_cancel()

    def fire(self) -> None:
        if self.cancelled or self.fired:
            return
        self.fired = True
        self.callback()

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)


class Scheduler(ABC):
    """Schedules a callback to run once after a delay."""

    @abstractmethod
    def after(self, delay_seconds: float, callback: Callback) -> ScheduledCall:
        """Run callback once, no earlier than delay_seconds from now.

        Raises:
            ValueError: If delay_seconds is negative
        """


def _check_delay(delay_seconds: float) -> None:
    if delay_seconds < 0:
        raise ValueError(f"Delay must be >= 0, got {delay_seconds}")


class ManualClock:
    """Virtual monotonic clock, advanced explicitly."""

    def __init__(self, start: float = 0.0):
        self._now = start

    def __call__(self) -> float:
        return self._now

    def advance(self, seconds: float) -> float:
        if seconds < 0:
            raise ValueError("Clock cannot move backwards")
        self._now += seconds
        return self._now


class ClockScheduler(Scheduler):
    """Cooperative scheduler driven by run_due().

    Nothing fires on its own: the host calls run_due() (per request, per
    UI tick, or after advancing a ManualClock) and due callbacks run
    synchronously in due order. The queue is guarded by a reentrant lock,
    so callbacks may schedule again and several threads may pump it.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._queue: List[Tuple[float, int, ScheduledCall]] = []
        self._sequence = itertools.count()
        self._lock = threading.RLock()

    def now(self) -> float:
        return self._clock()

    def after(self, delay_seconds: float, callback: Callback) -> ScheduledCall:
        _check_delay(delay_seconds)
        with self._lock:
            call = ScheduledCall(callback, due_at=self._clock() + delay_seconds)
            heapq.heappush(self._queue, (call.due_at, next(self._sequence), call))
        return call

    def run_due(self) -> int:
        """Fire every pending callback that is due.

        Returns:
            Number of callbacks fired (cancelled ones are discarded)
        """
        fired = 0
        with self._lock:
            now = self._clock()
            while self._queue and self._queue[0][0] <= now:
                _, _, call = heapq.heappop(self._queue)
                if not call.pending:
                    continue
                call.fire()
                fired += 1
        return fired

    @property
    def pending_count(self) -> int:
        with self._lock:
            return sum(1 for _, _, call in self._queue if call.pending)


class AsyncioScheduler(Scheduler):
    """Scheduler backed by an asyncio event loop.

    Must be used from the loop's thread. Without an explicit loop, the
    running loop at scheduling time is used.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def after(self, delay_seconds: float, callback: Callback) -> ScheduledCall:
        _check_delay(delay_seconds)
        loop = self._loop or asyncio.get_running_loop()
        call = ScheduledCall(callback, due_at=loop.time() + delay_seconds)
        handle = loop.call_later(delay_seconds, call.fire)
        call._on_cancel = handle.cancel
        return call
