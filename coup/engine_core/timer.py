"""
Timers - Cancellable deadline callbacks for the response window.

The engine never polls a countdown. It asks a Scheduler to call back at
the response deadline and cancels the handle when resolution happens
first.

Two schedulers:
- ThreadingScheduler: wall-clock, one daemon threading.Timer per deadline.
- ManualScheduler: the host advances the clock (tests, frame-driven loops).
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Callable
import heapq
import itertools
import threading
import time


class TimerHandle:
    """Handle to a scheduled callback."""

    def __init__(self, deadline: float):
        self.deadline = deadline
        self._cancelled = False
        self._fired = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def fired(self) -> bool:
        return self._fired

    def cancel(self) -> None:
        self._cancelled = True


class Scheduler(ABC):
    """Clock plus deadline callbacks."""

    @abstractmethod
    def now(self) -> float:
        """Current time in seconds on this scheduler's clock."""
        pass

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback once, delay seconds from now, unless cancelled."""
        pass


class _ThreadingHandle(TimerHandle):
    def __init__(self, deadline: float, timer: threading.Timer):
        super().__init__(deadline)
        self._timer = timer

    def cancel(self) -> None:
        super().cancel()
        self._timer.cancel()


class ThreadingScheduler(Scheduler):
    """Wall-clock scheduler backed by threading.Timer."""

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        holder: list[TimerHandle] = []

        def _run():
            handle = holder[0]
            if handle.cancelled:
                return
            handle._fired = True
            callback()

        timer = threading.Timer(max(0.0, delay), _run)
        timer.daemon = True
        handle = _ThreadingHandle(self.now() + delay, timer)
        holder.append(handle)
        timer.start()
        return handle


class ManualScheduler(Scheduler):
    """
    Scheduler driven by explicit clock advances.

    Usage:
        scheduler = ManualScheduler()
        engine = GameEngine(scheduler=scheduler)
        ...
        scheduler.advance(15.0)  # fires the response timeout
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._queue: list[tuple[float, int, TimerHandle, Callable[[], None]]] = []
        self._counter = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(self._now + max(0.0, delay))
        heapq.heappush(self._queue, (handle.deadline, next(self._counter), handle, callback))
        return handle

    @property
    def pending_count(self) -> int:
        return sum(1 for _, _, handle, _ in self._queue if not handle.cancelled)

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward, firing every callback that comes due.

        Callbacks scheduled while advancing fire too if their deadline
        falls inside the window. Returns the number of callbacks fired.
        """
        target = self._now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            deadline, _, handle, callback = heapq.heappop(self._queue)
            self._now = max(self._now, deadline)
            if handle.cancelled:
                continue
            handle._fired = True
            callback()
            fired += 1
        self._now = target
        return fired
