"""
Timing utilities: schedulers for calibration phases and sample rate monitoring.
"""

from abc import ABC, abstractmethod
import heapq
import itertools
import threading
import time
from typing import Callable, List, Optional, Tuple


class TimerHandle:
    """Handle to a scheduled callback that can be cancelled."""

    def __init__(self, cancel_fn: Optional[Callable[[], None]] = None):
        self._cancel_fn = cancel_fn
        self._cancelled = False

    def cancel(self):
        """Cancel the callback. Safe to call more than once."""
        if self._cancelled:
            return
        self._cancelled = True
        if self._cancel_fn is not None:
            self._cancel_fn()

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class Scheduler(ABC):
    """
    Clock and delayed-callback source.

    Calibration phases are advanced through this interface so tests can
    simulate time deterministically.
    """

    @abstractmethod
    def now(self) -> float:
        """Current time in seconds."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback once after delay seconds."""


class ManualScheduler(Scheduler):
    """
    Scheduler driven explicitly by advance().

    Callbacks run synchronously, in due-time order, on the caller's thread.
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._counter = itertools.count()
        self._queue: List[Tuple[float, int, Callable[[], None], TimerHandle]] = []

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle()
        heapq.heappush(
            self._queue, (self._now + max(0.0, delay), next(self._counter), callback, handle)
        )
        return handle

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward, firing every callback that falls due.

        Callbacks scheduled by other callbacks also fire if they fall due
        inside the window.

        Args:
            seconds: Time to advance

        Returns:
            Number of callbacks that ran
        """
        return self.advance_to(self._now + seconds)

    def advance_to(self, deadline: float) -> int:
        """Move the clock to an absolute time (no-op if already past it)."""
        if deadline < self._now:
            return 0

        fired = 0

        while self._queue and self._queue[0][0] <= deadline:
            due, _, callback, handle = heapq.heappop(self._queue)
            self._now = due
            if handle.cancelled:
                continue
            callback()
            fired += 1

        self._now = deadline
        return fired

    @property
    def pending(self) -> int:
        """Number of scheduled callbacks not yet fired or cancelled."""
        return sum(1 for entry in self._queue if not entry[3].cancelled)


class ThreadingScheduler(Scheduler):
    """
    Real-time scheduler backed by threading.Timer.

    Callbacks run on timer threads; consumers must serialize their state.
    """

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(max(0.0, delay), callback)
        timer.daemon = True
        timer.start()
        return TimerHandle(timer.cancel)


class SampleRateCounter:
    """
    Track and calculate incoming samples per second.

    Useful for monitoring how often the detector delivers points.
    """

    def __init__(self, clock: Callable[[], float] = time.perf_counter, window_size: int = 30):
        """
        Initialize sample rate counter.

        Args:
            clock: Time source in seconds
            window_size: Number of intervals to average over
        """
        self._clock = clock
        self._window_size = window_size
        self._intervals: list[float] = []
        self._last_time: Optional[float] = None

    def tick(self) -> float:
        """
        Register a sample and return the current rate.

        Returns:
            Current samples per second
        """
        current_time = self._clock()

        if self._last_time is not None:
            self._intervals.append(current_time - self._last_time)

            # Keep only last N intervals
            if len(self._intervals) > self._window_size:
                self._intervals.pop(0)

        self._last_time = current_time

        return self.rate

    @property
    def rate(self) -> float:
        """
        Get current rate.

        Returns:
            Samples per second, or 0.0 if fewer than two samples recorded
        """
        if not self._intervals:
            return 0.0

        avg_interval = sum(self._intervals) / len(self._intervals)
        if avg_interval <= 0:
            return 0.0

        return 1.0 / avg_interval

    def reset(self):
        """Reset counter."""
        self._intervals.clear()
        self._last_time = None
