"""
Tests for schedulers and the sample rate counter.
"""

import threading

import pytest

from steadygaze.utils.timing import (
    ManualScheduler,
    SampleRateCounter,
    Scheduler,
    ThreadingScheduler,
)


class TestManualScheduler:
    """Tests for ManualScheduler."""

    def test_fires_in_due_order(self):
        scheduler = ManualScheduler()
        fired = []
        scheduler.call_later(2.0, lambda: fired.append("b"))
        scheduler.call_later(1.0, lambda: fired.append("a"))

        assert scheduler.advance(1.5) == 1
        assert fired == ["a"]
        assert scheduler.now() == pytest.approx(1.5)

        scheduler.advance(1.0)
        assert fired == ["a", "b"]

    def test_clock_at_due_time_inside_callback(self):
        scheduler = ManualScheduler()
        seen = []
        scheduler.call_later(1.0, lambda: seen.append(scheduler.now()))

        scheduler.advance(5.0)

        assert seen == [1.0]

    def test_chained_callbacks_within_window(self):
        """Test that a callback scheduled by a callback also fires if due."""
        scheduler = ManualScheduler()
        fired = []

        def first():
            fired.append(scheduler.now())
            scheduler.call_later(1.0, lambda: fired.append(scheduler.now()))

        scheduler.call_later(1.0, first)
        scheduler.advance(3.0)

        assert fired == [1.0, 2.0]

    def test_cancel(self):
        scheduler = ManualScheduler()
        fired = []
        handle = scheduler.call_later(1.0, lambda: fired.append(1))

        handle.cancel()
        handle.cancel()

        assert scheduler.pending == 0
        assert scheduler.advance(2.0) == 0
        assert fired == []


class TestThreadingScheduler:
    """Tests for ThreadingScheduler."""

    def test_fires_callback(self):
        event = threading.Event()
        ThreadingScheduler().call_later(0.01, event.set)

        assert event.wait(2.0)

    def test_cancel(self):
        event = threading.Event()
        handle = ThreadingScheduler().call_later(0.2, event.set)
        handle.cancel()

        assert handle.cancelled
        assert not event.wait(0.4)


class TestSampleRateCounter:
    """Tests for SampleRateCounter."""

    def test_rate_from_clock(self):
        scheduler = ManualScheduler()
        counter = SampleRateCounter(clock=scheduler.now)

        assert counter.tick() == 0.0
        for _ in range(10):
            scheduler.advance(0.05)
            counter.tick()

        assert counter.rate == pytest.approx(20.0)

    def test_reset(self):
        scheduler = ManualScheduler()
        counter = SampleRateCounter(clock=scheduler.now)
        counter.tick()
        scheduler.advance(0.1)
        counter.tick()

        counter.reset()

        assert counter.rate == 0.0


class TestSchedulerInterface:
    """Tests for the Scheduler base class."""

    def test_incomplete_scheduler_cannot_be_instantiated(self):
        class ClockOnly(Scheduler):
            def now(self):
                return 0.0

        with pytest.raises(TypeError):
            ClockOnly()
