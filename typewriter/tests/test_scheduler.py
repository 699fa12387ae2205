"""
Unit tests for the scheduler implementations.
"""

import asyncio
from typing import List

import pytest

from typewriter.engine.scheduler import AsyncioScheduler, VirtualScheduler


class TestVirtualScheduler:
    """Test the simulated clock"""

    def test_nothing_runs_without_advance(self):
        scheduler = VirtualScheduler()
        calls: List[str] = []
        scheduler.call_later(0, lambda: calls.append("a"))
        assert calls == []
        assert scheduler.pending == 1

    def test_advance_runs_due_callbacks_in_order(self):
        scheduler = VirtualScheduler()
        calls: List[str] = []
        scheduler.call_later(30, lambda: calls.append("c"))
        scheduler.call_later(10, lambda: calls.append("a"))
        scheduler.call_later(20, lambda: calls.append("b"))

        ran = scheduler.advance(25)
        assert ran == 2
        assert calls == ["a", "b"]
        assert scheduler.now() == 25

        scheduler.advance(5)
        assert calls == ["a", "b", "c"]

    def test_same_time_callbacks_run_fifo(self):
        scheduler = VirtualScheduler()
        calls: List[int] = []
        for i in range(5):
            scheduler.call_later(10, lambda i=i: calls.append(i))
        scheduler.advance(10)
        assert calls == [0, 1, 2, 3, 4]

    def test_clock_reads_due_time_inside_callback(self):
        scheduler = VirtualScheduler(start_ms=100)
        seen: List[float] = []
        scheduler.call_later(7, lambda: seen.append(scheduler.now()))
        scheduler.advance(50)
        assert seen == [107]
        assert scheduler.now() == 150

    def test_chained_callbacks_within_window(self):
        scheduler = VirtualScheduler()
        seen: List[float] = []

        def tick():
            seen.append(scheduler.now())
            scheduler.call_later(10, tick)

        scheduler.call_later(10, tick)
        scheduler.advance(35)
        assert seen == [10, 20, 30]
        assert scheduler.pending == 1

    def test_cancel(self):
        scheduler = VirtualScheduler()
        calls: List[str] = []
        handle = scheduler.call_later(10, lambda: calls.append("x"))
        handle.cancel()
        handle.cancel()

        assert handle.cancelled is True
        assert scheduler.pending == 0
        scheduler.advance(100)
        assert calls == []

    def test_handle_when(self):
        scheduler = VirtualScheduler(start_ms=5)
        handle = scheduler.call_later(10, lambda: None)
        assert handle.when == 15

    def test_negative_delay_is_clamped(self):
        scheduler = VirtualScheduler()
        calls: List[str] = []
        scheduler.call_later(-10, lambda: calls.append("x"))
        scheduler.advance(0)
        assert calls == ["x"]

    def test_negative_advance_rejected(self):
        with pytest.raises(ValueError):
            VirtualScheduler().advance(-1)

    def test_run_next(self):
        scheduler = VirtualScheduler()
        assert scheduler.run_next() is False

        calls: List[str] = []
        scheduler.call_later(40, lambda: calls.append("x"))
        assert scheduler.run_next() is True
        assert calls == ["x"]
        assert scheduler.now() == 40

    def test_max_callbacks_bounds_zero_delay_chain(self):
        scheduler = VirtualScheduler()

        def loop():
            scheduler.call_later(0, loop)

        scheduler.call_later(0, loop)
        assert scheduler.advance(10, max_callbacks=20) == 20
        assert scheduler.now() == 0


class TestAsyncioScheduler:
    """Test the event loop backed scheduler"""

    @pytest.mark.asyncio
    async def test_call_later_fires(self):
        scheduler = AsyncioScheduler()
        fired = asyncio.Event()
        scheduler.call_later(5, fired.set)
        await asyncio.wait_for(fired.wait(), timeout=1.0)

    @pytest.mark.asyncio
    async def test_cancel_prevents_callback(self):
        scheduler = AsyncioScheduler()
        calls: List[str] = []
        handle = scheduler.call_later(5, lambda: calls.append("x"))
        handle.cancel()
        await asyncio.sleep(0.03)
        assert calls == []
        assert handle.cancelled is True

    @pytest.mark.asyncio
    async def test_now_and_when_in_milliseconds(self):
        scheduler = AsyncioScheduler(asyncio.get_running_loop())
        before = scheduler.now()
        handle = scheduler.call_later(100, lambda: None)
        assert handle.when >= before + 100 - 1
        handle.cancel()
