"""
Scheduled-callback primitives.

A scheduler runs a callback once after a delay and hands back a handle that
can cancel it. Two implementations are provided:

- ``AsyncioScheduler`` wraps ``loop.call_later`` for production use.
- ``VirtualScheduler`` keeps its own simulated clock, so tests and offline
  renders can step through time deterministically with ``advance()``.

All delays and timestamps are in milliseconds.
"""

import asyncio
import heapq
import itertools
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple

from typewriter.utils.logger import get_logger

logger = get_logger(__name__)

Callback = Callable[[], None]


class TimerHandle(ABC):
    """A pending one-shot callback"""

    @property
    @abstractmethod
    def when(self) -> float:
        """Due time on the owning scheduler's clock (ms)"""

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        ...

    @abstractmethod
    def cancel(self) -> None:
        """Cancel the callback. Cancelling twice, or after it ran, is a no-op."""


class Scheduler(ABC):
    """Runs callbacks once after a delay"""

    @abstractmethod
    def now(self) -> float:
        """Current time on this scheduler's clock (ms)"""

    @abstractmethod
    def call_later(self, delay_ms: float, callback: Callback) -> TimerHandle:
        """Schedule ``callback`` to run once ``delay_ms`` from now"""


class _AsyncioTimerHandle(TimerHandle):
    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle

    @property
    def when(self) -> float:
        return self._handle.when() * 1000.0

    @property
    def cancelled(self) -> bool:
        return self._handle.cancelled()

    def cancel(self) -> None:
        self._handle.cancel()


class AsyncioScheduler(Scheduler):
    """
    Scheduler backed by an asyncio event loop.

    If no loop is given, the running loop is looked up on first use, so the
    scheduler can be built outside of a coroutine and used inside one.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time() * 1000.0

    def call_later(self, delay_ms: float, callback: Callback) -> TimerHandle:
        delay_s = max(0.0, delay_ms) / 1000.0
        return _AsyncioTimerHandle(self.loop.call_later(delay_s, callback))


class _VirtualTimerHandle(TimerHandle):
    def __init__(self, when: float, callback: Callback):
        self._when = when
        self.callback = callback
        self._cancelled = False

    @property
    def when(self) -> float:
        return self._when

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class VirtualScheduler(Scheduler):
    """
    Scheduler with a simulated clock.

    Nothing runs until ``advance()`` or ``run_next()`` is called. Callbacks
    due at the same instant run in the order they were scheduled, and the
    clock reads each callback's due time while it runs, so callbacks may
    schedule further work that also falls inside the advanced window.
    """

    def __init__(self, start_ms: float = 0.0):
        self._now = float(start_ms)
        self._queue: List[Tuple[float, int, _VirtualTimerHandle]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay_ms: float, callback: Callback) -> TimerHandle:
        handle = _VirtualTimerHandle(self._now + max(0.0, delay_ms), callback)
        heapq.heappush(self._queue, (handle.when, next(self._seq), handle))
        return handle

    @property
    def pending(self) -> int:
        """Number of scheduled callbacks that are not cancelled"""
        return sum(1 for _, _, handle in self._queue if not handle.cancelled)

    def _discard_cancelled(self) -> None:
        while self._queue and self._queue[0][2].cancelled:
            heapq.heappop(self._queue)

    def run_next(self) -> bool:
        """
        Jump the clock to the next due callback and run it.

        Returns:
            False if nothing was pending
        """
        self._discard_cancelled()
        if not self._queue:
            return False
        when, _, handle = heapq.heappop(self._queue)
        self._now = max(self._now, when)
        # Mark as spent so a late cancel() is harmless
        handle.cancel()
        handle.callback()
        return True

    def advance(self, ms: float, max_callbacks: Optional[int] = None) -> int:
        """
        Move the clock forward by ``ms``, running every callback that falls due.

        Args:
            ms: How far to move the clock
            max_callbacks: Stop early after this many callbacks. Zero-delay
                chains never move the clock, so this bounds them.

        Returns:
            Number of callbacks that ran
        """
        if ms < 0:
            raise ValueError(f"Cannot advance a clock backwards (got {ms} ms)")

        deadline = self._now + ms
        ran = 0
        while True:
            self._discard_cancelled()
            if not self._queue or self._queue[0][0] > deadline:
                self._now = deadline
                break
            if max_callbacks is not None and ran >= max_callbacks:
                logger.warning(f"Virtual clock stopped at {self._now:.1f}ms after {ran} callbacks")
                break
            self.run_next()
            ran += 1

        if ran:
            logger.debug(f"Virtual clock advanced to {self._now:.1f}ms ({ran} callbacks)")
        return ran
