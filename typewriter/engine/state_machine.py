"""
Base class for timer-driven state machines.

A ``ScheduledStateMachine`` owns exactly one pending timer at a time. Each
call to ``_schedule()`` cancels whatever was pending before arming the new
callback, so re-entering a state never stacks timers. All state changes
happen inside those callbacks, and every change is announced to listeners
through ``_emit()``.
"""

from abc import ABC, abstractmethod
from typing import Callable, Generic, List, Optional, TypeVar

from typewriter.engine.scheduler import AsyncioScheduler, Callback, Scheduler, TimerHandle
from typewriter.utils.logger import get_logger

logger = get_logger(__name__)

FrameT = TypeVar("FrameT")


class ScheduledStateMachine(ABC, Generic[FrameT]):
    """Start/stop lifecycle, a single pending timer and change listeners"""

    def __init__(self, scheduler: Optional[Scheduler] = None):
        self.scheduler: Scheduler = scheduler or AsyncioScheduler()
        self._pending: Optional[TimerHandle] = None
        self._running = False
        # Bumped on every start() so transitions can tell a restart happened
        self._generation = 0
        self._listeners: List[Callable[[FrameT], None]] = []

    @property
    def running(self) -> bool:
        return self._running

    @property
    def has_pending(self) -> bool:
        return self._pending is not None and not self._pending.cancelled

    def start(self) -> None:
        """Start the machine. Calling start() on a running machine does nothing."""
        if self._running:
            logger.debug(f"{type(self).__name__} already running, start() ignored")
            return
        self._running = True
        self._generation += 1
        self._on_start()

    def stop(self) -> None:
        """Cancel pending work. Safe to call repeatedly or from inside a callback."""
        if not self._running:
            return
        self._running = False
        self._cancel_pending()
        self._on_stop()

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()

    @abstractmethod
    def _on_start(self) -> None:
        """Reset state and arm the first timer"""

    def _on_stop(self) -> None:
        self._emit()

    @abstractmethod
    def snapshot(self) -> FrameT:
        """Current observable state"""

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def _schedule(self, delay_ms: float, callback: Callback) -> None:
        """Replace the pending timer with ``callback`` after ``delay_ms``"""
        self._cancel_pending()
        if not self._running:
            # A listener may have stopped us mid-callback
            return

        handle: Optional[TimerHandle] = None

        def guarded() -> None:
            # Drop callbacks that outlived stop() or were superseded
            if not self._running or self._pending is not handle:
                return
            self._pending = None
            callback()

        handle = self.scheduler.call_later(delay_ms, guarded)
        self._pending = handle

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, listener: Callable[[FrameT], None]) -> Callable[[], None]:
        """
        Register a listener for state changes.

        Returns:
            A function that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self) -> bool:
        """
        Notify listeners of the current state.

        Returns:
            False if a listener stopped or restarted the machine, in which
            case the caller must abandon its transition
        """
        generation = self._generation
        if not self._listeners:
            return self._running
        frame = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(frame)
            except Exception as e:
                logger.error(
                    f"Listener {listener!r} failed on {type(self).__name__} update: {e}",
                    exc_info=True,
                )
        return self._running and self._generation == generation
