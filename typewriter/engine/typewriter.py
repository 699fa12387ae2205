"""
Typewriter text engine.

Types a phrase one character at a time, pauses once it is complete, deletes
it character by character, then moves on to the next phrase and starts over.
The cycle repeats until the engine is stopped.

Timeline for phrases ``["Hi", "Yo"]`` with typing 10ms, deleting 5ms and a
20ms pause::

    t=10  "H"
    t=20  "Hi"   (pausing)
    t=40  "Hi"   (deleting)
    t=45  "H"
    t=50  ""     (next phrase, typing)
    t=60  "Y"
    t=70  "Yo"   (pausing)
    ...

The displayed text is always a prefix of the active phrase; the phrase index
only moves on once the text is empty.
"""

from typing import Iterable, Optional, Tuple

from typewriter.engine.scheduler import Scheduler
from typewriter.engine.state_machine import ScheduledStateMachine
from typewriter.schemas.typewriter import TypewriterFrame, TypewriterMode, TypewriterOptions
from typewriter.utils.logger import get_logger

logger = get_logger(__name__)


class TypewriterEngine(ScheduledStateMachine[TypewriterFrame]):
    """
    Cycles through a fixed list of phrases with a typewriter effect.

    The engine does nothing until ``start()``. Observe it either by reading
    ``text`` or by registering a listener with ``subscribe()``, which gets a
    ``TypewriterFrame`` on every change.

    An empty phrase list is a valid idle configuration: ``start()`` logs and
    returns without scheduling anything, and ``text`` stays empty.
    """

    def __init__(
        self,
        phrases: Iterable[str],
        typing_interval_ms: float = 100,
        deleting_interval_ms: float = 50,
        pause_duration_ms: float = 2000,
        scheduler: Optional[Scheduler] = None,
    ):
        """
        Args:
            phrases: Ordered phrases to cycle through
            typing_interval_ms: Delay between typed characters
            deleting_interval_ms: Delay between deleted characters
            pause_duration_ms: Delay after a phrase is complete, before deleting
            scheduler: Timer source (defaults to the running asyncio loop)
        """
        super().__init__(scheduler)

        self._phrases: Tuple[str, ...] = tuple(phrases)
        for phrase in self._phrases:
            if not isinstance(phrase, str):
                raise TypeError(f"Phrases must be strings, got {type(phrase).__name__}")

        for name, value in (
            ("typing_interval_ms", typing_interval_ms),
            ("deleting_interval_ms", deleting_interval_ms),
            ("pause_duration_ms", pause_duration_ms),
        ):
            if value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}")

        self.typing_interval_ms = typing_interval_ms
        self.deleting_interval_ms = deleting_interval_ms
        self.pause_duration_ms = pause_duration_ms

        self._index = 0
        self._text = ""
        self._mode = TypewriterMode.TYPING

    @classmethod
    def from_options(
        cls, options: TypewriterOptions, scheduler: Optional[Scheduler] = None
    ) -> "TypewriterEngine":
        return cls(
            options.phrases,
            typing_interval_ms=options.typing_interval_ms,
            deleting_interval_ms=options.deleting_interval_ms,
            pause_duration_ms=options.pause_duration_ms,
            scheduler=scheduler,
        )

    @property
    def options(self) -> TypewriterOptions:
        return TypewriterOptions(
            phrases=list(self._phrases),
            typing_interval_ms=self.typing_interval_ms,
            deleting_interval_ms=self.deleting_interval_ms,
            pause_duration_ms=self.pause_duration_ms,
        )

    @property
    def phrases(self) -> Tuple[str, ...]:
        return self._phrases

    @property
    def text(self) -> str:
        return self._text

    @property
    def mode(self) -> TypewriterMode:
        return self._mode

    @property
    def phrase_index(self) -> int:
        return self._index

    @property
    def phrase(self) -> str:
        return self._phrases[self._index] if self._phrases else ""

    def snapshot(self) -> TypewriterFrame:
        return TypewriterFrame(
            text=self._text,
            mode=self._mode,
            phrase_index=self._index,
            phrase=self.phrase,
            running=self._running,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        if not self._phrases:
            logger.info("Typewriter has no phrases, staying idle")
            return
        super().start()

    def _on_start(self) -> None:
        self._index = 0
        self._text = ""
        self._mode = TypewriterMode.TYPING
        logger.info(
            f"Typewriter started: {len(self._phrases)} phrases, "
            f"typing={self.typing_interval_ms}ms deleting={self.deleting_interval_ms}ms "
            f"pause={self.pause_duration_ms}ms"
        )
        if self._emit():
            self._begin_typing()

    def _on_stop(self) -> None:
        logger.info(f"Typewriter stopped at phrase {self._index} ({self._text!r})")
        super()._on_stop()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _begin_typing(self) -> None:
        if self._text == self.phrase:
            # Empty phrase: nothing to type
            self._begin_pause()
        else:
            self._schedule(self.typing_interval_ms, self._type_next)

    def _type_next(self) -> None:
        phrase = self.phrase
        self._text = phrase[: len(self._text) + 1]
        logger.verbose(f"Typed {self._text!r}")  # type: ignore[attr-defined]

        if self._text == phrase:
            self._begin_pause()
        elif self._emit():
            self._schedule(self.typing_interval_ms, self._type_next)

    def _begin_pause(self) -> None:
        self._mode = TypewriterMode.PAUSING
        logger.debug(f"Phrase {self._index} complete, pausing {self.pause_duration_ms}ms")
        if self._emit():
            self._schedule(self.pause_duration_ms, self._end_pause)

    def _end_pause(self) -> None:
        self._mode = TypewriterMode.DELETING
        logger.debug(f"Deleting phrase {self._index}")
        if not self._text:
            self._next_phrase()
            return
        if self._emit():
            self._schedule(self.deleting_interval_ms, self._delete_last)

    def _delete_last(self) -> None:
        self._text = self._text[:-1]
        logger.verbose(f"Deleted to {self._text!r}")  # type: ignore[attr-defined]

        if not self._text:
            self._next_phrase()
        elif self._emit():
            self._schedule(self.deleting_interval_ms, self._delete_last)

    def _next_phrase(self) -> None:
        self._index = (self._index + 1) % len(self._phrases)
        self._mode = TypewriterMode.TYPING
        logger.debug(f"Moving to phrase {self._index}: {self.phrase!r}")
        if self._emit():
            self._begin_typing()
