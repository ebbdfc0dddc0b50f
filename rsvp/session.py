"""
Reading session: book → chapter iterator → controller → navigator.

Wires the pieces together for one reader:

1. **Chapter access** — a :class:`BookIterator` flattens chapters lazily
   and caches the most recent ones.
2. **Playback** — a :class:`PlaybackController` steps through the words
   on the session's scheduler, honouring the auto-stop mode.
3. **Warm-up** — the rate ramps linearly from ``wpm`` to ``max_wpm`` over
   ``warmup_seconds`` of reading, re-evaluated on every word.
4. **Bookkeeping** — words shown, boundary stops and finished chapters
   are collected into a :class:`SessionResult`.

Usage::

    from rsvp.session import ReaderConfig, ReadingSession

    session = ReadingSession(book, ReaderConfig(wpm=250, max_wpm=400))
    result = session.run()
    print(result.summary())
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from rsvp.book.iterator import DEFAULT_CACHE_SIZE, BookIterator
from rsvp.book.models import Book
from rsvp.playback.controller import PlaybackController
from rsvp.playback.models import (
    DEFAULT_WPM,
    AutoStopMode,
    InvalidConfiguration,
    PlaybackCallbacks,
    PlaybackPosition,
    PlaybackState,
    validate_wpm,
)
from rsvp.playback.navigation import ReaderNavigator
from rsvp.playback.scheduler import BaseScheduler, SchedScheduler

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Configuration
# ------------------------------------------------------------------


@dataclass
class ReaderConfig:
    """
    All tuneable parameters of a reading session.

    Attributes:
        wpm:            Starting rate in words per minute.
        max_wpm:        Rate reached at the end of the warm-up (``None`` = no warm-up).
        warmup_seconds: Length of the linear ramp from ``wpm`` to ``max_wpm``.
        auto_stop_mode: Where playback pauses by itself.
        start_chapter:  0-based reading-order index of the first chapter.
        cache_size:     How many flattened chapters to keep in memory.
        disable_tqdm:   Suppress progress bars.
    """

    wpm: int = DEFAULT_WPM
    max_wpm: Optional[int] = None
    warmup_seconds: float = 60.0
    auto_stop_mode: AutoStopMode = AutoStopMode.DISABLED
    start_chapter: int = 0
    cache_size: int = DEFAULT_CACHE_SIZE
    disable_tqdm: bool = False

    def validate(self) -> "ReaderConfig":
        """
        Check every field, normalising ``auto_stop_mode`` from a string.

        Raises:
            InvalidConfiguration: On the first invalid field.
        """
        validate_wpm(self.wpm)
        if self.max_wpm is not None:
            validate_wpm(self.max_wpm)
            if self.max_wpm < self.wpm:
                raise InvalidConfiguration(
                    f"max_wpm ({self.max_wpm}) must not be below wpm ({self.wpm})"
                )
        if self.warmup_seconds < 0:
            raise InvalidConfiguration(
                f"warmup_seconds must be >= 0, got {self.warmup_seconds}"
            )
        if self.start_chapter < 0:
            raise InvalidConfiguration(
                f"start_chapter must be >= 0, got {self.start_chapter}"
            )
        if self.cache_size < 1:
            raise InvalidConfiguration(f"cache_size must be >= 1, got {self.cache_size}")
        self.auto_stop_mode = AutoStopMode.parse(self.auto_stop_mode)
        return self


@dataclass(frozen=True)
class WarmupSchedule:
    """Linear rate ramp: ``initial`` at t=0 up to ``maximum`` at ``duration`` seconds."""

    initial: int
    maximum: int
    duration: float

    @property
    def is_flat(self) -> bool:
        return self.maximum == self.initial

    def wpm_at(self, elapsed: float) -> int:
        if self.is_flat or self.duration <= 0:
            return self.maximum
        progress = min(max(elapsed, 0.0) / self.duration, 1.0)
        return round(self.initial + (self.maximum - self.initial) * progress)


# ------------------------------------------------------------------
# Result
# ------------------------------------------------------------------


@dataclass
class SessionResult:
    """What happened during a session, for reporting."""

    book_title: str = ""
    total_chapters: int = 0
    chapters_finished: int = 0
    words_shown: int = 0
    boundary_stops: int = 0
    final_wpm: int = 0
    elapsed_seconds: float = 0.0

    def summary(self) -> str:
        """Format a human-readable summary of the session."""
        minutes = self.elapsed_seconds / 60
        average = self.words_shown / minutes if minutes > 0 else 0.0
        return (
            f"{'=' * 60}\n"
            f"READING SESSION\n"
            f"{'=' * 60}\n"
            f"  Book:           {self.book_title}\n"
            f"  Chapters:       {self.chapters_finished} / {self.total_chapters} finished\n"
            f"  Words shown:    {self.words_shown}\n"
            f"  Boundary stops: {self.boundary_stops}\n"
            f"  Final rate:     {self.final_wpm} wpm\n"
            f"  Average rate:   {average:.0f} wpm\n"
            f"  Reading time:   {self.elapsed_seconds:.1f}s ({minutes:.1f} min)\n"
            f"{'=' * 60}"
        )


# ------------------------------------------------------------------
# Session
# ------------------------------------------------------------------


class ReadingSession:
    """
    One reader over one book.

    *callbacks* are chained after the session's own bookkeeping, so a UI
    can render words and states without replacing it.
    """

    def __init__(
        self,
        book: Book,
        config: Optional[ReaderConfig] = None,
        scheduler: Optional[BaseScheduler] = None,
        callbacks: Optional[PlaybackCallbacks] = None,
    ):
        self.config = (config or ReaderConfig()).validate()
        self.book = book
        self.scheduler = scheduler or SchedScheduler()
        self.iterator = BookIterator(book, max_cache_size=self.config.cache_size)
        self.warmup = self._configured_warmup()
        self._user_callbacks = callbacks or PlaybackCallbacks()
        self._warmup_start: Optional[float] = None
        self._started_at: Optional[float] = None
        self._chapter_ended = False
        self._last_shown: Optional[PlaybackPosition] = None
        self._result = SessionResult(book_title=book.title, total_chapters=len(self.iterator))

        start = self.config.start_chapter
        if self.iterator and start >= len(self.iterator):
            logger.warning(
                "Start chapter %d out of range (%d chapters), using the last one",
                start,
                len(self.iterator),
            )
            start = len(self.iterator) - 1

        self.controller = PlaybackController(
            self.iterator,
            self.scheduler,
            wpm=self.config.wpm,
            auto_stop_mode=self.config.auto_stop_mode,
            chapter_index=start,
            callbacks=PlaybackCallbacks(
                on_state_change=self._on_state_change,
                on_word=self._on_word,
                on_chapter_end=self._on_chapter_end,
            ),
        )
        self.navigator = ReaderNavigator(self.controller)

    # ------------------------------------------------------------------
    # Controls
    # ------------------------------------------------------------------

    def play(self) -> bool:
        """Start playback, starting the warm-up clock on the first call."""
        if self._started_at is None:
            self._started_at = self.scheduler.now()
        if self._warmup_start is None:
            self._warmup_start = self.scheduler.now()
        self._chapter_ended = False
        if not self.controller.play():
            return False
        self._count_shown(self.controller.position)
        return True

    def set_wpm(self, wpm: int) -> None:
        """Set a fixed rate; this ends the warm-up."""
        self.controller.set_wpm(wpm)
        self.warmup = WarmupSchedule(initial=wpm, maximum=wpm, duration=0.0)

    def restart_warmup(self) -> None:
        """
        Ramp again from the configured initial rate, starting now.

        Undoes a fixed rate set with :meth:`set_wpm`.  Before the first
        :meth:`play` the ramp clock stays unset and starts with playback.
        """
        self.warmup = self._configured_warmup()
        if self._started_at is not None:
            self._warmup_start = self.scheduler.now()
        self.controller.set_wpm(self.warmup.initial)
        logger.debug(
            "Warm-up restarted: %d -> %d wpm over %.0fs",
            self.warmup.initial,
            self.warmup.maximum,
            self.warmup.duration,
        )

    def _configured_warmup(self) -> WarmupSchedule:
        return WarmupSchedule(
            initial=self.config.wpm,
            maximum=self.config.max_wpm or self.config.wpm,
            duration=self.config.warmup_seconds,
        )

    def run(
        self,
        at_boundary: Optional[Callable[[PlaybackState], bool]] = None,
        at_chapter_end: Optional[Callable[[int], bool]] = None,
    ) -> "SessionResult":
        """
        Read until the book ends or a hook declines to continue.

        Blocks on the session's :class:`SchedScheduler`.

        Args:
            at_boundary:    Called at every boundary stop; return False to
                            leave the loop there.  ``None`` always continues.
            at_chapter_end: Called with the finished chapter's index before
                            moving to the next chapter; return False to
                            stop.  ``None`` always continues.

        Returns:
            :class:`SessionResult` for the whole session so far.
        """
        if not isinstance(self.scheduler, SchedScheduler):
            raise TypeError(
                "run() needs a SchedScheduler; drive other schedulers from their own loop"
            )

        self.play()
        while True:
            if self.controller.is_playing:
                self.scheduler.run()
                continue

            state = self.controller.state
            if state.is_stopped_at_boundary:
                if at_boundary is not None and not at_boundary(state):
                    break
                if self.controller.advance_past_boundary():
                    self._count_shown(self.controller.position)
                continue

            if self._chapter_ended or self.controller.is_empty:
                index = self.controller.chapter_index
                if index + 1 >= self.controller.chapter_count:
                    logger.info("Reached the end of %r", self.book.title)
                    break
                if at_chapter_end is not None and not at_chapter_end(index):
                    break
                self.controller.next_chapter()
                self.play()
                continue

            # Paused from a callback
            break

        return self.result()

    def close(self) -> None:
        self.controller.close()

    def result(self) -> SessionResult:
        self._result.final_wpm = self.controller.wpm
        if self._started_at is not None:
            self._result.elapsed_seconds = self.scheduler.now() - self._started_at
        return self._result

    # ------------------------------------------------------------------
    # Controller hooks
    # ------------------------------------------------------------------

    def _count_shown(self, position: PlaybackPosition) -> None:
        if position != self._last_shown:
            self._last_shown = position
            self._result.words_shown += 1

    def _on_state_change(self, state: PlaybackState) -> None:
        if self._user_callbacks.on_state_change:
            self._user_callbacks.on_state_change(state)

    def _on_word(self, state: PlaybackState) -> None:
        self._count_shown(state.position)
        if state.is_stopped_at_boundary:
            self._result.boundary_stops += 1
        elif state.is_playing and not self.warmup.is_flat and self._warmup_start is not None:
            target = self.warmup.wpm_at(self.scheduler.now() - self._warmup_start)
            if target != self.controller.wpm:
                logger.debug("Warm-up: %d -> %d wpm", self.controller.wpm, target)
                self.controller.set_wpm(target)

        if self._user_callbacks.on_word:
            self._user_callbacks.on_word(state)

    def _on_chapter_end(self, index: int) -> None:
        self._chapter_ended = True
        self._result.chapters_finished += 1
        if self._user_callbacks.on_chapter_end:
            self._user_callbacks.on_chapter_end(index)

    def __repr__(self) -> str:
        return f"ReadingSession({self.book.title!r}, {self.controller!r})"
