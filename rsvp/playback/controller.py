"""
Playback controller: timer-driven state machine over flattened chapters.

The controller owns the reading position, the play/pause flag, the
auto-stop mode and the boundary-stop flag.  A single tick is armed on
the injected scheduler while playing; every tick advances one word and
re-evaluates the auto-stop policy.

States::

    Stopped ──play()──▶ Playing ──tick at boundary──▶ StoppedAtBoundary
       ▲                  │                                 │
       └──pause()/end─────┘◀──────advance_past_boundary()───┘

Zero-word sentences are skipped by every move, so the position always
points at an existing word while the current chapter has any words.
"""

import logging
from typing import Optional, Sequence, Tuple

from rsvp.book.flattener import FlatChapter, FlatSentence
from rsvp.text.models import Word

from .models import (
    DEFAULT_WPM,
    AutoStopMode,
    BoundaryStop,
    InvalidConfiguration,
    PlaybackCallbacks,
    PlaybackPosition,
    PlaybackState,
    validate_wpm,
)
from .scheduler import BaseScheduler

logger = logging.getLogger(__name__)

# (sentence_index, word_index) within the current chapter
_Pos = Tuple[int, int]


class PlaybackController:
    """
    Word-by-word playback over a sequence of :class:`FlatChapter`.

    *chapters* may be a plain list or a :class:`BookIterator`.  All
    commands run synchronously on the caller's thread and never raise for
    out-of-range navigation; they clamp instead.  Only :meth:`set_wpm`
    and :meth:`set_auto_stop_mode` raise, with
    :class:`InvalidConfiguration`.
    """

    def __init__(
        self,
        chapters: Sequence[FlatChapter],
        scheduler: BaseScheduler,
        wpm: int = DEFAULT_WPM,
        auto_stop_mode: AutoStopMode = AutoStopMode.DISABLED,
        chapter_index: int = 0,
        callbacks: Optional[PlaybackCallbacks] = None,
    ):
        self._chapters = chapters
        self._scheduler = scheduler
        self._wpm = validate_wpm(wpm)
        self._mode = AutoStopMode.parse(auto_stop_mode)
        self._callbacks = callbacks or PlaybackCallbacks()

        self._is_playing = False
        self._boundary = BoundaryStop.NONE
        self._timer = None
        self._generation = 0

        self._chapter_index = 0
        self._flat = FlatChapter()
        self._sentence_index = 0
        self._word_index = 0

        if len(chapters) > 0:
            self._enter_chapter(min(max(chapter_index, 0), len(chapters) - 1))

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    @property
    def state(self) -> PlaybackState:
        return PlaybackState(
            position=self.position,
            is_playing=self._is_playing,
            stopped_at_boundary=self._boundary,
            wpm=self._wpm,
            auto_stop_mode=self._mode,
        )

    @property
    def position(self) -> PlaybackPosition:
        paragraph = 0
        if self._flat.sentences:
            paragraph = self._flat[self._sentence_index].paragraph_index
        return PlaybackPosition(
            chapter_index=self._chapter_index,
            paragraph_index=paragraph,
            sentence_index=self._sentence_index,
            word_index=self._word_index,
        )

    @property
    def is_empty(self) -> bool:
        """True when the current chapter has no words to show."""
        return self._flat.is_empty

    @property
    def is_playing(self) -> bool:
        return self._is_playing

    @property
    def stopped_at_boundary(self) -> BoundaryStop:
        return self._boundary

    @property
    def wpm(self) -> int:
        return self._wpm

    @property
    def auto_stop_mode(self) -> AutoStopMode:
        return self._mode

    @property
    def tick_interval(self) -> float:
        """Seconds between ticks (``60 / wpm``)."""
        return 60.0 / self._wpm

    @property
    def chapter(self) -> FlatChapter:
        return self._flat

    @property
    def chapter_index(self) -> int:
        return self._chapter_index

    @property
    def chapter_count(self) -> int:
        return len(self._chapters)

    @property
    def sentence_index(self) -> int:
        return self._sentence_index

    @property
    def sentence_count(self) -> int:
        """All flattened sentences, the range of :attr:`sentence_index`."""
        return self._flat.sentence_count

    @property
    def current_sentence(self) -> Optional[FlatSentence]:
        if self.is_empty:
            return None
        return self._flat[self._sentence_index]

    @property
    def current_word(self) -> Optional[Word]:
        sentence = self.current_sentence
        if sentence is None:
            return None
        return sentence.parsed.words[self._word_index]

    # ------------------------------------------------------------------
    # Play / pause
    # ------------------------------------------------------------------

    def play(self) -> bool:
        """
        Start playback from the current word.

        A no-op while parked on a boundary that the active auto-stop mode
        still demands; :meth:`advance_past_boundary` must be used there.

        Returns:
            True if playback is running after the call.
        """
        if self.is_empty:
            logger.warning("Chapter %d has no words, nothing to play", self._chapter_index)
            return False
        if self._is_playing:
            return True
        if self._boundary is not BoundaryStop.NONE and self._boundary_at(self._here()) is not BoundaryStop.NONE:
            logger.debug("Stopped at %s end, play() ignored", self._boundary.value)
            return False

        self._boundary = BoundaryStop.NONE
        self._is_playing = True
        self._arm()
        logger.info("Playback started at %s (%d wpm)", self.position, self._wpm)
        self._notify()
        return True

    def pause(self) -> None:
        """Stop playback and disarm the tick.  Idempotent."""
        self._disarm()
        if not self._is_playing:
            return
        self._is_playing = False
        logger.info("Playback paused at %s", self.position)
        self._notify()

    def toggle(self) -> bool:
        """Pause if playing, otherwise play.  Returns the new playing flag."""
        if self._is_playing:
            self.pause()
            return False
        return self.play()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def next_word(self) -> bool:
        """Step forward one word; clamps at the end of the chapter."""
        return self._land(self._next_pos(self._here()))

    def prev_word(self) -> bool:
        """Step back one word; clamps at the start of the chapter."""
        return self._land(self._prev_pos(self._here()))

    def next_sentence(self) -> bool:
        """Jump to the first word of the next sentence, if there is one."""
        target = self._next_sentence(self._sentence_index)
        return self._land(None if target is None else (target, 0))

    def prev_sentence(self) -> bool:
        """Jump to the first word of the previous sentence, if there is one."""
        target = self._prev_sentence(self._sentence_index)
        return self._land(None if target is None else (target, 0))

    def restart_sentence(self) -> None:
        """Go back to the first word of the current sentence; play state is kept."""
        if self.is_empty:
            return
        self._word_index = 0
        self._boundary = BoundaryStop.NONE
        self._notify()

    def advance_past_boundary(self) -> bool:
        """
        Leave a boundary stop: move to the next sentence and resume playing.

        Only valid while stopped at a boundary; otherwise a no-op.

        Returns:
            True if playback resumed.
        """
        if self._boundary is BoundaryStop.NONE:
            return False

        target = self._next_sentence(self._sentence_index)
        self._boundary = BoundaryStop.NONE
        if target is None:
            self._notify()
            return False

        self._sentence_index, self._word_index = target, 0
        self._is_playing = True
        self._arm()
        logger.debug("Advanced past boundary to %s", self.position)
        self._notify()
        return True

    def reset(self) -> None:
        """Back to the chapter start, not playing, no boundary."""
        self._disarm()
        self._is_playing = False
        self._boundary = BoundaryStop.NONE
        self._seek_start()
        self._notify()

    # ------------------------------------------------------------------
    # Chapters
    # ------------------------------------------------------------------

    def go_to_chapter(self, index: int) -> bool:
        """Open chapter *index* at its start, paused.  Out-of-range is a no-op."""
        if not 0 <= index < len(self._chapters):
            return False
        self._disarm()
        self._is_playing = False
        self._boundary = BoundaryStop.NONE
        self._enter_chapter(index)
        logger.info("Opened chapter %d (%r)", index, self._flat.title)
        self._notify()
        return True

    def next_chapter(self) -> bool:
        return self.go_to_chapter(self._chapter_index + 1)

    def prev_chapter(self) -> bool:
        return self.go_to_chapter(self._chapter_index - 1)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def set_wpm(self, wpm: int) -> None:
        """
        Change the reading rate.

        Raises:
            InvalidConfiguration: If *wpm* is not a positive integer; the
                previous rate stays in effect.
        """
        try:
            self._wpm = validate_wpm(wpm)
        except InvalidConfiguration:
            logger.warning("Rejected rate %r, keeping %d wpm", wpm, self._wpm)
            raise
        if self._is_playing:
            self._arm()
        self._notify()

    def set_auto_stop_mode(self, mode: AutoStopMode) -> None:
        """Change the auto-stop policy; the current boundary flag is kept."""
        self._mode = AutoStopMode.parse(mode)
        self._notify()

    def close(self) -> None:
        """Disarm any pending tick and stop."""
        self._disarm()
        self._is_playing = False

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def _on_tick(self, generation: int) -> None:
        if generation != self._generation or not self._is_playing:
            return
        self._timer = None

        target = self._next_pos(self._here())
        if target is None:
            self._is_playing = False
            self._boundary = BoundaryStop.NONE
            logger.info("End of chapter %d", self._chapter_index)
            self._notify()
            if self._callbacks.on_chapter_end:
                self._callbacks.on_chapter_end(self._chapter_index)
            return

        self._sentence_index, self._word_index = target
        self._boundary = self._boundary_at(target)
        if self._boundary is not BoundaryStop.NONE:
            self._is_playing = False
            logger.debug("Auto-stop at %s end: %s", self._boundary.value, self.position)

        if self._callbacks.on_word:
            self._callbacks.on_word(self.state)
        self._notify()

        if self._is_playing and self._timer is None:
            self._arm()

    def _arm(self) -> None:
        self._disarm()
        generation = self._generation
        self._timer = self._scheduler.call_later(
            self.tick_interval, lambda: self._on_tick(generation)
        )

    def _disarm(self) -> None:
        if self._timer is not None:
            self._scheduler.cancel(self._timer)
            self._timer = None
        self._generation += 1

    # ------------------------------------------------------------------
    # Position helpers
    # ------------------------------------------------------------------

    def _here(self) -> _Pos:
        return self._sentence_index, self._word_index

    def _land(self, target: Optional[_Pos]) -> bool:
        """Move to *target* (if any) and re-evaluate the boundary flag."""
        if target is None or self.is_empty:
            return False
        self._sentence_index, self._word_index = target
        self._boundary = self._boundary_at(target)
        if self._boundary is not BoundaryStop.NONE and self._is_playing:
            self._disarm()
            self._is_playing = False
        self._notify()
        return True

    def _enter_chapter(self, index: int) -> None:
        self._chapter_index = index
        self._flat = self._chapters[index]
        if self._flat.is_empty:
            logger.warning("Chapter %d (%r) has no words", index, self._flat.chapter_id)
        self._seek_start()

    def _seek_start(self) -> None:
        first = self._next_sentence(-1)
        self._sentence_index = first if first is not None else 0
        self._word_index = 0

    def _words_in(self, sentence_index: int) -> int:
        return self._flat[sentence_index].word_count

    def _next_sentence(self, sentence_index: int) -> Optional[int]:
        for i in range(sentence_index + 1, self._flat.sentence_count):
            if self._words_in(i):
                return i
        return None

    def _prev_sentence(self, sentence_index: int) -> Optional[int]:
        for i in range(sentence_index - 1, -1, -1):
            if self._words_in(i):
                return i
        return None

    def _next_pos(self, pos: _Pos) -> Optional[_Pos]:
        if self.is_empty:
            return None
        s, w = pos
        if w + 1 < self._words_in(s):
            return s, w + 1
        nxt = self._next_sentence(s)
        return None if nxt is None else (nxt, 0)

    def _prev_pos(self, pos: _Pos) -> Optional[_Pos]:
        if self.is_empty:
            return None
        s, w = pos
        if w > 0:
            return s, w - 1
        prev = self._prev_sentence(s)
        return None if prev is None else (prev, self._words_in(prev) - 1)

    def _boundary_at(self, pos: _Pos) -> BoundaryStop:
        """
        Boundary the auto-stop policy demands at *pos*.

        The chapter's final word is never a boundary stop: the next tick
        ends the chapter instead.
        """
        if self._mode is AutoStopMode.DISABLED:
            return BoundaryStop.NONE
        s, w = pos
        if w != self._words_in(s) - 1 or self._next_sentence(s) is None:
            return BoundaryStop.NONE
        if self._flat[s].ends_paragraph:
            return BoundaryStop.PARAGRAPH
        if self._mode is AutoStopMode.SENTENCE:
            return BoundaryStop.SENTENCE
        return BoundaryStop.NONE

    def _notify(self) -> None:
        if self._callbacks.on_state_change:
            self._callbacks.on_state_change(self.state)

    def __repr__(self) -> str:
        return (
            f"PlaybackController(chapter={self._chapter_index}, "
            f"pos={self._sentence_index}:{self._word_index}, "
            f"playing={self._is_playing}, boundary={self._boundary.value}, "
            f"wpm={self._wpm}, mode={self._mode.value})"
        )
