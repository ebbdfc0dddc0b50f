"""
Command façade that a UI binds its buttons and keys to.
"""

from typing import Optional, Tuple

from rsvp.text.models import Word

from .controller import PlaybackController
from .models import AutoStopMode, PlaybackState


class ReaderNavigator:
    """
    Public command surface of a :class:`PlaybackController`.

    Every method forwards to the controller; the display helpers only
    reshape what the controller already knows.
    """

    def __init__(self, controller: PlaybackController):
        self._controller = controller

    @property
    def controller(self) -> PlaybackController:
        return self._controller

    # ---- commands ----------------------------------------------------

    def play(self) -> bool:
        return self._controller.play()

    def pause(self) -> None:
        self._controller.pause()

    def toggle(self) -> bool:
        return self._controller.toggle()

    def next_word(self) -> bool:
        return self._controller.next_word()

    def prev_word(self) -> bool:
        return self._controller.prev_word()

    def next_sentence(self) -> bool:
        return self._controller.next_sentence()

    def prev_sentence(self) -> bool:
        return self._controller.prev_sentence()

    def restart_sentence(self) -> None:
        self._controller.restart_sentence()

    def advance_past_boundary(self) -> bool:
        return self._controller.advance_past_boundary()

    def reset(self) -> None:
        self._controller.reset()

    def set_wpm(self, wpm: int) -> None:
        self._controller.set_wpm(wpm)

    def set_auto_stop_mode(self, mode: AutoStopMode) -> None:
        self._controller.set_auto_stop_mode(mode)

    def next_chapter(self) -> bool:
        return self._controller.next_chapter()

    def prev_chapter(self) -> bool:
        return self._controller.prev_chapter()

    def go_to_chapter(self, index: int) -> bool:
        return self._controller.go_to_chapter(index)

    # ---- accessors ---------------------------------------------------

    @property
    def state(self) -> PlaybackState:
        return self._controller.state

    @property
    def current_word(self) -> Optional[Word]:
        return self._controller.current_word

    @property
    def wpm(self) -> int:
        return self._controller.wpm

    @property
    def sentence_progress(self) -> Tuple[int, int]:
        """
        ``(current sentence number, total sentences)``, 1-based; ``(0, 0)``
        when the chapter has no words.

        Sentences without words are never landed on, so they are left out
        of both numbers.
        """
        chapter = self._controller.chapter
        total = chapter.readable_sentence_count
        if total == 0:
            return 0, 0
        return chapter.readable_ordinal(self._controller.sentence_index), total

    @property
    def chapter_title(self) -> str:
        return self._controller.chapter.title

    def __repr__(self) -> str:
        return f"ReaderNavigator({self._controller!r})"
