"""
Data models for the playback state machine.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

DEFAULT_WPM = 300


class InvalidConfiguration(ValueError):
    """Raised when a playback setting (rate, auto-stop mode) is rejected."""


class AutoStopMode(Enum):
    """Where playback pauses by itself until explicitly advanced."""

    DISABLED = "disabled"
    SENTENCE = "sentence"
    PARAGRAPH = "paragraph"

    @classmethod
    def parse(cls, value) -> "AutoStopMode":
        """Accept an AutoStopMode or its string value."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            choices = ", ".join(m.value for m in cls)
            raise InvalidConfiguration(
                f"Unknown auto-stop mode {value!r} (expected one of: {choices})"
            ) from None


class BoundaryStop(Enum):
    """Kind of boundary the controller is parked on after an auto-stop."""

    NONE = "none"
    SENTENCE = "sentence"
    PARAGRAPH = "paragraph"


@dataclass(frozen=True)
class PlaybackPosition:
    """
    Zero-based reading position.

    ``sentence_index`` indexes the chapter's flattened sentence list;
    ``paragraph_index`` is the source paragraph of that sentence.
    """

    chapter_index: int = 0
    paragraph_index: int = 0
    sentence_index: int = 0
    word_index: int = 0


@dataclass(frozen=True)
class PlaybackState:
    """Immutable snapshot of the controller's state."""

    position: PlaybackPosition
    is_playing: bool
    stopped_at_boundary: BoundaryStop
    wpm: int
    auto_stop_mode: AutoStopMode

    @property
    def is_stopped_at_boundary(self) -> bool:
        return self.stopped_at_boundary is not BoundaryStop.NONE

    @property
    def tick_interval(self) -> float:
        """Seconds between words at the current rate."""
        return 60.0 / self.wpm


@dataclass
class PlaybackCallbacks:
    """
    Optional hooks the controller invokes synchronously.

    Attributes:
        on_state_change: Called with a fresh :class:`PlaybackState` after
                         every command or tick that changed something.
        on_word:         Called after a tick advanced to a new word.
        on_chapter_end:  Called with the chapter index when a tick ran
                         past the chapter's last word.
    """

    on_state_change: Optional[Callable[[PlaybackState], None]] = None
    on_word: Optional[Callable[[PlaybackState], None]] = None
    on_chapter_end: Optional[Callable[[int], None]] = None


def validate_wpm(wpm) -> int:
    """Return *wpm* if it is a positive integer, else raise InvalidConfiguration."""
    if isinstance(wpm, bool) or not isinstance(wpm, int):
        raise InvalidConfiguration(f"WPM must be a positive integer, got {wpm!r}")
    if wpm <= 0:
        raise InvalidConfiguration(f"WPM must be positive, got {wpm}")
    return wpm
