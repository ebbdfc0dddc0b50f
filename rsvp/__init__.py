"""
RSVP word-by-word reader.

Sentence parsing, chapter flattening, timer-driven playback with
sentence/paragraph auto-stop, and book import from text, PDF, EPUB and
FB2 files.
"""

from .session import ReaderConfig, ReadingSession, SessionResult, WarmupSchedule

__all__ = [
    "ReaderConfig",
    "ReadingSession",
    "SessionResult",
    "WarmupSchedule",
]
