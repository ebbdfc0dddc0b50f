"""
Playback: timer-driven word stepping over flattened chapters.

Public API::

    from rsvp.playback import PlaybackController, ReaderNavigator, SchedScheduler
"""

from .controller import PlaybackController
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
from .navigation import ReaderNavigator
from .scheduler import AsyncioScheduler, BaseScheduler, SchedScheduler

__all__ = [
    "PlaybackController",
    "ReaderNavigator",
    "BaseScheduler",
    "SchedScheduler",
    "AsyncioScheduler",
    "AutoStopMode",
    "BoundaryStop",
    "PlaybackCallbacks",
    "PlaybackPosition",
    "PlaybackState",
    "InvalidConfiguration",
    "DEFAULT_WPM",
    "validate_wpm",
]
