"""
Shared fixtures: a virtual clock driving SchedScheduler, and small books.
"""

import pytest

from rsvp.book.flattener import flatten_chapter
from rsvp.book.models import Book, Chapter, Volume
from rsvp.playback.controller import PlaybackController
from rsvp.playback.scheduler import SchedScheduler


class VirtualClock:
    """Time that only moves when something sleeps on it."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def time(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += max(0.0, seconds)


@pytest.fixture
def clock():
    return VirtualClock()


@pytest.fixture
def scheduler(clock):
    return SchedScheduler(timefunc=clock.time, delayfunc=clock.sleep)


@pytest.fixture
def tick(scheduler, clock):
    """Advance the clock to the next pending callback and run it."""

    def _tick(times: int = 1) -> int:
        fired = 0
        for _ in range(times):
            due = scheduler.next_due()
            if due is None:
                break
            clock.now = max(clock.now, due)
            scheduler.run_pending()
            fired += 1
        return fired

    return _tick


def make_book(*chapters, title="Test Book", volume_title=""):
    """Single-volume book; each argument is a chapter's list of paragraphs."""
    return Book(
        id="book-test",
        title=title,
        volumes=[
            Volume(
                id="vol-1",
                title=volume_title,
                chapters=[
                    Chapter(id=f"ch-{i + 1}", title=f"Chapter {i + 1}", paragraphs=p)
                    for i, p in enumerate(chapters)
                ],
            )
        ],
    )


# Two paragraphs: three two-word sentences, then one more
TWO_PARAGRAPHS = [
    ["One two.", "Three four.", "Five six."],
    ["Seven eight."],
]


@pytest.fixture
def make_controller(scheduler):
    def _make(*chapters, **kwargs):
        flat = [
            flatten_chapter(Chapter(id=f"ch-{i + 1}", title=f"Chapter {i + 1}", paragraphs=p))
            for i, p in enumerate(chapters)
        ]
        kwargs.setdefault("wpm", 60)
        return PlaybackController(flat, scheduler, **kwargs)

    return _make
