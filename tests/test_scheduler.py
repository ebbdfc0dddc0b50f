"""
Tests for the timer backends.

Run: python -m pytest tests/test_scheduler.py -q
"""

import asyncio

import pytest

from rsvp.book.flattener import flatten_chapter
from rsvp.book.models import Chapter
from rsvp.playback.controller import PlaybackController
from rsvp.playback.models import PlaybackCallbacks
from rsvp.playback.scheduler import AsyncioScheduler, SchedScheduler


class TestSchedScheduler:
    def test_callbacks_run_in_time_order(self, scheduler, clock):
        fired = []
        scheduler.call_later(2.0, lambda: fired.append(("b", clock.now)))
        scheduler.call_later(1.0, lambda: fired.append(("a", clock.now)))
        scheduler.run()
        assert fired == [("a", 1.0), ("b", 2.0)]

    def test_cancel(self, scheduler):
        fired = []
        handle = scheduler.call_later(1.0, lambda: fired.append(1))
        scheduler.cancel(handle)
        scheduler.cancel(handle)
        scheduler.cancel(None)
        scheduler.run()
        assert fired == []
        assert scheduler.pending == 0

    def test_run_pending_only_runs_due_callbacks(self, scheduler, clock):
        fired = []
        scheduler.call_later(1.0, lambda: fired.append(1))
        scheduler.run_pending()
        assert fired == []
        assert scheduler.next_due() == pytest.approx(1.0)

        clock.now = 1.0
        scheduler.run_pending()
        assert fired == [1]
        assert scheduler.next_due() is None

    def test_negative_delay_is_immediate(self, scheduler):
        fired = []
        scheduler.call_later(-5, lambda: fired.append(1))
        scheduler.run_pending()
        assert fired == [1]

    def test_run_returns_when_playback_stops(self, scheduler, clock):
        flat = flatten_chapter(Chapter(id="c", paragraphs=[["One two three."]]))
        ctrl = PlaybackController([flat], scheduler, wpm=60)
        ctrl.play()
        scheduler.run()
        assert not ctrl.is_playing
        assert clock.now == pytest.approx(3.0)

    def test_now_uses_the_clock(self, scheduler, clock):
        clock.now = 42.0
        assert scheduler.now() == 42.0


class TestAsyncioScheduler:
    def test_drives_controller_to_chapter_end(self):
        flat = flatten_chapter(Chapter(id="c", paragraphs=[["Alpha beta gamma.", "Delta."]]))

        async def read():
            done = asyncio.Event()
            ctrl = PlaybackController(
                [flat],
                AsyncioScheduler(),
                wpm=6000,
                callbacks=PlaybackCallbacks(on_chapter_end=lambda i: done.set()),
            )
            ctrl.play()
            await asyncio.wait_for(done.wait(), timeout=5)
            return ctrl

        ctrl = asyncio.run(read())
        assert not ctrl.is_playing
        assert ctrl.current_word.text == "Delta"

    def test_pause_cancels_pending_tick(self):
        flat = flatten_chapter(Chapter(id="c", paragraphs=[["Alpha beta gamma."]]))

        async def read():
            ctrl = PlaybackController([flat], AsyncioScheduler(), wpm=600)
            ctrl.play()
            ctrl.pause()
            await asyncio.sleep(0.3)
            return ctrl

        ctrl = asyncio.run(read())
        assert ctrl.current_word.text == "Alpha"

    def test_uses_given_loop(self):
        loop = asyncio.new_event_loop()
        try:
            sched = AsyncioScheduler(loop)
            assert sched.loop is loop
            handle = sched.call_later(10, lambda: None)
            sched.cancel(handle)
            assert handle.cancelled()
        finally:
            loop.close()
