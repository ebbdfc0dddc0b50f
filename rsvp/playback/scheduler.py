"""
Single-threaded timer backends for the playback controller.

The controller only needs to arm one delayed callback at a time and
cancel it.  :class:`BaseScheduler` is that contract; the concrete
schedulers run everything on the caller's thread, so a tick can never
interleave with a command.
"""

import asyncio
import logging
import sched
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class BaseScheduler(ABC):
    """
    Common interface for timer backends.

    Subclasses must implement :meth:`now`, :meth:`call_later` and
    :meth:`cancel`.
    """

    @abstractmethod
    def now(self) -> float:
        """Current time in seconds on the scheduler's clock."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> Any:
        """
        Run *callback* once after *delay* seconds.

        Returns:
            An opaque handle accepted by :meth:`cancel`.
        """

    @abstractmethod
    def cancel(self, handle: Any) -> None:
        """Cancel a pending callback.  Unknown or fired handles are ignored."""


class SchedScheduler(BaseScheduler):
    """
    Blocking scheduler built on the standard library :mod:`sched` module.

    :meth:`run` executes callbacks until nothing is pending, which for a
    playback controller means until playback pauses or stops.  The clock
    and sleep functions are injectable so a virtual clock can drive it.
    """

    def __init__(
        self,
        timefunc: Callable[[], float] = time.monotonic,
        delayfunc: Callable[[float], None] = time.sleep,
    ):
        self._timefunc = timefunc
        self._sched = sched.scheduler(timefunc, delayfunc)

    def now(self) -> float:
        return self._timefunc()

    def call_later(self, delay: float, callback: Callable[[], None]) -> sched.Event:
        return self._sched.enter(max(0.0, delay), 0, callback)

    def cancel(self, handle: sched.Event) -> None:
        if handle is None:
            return
        try:
            self._sched.cancel(handle)
        except ValueError:
            # Already fired or cancelled
            pass

    def run(self) -> None:
        """Run callbacks until the queue is empty."""
        self._sched.run()

    def run_pending(self) -> None:
        """Run only the callbacks that are already due, without sleeping."""
        self._sched.run(blocking=False)

    def next_due(self) -> Optional[float]:
        """Clock time of the earliest pending callback, or ``None``."""
        queue = self._sched.queue
        return queue[0].time if queue else None

    @property
    def pending(self) -> int:
        return len(self._sched.queue)

    def __repr__(self) -> str:
        return f"SchedScheduler(pending={self.pending})"


class AsyncioScheduler(BaseScheduler):
    """
    Scheduler backed by an asyncio event loop's ``call_later``.

    Use this when embedding the reader in an asyncio application; all
    callbacks run on the loop's thread.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(max(0.0, delay), callback)

    def cancel(self, handle: asyncio.TimerHandle) -> None:
        if handle is not None:
            handle.cancel()

    def __repr__(self) -> str:
        return f"AsyncioScheduler(loop={self._loop!r})"
