"""
Cooperative scheduling primitives.

Everything that happens "later" in the engine goes through a Scheduler: the
deferred physics reheat, focus retries, the auto-rotation frame loop and its
resume timeout. Two primitives are enough: run after a delay, and run on the
next animation frame.

ManualScheduler drives a virtual clock and is what tests and the replay CLI
use. AsyncioScheduler maps the same primitives onto an asyncio event loop and
is the default whenever one is running.
"""

import asyncio
import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Protocol

from .config import FRAME_INTERVAL_MS

logger = logging.getLogger(__name__)

Callback = Callable[[], Any]


class Scheduler(Protocol):
    """The two scheduling primitives plus a clock, all in milliseconds."""

    def now(self) -> float: ...

    def call_later(self, delay_ms: float, callback: Callback) -> Any: ...

    def request_frame(self, callback: Callback) -> Any: ...

    def cancel(self, handle: Any) -> None: ...


@dataclass(order=True)
class _Timer:
    due: float
    seq: int
    callback: Callback = field(compare=False)
    cancelled: bool = field(default=False, compare=False)


class ManualScheduler:
    """
    Virtual-clock scheduler.

    Time only moves when :meth:`advance` or :meth:`tick` is called. Frame
    callbacks requested while a frame is running are queued for the next one,
    so a self-rescheduling loop runs exactly once per tick.
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._seq = itertools.count()
        self._timers: List[_Timer] = []
        self._frames: List[_Timer] = []

    def now(self) -> float:
        return self._now

    def call_later(self, delay_ms: float, callback: Callback) -> _Timer:
        timer = _Timer(self._now + max(0.0, delay_ms), next(self._seq), callback)
        heapq.heappush(self._timers, timer)
        return timer

    def request_frame(self, callback: Callback) -> _Timer:
        frame = _Timer(self._now, next(self._seq), callback)
        self._frames.append(frame)
        return frame

    def cancel(self, handle: Optional[_Timer]) -> None:
        if handle is not None:
            handle.cancelled = True

    @property
    def pending_timers(self) -> int:
        return sum(1 for t in self._timers if not t.cancelled)

    @property
    def pending_frames(self) -> int:
        return sum(1 for f in self._frames if not f.cancelled)

    def advance(self, ms: float) -> None:
        """Move the clock forward, firing due timers in order."""
        target = self._now + ms
        while self._timers and self._timers[0].due <= target:
            timer = heapq.heappop(self._timers)
            if timer.cancelled:
                continue
            self._now = max(self._now, timer.due)
            timer.callback()
        self._now = target

    def tick(self, ms: float = FRAME_INTERVAL_MS) -> None:
        """Advance by one frame interval, then run the pending frame callbacks."""
        self.advance(ms)
        frames, self._frames = self._frames, []
        for frame in frames:
            if not frame.cancelled:
                frame.callback()

    def run_until_idle(self, limit_ms: float = 60_000) -> None:
        """Fire pending timers until none remain or ``limit_ms`` has elapsed."""
        deadline = self._now + limit_ms
        while self.pending_timers:
            due = min(t.due for t in self._timers if not t.cancelled)
            if due > deadline:
                logger.warning("Scheduler idle limit reached with timers pending")
                return
            self.advance(max(0.0, due - self._now))


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop (the running one by default)."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop or asyncio.get_running_loop()

    def now(self) -> float:
        return self._loop.time() * 1000

    def call_later(self, delay_ms: float, callback: Callback) -> asyncio.TimerHandle:
        return self._loop.call_later(max(0.0, delay_ms) / 1000, callback)

    def request_frame(self, callback: Callback) -> asyncio.TimerHandle:
        return self._loop.call_later(FRAME_INTERVAL_MS / 1000, callback)

    def cancel(self, handle: Optional[asyncio.Handle]) -> None:
        if handle is not None:
            handle.cancel()


def default_scheduler() -> Scheduler:
    """
    Scheduler for a context that was not handed one explicitly.

    Inside a running event loop deferred work runs on that loop. Without one
    there is nothing to drive real time, so the caller gets a ManualScheduler
    and has to advance it.
    """
    try:
        return AsyncioScheduler(asyncio.get_running_loop())
    except RuntimeError:
        logger.debug("No running event loop; using a manual scheduler")
        return ManualScheduler()
