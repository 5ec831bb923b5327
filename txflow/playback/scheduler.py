"""
Cancellable Scheduling for Playback and Auto-Framing
====================================================

Injectable scheduler so that timer-driven behaviour is deterministic in
tests and replays.

MODES:
======
1. AsyncioScheduler: real event-loop timers (``loop.call_later``)
2. ManualScheduler: virtual millisecond clock advanced explicitly

GUARANTEES:
===========
- A cancelled task never runs its callback
- cancel() is unconditional, idempotent and side-effect free
- Failing to schedule raises SchedulerUnavailable; nothing is queued
- PendingSlot holds at most one task: scheduling a new one cancels the
  previous one first
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple
import asyncio
import heapq
import itertools


Callback = Callable[[], None]


class SchedulerUnavailable(RuntimeError):
    """Raised when a scheduler has no event loop to put a timer on."""
    pass


class ScheduledTask:
    """Handle to one scheduled callback."""

    def __init__(self, callback: Callback, due_ms: int = 0):
        self._callback = callback
        self._due_ms = due_ms
        self._cancelled = False
        self._done = False
        self._timer_handle: Optional[asyncio.TimerHandle] = None

    @property
    def due_ms(self) -> int:
        return self._due_ms

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        return self._done

    @property
    def is_pending(self) -> bool:
        return not (self._cancelled or self._done)

    def cancel(self) -> None:
        self._cancelled = True
        if self._timer_handle is not None:
            self._timer_handle.cancel()
            self._timer_handle = None

    def fire(self) -> None:
        if not self.is_pending:
            return
        self._done = True
        self._timer_handle = None
        self._callback()

    def bind(self, handle: asyncio.TimerHandle) -> None:
        self._timer_handle = handle


class Scheduler(ABC):
    """Anything that can run a callback after a delay."""

    @abstractmethod
    def call_later(self, delay_ms: int, callback: Callback) -> ScheduledTask:
        ...


class AsyncioScheduler(Scheduler):
    """
    Event-loop backed scheduler.

    Uses the loop given at construction, or the running loop at the time
    of each call. With neither, call_later raises SchedulerUnavailable.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def call_later(self, delay_ms: int, callback: Callback) -> ScheduledTask:
        task = ScheduledTask(callback, due_ms=delay_ms)
        try:
            loop = self._loop or asyncio.get_running_loop()
            task.bind(loop.call_later(delay_ms / 1000.0, task.fire))
        except RuntimeError as e:
            # no running loop, or the bound loop is closed
            raise SchedulerUnavailable(str(e)) from e
        return task


class ManualScheduler(Scheduler):
    """
    Virtual-time scheduler.

    Nothing runs until ``advance`` is called. Tasks fire in due order;
    ties fire in scheduling order. Tasks scheduled by a callback fire in
    the same ``advance`` call if they fall inside the window.
    """

    def __init__(self):
        self._now_ms = 0
        self._queue: List[Tuple[int, int, ScheduledTask]] = []
        self._sequence = itertools.count()

    @property
    def now_ms(self) -> int:
        return self._now_ms

    @property
    def pending_count(self) -> int:
        return sum(1 for _, _, task in self._queue if task.is_pending)

    def call_later(self, delay_ms: int, callback: Callback) -> ScheduledTask:
        due = self._now_ms + max(0, int(delay_ms))
        task = ScheduledTask(callback, due_ms=due)
        heapq.heappush(self._queue, (due, next(self._sequence), task))
        return task

    def advance(self, delta_ms: int) -> int:
        """Move the clock forward; returns the number of callbacks run."""
        target = self._now_ms + max(0, int(delta_ms))
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, task = heapq.heappop(self._queue)
            self._now_ms = due
            if task.is_pending:
                task.fire()
                fired += 1
        self._now_ms = target
        return fired

    def run_until_idle(self, max_callbacks: int = 10_000) -> int:
        """Fire everything pending (including follow-ups), bounded."""
        fired = 0
        while fired < max_callbacks:
            live = [entry for entry in self._queue if entry[2].is_pending]
            if not live:
                break
            fired += self.advance(min(entry[0] for entry in live) - self._now_ms)
        return fired


class PendingSlot:
    """
    Tagged pending/none holder for a single scheduled action.

    Used for anything that must never have two live timers: the playback
    tick and the auto-frame request.
    """

    def __init__(self):
        self._task: Optional[ScheduledTask] = None

    @property
    def is_pending(self) -> bool:
        return self._task is not None and self._task.is_pending

    def replace(self, task: ScheduledTask) -> None:
        self.clear()
        self._task = task

    def clear(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
