"""
Playback Controller
===================

Execution-replay state machine over the playable node sequence.

STATES:
=======
IDLE      cursor = -1, paused
STEPPING  cursor in [0, N-1), paused
PLAYING   tick timer armed, advancing every speed_ms
FINISHED  cursor = N-1, paused

TRANSITIONS:
============
step_forward   cursor += 1 unless at N-1
step_backward  cursor -= 1 unless at -1
play_pause     toggle; starting from N-1 rewinds to -1 first
reset          cursor = -1, paused
tick           step_forward; reaching N-1 stops playback

BOUNDARY:
=========
The controller owns cursor / is_playing / speed only. It never touches
nodes or edges: listeners receive a PlaybackState snapshot and the
layout engine turns the cursor into per-node state.
"""

from __future__ import annotations
from dataclasses import replace
from typing import Callable, List, Optional
import logging

from txflow.config import PlaybackConfig
from txflow.contracts.base import NOT_STARTED
from txflow.interaction.temporal import ActionType, InteractionRequest, PlaybackState

from .scheduler import AsyncioScheduler, PendingSlot, Scheduler, SchedulerUnavailable


logger = logging.getLogger(__name__)


PlaybackListener = Callable[[PlaybackState], None]


def _timing(state: PlaybackState):
    # A node-count change alone does not move the next tick
    return (state.cursor, state.is_playing, state.speed_ms)


class PlaybackController:
    """
    Cursor state machine bound to a cancellable tick timer.

    GUARANTEES:
    ===========
    1. cursor is always in [-1, N-1]
    2. At most one tick is ever pending
    3. After close(), no tick fires and no listener is called
    4. is_playing implies a pending tick
    """

    def __init__(
        self,
        node_count: int = 0,
        config: Optional[PlaybackConfig] = None,
        scheduler: Optional[Scheduler] = None
    ):
        self._config = config or PlaybackConfig()
        self._scheduler = scheduler or AsyncioScheduler()
        self._node_count = max(0, node_count)
        self._cursor = NOT_STARTED
        self._is_playing = False
        self._speed_ms = self._config.speed_ms
        self._tick = PendingSlot()
        self._listeners: List[PlaybackListener] = []
        self._closed = False

    # =========================================================================
    # READ ACCESS
    # =========================================================================

    @property
    def state(self) -> PlaybackState:
        return PlaybackState(
            cursor=self._cursor,
            is_playing=self._is_playing,
            speed_ms=self._speed_ms,
            node_count=self._node_count,
        )

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def has_pending_tick(self) -> bool:
        return self._tick.is_pending

    def subscribe(self, listener: PlaybackListener) -> Callable[[], None]:
        """Register a listener; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def step_forward(self) -> PlaybackState:
        if self._closed or self._cursor >= self._last_index:
            return self.state
        return self._apply(self._cursor + 1, self._is_playing)

    def step_backward(self) -> PlaybackState:
        if self._closed or self._cursor <= NOT_STARTED:
            return self.state
        return self._apply(self._cursor - 1, self._is_playing)

    def play_pause(self) -> PlaybackState:
        if self._closed:
            return self.state
        if self._is_playing:
            return self._apply(self._cursor, False)

        cursor = self._cursor
        if cursor >= self._last_index:
            cursor = NOT_STARTED
        logger.info("Playback started at %d of %d", cursor, self._node_count)
        return self._apply(cursor, True)

    def reset(self) -> PlaybackState:
        if self._closed:
            return self.state
        return self._apply(NOT_STARTED, False)

    def set_speed(self, speed_ms: int) -> PlaybackState:
        if self._closed:
            return self.state
        speed = int(speed_ms)
        if speed < self._config.min_speed_ms:
            logger.warning("Speed %dms below minimum, using %dms", speed, self._config.min_speed_ms)
            speed = self._config.min_speed_ms
        return self._apply(self._cursor, self._is_playing, speed_ms=speed)

    def set_node_count(self, node_count: int) -> PlaybackState:
        """Follow a changed node set; the cursor is clamped into range."""
        if self._closed:
            return self.state
        return self._apply(self._cursor, self._is_playing, node_count=max(0, node_count))

    def dispatch(self, request: InteractionRequest) -> PlaybackState:
        action = request.action
        if action is ActionType.STEP_FORWARD:
            return self.step_forward()
        if action is ActionType.STEP_BACKWARD:
            return self.step_backward()
        if action is ActionType.PLAY_PAUSE:
            return self.play_pause()
        if action is ActionType.RESET:
            return self.reset()
        if action is ActionType.SET_SPEED:
            return self.set_speed(request.value)
        logger.debug("Playback ignores action %s", action.value)
        return self.state

    def close(self) -> None:
        """Teardown: cancel any pending tick and drop listeners."""
        if self._closed:
            return
        self._closed = True
        self._tick.clear()
        self._is_playing = False
        self._listeners.clear()

    def __enter__(self) -> PlaybackController:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # =========================================================================
    # INTERNALS
    # =========================================================================

    @property
    def _last_index(self) -> int:
        return self._node_count - 1

    def _apply(
        self,
        cursor: int,
        is_playing: bool,
        speed_ms: Optional[int] = None,
        node_count: Optional[int] = None
    ) -> PlaybackState:
        """
        Commit a transition: enforce invariants, (re)arm the tick, notify.

        The tick is scheduled BEFORE the new state is committed, so a
        scheduler that cannot take a timer leaves playback paused rather
        than playing with nothing pending.
        """
        before = self.state
        count = self._node_count if node_count is None else node_count
        cursor = max(NOT_STARTED, min(cursor, count - 1))

        if is_playing and cursor >= count - 1:
            is_playing = False
            logger.info("Playback finished at %d", cursor)

        after = PlaybackState(
            cursor=cursor,
            is_playing=is_playing,
            speed_ms=self._speed_ms if speed_ms is None else speed_ms,
            node_count=count,
        )

        if not after.is_playing:
            self._tick.clear()
        elif _timing(after) != _timing(before) or not self._tick.is_pending:
            if not self._arm(after.speed_ms):
                after = replace(after, is_playing=False)

        self._cursor = after.cursor
        self._is_playing = after.is_playing
        self._speed_ms = after.speed_ms
        self._node_count = after.node_count

        if after != before:
            self._notify(after)
        return after

    def _arm(self, speed_ms: int) -> bool:
        try:
            task = self._scheduler.call_later(speed_ms, self._on_tick)
        except SchedulerUnavailable as e:
            logger.warning("Playback tick not scheduled, pausing: %s", e)
            self._tick.clear()
            return False
        self._tick.replace(task)
        return True

    def _on_tick(self) -> None:
        if self._closed or not self._is_playing:
            return
        self._apply(self._cursor + 1, True)

    def _notify(self, state: PlaybackState) -> None:
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.warning("Playback listener failed: %s", e)
