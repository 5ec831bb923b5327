"""
Interaction Contracts

Responsibility:
Define valid playback actions and the read-only playback snapshot.
No execution logic - just intent and state modelling.
"""

from dataclasses import dataclass
from enum import Enum

from txflow.contracts.base import PlaybackPhase, NOT_STARTED


class ActionType(Enum):
    """Types of user interaction with the replay controls."""
    # Temporal
    STEP_FORWARD = "step_forward"
    STEP_BACKWARD = "step_backward"
    PLAY_PAUSE = "play_pause"
    RESET = "reset"
    SET_SPEED = "set_speed"

    # View
    CYCLE_LAYOUT = "cycle_layout"
    TOGGLE_CONNECTIONS = "toggle_connections"


@dataclass(frozen=True)
class InteractionRequest:
    """A specific user intent."""
    action: ActionType
    value: int = 0  # speed in ms for SET_SPEED, unused otherwise


@dataclass(frozen=True)
class PlaybackState:
    """
    State of the replay controls.
    Separate from the rendered graph.
    """
    cursor: int
    is_playing: bool
    speed_ms: int
    node_count: int

    @property
    def last_index(self) -> int:
        return self.node_count - 1

    @property
    def is_started(self) -> bool:
        return self.cursor != NOT_STARTED

    @property
    def is_at_end(self) -> bool:
        return self.node_count > 0 and self.cursor >= self.last_index

    @property
    def phase(self) -> PlaybackPhase:
        if self.is_playing:
            return PlaybackPhase.PLAYING
        if self.cursor == NOT_STARTED:
            return PlaybackPhase.IDLE
        if self.is_at_end:
            return PlaybackPhase.FINISHED
        return PlaybackPhase.STEPPING
