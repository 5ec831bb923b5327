"""
Base Contracts and Shared Types

Foundational enums and value types used across every layer of the
flow-graph core. All types here are IMMUTABLE and represent pure data.

BOUNDARY ENFORCEMENT:
=====================
- Parsing, layout and playback import from here, never from each other's
  internals
- All types are frozen dataclasses or enums
- Errors are data: they are returned, stored and inspected, not raised
  across the rendering boundary
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Tuple
from enum import Enum, auto


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit error codes for the flow-graph core.

    Unparseable log lines and empty hierarchies are NOT errors and have no
    code here: they degrade to an empty or partial structure.
    """
    # Input mapping errors
    MALFORMED_OPERATION = auto()
    DUPLICATE_OPERATION_ID = auto()

    # Layout errors
    LAYOUT_FAILED = auto()


@dataclass(frozen=True)
class Error:
    """
    Immutable error representation with full context.
    Errors are data, not exceptions - they can be stored and queried.
    """
    code: ErrorCode
    message: str
    timestamp: datetime
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def with_context(self, key: str, value: str) -> Error:
        """Return new Error with additional context (immutable)."""
        return Error(
            code=self.code,
            message=self.message,
            timestamp=self.timestamp,
            context=self.context + ((key, value),)
        )

    @staticmethod
    def now(code: ErrorCode, message: str, **context: str) -> Error:
        return Error(
            code=code,
            message=message,
            timestamp=datetime.now(timezone.utc),
            context=tuple((k, str(v)) for k, v in sorted(context.items()))
        )


# =============================================================================
# RECORD KINDS (Parser output)
# =============================================================================

class RecordKind(Enum):
    """Kind of line a parsed record came from."""
    INVOKE = "invoke"
    EFFECT = "effect"
    EVENT = "event"


# =============================================================================
# EXECUTION STATES (Derived from cursor only)
# =============================================================================

class ExecutionState(Enum):
    """
    Per-node execution state.

    DERIVED ONLY:
    =============
    Always recomputed from the playback cursor; never stored on a node
    between layouts. UNDEFINED means playback has not started.
    """
    UNDEFINED = "undefined"
    PENDING = "pending"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


# =============================================================================
# LAYOUT MODES
# =============================================================================

class LayoutMode(Enum):
    """
    Spatial layout strategy.

    HIERARCHICAL is never required to be requested: any non-empty call
    forest takes priority over the requested mode.
    """
    HORIZONTAL = "horizontal"
    STAGGERED = "staggered"
    VERTICAL = "vertical"
    HIERARCHICAL = "hierarchical"

    def next(self) -> LayoutMode:
        """Mode toggle order: horizontal -> staggered -> vertical -> horizontal."""
        if self is LayoutMode.HORIZONTAL:
            return LayoutMode.STAGGERED
        if self is LayoutMode.STAGGERED:
            return LayoutMode.VERTICAL
        return LayoutMode.HORIZONTAL


class NodeKind(Enum):
    """What a layout node stands for."""
    OPERATION = "operation"
    INVOCATION = "invocation"
    GROUP_HEADER = "group_header"


class EdgeRelation(Enum):
    """Why two nodes are connected."""
    CALL = "call"            # parent invocation -> nested invocation
    SEQUENCE = "sequence"    # chronological neighbours (vertical mode)
    SUPPLIED = "supplied"    # externally provided edge


class EdgeStyle(Enum):
    SOLID = "solid"
    DASHED = "dashed"


# =============================================================================
# PLAYBACK PHASES
# =============================================================================

class PlaybackPhase(Enum):
    """
    Derived playback phase.

    IDLE: cursor = -1 and not playing
    STEPPING: cursor in range, paused
    PLAYING: tick timer armed
    FINISHED: cursor at last node, paused
    """
    IDLE = "idle"
    STEPPING = "stepping"
    PLAYING = "playing"
    FINISHED = "finished"


NOT_STARTED: int = -1
NO_PARENT: int = -1


@dataclass(frozen=True)
class Position:
    """Immutable 2-D coordinate."""
    x: float
    y: float


def coerce_position(value: Optional[object]) -> Position:
    """Best-effort conversion of a position hint; falls back to origin."""
    if isinstance(value, Position):
        return value
    if isinstance(value, dict):
        return Position(x=float(value.get("x", 0.0)), y=float(value.get("y", 0.0)))
    if isinstance(value, (tuple, list)) and len(value) == 2:
        return Position(x=float(value[0]), y=float(value[1]))
    return Position(x=0.0, y=0.0)
