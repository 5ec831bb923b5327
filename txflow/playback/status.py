"""
Execution Summary

Read-only snapshot for a progress indicator, derived from the current
layout and playback state.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from txflow.interaction.temporal import PlaybackState
from txflow.visualization.graph import LayoutResult


@dataclass(frozen=True)
class ExecutionSummary:
    """What a progress banner shows. Hidden while playback is idle."""
    visible: bool
    finished: bool
    step_number: int          # 1-based, 0 when idle
    total: int
    current_label: Optional[str] = None
    current_function: Optional[str] = None
    succeeded: Optional[bool] = None  # set once finished


HIDDEN = ExecutionSummary(visible=False, finished=False, step_number=0, total=0)


def summarize_execution(
    result: LayoutResult,
    state: PlaybackState,
    transaction_successful: bool = True
) -> ExecutionSummary:
    if not state.is_started:
        return HIDDEN

    playable = result.playable_nodes()
    total = len(playable)

    if state.is_at_end and not state.is_playing:
        return ExecutionSummary(
            visible=True,
            finished=True,
            step_number=state.cursor + 1,
            total=total,
            succeeded=transaction_successful,
        )

    current = playable[state.cursor] if 0 <= state.cursor < total else None
    return ExecutionSummary(
        visible=True,
        finished=False,
        step_number=state.cursor + 1,
        total=total,
        current_label=current.label if current else None,
        current_function=current.function_name if current else None,
    )
