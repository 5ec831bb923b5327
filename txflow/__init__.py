"""
txflow: Transaction Flow Graph Core

Turns one blockchain transaction into a deterministic, replayable graph:
a flat list of operations laid out horizontally, staggered or in grouped
columns, or (when a diagnostic trace is available) the nested contract
call tree laid out level by level.

LAYER STRUCTURE:
================

1. CONTRACTS (contracts/)
   - Enums, records, operation inputs. Pure data, no behaviour.

2. PARSING (parsing/)
   - Diagnostic lines -> ParseReport -> CallForest
   - MUST NOT: position anything

3. LAYOUT (layout/, visualization/)
   - (mode, operations | forest, cursor) -> LayoutResult
   - MUST NOT: hold state between calls

4. PLAYBACK (playback/, interaction/)
   - Cursor state machine, cancellable timers, progress summary
   - MUST NOT: touch nodes or edges

5. VIEW (view.py)
   - Wires the layers together for a rendering collaborator

CONSTRAINTS ENFORCED:
=====================
- Immutability-first: every exchanged value is frozen
- Deterministic: identical inputs give identical layouts
- Degrade, don't raise: malformed input yields partial or empty output
"""

from txflow.config import LayoutConfig, PlaybackConfig, ViewConfig
from txflow.contracts.base import ExecutionState, LayoutMode
from txflow.contracts.operations import AssetRef, EdgeInput, OperationInput
from txflow.interaction.temporal import ActionType, InteractionRequest, PlaybackState
from txflow.layout.engine import LayoutEngine, LayoutRequest, compute_layout
from txflow.parsing.hierarchy import CallForest, build_hierarchy
from txflow.parsing.log_parser import parse_diagnostic_logs
from txflow.playback.controller import PlaybackController
from txflow.view import FrameRequest, TransactionFlowView

__version__ = "0.1.0"

__all__ = [
    "ActionType",
    "AssetRef",
    "CallForest",
    "EdgeInput",
    "ExecutionState",
    "FrameRequest",
    "InteractionRequest",
    "LayoutConfig",
    "LayoutEngine",
    "LayoutMode",
    "LayoutRequest",
    "OperationInput",
    "PlaybackConfig",
    "PlaybackController",
    "PlaybackState",
    "TransactionFlowView",
    "ViewConfig",
    "build_hierarchy",
    "compute_layout",
    "parse_diagnostic_logs",
]
