"""
Layout Engine
=============

Pure function from (mode, operations | call forest, edges, cursor) to
positioned nodes and edges.

MODE SELECTION:
===============
A non-empty call forest always wins: the hierarchical layout is used
whatever mode was requested. Without one, the requested flat mode is
used, and a request for HIERARCHICAL falls back to HORIZONTAL.

EXECUTION STATE:
================
Derived from the cursor on every call, never stored:
- cursor == -1          -> UNDEFINED for every node
- ordinal == cursor     -> EXECUTING
- ordinal <  cursor     -> COMPLETED (FAILED for an unsuccessful operation)
- ordinal >  cursor     -> PENDING

GUARANTEES:
===========
1. Same request = identical result, position for position, id for id
2. Never raises: unexpected failures become LayoutResult.error
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple
import logging

from txflow.config import LayoutConfig
from txflow.contracts.base import (
    Error, ErrorCode, ExecutionState, LayoutMode, NodeKind, Position, NOT_STARTED,
)
from txflow.contracts.operations import EdgeInput, OperationInput
from txflow.parsing.hierarchy import CallForest
from txflow.visualization.graph import LayoutEdge, LayoutNode, LayoutResult

from .edges import call_edges, sequence_edges, supplied_edges
from .grouping import GroupingHeuristic


logger = logging.getLogger(__name__)


GROUP_HEADER_PREFIX = "group-header-"


@dataclass(frozen=True)
class LayoutRequest:
    """Everything a layout depends on."""
    mode: LayoutMode = LayoutMode.HORIZONTAL
    operations: Tuple[OperationInput, ...] = field(default_factory=tuple)
    edges: Tuple[EdgeInput, ...] = field(default_factory=tuple)
    hierarchy: CallForest = field(default_factory=CallForest)
    cursor: int = NOT_STARTED
    show_connections: bool = False

    @property
    def effective_mode(self) -> LayoutMode:
        if not self.hierarchy.is_empty:
            return LayoutMode.HIERARCHICAL
        if self.mode is LayoutMode.HIERARCHICAL:
            return LayoutMode.HORIZONTAL
        return self.mode

    @property
    def playable_count(self) -> int:
        """N for the playback cursor under the effective mode."""
        if self.effective_mode is LayoutMode.HIERARCHICAL:
            return len(self.hierarchy)
        return len(self.operations)


# =============================================================================
# STATE HELPERS
# =============================================================================

def derive_execution_state(ordinal: int, cursor: int, successful: bool = True) -> ExecutionState:
    if cursor == NOT_STARTED:
        return ExecutionState.UNDEFINED
    if ordinal == cursor:
        return ExecutionState.EXECUTING
    if ordinal < cursor:
        return ExecutionState.COMPLETED if successful else ExecutionState.FAILED
    return ExecutionState.PENDING


def clamp_cursor(cursor: int, count: int) -> int:
    return max(NOT_STARTED, min(cursor, count - 1))


def humanize_type(op_type: str) -> str:
    """'create_account' -> 'Create Account'."""
    words = op_type.replace("_", " ").split(" ")
    return " ".join(w[:1].upper() + w[1:] for w in words)


def group_header_label(first_op_type: str, size: int) -> str:
    label = humanize_type(first_op_type)
    if size > 1:
        return f"{label} + {size - 1} more"
    return label


# =============================================================================
# ENGINE
# =============================================================================

class LayoutEngine:
    """
    Stateless layout engine.

    Configuration is the only thing held between calls.
    """

    def __init__(self, config: Optional[LayoutConfig] = None):
        self._config = config or LayoutConfig()
        self._grouping = GroupingHeuristic()

    @property
    def config(self) -> LayoutConfig:
        return self._config

    def compute(self, request: LayoutRequest) -> LayoutResult:
        mode = request.effective_mode
        try:
            cursor = clamp_cursor(request.cursor, request.playable_count)
            if cursor != request.cursor:
                logger.warning("Cursor %d clamped to %d", request.cursor, cursor)

            if mode is LayoutMode.HIERARCHICAL:
                nodes, edges = self._hierarchical(request.hierarchy, cursor)
            elif mode is LayoutMode.VERTICAL:
                nodes, edges = self._vertical(request.operations, cursor)
            else:
                nodes = self._flat(request.operations, cursor, mode)
                edges = supplied_edges(request.operations, request.edges, cursor)

            if not request.show_connections:
                edges = ()

            logger.debug(
                "Layout %s: %d nodes, %d edges, cursor %d",
                mode.value, len(nodes), len(edges), cursor,
            )
            return LayoutResult(mode=mode, nodes=nodes, edges=edges)

        except Exception as e:
            logger.warning("Layout %s failed: %s", mode.value, e)
            return LayoutResult(
                mode=mode,
                nodes=(),
                edges=(),
                error=Error.now(ErrorCode.LAYOUT_FAILED, str(e), mode=mode.value),
            )

    # =========================================================================
    # HIERARCHICAL
    # =========================================================================

    def _hierarchical(
        self,
        forest: CallForest,
        cursor: int
    ) -> Tuple[Tuple[LayoutNode, ...], Tuple[LayoutEdge, ...]]:
        cfg = self._config
        levels = forest.levels()
        slot = cfg.tree_slot
        max_height = max(len(bucket) * slot for bucket in levels)

        position_in_level: Dict[int, int] = {}
        for bucket in levels:
            for position, index in enumerate(bucket):
                position_in_level[index] = position

        nodes = []
        for index, record in enumerate(forest.records):
            level_height = len(levels[record.level]) * slot
            level_start_y = (max_height - level_height) / 2
            y = level_start_y + position_in_level[index] * slot + cfg.tree_node_height / 2
            x = record.level * cfg.tree_level_width + cfg.tree_offset

            nodes.append(LayoutNode(
                node_id=record.record_id,
                position=Position(x=x, y=y),
                execution_state=derive_execution_state(index, cursor),
                kind=NodeKind.INVOCATION,
                label=record.function_name,
                ordinal=index,
                level=record.level,
                is_dimmed=cursor != NOT_STARTED and index > cursor,
                function_name=record.function_name,
            ))

        edges = call_edges(forest, cursor, cfg.parent_edge_strategy)
        return tuple(nodes), edges

    # =========================================================================
    # VERTICAL (grouped)
    # =========================================================================

    def _vertical(
        self,
        operations: Sequence[OperationInput],
        cursor: int
    ) -> Tuple[Tuple[LayoutNode, ...], Tuple[LayoutEdge, ...]]:
        cfg = self._config
        assignment = self._grouping.assign(operations)
        groups = self._grouping.groups(operations)

        headers = []
        for group in groups:
            first = operations[group.first_ordinal]
            headers.append(LayoutNode(
                node_id=f"{GROUP_HEADER_PREFIX}{group.group_index}",
                position=Position(x=self._column_x(group.group_index), y=cfg.header_y),
                execution_state=ExecutionState.UNDEFINED,
                kind=NodeKind.GROUP_HEADER,
                label=group_header_label(first.op_type, group.size),
                ordinal=-1,
                group_index=group.group_index,
                interactive=False,
            ))

        placed_in_group: Dict[int, int] = {}
        nodes: List[LayoutNode] = []
        for ordinal, operation in enumerate(operations):
            group_index = assignment[ordinal]
            row = placed_in_group.get(group_index, 0)
            placed_in_group[group_index] = row + 1

            nodes.append(self._operation_node(
                operation,
                ordinal,
                cursor,
                Position(
                    x=self._column_x(group_index),
                    y=row * cfg.column_slot + cfg.column_top,
                ),
                group_index=group_index,
            ))

        edges = sequence_edges(operations, assignment, cursor)
        return tuple(headers) + tuple(nodes), edges

    def _column_x(self, group_index: int) -> float:
        return group_index * self._config.column_width + self._config.column_offset

    # =========================================================================
    # HORIZONTAL / STAGGERED
    # =========================================================================

    def _flat(
        self,
        operations: Sequence[OperationInput],
        cursor: int,
        mode: LayoutMode
    ) -> Tuple[LayoutNode, ...]:
        cfg = self._config
        nodes = []
        for ordinal, operation in enumerate(operations):
            if mode is LayoutMode.STAGGERED:
                y = cfg.staggered_even_y if ordinal % 2 == 0 else cfg.staggered_odd_y
            else:
                y = cfg.horizontal_y
            nodes.append(self._operation_node(
                operation, ordinal, cursor, Position(x=operation.position.x, y=y)
            ))
        return tuple(nodes)

    @staticmethod
    def _operation_node(
        operation: OperationInput,
        ordinal: int,
        cursor: int,
        position: Position,
        group_index: Optional[int] = None
    ) -> LayoutNode:
        return LayoutNode(
            node_id=operation.op_id,
            position=position,
            execution_state=derive_execution_state(ordinal, cursor, operation.successful),
            kind=NodeKind.OPERATION,
            label=humanize_type(operation.op_type),
            ordinal=ordinal,
            group_index=group_index,
            is_dimmed=cursor != NOT_STARTED and ordinal > cursor,
            function_name=operation.function_name,
        )


def compute_layout(
    mode: LayoutMode,
    operations: Sequence[OperationInput] = (),
    edges: Sequence[EdgeInput] = (),
    hierarchy: Optional[CallForest] = None,
    cursor: int = NOT_STARTED,
    show_connections: bool = False,
    config: Optional[LayoutConfig] = None
) -> LayoutResult:
    """Functional entry point over LayoutEngine.compute."""
    request = LayoutRequest(
        mode=mode,
        operations=tuple(operations),
        edges=tuple(edges),
        hierarchy=hierarchy or CallForest(),
        cursor=cursor,
        show_connections=show_connections,
    )
    return LayoutEngine(config).compute(request)
