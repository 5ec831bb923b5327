"""
Graph Visualization Contracts

Responsibility:
Deterministic transformation of operations and call records into
renderable graph views. Input: operations / call forest + cursor.
Output: LayoutResult (nodes and edges with positions and state).
"""

from dataclasses import dataclass
from typing import Tuple, Optional

from txflow.contracts.base import (
    Error, ExecutionState, LayoutMode, NodeKind, EdgeRelation, EdgeStyle, Position,
)


@dataclass(frozen=True)
class LayoutNode:
    """Renderable graph node."""
    node_id: str
    position: Position
    execution_state: ExecutionState
    kind: NodeKind
    label: str
    ordinal: int                       # chronological index, -1 for headers
    group_index: Optional[int] = None  # vertical mode only
    level: Optional[int] = None        # hierarchical mode only
    interactive: bool = True
    is_dimmed: bool = False            # playback started, node not reached yet
    function_name: Optional[str] = None

    @property
    def is_executing(self) -> bool:
        return self.execution_state is ExecutionState.EXECUTING


@dataclass(frozen=True)
class LayoutEdge:
    """
    Renderable graph edge.

    Styling is out of scope; ``style`` and ``animated`` are the categorical
    inputs a renderer needs, derived from ``active`` and ``same_group``.
    """
    edge_id: str
    source: str
    target: str
    active: bool
    relation: EdgeRelation
    same_group: Optional[bool] = None  # vertical mode only

    @property
    def style(self) -> EdgeStyle:
        if self.same_group is False:
            return EdgeStyle.DASHED
        return EdgeStyle.SOLID

    @property
    def animated(self) -> bool:
        if self.same_group is None:
            return self.active
        return self.active and self.same_group


@dataclass(frozen=True)
class LayoutResult:
    """
    Pre-layouted graph.

    DETERMINISTIC:
    Same inputs = identical nodes and edges, position for position.
    """
    mode: LayoutMode
    nodes: Tuple[LayoutNode, ...]
    edges: Tuple[LayoutEdge, ...]
    error: Optional[Error] = None

    @property
    def is_success(self) -> bool:
        return self.error is None

    def playable_nodes(self) -> Tuple[LayoutNode, ...]:
        """Nodes the cursor walks over, in ordinal order (headers excluded)."""
        return tuple(n for n in self.nodes if n.kind is not NodeKind.GROUP_HEADER)

    def node(self, node_id: str) -> Optional[LayoutNode]:
        for candidate in self.nodes:
            if candidate.node_id == node_id:
                return candidate
        return None
