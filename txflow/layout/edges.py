"""
Edge Derivation
===============

Per-mode edge sets. Every function here is pure: the same inputs always
yield the same edges in the same order.

MODES:
======
- Hierarchical: CALL edges from a level L-1 node to each level L node
- Vertical: SEQUENCE edges between chronological neighbours, flagged
  same-group or cross-group
- Horizontal / staggered: SUPPLIED edges, filtered to known endpoints

ACTIVE:
=======
An edge is active when its source's ordinal is <= the cursor.
"""

from __future__ import annotations
from typing import Dict, List, Sequence, Tuple
import logging
import math

from txflow.config import PROPORTIONAL
from txflow.contracts.base import EdgeRelation
from txflow.contracts.operations import EdgeInput, OperationInput
from txflow.parsing.hierarchy import CallForest
from txflow.visualization.graph import LayoutEdge


logger = logging.getLogger(__name__)


def edge_id(source: str, target: str) -> str:
    return f"edge-{source}-{target}"


# =============================================================================
# HIERARCHICAL
# =============================================================================

def proportional_parent(child_position: int, child_count: int, parent_count: int) -> int:
    """
    Position of the assumed caller within the previous level.

    KNOWN LIMITATION:
    =================
    Children are spread evenly over the previous level's nodes. When
    fan-out is irregular (one caller makes three calls, its sibling none)
    this misattributes parents. The recorded strategy uses parent_index
    instead.
    """
    ratio = max(1.0, child_count / parent_count)
    return min(math.floor(child_position / ratio), parent_count - 1)


def call_edges(
    forest: CallForest,
    cursor: int,
    strategy: str = PROPORTIONAL
) -> Tuple[LayoutEdge, ...]:
    """Parent -> child edges for the hierarchical layout."""
    records = forest.records
    edges: List[LayoutEdge] = []

    if strategy == PROPORTIONAL:
        levels = forest.levels()
        for level in range(1, len(levels)):
            children, parents = levels[level], levels[level - 1]
            if not parents:
                continue
            for position, child in enumerate(children):
                parent = parents[proportional_parent(position, len(children), len(parents))]
                edges.append(_call_edge(forest, parent, child, cursor))
    else:
        for child, record in enumerate(records):
            if not record.is_root:
                edges.append(_call_edge(forest, record.parent_index, child, cursor))

    return tuple(edges)


def _call_edge(forest: CallForest, parent: int, child: int, cursor: int) -> LayoutEdge:
    source = forest.records[parent].record_id
    target = forest.records[child].record_id
    return LayoutEdge(
        edge_id=edge_id(source, target),
        source=source,
        target=target,
        active=parent <= cursor,
        relation=EdgeRelation.CALL,
    )


# =============================================================================
# VERTICAL
# =============================================================================

def sequence_edges(
    operations: Sequence[OperationInput],
    group_indices: Sequence[int],
    cursor: int
) -> Tuple[LayoutEdge, ...]:
    """
    Chronological chain over ALL operations, not just within a group.

    same_group distinguishes tight (solid) links inside a column from
    loose (dashed) links that jump to the next column.
    """
    edges = []
    for ordinal in range(len(operations) - 1):
        source = operations[ordinal].op_id
        target = operations[ordinal + 1].op_id
        edges.append(LayoutEdge(
            edge_id=edge_id(source, target),
            source=source,
            target=target,
            active=ordinal <= cursor,
            relation=EdgeRelation.SEQUENCE,
            same_group=group_indices[ordinal] == group_indices[ordinal + 1],
        ))
    return tuple(edges)


# =============================================================================
# HORIZONTAL / STAGGERED
# =============================================================================

def supplied_edges(
    operations: Sequence[OperationInput],
    edges: Sequence[EdgeInput],
    cursor: int
) -> Tuple[LayoutEdge, ...]:
    """Externally supplied edges; edges with an unknown endpoint are dropped."""
    ordinals: Dict[str, int] = {}
    for ordinal, operation in enumerate(operations):
        ordinals.setdefault(operation.op_id, ordinal)

    result = []
    dropped = 0
    for edge in edges:
        if edge.source not in ordinals or edge.target not in ordinals:
            dropped += 1
            continue
        result.append(LayoutEdge(
            edge_id=edge.edge_id,
            source=edge.source,
            target=edge.target,
            active=ordinals[edge.source] <= cursor,
            relation=EdgeRelation.SUPPLIED,
        ))

    if dropped:
        logger.debug("Dropped %d supplied edges with unknown endpoints", dropped)
    return tuple(result)
