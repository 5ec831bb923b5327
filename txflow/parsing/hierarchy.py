"""
Hierarchy Builder
=================

Turns the parser arena into the call forest consumed by the
hierarchical layout.

RESPONSIBILITY:
===============
1. Keep INVOKE records only, preserving order
2. Re-express parent_index as an index into the filtered tuple
   (nearest INVOKE ancestor)
3. Nothing else: parent/level choices made by the parser stand, except
   where a removed effect forces a level to be pulled up so that
   level <= parent.level + 1 still holds

The forest itself stays an arena (ordered tuple + parent indices).
NetworkX is used only for structural verification and traversal.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Set, Tuple, Union
import logging

import networkx as nx

from txflow.contracts.base import RecordKind, NO_PARENT
from txflow.contracts.records import InvocationRecord, ParseReport


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallForest:
    """
    Immutable call forest encoded as an ordered arena.

    Index i of ``records`` is the ordinal used by the playback cursor in
    hierarchical mode.
    """
    records: Tuple[InvocationRecord, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.records

    @property
    def depth(self) -> int:
        """Number of distinct levels (0 for an empty forest)."""
        if not self.records:
            return 0
        return max(r.level for r in self.records) + 1

    def __len__(self) -> int:
        return len(self.records)

    def roots(self) -> Tuple[int, ...]:
        return tuple(i for i, r in enumerate(self.records) if r.is_root)

    def children_of(self, index: int) -> Tuple[int, ...]:
        return tuple(i for i, r in enumerate(self.records) if r.parent_index == index)

    def levels(self) -> Tuple[Tuple[int, ...], ...]:
        """Record indices bucketed by level, in arena order within a bucket."""
        buckets: List[List[int]] = [[] for _ in range(self.depth)]
        for i, record in enumerate(self.records):
            buckets[record.level].append(i)
        return tuple(tuple(b) for b in buckets)

    def to_digraph(self) -> nx.DiGraph:
        """Parent -> child graph keyed by record_id."""
        graph = nx.DiGraph()
        for i, record in enumerate(self.records):
            graph.add_node(record.record_id, index=i, level=record.level)
        for record in self.records:
            if not record.is_root:
                parent = self.records[record.parent_index]
                graph.add_edge(parent.record_id, record.record_id)
        return graph

    def is_well_formed(self) -> bool:
        """
        Verify the arena really encodes a forest.

        - every parent precedes its child
        - level never exceeds parent.level + 1
        - the parent graph is a branching (in-degree <= 1, acyclic)
        """
        for i, record in enumerate(self.records):
            if record.is_root:
                continue
            if not 0 <= record.parent_index < i:
                return False
            if record.level > self.records[record.parent_index].level + 1:
                return False
        graph = self.to_digraph()
        if graph.number_of_nodes() == 0:
            return True
        return nx.is_branching(graph)

    def descendants_of(self, index: int) -> Set[str]:
        """record_ids of every call made (transitively) under ``index``."""
        graph = self.to_digraph()
        return set(nx.descendants(graph, self.records[index].record_id))


class HierarchyBuilder:
    """Builds a CallForest from parser output."""

    def build(
        self,
        source: Union[ParseReport, Iterable[InvocationRecord], None]
    ) -> CallForest:
        if source is None:
            return CallForest()
        arena = source.records if isinstance(source, ParseReport) else tuple(source)

        remapped: Dict[int, int] = {}
        forest: List[InvocationRecord] = []

        for arena_index, record in enumerate(arena):
            if record.kind is not RecordKind.INVOKE:
                continue

            ancestor = self._nearest_invoke_ancestor(arena, record.parent_index)

            if ancestor not in remapped:
                parent_index, level = NO_PARENT, 0
            else:
                parent_index = remapped[ancestor]
                level = min(record.level, forest[parent_index].level + 1)

            if parent_index != record.parent_index or level != record.level:
                record = record.with_parent(parent_index, level)

            remapped[arena_index] = len(forest)
            forest.append(record)

        logger.debug(
            "Built call forest: %d invocations from %d records",
            len(forest), len(arena),
        )
        return CallForest(records=tuple(forest))

    @staticmethod
    def _nearest_invoke_ancestor(
        arena: Tuple[InvocationRecord, ...],
        index: int
    ) -> int:
        # Bounded walk: a hand-built arena may contain a parent cycle
        for _ in range(len(arena)):
            if index == NO_PARENT or not 0 <= index < len(arena):
                break
            if arena[index].kind is RecordKind.INVOKE:
                return index
            index = arena[index].parent_index
        return NO_PARENT


def build_hierarchy(
    source: Union[ParseReport, Iterable[InvocationRecord], None]
) -> CallForest:
    return HierarchyBuilder().build(source)
