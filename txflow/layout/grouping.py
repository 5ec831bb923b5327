"""
Grouping Heuristic
==================

Partitions the flat operation list into chronological groups for the
vertical layout.

RULE:
=====
The first operation opens group 0. Every later operation is compared
with the IMMEDIATELY PRECEDING operation only: if they share any
participant account or any asset identity it joins that operation's
group, otherwise it opens the next group.

There is no comparison against the rest of the current group and no
transitive merging, so A~B and B~C never pull a disjoint A and C
together through some earlier overlap.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence, Tuple

from txflow.contracts.operations import OperationInput


@dataclass(frozen=True)
class OperationGroup:
    """One column of the vertical layout."""
    group_index: int
    member_ordinals: Tuple[int, ...]

    @property
    def size(self) -> int:
        return len(self.member_ordinals)

    @property
    def first_ordinal(self) -> int:
        return self.member_ordinals[0]


def shares_entity(current: OperationInput, previous: OperationInput) -> bool:
    """Any common participant or asset identity."""
    if current.participants() & previous.participants():
        return True
    return bool(current.asset_identities() & previous.asset_identities())


class GroupingHeuristic:
    """Assigns a group index to each operation, in order."""

    def assign(self, operations: Sequence[OperationInput]) -> Tuple[int, ...]:
        indices = []
        current_group = 0
        for ordinal, operation in enumerate(operations):
            if ordinal > 0 and not shares_entity(operation, operations[ordinal - 1]):
                current_group += 1
            indices.append(current_group)
        return tuple(indices)

    def groups(self, operations: Sequence[OperationInput]) -> Tuple[OperationGroup, ...]:
        assignment = self.assign(operations)
        members = {}
        for ordinal, group_index in enumerate(assignment):
            members.setdefault(group_index, []).append(ordinal)
        return tuple(
            OperationGroup(group_index=g, member_ordinals=tuple(members[g]))
            for g in sorted(members)
        )
