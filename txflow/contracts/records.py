"""
Invocation Record Contracts

Parsed representation of a diagnostic trace.

ARENA ENCODING:
===============
The call tree is never built from object references. Records live in an
ordered tuple (the arena) and point at their caller through
``parent_index``, an index into that same tuple. This keeps every record
hashable, comparable and trivially serializable.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Tuple

from .base import RecordKind, NO_PARENT


@dataclass(frozen=True)
class InvocationRecord:
    """
    One contract call (or effect) extracted from a diagnostic line.

    For EFFECT records the fields are repurposed:
    contract_ref holds the asset token, function_name the action verb
    and args_text the amount.
    """
    record_id: str
    level: int
    parent_index: int
    contract_ref: str
    function_name: str
    args_text: str
    result_text: str
    kind: RecordKind
    line_number: int = 0

    def __post_init__(self):
        if self.level < 0:
            raise ValueError(f"level must be non-negative, got {self.level}")
        if (self.level == 0) != (self.parent_index == NO_PARENT):
            raise ValueError(
                f"record {self.record_id}: level 0 iff parent_index == {NO_PARENT}"
            )

    @property
    def is_root(self) -> bool:
        return self.parent_index == NO_PARENT

    def with_parent(self, parent_index: int, level: int) -> InvocationRecord:
        """Return a copy re-pointed at another arena slot."""
        return InvocationRecord(
            record_id=self.record_id,
            level=level,
            parent_index=parent_index,
            contract_ref=self.contract_ref,
            function_name=self.function_name,
            args_text=self.args_text,
            result_text=self.result_text,
            kind=self.kind,
            line_number=self.line_number,
        )


@dataclass(frozen=True)
class SkippedLine:
    """Record of a diagnostic line that produced no record."""
    line_number: int
    reason: str  # "no_match" | "event" | "not_text"
    sample: str  # First 80 chars for debugging

    def to_dict(self) -> dict:
        return {
            'line_number': self.line_number,
            'reason': self.reason,
            'sample': self.sample,
        }


@dataclass(frozen=True)
class ParseReport:
    """
    Complete parser output.

    GUARANTEES:
    - Every input line is either a record or a SkippedLine
    - Skipping is data, never an error
    """
    records: Tuple[InvocationRecord, ...] = field(default_factory=tuple)
    skipped_lines: Tuple[SkippedLine, ...] = field(default_factory=tuple)
    event_count: int = 0
    line_count: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.records

    def invocations(self) -> Tuple[InvocationRecord, ...]:
        return tuple(r for r in self.records if r.kind is RecordKind.INVOKE)
