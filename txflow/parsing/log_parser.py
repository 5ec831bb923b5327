"""
Diagnostic Log Parser
=====================

Converts the free-text diagnostic trace of one operation into an ordered
arena of InvocationRecords.

GRAMMAR:
========
The grammar is an ordered list of LineRules. Each rule pairs a compiled
pattern with a constructor that turns a match into a LineDraft. Rules are
tried in priority order against every line; the first match wins and
lines matching no rule are skipped.

1. top_level_invocation  "GABC…WXYZ invoked contract CABC…1234 fn(args) → result"
2. nested_invocation     "  Invoked contract CABC…1234 fn(args) → result"
3. effect                "  78.44 XLM credited to contract CATR…UMKI"
4. event                 "Contract CAS3…OWMA raised event [...]"

NESTING:
========
Lines are assumed to arrive in pre-order. A nested line's caller is the
most recently appended record; its level is indent + 1, clamped so it is
never deeper than caller.level + 1. A nested line with no preceding
record becomes a root.

GUARANTEES:
- Never raises on any input sequence
- Every line is either a record or a SkippedLine in the report
- Same lines = identical report
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple
import logging
import re

from txflow.contracts.base import RecordKind, NO_PARENT
from txflow.contracts.records import InvocationRecord, ParseReport, SkippedLine


logger = logging.getLogger(__name__)


# =============================================================================
# TOKENS
# =============================================================================

# Either a shortened "CABC…1234" / "CABC...1234" reference or a full strkey.
_REF = r"([A-Z0-9]{4,56})(?:(?:\.{2,3}|…)([A-Z0-9]{4}))?"
_CALL = r"([A-Za-z_][A-Za-z0-9_]*)\(([^)]*)\)(?:\s*(?:→|->)\s*(.+))?"
_INDENT = r"([ \t]*)"

ELLIPSIS = "…"
SAMPLE_CHARS = 80


def shorten_ref(head: str, tail: Optional[str]) -> str:
    """Canonical short form of an account or contract reference."""
    if tail:
        return f"{head}{ELLIPSIS}{tail}"
    if len(head) > 8:
        return f"{head[:4]}{ELLIPSIS}{head[-4:]}"
    return head


# =============================================================================
# RULES
# =============================================================================

@dataclass(frozen=True)
class LineDraft:
    """
    Rule output before arena placement.

    indent is None for lines that are roots by construction.
    """
    kind: RecordKind
    indent: Optional[int]
    contract_ref: str
    function_name: str
    args_text: str = ""
    result_text: str = ""


@dataclass(frozen=True)
class LineRule:
    """One production of the line grammar: pattern + constructor."""
    name: str
    pattern: re.Pattern[str]
    build: Callable[[re.Match[str]], LineDraft]

    def apply(self, line: str) -> Optional[LineDraft]:
        match = self.pattern.match(line)
        if match is None:
            return None
        return self.build(match)


def _build_top_level(m: re.Match[str]) -> LineDraft:
    return LineDraft(
        kind=RecordKind.INVOKE,
        indent=None,
        contract_ref=shorten_ref(m.group(3), m.group(4)),
        function_name=m.group(5),
        args_text=m.group(6) or "",
        result_text=(m.group(7) or "").strip(),
    )


def _build_nested(m: re.Match[str]) -> LineDraft:
    return LineDraft(
        kind=RecordKind.INVOKE,
        indent=len(m.group(1)),
        contract_ref=shorten_ref(m.group(2), m.group(3)),
        function_name=m.group(4),
        args_text=m.group(5) or "",
        result_text=(m.group(6) or "").strip(),
    )


def _build_effect(m: re.Match[str]) -> LineDraft:
    return LineDraft(
        kind=RecordKind.EFFECT,
        indent=len(m.group(1)),
        contract_ref=m.group(3),
        function_name=m.group(4),
        args_text=m.group(2),
    )


def _build_event(m: re.Match[str]) -> LineDraft:
    return LineDraft(
        kind=RecordKind.EVENT,
        indent=None,
        contract_ref=shorten_ref(m.group(1), m.group(2)),
        function_name="raised event",
    )


DEFAULT_RULES: Tuple[LineRule, ...] = (
    LineRule(
        name="top_level_invocation",
        pattern=re.compile(rf"^{_REF} invoked contract {_REF} {_CALL}"),
        build=_build_top_level,
    ),
    LineRule(
        name="nested_invocation",
        pattern=re.compile(rf"^{_INDENT}Invoked contract {_REF} {_CALL}"),
        build=_build_nested,
    ),
    LineRule(
        name="effect",
        pattern=re.compile(
            rf"^{_INDENT}([0-9][0-9.]*) (\S+) (minted|credited|transferred|burned)\b"
        ),
        build=_build_effect,
    ),
    LineRule(
        name="event",
        pattern=re.compile(rf"^[ \t]*Contract {_REF} raised event"),
        build=_build_event,
    ),
)


# =============================================================================
# PARSER
# =============================================================================

class LogParser:
    """
    Pure line-grammar front end.

    Holds no state between calls; ``parse`` builds a fresh arena every
    time, so one instance can be shared freely.
    """

    def __init__(self, rules: Optional[Tuple[LineRule, ...]] = None):
        self._rules = tuple(rules) if rules is not None else DEFAULT_RULES

    @property
    def rules(self) -> Tuple[LineRule, ...]:
        return self._rules

    def parse(self, lines: Optional[Iterable[object]]) -> ParseReport:
        """Parse an ordered sequence of diagnostic lines."""
        records: List[InvocationRecord] = []
        skipped: List[SkippedLine] = []
        event_count = 0
        line_count = 0
        next_ordinal = 0

        for line_number, raw in enumerate(lines or ()):
            line_count += 1
            if not isinstance(raw, str):
                skipped.append(SkippedLine(line_number, "not_text", type(raw).__name__))
                continue

            line = raw.rstrip("\r\n")
            draft = self._match(line)

            if draft is None:
                skipped.append(SkippedLine(line_number, "no_match", line[:SAMPLE_CHARS]))
                continue

            if draft.kind is RecordKind.EVENT:
                # Recognised, but events are not laid out as nodes
                event_count += 1
                skipped.append(SkippedLine(line_number, "event", line[:SAMPLE_CHARS]))
                continue

            records.append(self._place(draft, records, next_ordinal, line_number))
            next_ordinal += 1

        if skipped:
            logger.debug(
                "Skipped %d of %d diagnostic lines (%d events)",
                len(skipped), line_count, event_count,
            )

        return ParseReport(
            records=tuple(records),
            skipped_lines=tuple(skipped),
            event_count=event_count,
            line_count=line_count,
        )

    def _match(self, line: str) -> Optional[LineDraft]:
        for rule in self._rules:
            draft = rule.apply(line)
            if draft is not None:
                return draft
        return None

    @staticmethod
    def _place(
        draft: LineDraft,
        records: List[InvocationRecord],
        ordinal: int,
        line_number: int,
    ) -> InvocationRecord:
        """Attach a draft to the arena: choose parent slot and level."""
        if draft.indent is None or not records:
            parent_index = NO_PARENT
            level = 0
        else:
            parent_index = len(records) - 1
            parent_level = records[parent_index].level
            level = max(1, min(draft.indent + 1, parent_level + 1))

        prefix = "call" if draft.kind is RecordKind.INVOKE else "effect"

        return InvocationRecord(
            record_id=f"{prefix}-{ordinal}",
            level=level,
            parent_index=parent_index,
            contract_ref=draft.contract_ref,
            function_name=draft.function_name,
            args_text=draft.args_text,
            result_text=draft.result_text,
            kind=draft.kind,
            line_number=line_number,
        )


_DEFAULT_PARSER = LogParser()


def parse_diagnostic_logs(lines: Optional[Iterable[object]]) -> ParseReport:
    """Parse with the default grammar."""
    return _DEFAULT_PARSER.parse(lines)
