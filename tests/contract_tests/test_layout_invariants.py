"""
Property Tests for Flow-Graph Contracts
Verifies parser totality, forest shape, grouping, cursor bounds and
layout determinism over generated inputs.
"""

from hypothesis import given, settings, strategies as st
from hypothesis.strategies import composite

from txflow.contracts.base import LayoutMode, NodeKind, NO_PARENT, NOT_STARTED
from txflow.contracts.operations import AssetRef, OperationInput
from txflow.interaction.temporal import ActionType, InteractionRequest
from txflow.layout.engine import LayoutEngine, LayoutRequest
from txflow.layout.grouping import GroupingHeuristic, shares_entity
from txflow.parsing.hierarchy import build_hierarchy
from txflow.parsing.log_parser import parse_diagnostic_logs
from txflow.playback.controller import PlaybackController
from txflow.playback.scheduler import ManualScheduler

# =============================================================================
# STRATEGIES (Generators)
# =============================================================================

REFS = st.sampled_from(["CABC…1234", "CDEF...5678", "GAAA…BBBB", "CTOK..0003"])
FUNCTIONS = st.sampled_from(["swap", "transfer", "mint", "route", "balance"])
ACCOUNTS = st.sampled_from(["A", "B", "C", "D", "E"])


@composite
def diagnostic_lines(draw):
    """Generates one trace line: invocation, effect, event or noise."""
    kind = draw(st.sampled_from(["top", "nested", "effect", "event", "noise"]))
    indent = " " * draw(st.integers(min_value=0, max_value=6))
    ref = draw(REFS)
    fn = draw(FUNCTIONS)

    if kind == "top":
        return f"{draw(REFS)} invoked contract {ref} {fn}(1, 2) → 3"
    if kind == "nested":
        return f"{indent}Invoked contract {ref} {fn}(x)"
    if kind == "effect":
        verb = draw(st.sampled_from(["minted", "credited", "transferred", "burned"]))
        return f"{indent}1.5 XLM {verb} to contract {ref}"
    if kind == "event":
        return f"{indent}Contract {ref} raised event [\"{fn}\"]"
    return draw(st.text(max_size=40))


@composite
def operations(draw):
    """Generates an ordered operation list with overlapping participants."""
    count = draw(st.integers(min_value=0, max_value=12))
    ops = []
    for ordinal in range(count):
        asset = draw(st.sampled_from([None, AssetRef(), AssetRef.of("USDC", "GI")]))
        ops.append(OperationInput(
            op_id=f"op-{ordinal}",
            op_type=draw(st.sampled_from(["payment", "create_account", "change_trust"])),
            from_account=draw(st.one_of(st.none(), ACCOUNTS)),
            to_account=draw(st.one_of(st.none(), ACCOUNTS)),
            assets=(asset,) if asset else (),
            successful=draw(st.booleans()),
        ))
    return tuple(ops)


ACTIONS = st.sampled_from([
    InteractionRequest(ActionType.STEP_FORWARD),
    InteractionRequest(ActionType.STEP_BACKWARD),
    InteractionRequest(ActionType.PLAY_PAUSE),
    InteractionRequest(ActionType.RESET),
    InteractionRequest(ActionType.SET_SPEED, value=50),
])


# =============================================================================
# PARSER
# =============================================================================

class TestParserProperties:

    @given(st.lists(st.one_of(st.text(), st.none(), st.integers(), st.binary())))
    def test_never_raises_and_accounts_for_every_line(self, lines):
        report = parse_diagnostic_logs(lines)

        assert report.line_count == len(lines)
        assert len(report.records) + len(report.skipped_lines) == len(lines)

    @given(st.lists(diagnostic_lines(), max_size=30))
    def test_parent_references_earlier_record(self, lines):
        records = parse_diagnostic_logs(lines).records

        for index, record in enumerate(records):
            assert record.level >= 0
            assert (record.parent_index == NO_PARENT) == (record.level == 0)
            if record.parent_index != NO_PARENT:
                assert 0 <= record.parent_index < index
                assert record.level <= records[record.parent_index].level + 1

    @given(st.lists(diagnostic_lines(), max_size=30))
    def test_forest_is_well_formed(self, lines):
        forest = build_hierarchy(parse_diagnostic_logs(lines))
        assert forest.is_well_formed()


# =============================================================================
# GROUPING
# =============================================================================

class TestGroupingProperties:

    @given(operations())
    def test_groups_advance_only_on_break(self, ops):
        assignment = GroupingHeuristic().assign(ops)

        assert len(assignment) == len(ops)
        if ops:
            assert assignment[0] == 0
        for i in range(1, len(ops)):
            step = assignment[i] - assignment[i - 1]
            assert step == (0 if shares_entity(ops[i], ops[i - 1]) else 1)


# =============================================================================
# PLAYBACK
# =============================================================================

class TestPlaybackProperties:

    @given(
        st.integers(min_value=0, max_value=8),
        st.lists(st.tuples(ACTIONS, st.integers(min_value=0, max_value=300)), max_size=40),
    )
    @settings(max_examples=200)
    def test_cursor_stays_in_bounds(self, node_count, script):
        scheduler = ManualScheduler()
        controller = PlaybackController(node_count=node_count, scheduler=scheduler)

        for request, wait_ms in script:
            controller.dispatch(request)
            scheduler.advance(wait_ms)
            state = controller.state
            assert NOT_STARTED <= state.cursor <= max(NOT_STARTED, node_count - 1)
            assert scheduler.pending_count <= 1
            if state.is_playing:
                assert controller.has_pending_tick

        controller.close()
        assert scheduler.pending_count == 0


# =============================================================================
# LAYOUT
# =============================================================================

class TestLayoutProperties:

    @given(
        st.sampled_from(list(LayoutMode)),
        operations(),
        st.lists(diagnostic_lines(), max_size=10),
        st.integers(min_value=-3, max_value=15),
        st.booleans(),
    )
    def test_deterministic_and_total(self, mode, ops, lines, cursor, connections):
        request = LayoutRequest(
            mode=mode,
            operations=ops,
            hierarchy=build_hierarchy(parse_diagnostic_logs(lines)),
            cursor=cursor,
            show_connections=connections,
        )
        engine = LayoutEngine()

        first = engine.compute(request)
        second = engine.compute(request)

        assert first.is_success
        assert first == second
        assert len(first.playable_nodes()) == request.playable_count
        ids = [n.node_id for n in first.nodes]
        assert len(ids) == len(set(ids))

    @given(operations(), st.integers(min_value=-1, max_value=11))
    def test_executing_node_matches_cursor(self, ops, cursor):
        result = LayoutEngine().compute(LayoutRequest(
            mode=LayoutMode.VERTICAL, operations=ops, cursor=cursor,
        ))

        executing = [n.ordinal for n in result.nodes if n.is_executing]
        expected = min(cursor, len(ops) - 1)
        if expected == NOT_STARTED:
            assert executing == []
        else:
            assert executing == [expected]
        assert all(n.ordinal == -1 for n in result.nodes if n.kind is NodeKind.GROUP_HEADER)
