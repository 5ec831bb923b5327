"""
Configuration and Contract Tests

Invalid configuration is a programmer error and fails at construction.
Contract values are immutable and validate their own invariants.
"""

from dataclasses import FrozenInstanceError

import pytest

from txflow.config import LayoutConfig, PlaybackConfig, ViewConfig
from txflow.contracts.base import (
    Error, ErrorCode, PlaybackPhase, Position, coerce_position, NO_PARENT,
)
from txflow.contracts.operations import AssetRef, OperationInput
from txflow.contracts.records import ParseReport
from txflow.interaction.temporal import PlaybackState

from tests.fixtures import effect, invoke


class TestLayoutConfig:

    def test_defaults(self):
        config = LayoutConfig()
        assert config.tree_slot == 210.0
        assert config.column_slot == 280.0
        assert config.parent_edge_strategy == "proportional"

    def test_unknown_strategy(self):
        with pytest.raises(ValueError):
            LayoutConfig(parent_edge_strategy="stack")

    def test_non_positive_geometry(self):
        with pytest.raises(ValueError):
            LayoutConfig(tree_node_height=0)
        with pytest.raises(ValueError):
            LayoutConfig(column_vertical_gap=-1)


class TestPlaybackConfig:

    def test_defaults(self):
        config = PlaybackConfig()
        assert (config.speed_ms, config.settle_delay_ms) == (1000, 100)
        assert (config.frame_padding, config.frame_max_zoom, config.frame_min_zoom) == (0.2, 1.5, 0.3)

    @pytest.mark.parametrize("kwargs", [
        {"speed_ms": 0},
        {"min_speed_ms": 0},
        {"settle_delay_ms": -1},
        {"frame_min_zoom": 2.0},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            PlaybackConfig(**kwargs)


class TestViewConfig:

    def test_fills_missing_sections(self):
        config = ViewConfig()
        assert config.layout == LayoutConfig()
        assert config.playback == PlaybackConfig()
        assert not config.show_connections

    def test_keeps_given_sections(self):
        playback = PlaybackConfig(speed_ms=250)
        assert ViewConfig(playback=playback).playback is playback


# =============================================================================
# CONTRACTS
# =============================================================================

class TestContracts:

    def test_error_context_is_appended(self):
        error = Error.now(ErrorCode.LAYOUT_FAILED, "boom", mode="vertical")
        extended = error.with_context("cursor", "3")

        assert error.context == (("mode", "vertical"),)
        assert extended.context == (("mode", "vertical"), ("cursor", "3"))
        assert extended.timestamp == error.timestamp

    def test_records_are_frozen(self):
        record = invoke(0, 0)
        with pytest.raises(FrozenInstanceError):
            record.level = 2

    @pytest.mark.parametrize("level,parent", [(0, 3), (1, NO_PARENT), (-1, NO_PARENT)])
    def test_record_level_invariant(self, level, parent):
        with pytest.raises(ValueError):
            invoke(0, level, parent_index=parent)

    def test_report_invocations(self):
        report = ParseReport(records=(invoke(0, 0), effect(1, 1, parent_index=0)))
        assert [r.record_id for r in report.invocations()] == ["call-0"]
        assert not report.is_empty

    def test_operation_requires_id(self):
        with pytest.raises(ValueError):
            OperationInput(op_id="", op_type="payment")

    def test_asset_defaults(self):
        assert AssetRef() == AssetRef("XLM", "native")
        assert AssetRef.of("USDC", None) == AssetRef("USDC", "native")

    @pytest.mark.parametrize("value,expected", [
        (None, Position(0.0, 0.0)),
        ({"x": 1, "y": 2}, Position(1.0, 2.0)),
        ((3, 4), Position(3.0, 4.0)),
        ([5, 6], Position(5.0, 6.0)),
        ("nowhere", Position(0.0, 0.0)),
    ])
    def test_coerce_position(self, value, expected):
        assert coerce_position(value) == expected

    def test_playback_phases(self):
        def state(cursor, playing=False):
            return PlaybackState(cursor=cursor, is_playing=playing, speed_ms=1000, node_count=3)

        assert state(-1).phase is PlaybackPhase.IDLE
        assert state(1).phase is PlaybackPhase.STEPPING
        assert state(1, playing=True).phase is PlaybackPhase.PLAYING
        assert state(2).phase is PlaybackPhase.FINISHED
