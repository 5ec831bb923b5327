"""
Configuration

Geometry and timing constants for the flow-graph core. Every section is
a frozen dataclass with defaults; ViewConfig aggregates them and fills
missing sections.
"""

from __future__ import annotations
from dataclasses import dataclass


PROPORTIONAL = "proportional"
RECORDED = "recorded"
PARENT_EDGE_STRATEGIES = (PROPORTIONAL, RECORDED)


@dataclass(frozen=True)
class LayoutConfig:
    """Geometry for all four layout modes."""
    # Hierarchical (tree) mode
    tree_node_height: float = 140.0
    tree_vertical_gap: float = 70.0
    tree_level_width: float = 1000.0
    tree_offset: float = 100.0
    parent_edge_strategy: str = PROPORTIONAL

    # Horizontal / staggered modes
    horizontal_y: float = 50.0
    staggered_even_y: float = 50.0
    staggered_odd_y: float = 200.0

    # Vertical (grouped) mode
    column_node_height: float = 180.0
    column_vertical_gap: float = 100.0
    column_width: float = 550.0
    column_offset: float = 100.0
    column_top: float = 150.0
    header_y: float = 50.0

    def __post_init__(self):
        if self.parent_edge_strategy not in PARENT_EDGE_STRATEGIES:
            raise ValueError(
                f"parent_edge_strategy must be one of {PARENT_EDGE_STRATEGIES}, "
                f"got {self.parent_edge_strategy!r}"
            )
        for name in ("tree_node_height", "tree_level_width", "column_width", "column_node_height"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        for name in ("tree_vertical_gap", "column_vertical_gap"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")

    @property
    def tree_slot(self) -> float:
        return self.tree_node_height + self.tree_vertical_gap

    @property
    def column_slot(self) -> float:
        return self.column_node_height + self.column_vertical_gap


@dataclass(frozen=True)
class PlaybackConfig:
    """Replay timing and auto-framing."""
    speed_ms: int = 1000
    min_speed_ms: int = 1
    settle_delay_ms: int = 100

    # Auto-frame request handed to the renderer after the settle delay
    frame_padding: float = 0.2
    frame_max_zoom: float = 1.5
    frame_min_zoom: float = 0.3

    def __post_init__(self):
        if self.min_speed_ms <= 0:
            raise ValueError("min_speed_ms must be positive")
        if self.speed_ms < self.min_speed_ms:
            raise ValueError(f"speed_ms must be >= {self.min_speed_ms}")
        if self.settle_delay_ms < 0:
            raise ValueError("settle_delay_ms must be non-negative")
        if self.frame_min_zoom > self.frame_max_zoom:
            raise ValueError("frame_min_zoom must not exceed frame_max_zoom")


@dataclass
class ViewConfig:
    """Unified configuration for the flow view."""
    layout: LayoutConfig = None
    playback: PlaybackConfig = None
    show_connections: bool = False

    def __post_init__(self):
        self.layout = self.layout or LayoutConfig()
        self.playback = self.playback or PlaybackConfig()

