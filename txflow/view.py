"""
Transaction Flow View
=====================

Orchestrates parsing, layout and playback for one transaction.

FLOW:
=====
1. Inputs: operations + edges, optional diagnostic lines, mode,
   show_connections
2. Diagnostic lines -> LogParser -> HierarchyBuilder -> CallForest
3. LayoutEngine derives nodes/edges from inputs + playback cursor
4. PlaybackController owns the cursor; every state change triggers a
   fresh layout

Nothing is patched in place: every input or cursor change recomputes
the LayoutResult from scratch.

AUTO-FRAMING:
=============
When the node count, the requested mode or the mode actually laid out
changes, a FrameRequest is scheduled after a short settle delay so
geometry can stabilise first. Any newer change cancels the previously
scheduled request. Without an event loop to schedule on, framing is
skipped with a warning; layouts are still computed and published.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, Tuple
import logging

from txflow.config import ViewConfig
from txflow.contracts.base import Error, LayoutMode
from txflow.contracts.operations import EdgeInput, OperationInput
from txflow.interaction.temporal import ActionType, InteractionRequest, PlaybackState
from txflow.layout.engine import LayoutEngine, LayoutRequest
from txflow.mapper import OperationMapper
from txflow.parsing.hierarchy import CallForest, HierarchyBuilder
from txflow.parsing.log_parser import LogParser
from txflow.playback.controller import PlaybackController
from txflow.playback.scheduler import (
    AsyncioScheduler, PendingSlot, Scheduler, SchedulerUnavailable,
)
from txflow.playback.status import ExecutionSummary, summarize_execution
from txflow.visualization.graph import LayoutResult


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameRequest:
    """Ask the renderer to fit all nodes into view."""
    padding: float
    max_zoom: float
    min_zoom: float
    node_count: int
    mode: LayoutMode


LayoutListener = Callable[[LayoutResult], None]
FrameListener = Callable[[FrameRequest], None]


class TransactionFlowView:
    """
    Single entry point for a rendering layer.

    The view holds inputs and the playback controller; everything else is
    derived.
    """

    def __init__(
        self,
        config: Optional[ViewConfig] = None,
        scheduler: Optional[Scheduler] = None,
        on_frame: Optional[FrameListener] = None
    ):
        self._config = config or ViewConfig()
        self._scheduler = scheduler or AsyncioScheduler()
        self._on_frame = on_frame

        self._parser = LogParser()
        self._hierarchy_builder = HierarchyBuilder()
        self._engine = LayoutEngine(self._config.layout)
        self._mapper = OperationMapper()

        self._operations: Tuple[OperationInput, ...] = ()
        self._edges: Tuple[EdgeInput, ...] = ()
        self._forest = CallForest()
        self._mode = LayoutMode.HORIZONTAL
        self._show_connections = self._config.show_connections

        self._controller = PlaybackController(
            config=self._config.playback,
            scheduler=self._scheduler,
        )
        self._unsubscribe = self._controller.subscribe(self._on_playback)

        self._frame = PendingSlot()
        self._listeners: List[LayoutListener] = []
        self._result = LayoutResult(mode=self._mode, nodes=(), edges=())
        self._framed: Tuple[int, LayoutMode, LayoutMode] = (0, self._mode, self._mode)
        self._refreshing = False
        self._closed = False

        self._refresh()

    # =========================================================================
    # READ ACCESS
    # =========================================================================

    @property
    def layout(self) -> LayoutResult:
        return self._result

    @property
    def playback(self) -> PlaybackState:
        return self._controller.state

    @property
    def controller(self) -> PlaybackController:
        return self._controller

    @property
    def hierarchy(self) -> CallForest:
        return self._forest

    @property
    def mode(self) -> LayoutMode:
        return self._mode

    @property
    def show_connections(self) -> bool:
        return self._show_connections

    @property
    def has_pending_frame(self) -> bool:
        return self._frame.is_pending

    def summary(self) -> ExecutionSummary:
        succeeded = all(op.successful for op in self._operations)
        return summarize_execution(self._result, self._controller.state, succeeded)

    def subscribe(self, listener: LayoutListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # =========================================================================
    # INPUTS
    # =========================================================================

    def set_operations(
        self,
        operations: Sequence[OperationInput],
        edges: Sequence[EdgeInput] = ()
    ) -> LayoutResult:
        self._operations = tuple(operations)
        self._edges = tuple(edges)
        return self._refresh()

    def load_operations(
        self,
        raw_operations: Sequence[Mapping[str, Any]],
        raw_edges: Sequence[Mapping[str, Any]] = ()
    ) -> Tuple[Error, ...]:
        """Map raw operation dictionaries and use them; returns mapping errors."""
        mapped = self._mapper.map_operations(raw_operations, raw_edges)
        for error in mapped.errors:
            logger.warning("Operation mapping: %s", error.message)
        self.set_operations(mapped.operations, mapped.edges)
        return mapped.errors

    def set_diagnostic_logs(self, lines: Optional[Iterable[object]]) -> LayoutResult:
        report = self._parser.parse(lines)
        self._forest = self._hierarchy_builder.build(report)
        return self._refresh()

    def set_mode(self, mode: LayoutMode) -> LayoutResult:
        self._mode = mode
        return self._refresh()

    def cycle_mode(self) -> LayoutResult:
        return self.set_mode(self._mode.next())

    def toggle_connections(self) -> LayoutResult:
        self._show_connections = not self._show_connections
        return self._refresh()

    def dispatch(self, request: InteractionRequest) -> LayoutResult:
        if request.action is ActionType.CYCLE_LAYOUT:
            return self.cycle_mode()
        if request.action is ActionType.TOGGLE_CONNECTIONS:
            return self.toggle_connections()
        self._controller.dispatch(request)
        return self._result

    def close(self) -> None:
        """Teardown: cancel pending frame and tick, stop notifying."""
        if self._closed:
            return
        self._closed = True
        self._frame.clear()
        self._unsubscribe()
        self._controller.close()
        self._listeners.clear()

    def __enter__(self) -> TransactionFlowView:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # =========================================================================
    # DERIVATION
    # =========================================================================

    def _request(self) -> LayoutRequest:
        return LayoutRequest(
            mode=self._mode,
            operations=self._operations,
            edges=self._edges,
            hierarchy=self._forest,
            cursor=self._controller.state.cursor,
            show_connections=self._show_connections,
        )

    def _refresh(self) -> LayoutResult:
        if self._closed:
            return self._result

        # Clamp the cursor to the new node set before laying out
        self._refreshing = True
        try:
            self._controller.set_node_count(self._request().playable_count)
        finally:
            self._refreshing = False

        self._result = self._engine.compute(self._request())
        self._schedule_frame()
        self._publish()
        return self._result

    def _on_playback(self, state: PlaybackState) -> None:
        if self._closed or self._refreshing:
            return
        self._result = self._engine.compute(self._request())
        self._publish()

    def _publish(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._result)
            except Exception as e:
                logger.warning("Layout listener failed: %s", e)

    def _schedule_frame(self) -> None:
        key = (len(self._result.nodes), self._mode, self._result.mode)
        if key == self._framed:
            return

        playback = self._config.playback
        request = FrameRequest(
            padding=playback.frame_padding,
            max_zoom=playback.frame_max_zoom,
            min_zoom=playback.frame_min_zoom,
            node_count=len(self._result.nodes),
            mode=self._result.mode,
        )
        try:
            task = self._scheduler.call_later(
                playback.settle_delay_ms, lambda: self._emit_frame(request)
            )
        except SchedulerUnavailable as e:
            # The layout is still published; only framing is skipped
            logger.warning("Auto-frame not scheduled: %s", e)
            self._frame.clear()
            return
        self._framed = key
        self._frame.replace(task)

    def _emit_frame(self, request: FrameRequest) -> None:
        if self._closed or self._on_frame is None:
            return
        try:
            self._on_frame(request)
        except Exception as e:
            logger.warning("Frame listener failed: %s", e)
