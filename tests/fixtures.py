"""
Shared Test Fixtures

Explicit, hand-written inputs for deterministic testing.
No random generation here: property strategies live next to the
property tests that use them.
"""

from __future__ import annotations
from typing import Tuple

from txflow.contracts.base import Position, RecordKind, NO_PARENT
from txflow.contracts.operations import AssetRef, EdgeInput, OperationInput
from txflow.contracts.records import InvocationRecord
from txflow.parsing.hierarchy import CallForest


# =============================================================================
# DIAGNOSTIC TRACES
# =============================================================================

SWAP_TRACE: Tuple[str, ...] = (
    "GABC...WXYZ invoked contract CABC...1234 swap(100, 50) → 48",
    " Invoked contract CDEF...5678 transfer(A, B, 100)",
)

ROUTER_TRACE: Tuple[str, ...] = (
    "GAAA…BBBB invoked contract CRTR…0001 route(path) → ok",
    " Invoked contract CPOL…0002 swap(1, 2) → 2",
    "  Invoked contract CTOK…0003 transfer(A, B, 1)",
    "  78.44 XLM credited to contract CPOL…0002",
    " Invoked contract CPOL…0004 swap(2, 3) → 3",
    "Contract CTOK…0003 raised event [\"transfer\"]",
    "random noise that matches nothing",
)


# =============================================================================
# FLAT OPERATIONS
# =============================================================================

def payment_chain() -> Tuple[OperationInput, ...]:
    """A->B, B->C, then an unrelated account creation: groups [0, 0, 1]."""
    return (
        OperationInput(op_id="op-0", op_type="payment", from_account="A", to_account="B",
                       position=_at(0)),
        OperationInput(op_id="op-1", op_type="payment", from_account="B", to_account="C",
                       position=_at(1)),
        OperationInput(op_id="op-2", op_type="create_account", account="D",
                       position=_at(2)),
    )


def asset_chain() -> Tuple[OperationInput, ...]:
    """Disjoint accounts joined only by a shared USDC asset."""
    usdc = AssetRef.of("USDC", "GISSUER")
    return (
        OperationInput(op_id="a-0", op_type="payment", from_account="A", to_account="B",
                       assets=(usdc,)),
        OperationInput(op_id="a-1", op_type="payment", from_account="C", to_account="D",
                       assets=(usdc,)),
        OperationInput(op_id="a-2", op_type="payment", from_account="E", to_account="F",
                       assets=(AssetRef(),)),
    )


def chain_edges() -> Tuple[EdgeInput, ...]:
    return (
        EdgeInput(edge_id="e-01", source="op-0", target="op-1"),
        EdgeInput(edge_id="e-12", source="op-1", target="op-2"),
        EdgeInput(edge_id="e-dangling", source="op-1", target="missing"),
    )


def _at(ordinal: int) -> Position:
    return Position(x=ordinal * 300.0, y=0.0)


# =============================================================================
# HAND-BUILT ARENAS
# =============================================================================

def invoke(index: int, level: int, parent_index: int = NO_PARENT,
           function_name: str = "fn") -> InvocationRecord:
    return InvocationRecord(
        record_id=f"call-{index}",
        level=level,
        parent_index=parent_index,
        contract_ref="CABC…0000",
        function_name=function_name,
        args_text="",
        result_text="",
        kind=RecordKind.INVOKE,
        line_number=index,
    )


def effect(index: int, level: int, parent_index: int) -> InvocationRecord:
    return InvocationRecord(
        record_id=f"effect-{index}",
        level=level,
        parent_index=parent_index,
        contract_ref="XLM",
        function_name="credited",
        args_text="1.5",
        result_text="",
        kind=RecordKind.EFFECT,
        line_number=index,
    )


def irregular_forest() -> CallForest:
    """
    Two roots; only the SECOND root makes calls.

    call-0          (level 0)
    call-1          (level 0)
      call-2        (level 1, parent call-1)
      call-3        (level 1, parent call-1)
    """
    return CallForest(records=(
        invoke(0, 0),
        invoke(1, 0),
        invoke(2, 1, parent_index=1),
        invoke(3, 1, parent_index=1),
    ))
