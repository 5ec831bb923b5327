"""
Flat Operation Contracts

The already-converted operation list that feeds the horizontal,
staggered and vertical layouts. Producing it from ledger records happens
outside this package.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple

from .base import Position


NATIVE_ASSET_CODE = "XLM"
NATIVE_ASSET_ISSUER = "native"


@dataclass(frozen=True)
class AssetRef:
    """Asset identity: (code, issuer). Missing parts mean the native asset."""
    code: str = NATIVE_ASSET_CODE
    issuer: str = NATIVE_ASSET_ISSUER

    @staticmethod
    def of(code: Optional[str], issuer: Optional[str]) -> AssetRef:
        return AssetRef(
            code=code or NATIVE_ASSET_CODE,
            issuer=issuer or NATIVE_ASSET_ISSUER,
        )


@dataclass(frozen=True)
class OperationInput:
    """
    One operation of the transaction, in chronological order.

    Only the fields used to group and order nodes are modelled; display
    fields stay with the rendering collaborator.
    """
    op_id: str
    op_type: str
    position: Position = field(default_factory=lambda: Position(0.0, 0.0))
    source_account: Optional[str] = None
    from_account: Optional[str] = None
    to_account: Optional[str] = None
    destination: Optional[str] = None
    account: Optional[str] = None
    assets: Tuple[AssetRef, ...] = field(default_factory=tuple)
    successful: bool = True
    function_name: Optional[str] = None

    def __post_init__(self):
        if not self.op_id or not isinstance(self.op_id, str):
            raise ValueError("op_id must be a non-empty string")

    def participants(self) -> FrozenSet[str]:
        """Accounts touched: source, from, to (or destination), account."""
        found = set()
        if self.source_account:
            found.add(self.source_account)
        if self.from_account:
            found.add(self.from_account)
        counterparty = self.to_account or self.destination
        if counterparty:
            found.add(counterparty)
        if self.account:
            found.add(self.account)
        return frozenset(found)

    def asset_identities(self) -> FrozenSet[AssetRef]:
        return frozenset(self.assets)


@dataclass(frozen=True)
class EdgeInput:
    """Externally supplied edge between two operations."""
    edge_id: str
    source: str
    target: str
