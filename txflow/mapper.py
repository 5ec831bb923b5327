"""
Operation Mapper

Converts loosely-typed operation mappings (as produced by the ledger
conversion step) into OperationInput / EdgeInput contracts.

MAPPING BOUNDARY:
=================
This is the ONLY place where raw dictionaries become layout inputs.

MAPPING RULES:
==============
1. Never raise on bad input: record an Error and skip the entry
2. Preserve input order (it is the chronological order)
3. For node-shaped input, fields under "data" override the envelope;
   id always comes from the envelope
4. Asset fields are only read when their *_asset_type / asset_type
   marker is present; missing code/issuer mean the native asset
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Sequence, Set, Tuple

from txflow.contracts.base import Error, ErrorCode, coerce_position
from txflow.contracts.operations import AssetRef, EdgeInput, OperationInput


# (type marker, code field, issuer field)
ASSET_FIELDS: Tuple[Tuple[str, str, str], ...] = (
    ("asset_type", "asset_code", "asset_issuer"),
    ("source_asset_type", "source_asset_code", "source_asset_issuer"),
    ("destination_asset_type", "destination_asset_code", "destination_asset_issuer"),
    ("selling_asset_type", "selling_asset_code", "selling_asset_issuer"),
    ("buying_asset_type", "buying_asset_code", "buying_asset_issuer"),
)


@dataclass(frozen=True)
class MappedOperations:
    """Result of mapping a batch: inputs that survived plus errors."""
    operations: Tuple[OperationInput, ...] = field(default_factory=tuple)
    edges: Tuple[EdgeInput, ...] = field(default_factory=tuple)
    errors: Tuple[Error, ...] = field(default_factory=tuple)

    @property
    def is_clean(self) -> bool:
        return not self.errors


def _text(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


class OperationMapper:
    """
    Maps raw operation / edge mappings to layout inputs.

    SINGLE POINT OF CONVERSION:
    ===========================
    The layout engine never sees a dictionary.
    """

    # =========================================================================
    # OPERATION MAPPING
    # =========================================================================

    def map_operation(self, raw: Mapping[str, Any], ordinal: int = 0) -> OperationInput:
        """Map a single operation. Raises ValueError/TypeError on bad input."""
        if not isinstance(raw, Mapping):
            raise TypeError(f"operation {ordinal} is not a mapping")

        op_id = _text(raw.get("id"))
        if op_id is None:
            raise ValueError(f"operation {ordinal} has no id")

        # Node-shaped input wraps the operation in "data"; its fields win
        # over the envelope (whose "type" is the node type, not the op type)
        fields = {k: v for k, v in raw.items() if k != "data"}
        data = raw.get("data")
        if isinstance(data, Mapping):
            fields.update(data)

        return OperationInput(
            op_id=op_id,
            op_type=_text(fields.get("type")) or "unknown",
            position=coerce_position(fields.get("position")),
            source_account=_text(fields.get("source_account")),
            from_account=_text(fields.get("from")),
            to_account=_text(fields.get("to")),
            destination=_text(fields.get("destination")),
            account=_text(fields.get("account")),
            assets=self._map_assets(fields),
            successful=self._map_success(fields),
            function_name=_text(fields.get("function_name") or fields.get("functionName")),
        )

    def map_operations(
        self,
        raw_operations: Sequence[Mapping[str, Any]],
        raw_edges: Sequence[Mapping[str, Any]] = ()
    ) -> MappedOperations:
        """Map a batch; bad entries become errors, never exceptions."""
        operations: List[OperationInput] = []
        errors: List[Error] = []
        seen: Set[str] = set()

        for ordinal, raw in enumerate(raw_operations or ()):
            try:
                operation = self.map_operation(raw, ordinal)
            except (TypeError, ValueError) as e:
                errors.append(Error.now(
                    ErrorCode.MALFORMED_OPERATION, str(e), ordinal=str(ordinal)
                ))
                continue
            if operation.op_id in seen:
                errors.append(Error.now(
                    ErrorCode.DUPLICATE_OPERATION_ID,
                    f"duplicate operation id {operation.op_id}",
                    ordinal=str(ordinal),
                ))
                continue
            seen.add(operation.op_id)
            operations.append(operation)

        edges = []
        for index, raw in enumerate(raw_edges or ()):
            edge = self.map_edge(raw)
            if edge is None:
                errors.append(Error.now(
                    ErrorCode.MALFORMED_OPERATION,
                    f"edge {index} needs source and target",
                    index=str(index),
                ))
                continue
            edges.append(edge)

        return MappedOperations(
            operations=tuple(operations),
            edges=tuple(edges),
            errors=tuple(errors),
        )

    # =========================================================================
    # EDGE MAPPING
    # =========================================================================

    def map_edge(self, raw: Mapping[str, Any]) -> Optional[EdgeInput]:
        if not isinstance(raw, Mapping):
            return None
        source = _text(raw.get("source"))
        target = _text(raw.get("target"))
        if source is None or target is None:
            return None
        return EdgeInput(
            edge_id=_text(raw.get("id")) or f"edge-{source}-{target}",
            source=source,
            target=target,
        )

    # =========================================================================
    # FIELD HELPERS
    # =========================================================================

    @staticmethod
    def _map_assets(fields: Mapping[str, Any]) -> Tuple[AssetRef, ...]:
        assets = []
        for type_field, code_field, issuer_field in ASSET_FIELDS:
            if fields.get(type_field):
                asset = AssetRef.of(_text(fields.get(code_field)), _text(fields.get(issuer_field)))
                if asset not in assets:
                    assets.append(asset)
        return tuple(assets)

    @staticmethod
    def _map_success(fields: Mapping[str, Any]) -> bool:
        """Only an explicit False marks a failure."""
        if fields.get("transaction_successful") is False:
            return False
        nested = fields.get("operation")
        if isinstance(nested, Mapping) and nested.get("transaction_successful") is False:
            return False
        return True
