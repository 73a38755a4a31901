"""Comparison operators -> $eq, $ne, $gt, $gte, $lt, $lte."""

from __future__ import annotations

from typing import Any

from ...operators import QueryOperator
from ..serialization import to_bson

_MONGO_OP_MAP: dict[QueryOperator, str] = {
    QueryOperator.EQ: "$eq",
    QueryOperator.NE: "$ne",
    QueryOperator.GT: "$gt",
    QueryOperator.GE: "$gte",
    QueryOperator.LT: "$lt",
    QueryOperator.LE: "$lte",
}


def compile_standard(field: str, op: QueryOperator, val: Any) -> dict[str, Any] | None:
    """Compile comparison operators. Returns None if not a comparison op."""
    mongo_op = _MONGO_OP_MAP.get(op)
    if mongo_op is None:
        return None
    return {field: {mongo_op: to_bson(val)}}
