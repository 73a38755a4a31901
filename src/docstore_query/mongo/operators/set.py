"""Set membership -> $in."""

from __future__ import annotations

from typing import Any

from ...operators import QueryOperator
from ..serialization import to_bson


def compile_set(field: str, op: QueryOperator, val: Any) -> dict[str, Any] | None:
    """Compile set operators. Returns None if not a set op."""
    if op != QueryOperator.IN:
        return None
    values = val if isinstance(val, (list, tuple, set, frozenset)) else [val]
    return {field: {"$in": to_bson(list(values))}}
