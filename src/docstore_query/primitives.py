"""Native query primitives handed to a document store.

A builder accumulates these tokens; each store compiles them into its own
query language.  All of them are immutable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .operators import QueryOperator


@dataclass(frozen=True)
class Filter:
    """One predicate: ``field <operator> value``.

    ``field`` is already expressed in store terms (``id`` mapped to the
    store's identifier field).
    """

    field: str
    operator: QueryOperator
    value: Any


@dataclass(frozen=True)
class Order:
    """One sort key."""

    field: str
    ascending: bool = True


@dataclass(frozen=True)
class StoreQuery:
    """Filters, sort keys and pagination for a single listing call.

    Filters are ANDed in order.  Sort keys are applied primary first.
    """

    filters: tuple[Filter, ...] = ()
    orders: tuple[Order, ...] = ()
    limit: int | None = None
    offset: int | None = None

    def with_limit(self, limit: int | None) -> StoreQuery:
        """Return a copy with ``limit`` replaced and no ordering or offset."""
        return StoreQuery(filters=self.filters, limit=limit)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "filters": [
                {"field": f.field, "op": f.operator.value, "val": f.value}
                for f in self.filters
            ],
        }
        if self.orders:
            result["order_by"] = [
                o.field if o.ascending else f"-{o.field}" for o in self.orders
            ]
        if self.limit is not None:
            result["limit"] = self.limit
        if self.offset is not None:
            result["offset"] = self.offset
        return result


@dataclass(frozen=True)
class DocumentList:
    """Result of ``list_documents``: one page of raw documents plus the total.

    ``total`` counts every document matching the filters, ignoring limit and
    offset.
    """

    total: int
    documents: list[dict[str, Any]] = field(default_factory=list)
