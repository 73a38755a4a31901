"""Mongo query compiler for native query primitives."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..exceptions import QueryBuildError
from ..operators import QueryOperator
from .operators import compile_set, compile_standard, compile_text_search

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..primitives import Filter, Order

_COMPILERS = [
    compile_standard,
    compile_set,
]


def _compile_leaf(item: Filter) -> dict[str, Any]:
    """Compile a single predicate to a MongoDB query fragment."""
    if not item.field:
        raise QueryBuildError(f"Predicate missing field: {item}")
    for compiler in _COMPILERS:
        result = compiler(item.field, item.operator, item.value)
        if result is not None:
            return result
    raise QueryBuildError(f"Unsupported operator {item.operator.value!r}")


class MongoQueryCompiler:
    """Compiles :class:`~docstore_query.primitives.StoreQuery` parts to MongoDB."""

    def build_match(self, filters: Sequence[Filter]) -> dict[str, Any]:
        """Build a find() filter document; all predicates are ANDed.

        Search predicates are merged into one top-level ``$text`` clause.
        """
        clauses: list[dict[str, Any]] = []
        terms: list[str] = []
        for item in filters:
            if item.operator == QueryOperator.SEARCH:
                terms.append(str(item.value))
            else:
                clauses.append(_compile_leaf(item))

        match: dict[str, Any] = {}
        if len(clauses) == 1:
            match = clauses[0]
        elif clauses:
            match = {"$and": clauses}
        text = compile_text_search(terms)
        if text is not None:
            match = {**text, **match}
        return match

    def build_sort(self, orders: Sequence[Order]) -> list[tuple[str, int]]:
        """Build MongoDB sort tuples, primary key first."""
        return [(order.field, 1 if order.ascending else -1) for order in orders]
