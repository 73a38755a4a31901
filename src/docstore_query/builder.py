"""QueryBuilder — PostgREST-style fluent queries executed on a document store.

Usage::

    result = await client.from_("students").select("*, schools(name)").eq(
        "school_id", school_id
    ).order("last_name").range(0, 24)

    created = await client.from_("matches").insert({"student_id": s, "company_id": c})

    found = await client.from_("profiles").select().eq("id", user_id).single()
    if found.error and found.error.is_not_found:
        ...

Every chain call returns a *new* builder; a builder is a value and can be
shared or extended freely.  Nothing touches the store until the builder is
awaited (or :meth:`QueryBuilder.execute` is called).  Awaiting the same
builder twice runs the request twice.

Errors never propagate: store failures, bad arguments and not-found singleton
reads all come back as ``QueryResult.error``.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from .exceptions import ConflictingPaginationError, QueryBuildError
from .operators import QueryOperator
from .primitives import Filter, Order, StoreQuery
from .relationships import has_value
from .result import PartialFailure, QueryError, QueryResult
from .selection import Selection, parse_select

if TYPE_CHECKING:
    from collections.abc import Generator, Sequence

    from .envelope import DocumentEnvelope
    from .ids import IIDGenerator
    from .ports.store import IDocumentStore
    from .relationships import RelationshipResolver

logger = logging.getLogger(__name__)

Payload = Mapping[str, Any] | BaseModel

# Characters SQL LIKE / glob patterns use as wildcards.
_WILDCARDS = ("%", "*")


class Operation(str, Enum):
    """Terminal operation a builder chain represents."""

    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    UPSERT = "upsert"


_WRITE_OPERATIONS = frozenset(
    {Operation.INSERT, Operation.UPDATE, Operation.DELETE, Operation.UPSERT}
)


class CountMode(str, Enum):
    """Count flavours accepted by ``select(count=...)``.

    Document stores report an exact total with every listing, so all three
    produce the exact count.
    """

    EXACT = "exact"
    PLANNED = "planned"
    ESTIMATED = "estimated"


@dataclass(frozen=True)
class QueryContext:
    """Everything a builder needs from its client."""

    store: IDocumentStore
    resolver: RelationshipResolver
    id_generator: IIDGenerator
    collection_ids: Mapping[str, str] = field(default_factory=dict)

    def collection_id(self, name: str) -> str:
        """Map a logical collection name to the store's collection id."""
        return self.collection_ids.get(name, name)


def _as_row(item: Any) -> dict[str, Any]:
    if isinstance(item, BaseModel):
        return item.model_dump()
    if isinstance(item, Mapping):
        return dict(item)
    raise QueryBuildError(f"Unsupported payload type {type(item).__name__}")


def _as_rows(
    payload: Payload | Iterable[Payload],
) -> tuple[tuple[dict[str, Any], ...], bool]:
    """Return ``(rows, was_list)`` for a single payload or a sequence of them."""
    if isinstance(payload, (Mapping, BaseModel)):
        return (_as_row(payload),), False
    if isinstance(payload, (str, bytes)) or not isinstance(payload, Iterable):
        raise QueryBuildError(f"Unsupported payload type {type(payload).__name__}")
    return tuple(_as_row(item) for item in payload), True


@dataclass(frozen=True, eq=False)
class QueryBuilder:
    """Immutable query description bound to one collection."""

    context: QueryContext = field(repr=False)
    table: str
    operation: Operation | None = None
    selection: Selection = Selection()
    returning: bool = False
    payload: tuple[dict[str, Any], ...] = ()
    payload_is_list: bool = False
    update_values: dict[str, Any] | None = None
    filters: tuple[Filter, ...] = ()
    orders: tuple[Order, ...] = ()
    limit_to: int | None = None
    offset_by: int | None = None
    pagination: str | None = None
    count_mode: CountMode | None = None
    head_only: bool = False
    expect_single: bool = False
    conflict_keys: tuple[str, ...] = ()
    ignore_duplicates: bool = False
    build_error: QueryBuildError | None = None

    # ── Introspection ────────────────────────────────────────────

    @property
    def collection(self) -> str:
        """Store collection id this builder targets."""
        return self.context.collection_id(self.table)

    @property
    def envelope(self) -> DocumentEnvelope:
        return self.context.store.envelope

    @property
    def store_query(self) -> StoreQuery:
        """The native listing query accumulated so far."""
        return StoreQuery(
            filters=self.filters,
            orders=self.orders,
            limit=self.limit_to,
            offset=self.offset_by,
        )

    def _fail(self, error: QueryBuildError) -> QueryBuilder:
        # First build error wins; it is reported when the builder executes.
        if self.build_error is not None:
            return self
        return replace(self, build_error=error)

    # ── Operation starters ───────────────────────────────────────

    def select(
        self,
        columns: str | Selection = "*",
        *,
        count: str | CountMode | None = None,
        head: bool = False,
    ) -> QueryBuilder:
        """Read rows, or after a write, return the affected rows."""
        try:
            selection = (
                columns if isinstance(columns, Selection) else parse_select(columns)
            )
            count_mode = CountMode(count) if count is not None else None
        except QueryBuildError as e:
            return self._fail(e)
        except ValueError:
            return self._fail(QueryBuildError(f"Unsupported count mode {count!r}"))

        builder = replace(
            self, selection=selection, count_mode=count_mode, head_only=head
        )
        if self.operation in _WRITE_OPERATIONS:
            return replace(builder, returning=True)
        return replace(builder, operation=Operation.SELECT)

    def insert(self, payload: Payload | Sequence[Payload]) -> QueryBuilder:
        try:
            rows, is_list = _as_rows(payload)
        except QueryBuildError as e:
            return self._fail(e)
        return replace(
            self,
            operation=Operation.INSERT,
            payload=rows,
            payload_is_list=is_list,
        )

    def update(self, values: Payload) -> QueryBuilder:
        try:
            row = _as_row(values)
        except QueryBuildError as e:
            return self._fail(e)
        return replace(self, operation=Operation.UPDATE, update_values=row)

    def delete(self) -> QueryBuilder:
        return replace(self, operation=Operation.DELETE)

    def upsert(
        self,
        payload: Payload | Sequence[Payload],
        *,
        on_conflict: str | None = None,
        ignore_duplicates: bool = False,
    ) -> QueryBuilder:
        """Update rows matching ``on_conflict`` keys, create the rest.

        ``on_conflict`` may name several comma-separated keys; all must match.
        """
        try:
            rows, _ = _as_rows(payload)
        except QueryBuildError as e:
            return self._fail(e)
        keys = tuple(
            key.strip() for key in (on_conflict or "").split(",") if key.strip()
        )
        return replace(
            self,
            operation=Operation.UPSERT,
            payload=rows,
            payload_is_list=True,
            conflict_keys=keys,
            ignore_duplicates=ignore_duplicates,
        )

    # ── Filters ──────────────────────────────────────────────────

    def _filter(
        self, field_name: str, operator: QueryOperator, value: Any
    ) -> QueryBuilder:
        return replace(
            self, filters=(*self.filters, Filter(field_name, operator, value))
        )

    def eq(self, column: str, value: Any) -> QueryBuilder:
        return self._filter(self.envelope.map_field(column), QueryOperator.EQ, value)

    def neq(self, column: str, value: Any) -> QueryBuilder:
        return self._filter(self.envelope.map_field(column), QueryOperator.NE, value)

    def ilike(self, column: str, pattern: str) -> QueryBuilder:
        """Case-insensitive match, translated to a full-text token search.

        Wildcards are stripped: ``'%stockholm%'`` searches for the token
        ``stockholm``.  This is not substring matching; ``'%holm%'`` will not
        find ``Stockholm``, and backends may search every text-indexed field
        rather than ``column`` alone.  A pattern made only of wildcards adds
        no predicate.
        """
        term = pattern
        for wildcard in _WILDCARDS:
            term = term.replace(wildcard, "")
        term = term.strip()
        if not term:
            logger.debug("ilike(%r, %r) matches everything; ignored", column, pattern)
            return self
        return self._filter(column, QueryOperator.SEARCH, term)

    def gt(self, column: str, value: Any) -> QueryBuilder:
        return self._filter(column, QueryOperator.GT, value)

    def gte(self, column: str, value: Any) -> QueryBuilder:
        return self._filter(column, QueryOperator.GE, value)

    def lt(self, column: str, value: Any) -> QueryBuilder:
        return self._filter(column, QueryOperator.LT, value)

    def lte(self, column: str, value: Any) -> QueryBuilder:
        return self._filter(column, QueryOperator.LE, value)

    def in_(self, column: str, values: Iterable[Any]) -> QueryBuilder:
        if isinstance(values, (str, bytes)):
            return self._fail(
                QueryBuildError(f"in_({column!r}) expects a collection of values")
            )
        return self._filter(
            self.envelope.map_field(column), QueryOperator.IN, list(values)
        )

    # ── Pagination & ordering ────────────────────────────────────

    def range(self, start: int, end: int) -> QueryBuilder:
        """Inclusive, zero-based row range: ``range(0, 9)`` is the first ten rows."""
        if self.pagination == "limit":
            return self._fail(ConflictingPaginationError("limit", "range"))
        if start < 0 or end < start:
            return self._fail(QueryBuildError(f"Invalid range({start}, {end})"))
        return replace(
            self, offset_by=start, limit_to=end - start + 1, pagination="range"
        )

    def limit(self, count: int) -> QueryBuilder:
        if self.pagination == "range":
            return self._fail(ConflictingPaginationError("range", "limit"))
        if count < 0:
            return self._fail(QueryBuildError(f"Invalid limit({count})"))
        return replace(self, limit_to=count, pagination="limit")

    def order(self, column: str, *, ascending: bool = True) -> QueryBuilder:
        return replace(self, orders=(*self.orders, Order(column, ascending)))

    def single(self) -> QueryBuilder:
        """Expect exactly one row; ``data`` becomes that row instead of a list."""
        return replace(self, expect_single=True)

    # ── Execution ────────────────────────────────────────────────

    def __await__(self) -> Generator[Any, None, QueryResult]:
        return self.execute().__await__()

    async def execute(self) -> QueryResult:
        if self.build_error is not None:
            logger.warning("Query on %s not executed: %s", self.table, self.build_error)
            return QueryResult.failure(QueryError.from_exception(self.build_error))

        operation = self.operation or Operation.SELECT
        handler = {
            Operation.SELECT: self._execute_select,
            Operation.INSERT: self._execute_insert,
            Operation.UPDATE: self._execute_update,
            Operation.DELETE: self._execute_delete,
            Operation.UPSERT: self._execute_upsert,
        }[operation]

        start = time.perf_counter()
        try:
            result = await handler()
        except Exception as exc:  # noqa: BLE001
            elapsed = (time.perf_counter() - start) * 1000
            logger.warning(
                "%s on %s failed after %.2fms: %s",
                operation.value,
                self.table,
                elapsed,
                exc,
                exc_info=True,
            )
            return QueryResult.failure(QueryError.from_exception(exc))
        elapsed = (time.perf_counter() - start) * 1000
        logger.debug(
            "%s on %s completed in %.2fms", operation.value, self.table, elapsed
        )
        return result

    def _normalize(self, document: Mapping[str, Any]) -> dict[str, Any]:
        return self.envelope.from_store(document)

    async def _fetch_related(self, table: str, ids: list[Any]) -> list[dict[str, Any]]:
        envelope = self.envelope
        query = StoreQuery(
            filters=(Filter(envelope.id_field, QueryOperator.IN, list(ids)),),
            limit=len(ids),
        )
        page = await self.context.store.list_documents(
            self.context.collection_id(table), query
        )
        return [envelope.from_store(document) for document in page.documents]

    async def _shape(self, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Resolve relationships, then project to the selected fields."""
        selection = self.selection
        if selection.relationships:
            await self.context.resolver.resolve_all(
                self.table, selection.relationships, rows, self._fetch_related
            )
        return [selection.project(row) for row in rows]

    async def _returned(self, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return await self._shape(rows) if self.returning else rows

    def _single_or(self, rows: list[dict[str, Any]], default: Any) -> Any:
        if self.expect_single:
            return rows[0] if rows else None
        return default

    async def _execute_select(self) -> QueryResult:
        store = self.context.store
        # head without a count mode is an ordinary select.
        if self.head_only and self.count_mode is not None:
            page = await store.list_documents(
                self.collection, self.store_query.with_limit(1)
            )
            return QueryResult(data=None, count=page.total)

        page = await store.list_documents(self.collection, self.store_query)
        rows = await self._shape([self._normalize(doc) for doc in page.documents])
        if self.expect_single:
            if not rows:
                return QueryResult.failure(QueryError.not_found())
            return QueryResult(data=rows[0])
        return QueryResult(
            data=rows,
            count=page.total if self.count_mode is not None else None,
        )

    async def _create(self, item: dict[str, Any]) -> dict[str, Any]:
        document_id = item.get("id")
        if not has_value(document_id):
            document_id = self.context.id_generator.next_id()
        return await self.context.store.create_document(
            self.collection, document_id, self.envelope.to_store(item)
        )

    async def _execute_insert(self) -> QueryResult:
        rows = [self._normalize(await self._create(item)) for item in self.payload]
        rows = await self._returned(rows)
        if self.expect_single:
            return QueryResult(data=rows[0] if rows else None)
        if not self.payload_is_list and len(rows) == 1:
            return QueryResult(data=rows[0])
        return QueryResult(data=rows)

    async def _matching_documents(self) -> list[dict[str, Any]]:
        page = await self.context.store.list_documents(
            self.collection, StoreQuery(filters=self.filters)
        )
        return page.documents

    async def _execute_update(self) -> QueryResult:
        store = self.context.store
        id_field = self.envelope.id_field
        values = self.envelope.to_store(self.update_values or {})
        rows = []
        for document in await self._matching_documents():
            updated = await store.update_document(
                self.collection, document[id_field], values
            )
            rows.append(self._normalize(updated))
        rows = await self._returned(rows)
        return QueryResult(data=self._single_or(rows, rows))

    async def _execute_delete(self) -> QueryResult:
        store = self.context.store
        id_field = self.envelope.id_field
        rows = []
        for document in await self._matching_documents():
            await store.delete_document(self.collection, document[id_field])
            rows.append(self._normalize(document))
        if not self.returning:
            return QueryResult(data=None)
        rows = await self._shape(rows)
        return QueryResult(data=self._single_or(rows, rows))

    async def _upsert_one(self, item: dict[str, Any]) -> dict[str, Any] | None:
        keys = self.conflict_keys
        if keys and all(has_value(item.get(key)) for key in keys):
            envelope = self.envelope
            lookup = StoreQuery(
                filters=tuple(
                    Filter(envelope.map_field(key), QueryOperator.EQ, item[key])
                    for key in keys
                ),
                limit=1,
            )
            page = await self.context.store.list_documents(self.collection, lookup)
            if page.documents:
                if self.ignore_duplicates:
                    return None
                values = {
                    key: value
                    for key, value in envelope.to_store(item).items()
                    if key not in keys
                }
                return await self.context.store.update_document(
                    self.collection, page.documents[0][envelope.id_field], values
                )
        return await self._create(item)

    async def _execute_upsert(self) -> QueryResult:
        rows = []
        failures = []
        for index, item in enumerate(self.payload):
            try:
                document = await self._upsert_one(item)
            except Exception as exc:  # noqa: BLE001
                logger.warning(
                    "Upsert of item %d into %s failed; continuing",
                    index,
                    self.table,
                    exc_info=True,
                )
                failures.append(
                    PartialFailure(
                        index=index,
                        item=item,
                        message=str(exc) or type(exc).__name__,
                    )
                )
                continue
            if document is not None:
                rows.append(self._normalize(document))
        rows = await self._returned(rows)
        return QueryResult(
            data=self._single_or(rows, rows),
            partial_failures=tuple(failures),
        )
