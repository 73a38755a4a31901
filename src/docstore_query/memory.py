"""InMemoryDocumentStore — dict-backed fake for unit tests."""

from __future__ import annotations

import copy
import re
from typing import TYPE_CHECKING, Any

from .envelope import DEFAULT_ENVELOPE, DocumentEnvelope, utc_timestamp
from .exceptions import DocumentConflictError, DocumentNotFoundError
from .operators import QueryOperator
from .ports.store import IDocumentStore
from .primitives import DocumentList

if TYPE_CHECKING:
    from .primitives import Filter, StoreQuery

_TOKEN_RE = re.compile(r"\w+")


def _tokens(value: Any) -> set[str]:
    if value is None:
        return set()
    return set(_TOKEN_RE.findall(str(value).lower()))


def _compare(field_value: Any, operator: QueryOperator, value: Any) -> bool:
    if field_value is None:
        return False
    try:
        if operator == QueryOperator.GT:
            return bool(field_value > value)
        if operator == QueryOperator.GE:
            return bool(field_value >= value)
        if operator == QueryOperator.LT:
            return bool(field_value < value)
        return bool(field_value <= value)
    except TypeError:
        return False


def _matches(document: dict[str, Any], item: Filter) -> bool:
    field_value = document.get(item.field)
    operator = item.operator
    if operator == QueryOperator.EQ:
        return bool(field_value == item.value)
    if operator == QueryOperator.NE:
        return bool(field_value != item.value)
    if operator == QueryOperator.IN:
        return field_value in item.value
    if operator == QueryOperator.SEARCH:
        # Every query token must be a whole token of the field (case-insensitive).
        return _tokens(item.value) <= _tokens(field_value)
    return _compare(field_value, operator, item.value)


def _sort_key(value: Any) -> tuple[Any, ...]:
    # None sorts last and is never compared with values.
    return (1,) if value is None else (0, value)


class InMemoryDocumentStore(IDocumentStore):
    """In-memory implementation of ``IDocumentStore``.

    Keeps raw documents per collection, keyed by id, and applies the same
    primitive semantics as the Mongo store.  Search is whole-token matching on
    the named field.  Documents are copied in and out.
    """

    def __init__(self, envelope: DocumentEnvelope = DEFAULT_ENVELOPE) -> None:
        self._envelope = envelope
        self._collections: dict[str, dict[Any, dict[str, Any]]] = {}

    @property
    def envelope(self) -> DocumentEnvelope:
        return self._envelope

    async def list_documents(self, collection: str, query: StoreQuery) -> DocumentList:
        documents = [
            document
            for document in self._collections.get(collection, {}).values()
            if all(_matches(document, item) for item in query.filters)
        ]
        # Stable sorts, least significant key first.
        for order in reversed(query.orders):
            documents.sort(
                key=lambda document, name=order.field: _sort_key(document.get(name)),
                reverse=not order.ascending,
            )
        total = len(documents)
        start = query.offset or 0
        end = None if query.limit is None else start + query.limit
        return DocumentList(
            total=total,
            documents=copy.deepcopy(documents[start:end]),
        )

    async def create_document(
        self, collection: str, document_id: str, data: dict[str, Any]
    ) -> dict[str, Any]:
        documents = self._collections.setdefault(collection, {})
        if document_id in documents:
            raise DocumentConflictError(collection, document_id)
        envelope = self._envelope
        now = utc_timestamp()
        document = {
            **copy.deepcopy(data),
            envelope.id_field: document_id,
            envelope.created_at_field: now,
            envelope.updated_at_field: now,
        }
        documents[document_id] = document
        return copy.deepcopy(document)

    async def update_document(
        self, collection: str, document_id: Any, data: dict[str, Any]
    ) -> dict[str, Any]:
        document = self._collections.get(collection, {}).get(document_id)
        if document is None:
            raise DocumentNotFoundError(collection, document_id)
        document.update(copy.deepcopy(data))
        document[self._envelope.updated_at_field] = utc_timestamp()
        return copy.deepcopy(document)

    async def delete_document(self, collection: str, document_id: Any) -> None:
        documents = self._collections.get(collection, {})
        if document_id not in documents:
            raise DocumentNotFoundError(collection, document_id)
        del documents[document_id]

    # ── Test helpers ─────────────────────────────────────────────

    def documents(self, collection: str) -> list[dict[str, Any]]:
        """Raw stored documents of ``collection``, in insertion order."""
        return copy.deepcopy(list(self._collections.get(collection, {}).values()))

    def clear(self) -> None:
        self._collections.clear()

    def __len__(self) -> int:
        return sum(len(documents) for documents in self._collections.values())
