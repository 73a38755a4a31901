"""IDocumentStore — the backend protocol the query builder executes against."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..envelope import DocumentEnvelope
    from ..primitives import DocumentList, StoreQuery


@runtime_checkable
class IDocumentStore(Protocol):
    """
    Minimal document-database API.

    Documents are returned in the store's native shape, described by
    ``envelope``: the identifier and both timestamps live in reserved fields
    that the store maintains itself.  The builder never writes those fields.

    There is no bulk update, no upsert and no join; the builder
    emulates all three with the four calls below::

        page = await store.list_documents("students", StoreQuery(limit=10))
        doc = await store.create_document("students", "abc123", {"name": "Ada"})
        doc = await store.update_document("students", "abc123", {"city": "Lund"})
        await store.delete_document("students", "abc123")
    """

    @property
    def envelope(self) -> DocumentEnvelope: ...

    async def list_documents(
        self, collection: str, query: StoreQuery
    ) -> DocumentList: ...

    async def create_document(
        self, collection: str, document_id: str, data: dict[str, Any]
    ) -> dict[str, Any]: ...

    async def update_document(
        self, collection: str, document_id: Any, data: dict[str, Any]
    ) -> dict[str, Any]: ...

    async def delete_document(self, collection: str, document_id: Any) -> None: ...
