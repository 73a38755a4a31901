"""MongoDocumentStore — IDocumentStore on MongoDB (Motor).

The store owns the envelope fields: ``_id`` is the document id, ``_created_at``
and ``_updated_at`` are ISO-8601 UTC strings written on every create/update.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from ..envelope import DEFAULT_ENVELOPE, DocumentEnvelope, utc_timestamp
from ..exceptions import (
    DocumentConflictError,
    DocumentNotFoundError,
    DocumentStoreError,
)
from ..ports.store import IDocumentStore
from ..primitives import DocumentList
from .compiler import MongoQueryCompiler
from .serialization import from_bson, to_bson

if TYPE_CHECKING:
    from ..primitives import StoreQuery
    from .connection import MongoConnectionManager


class MongoDocumentStore(IDocumentStore):
    """Document store over one MongoDB database."""

    def __init__(
        self,
        connection: MongoConnectionManager,
        *,
        compiler: MongoQueryCompiler | None = None,
        envelope: DocumentEnvelope = DEFAULT_ENVELOPE,
    ) -> None:
        self._connection = connection
        self._compiler = compiler or MongoQueryCompiler()
        self._envelope = envelope

    @property
    def envelope(self) -> DocumentEnvelope:
        return self._envelope

    def _collection(self, name: str) -> Any:
        return self._connection.collection(name)

    async def list_documents(self, collection: str, query: StoreQuery) -> DocumentList:
        coll = self._collection(collection)
        match = self._compiler.build_match(query.filters)
        sort = self._compiler.build_sort(query.orders)
        try:
            total = await coll.count_documents(match)
            # Mongo treats limit=0 as "no limit".
            if query.limit == 0:
                return DocumentList(total=total, documents=[])
            cursor = coll.find(
                match,
                sort=sort or None,
                skip=query.offset or 0,
                limit=query.limit or 0,
            )
            documents = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise DocumentStoreError(str(e)) from e
        return DocumentList(
            total=total,
            documents=[from_bson(document) for document in documents],
        )

    async def create_document(
        self, collection: str, document_id: str, data: dict[str, Any]
    ) -> dict[str, Any]:
        envelope = self._envelope
        now = utc_timestamp()
        document = {
            **to_bson(data),
            envelope.id_field: document_id,
            envelope.created_at_field: now,
            envelope.updated_at_field: now,
        }
        try:
            await self._collection(collection).insert_one(document)
        except DuplicateKeyError as e:
            raise DocumentConflictError(collection, document_id) from e
        except PyMongoError as e:
            raise DocumentStoreError(str(e)) from e
        return from_bson(document)

    async def update_document(
        self, collection: str, document_id: Any, data: dict[str, Any]
    ) -> dict[str, Any]:
        envelope = self._envelope
        changes = {**to_bson(data), envelope.updated_at_field: utc_timestamp()}
        try:
            document = await self._collection(collection).find_one_and_update(
                {envelope.id_field: document_id},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            raise DocumentStoreError(str(e)) from e
        if document is None:
            raise DocumentNotFoundError(collection, document_id)
        return from_bson(document)

    async def delete_document(self, collection: str, document_id: Any) -> None:
        try:
            result = await self._collection(collection).delete_one(
                {self._envelope.id_field: document_id}
            )
        except PyMongoError as e:
            raise DocumentStoreError(str(e)) from e
        if result.deleted_count == 0:
            raise DocumentNotFoundError(collection, document_id)
