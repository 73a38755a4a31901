"""Exception hierarchy for docstore-query.

Build and store errors never escape a builder's execution; they are converted
into :class:`~docstore_query.result.QueryError` values.  ``to_dict()`` gives an
API-friendly rendering, ``code`` is copied onto the envelope error.
"""

from __future__ import annotations

from typing import Any


class DocstoreQueryError(Exception):
    """Root exception for the whole package."""

    code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"message": str(self)}
        if self.code is not None:
            result["code"] = self.code
        return result


# ── Query construction ───────────────────────────────────────────────


class QueryBuildError(DocstoreQueryError):
    """Raised when a builder chain is invalid (bad arguments, bad select string)."""

    code = "QUERY_BUILD_ERROR"


class ConflictingPaginationError(QueryBuildError):
    """``range()`` and ``limit()`` were both applied to one builder."""

    code = "CONFLICTING_PAGINATION"

    def __init__(self, first: str, second: str) -> None:
        self.first = first
        self.second = second
        super().__init__(
            f"Cannot combine {second}() with {first}() on the same query; "
            "use one pagination style"
        )


class InvalidSelectionError(QueryBuildError):
    """A select string could not be parsed."""

    code = "INVALID_SELECTION"

    def __init__(self, columns: str, reason: str) -> None:
        self.columns = columns
        self.reason = reason
        super().__init__(f"Invalid select {columns!r}: {reason}")


# ── Backing store ────────────────────────────────────────────────────


class DocumentStoreError(DocstoreQueryError):
    """Base for failures reported by a document store call."""

    code = "STORE_ERROR"


class StoreConnectionError(DocumentStoreError):
    """Raised when the store cannot be reached."""

    code = "STORE_UNAVAILABLE"


class DocumentNotFoundError(DocumentStoreError):
    """Raised when a write targets a document id that does not exist."""

    code = "DOCUMENT_NOT_FOUND"

    def __init__(self, collection: str, document_id: object) -> None:
        self.collection = collection
        self.document_id = document_id
        super().__init__(f"Document {document_id!r} not found in {collection!r}")


class DocumentConflictError(DocumentStoreError):
    """Raised when creating a document whose id is already taken."""

    code = "DOCUMENT_CONFLICT"

    def __init__(self, collection: str, document_id: object) -> None:
        self.collection = collection
        self.document_id = document_id
        super().__init__(
            f"Document {document_id!r} already exists in {collection!r}"
        )


# ── Result consumption ───────────────────────────────────────────────


class QueryExecutionError(DocstoreQueryError):
    """Raised by ``QueryResult.raise_for_error()`` for a failed result."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.code = code
        super().__init__(message)
