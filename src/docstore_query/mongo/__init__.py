"""MongoDB backend: connection, query compiler, document store, index bootstrap."""

from __future__ import annotations

from .compiler import MongoQueryCompiler
from .connection import MongoConnectionManager
from .indexes import (
    CollectionSchema,
    create_compound_index,
    create_text_index,
    ensure_indexes,
)
from .store import MongoDocumentStore

__all__ = [
    "MongoConnectionManager",
    "MongoDocumentStore",
    "MongoQueryCompiler",
    "CollectionSchema",
    "create_compound_index",
    "create_text_index",
    "ensure_indexes",
]
