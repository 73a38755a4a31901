"""PostgREST-style query builder over document stores.

Chained ``select/insert/update/delete/upsert`` queries with filters,
ordering, pagination and embedded relationships, executed against a document
database that has none of joins, upsert-by-key or substring search.
"""

from __future__ import annotations

from .builder import CountMode, Operation, QueryBuilder, QueryContext
from .client import DocumentClient, build_resolver, create_client
from .config import ClientSettings, get_settings
from .envelope import DEFAULT_ENVELOPE, DocumentEnvelope
from .exceptions import (
    ConflictingPaginationError,
    DocstoreQueryError,
    DocumentConflictError,
    DocumentNotFoundError,
    DocumentStoreError,
    InvalidSelectionError,
    QueryBuildError,
    QueryExecutionError,
    StoreConnectionError,
)
from .ids import IIDGenerator, UniqueIdGenerator
from .memory import InMemoryDocumentStore
from .operators import QueryOperator
from .ports.store import IDocumentStore
from .primitives import DocumentList, Filter, Order, StoreQuery
from .relationships import (
    ConventionRelationshipResolver,
    RegistryRelationshipResolver,
    RelationshipResolver,
)
from .result import NOT_FOUND_CODE, PartialFailure, QueryError, QueryResult
from .selection import RelationshipDescriptor, Selection, parse_select

__all__ = [
    # Client & builder
    "DocumentClient",
    "create_client",
    "build_resolver",
    "QueryBuilder",
    "QueryContext",
    "Operation",
    "CountMode",
    # Configuration
    "ClientSettings",
    "get_settings",
    # Results
    "QueryResult",
    "QueryError",
    "PartialFailure",
    "NOT_FOUND_CODE",
    # Selection & relationships
    "Selection",
    "RelationshipDescriptor",
    "parse_select",
    "RelationshipResolver",
    "ConventionRelationshipResolver",
    "RegistryRelationshipResolver",
    # Store port & primitives
    "IDocumentStore",
    "InMemoryDocumentStore",
    "DocumentEnvelope",
    "DEFAULT_ENVELOPE",
    "DocumentList",
    "Filter",
    "Order",
    "StoreQuery",
    "QueryOperator",
    "IIDGenerator",
    "UniqueIdGenerator",
    # Exceptions
    "DocstoreQueryError",
    "QueryBuildError",
    "ConflictingPaginationError",
    "InvalidSelectionError",
    "DocumentStoreError",
    "StoreConnectionError",
    "DocumentNotFoundError",
    "DocumentConflictError",
    "QueryExecutionError",
]
