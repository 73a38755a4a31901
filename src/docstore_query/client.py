"""DocumentClient — entry point handing out query builders.

Usage::

    client = await create_client()
    result = await client.from_("companies").select("id, name").ilike("city", "%lund%")

    async with await create_client(settings) as client:
        ...
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .builder import QueryBuilder, QueryContext
from .config import ClientSettings, get_settings
from .ids import UniqueIdGenerator
from .mongo.connection import MongoConnectionManager
from .mongo.store import MongoDocumentStore
from .relationships import (
    ConventionRelationshipResolver,
    RegistryRelationshipResolver,
    RelationshipResolver,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .ids import IIDGenerator
    from .ports.store import IDocumentStore

logger = logging.getLogger(__name__)


class DocumentClient:
    """Binds a store, a collection map and a relationship strategy."""

    def __init__(
        self,
        store: IDocumentStore,
        *,
        collections: Mapping[str, str] | None = None,
        resolver: RelationshipResolver | None = None,
        id_generator: IIDGenerator | None = None,
        connection: MongoConnectionManager | None = None,
    ) -> None:
        self._context = QueryContext(
            store=store,
            resolver=resolver or ConventionRelationshipResolver(),
            id_generator=id_generator or UniqueIdGenerator(),
            collection_ids=dict(collections or {}),
        )
        self._connection = connection

    @property
    def store(self) -> IDocumentStore:
        return self._context.store

    @property
    def resolver(self) -> RelationshipResolver:
        return self._context.resolver

    def collection_id(self, name: str) -> str:
        return self._context.collection_id(name)

    def from_(self, table: str) -> QueryBuilder:
        """Start a query on the logical collection ``table``."""
        return QueryBuilder(context=self._context, table=table)

    def table(self, name: str) -> QueryBuilder:
        return self.from_(name)

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()

    async def __aenter__(self) -> DocumentClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()


def build_resolver(settings: ClientSettings) -> RelationshipResolver:
    """Registry resolver when relationships are configured, convention otherwise."""
    if settings.relationships:
        return RegistryRelationshipResolver(
            settings.relationships,
            use_convention_fallback=settings.relationship_convention_fallback,
        )
    return ConventionRelationshipResolver()


async def create_client(
    settings: ClientSettings | None = None,
    *,
    connection: MongoConnectionManager | None = None,
) -> DocumentClient:
    """Connect to MongoDB and return a ready :class:`DocumentClient`."""
    settings = settings or get_settings()
    if connection is None:
        connection = MongoConnectionManager(
            settings.mongodb_url,
            settings.database,
            server_selection_timeout_ms=settings.server_selection_timeout_ms,
            connect_timeout_ms=settings.connect_timeout_ms,
        )
    await connection.connect()
    logger.info(
        "Document client connected (database=%s, %d mapped collections)",
        connection.database_name,
        len(settings.collections),
    )
    return DocumentClient(
        MongoDocumentStore(connection),
        collections=settings.collections,
        resolver=build_resolver(settings),
        connection=connection,
    )
