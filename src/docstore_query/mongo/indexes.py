"""Index bootstrap — text indexes for ``ilike`` plus unique and key indexes.

``ilike()`` compiles to ``$text``, which fails on collections without a text
index.  Declare the searchable fields once and run :func:`ensure_indexes` at
deploy time::

    schemas = [
        CollectionSchema(
            "students", search_fields=("city",), key_fields=(("school_id",),)
        ),
        CollectionSchema("companies", search_fields=("city", "industry")),
        CollectionSchema("profiles", unique_fields=(("clerk_user_id",),)),
    ]
    await ensure_indexes(connection, schemas)

Re-running is safe: indexes that already exist with a different definition are
logged and skipped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING

from pymongo.errors import OperationFailure, PyMongoError

from ..exceptions import DocumentStoreError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable, Mapping

    from .connection import MongoConnectionManager

logger = logging.getLogger(__name__)

# IndexOptionsConflict, IndexKeySpecsConflict
_INDEX_CONFLICT_CODES = frozenset({85, 86})


@dataclass(frozen=True)
class CollectionSchema:
    """Index requirements of one logical collection."""

    name: str
    search_fields: tuple[str, ...] = ()
    unique_fields: tuple[tuple[str, ...], ...] = ()
    key_fields: tuple[tuple[str, ...], ...] = ()


async def create_compound_index(
    connection: MongoConnectionManager,
    collection: str,
    keys: list[tuple[str, int]],
    *,
    name: str | None = None,
    unique: bool = False,
) -> str:
    """Create a compound index. keys: [(field, 1|(-1)), ...]. Returns index name."""
    coll = connection.collection(collection)
    return await coll.create_index(keys, name=name, unique=unique)


async def create_text_index(
    connection: MongoConnectionManager,
    collection: str,
    fields: Iterable[str],
    *,
    name: str | None = None,
) -> str:
    """Create the collection's text index over ``fields``.

    MongoDB allows a single text index per collection, so every searchable
    field goes into the same index.
    """
    coll = connection.collection(collection)
    return await coll.create_index([(field, "text") for field in fields], name=name)


async def _create_or_skip(
    label: str, create: Callable[[], Awaitable[str]]
) -> str | None:
    try:
        name = await create()
    except OperationFailure as e:
        if e.code in _INDEX_CONFLICT_CODES:
            logger.info("%s already exists with another definition; skipped", label)
            return None
        raise DocumentStoreError(f"{label}: {e}") from e
    except PyMongoError as e:
        raise DocumentStoreError(f"{label}: {e}") from e
    logger.info("%s ready (%s)", label, name)
    return name


async def ensure_indexes(
    connection: MongoConnectionManager,
    schemas: Iterable[CollectionSchema],
    *,
    collection_ids: Mapping[str, str] | None = None,
) -> dict[str, list[str]]:
    """Create every index declared by ``schemas``.

    Returns the index names created (or confirmed) per logical collection.
    """
    ids = collection_ids or {}
    created: dict[str, list[str]] = {}
    for schema in schemas:
        collection = ids.get(schema.name, schema.name)
        pending: list[tuple[str, Callable[[], Awaitable[str]]]] = []
        if schema.search_fields:
            label = f"{schema.name}: text index on {', '.join(schema.search_fields)}"
            pending.append(
                (
                    label,
                    partial(
                        create_text_index,
                        connection,
                        collection,
                        schema.search_fields,
                        name=f"{schema.name}_search",
                    ),
                )
            )
        for fields, unique in [
            *((fields, True) for fields in schema.unique_fields),
            *((fields, False) for fields in schema.key_fields),
        ]:
            kind = "unique index" if unique else "index"
            suffix = "_unique" if unique else ""
            pending.append(
                (
                    f"{schema.name}: {kind} on {', '.join(fields)}",
                    partial(
                        create_compound_index,
                        connection,
                        collection,
                        [(field, 1) for field in fields],
                        name=f"{schema.name}_{'_'.join(fields)}{suffix}",
                        unique=unique,
                    ),
                )
            )

        names: list[str] = []
        for label, create in pending:
            name = await _create_or_skip(label, create)
            if name is not None:
                names.append(name)
        created[schema.name] = names
    return created
