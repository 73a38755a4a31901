"""Index bootstrap."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import OperationFailure

from docstore_query import DocumentStoreError
from docstore_query.mongo import CollectionSchema, ensure_indexes


def _connection(collection: MagicMock) -> MagicMock:
    connection = MagicMock()
    connection.collection.return_value = collection
    return connection


@pytest.mark.asyncio
async def test_ensure_indexes_creates_declared_indexes() -> None:
    collection = MagicMock()
    collection.create_index = AsyncMock(side_effect=lambda keys, **kw: kw["name"])
    connection = _connection(collection)

    created = await ensure_indexes(
        connection,
        [
            CollectionSchema(
                "students",
                search_fields=("city", "bio"),
                unique_fields=(("email",),),
                key_fields=(("school_id", "last_name"),),
            )
        ],
        collection_ids={"students": "student_v2"},
    )

    assert created == {
        "students": [
            "students_search",
            "students_email_unique",
            "students_school_id_last_name",
        ]
    }
    connection.collection.assert_called_with("student_v2")
    calls = collection.create_index.await_args_list
    assert calls[0].args[0] == [("city", "text"), ("bio", "text")]
    assert calls[1].kwargs["unique"] is True
    assert calls[2].args[0] == [("school_id", 1), ("last_name", 1)]


@pytest.mark.asyncio
async def test_conflicting_index_is_skipped() -> None:
    collection = MagicMock()
    collection.create_index = AsyncMock(
        side_effect=[OperationFailure("conflict", code=85), "companies_name"]
    )
    schema = CollectionSchema(
        "companies", search_fields=("city",), key_fields=(("name",),)
    )

    created = await ensure_indexes(_connection(collection), [schema])

    assert created == {"companies": ["companies_name"]}


@pytest.mark.asyncio
async def test_other_failures_are_raised() -> None:
    collection = MagicMock()
    collection.create_index = AsyncMock(side_effect=OperationFailure("denied", code=13))

    with pytest.raises(DocumentStoreError, match="denied"):
        await ensure_indexes(
            _connection(collection), [CollectionSchema("a", key_fields=(("b",),))]
        )


@pytest.mark.asyncio
async def test_schema_without_indexes() -> None:
    collection = MagicMock()
    collection.create_index = AsyncMock()
    created = await ensure_indexes(_connection(collection), [CollectionSchema("a")])
    assert created == {"a": []}
    collection.create_index.assert_not_awaited()
