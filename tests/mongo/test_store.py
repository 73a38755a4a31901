"""MongoDocumentStore against mongomock-motor."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import PyMongoError

from docstore_query import (
    DocumentConflictError,
    DocumentNotFoundError,
    DocumentStoreError,
    Filter,
    IDocumentStore,
    Order,
    QueryOperator,
    StoreConnectionError,
    StoreQuery,
)
from docstore_query.mongo import MongoConnectionManager, MongoDocumentStore


@pytest.fixture
async def cities(mongo_store) -> MongoDocumentStore:
    rows = [
        ("c1", {"name": "Acme", "city": "Stockholm", "employees": 120}),
        ("c2", {"name": "Birch", "city": "Lund", "employees": 15}),
        ("c3", {"name": "Cedar", "city": "Malmo", "employees": 40}),
    ]
    for document_id, data in rows:
        await mongo_store.create_document("companies", document_id, data)
    return mongo_store


def test_satisfies_protocol(mongo_store) -> None:
    assert isinstance(mongo_store, IDocumentStore)


@pytest.mark.asyncio
async def test_create_writes_envelope(mongo_store, mongo_connection) -> None:
    created = await mongo_store.create_document(
        "companies", "c1", {"name": "Acme", "revenue": Decimal("10.50")}
    )
    assert created["_id"] == "c1"
    assert created["_created_at"] == created["_updated_at"]
    assert created["revenue"] == Decimal("10.50")

    raw = await mongo_connection.database()["companies"].find_one({"_id": "c1"})
    assert raw["name"] == "Acme"


@pytest.mark.asyncio
async def test_create_duplicate_id(cities) -> None:
    with pytest.raises(DocumentConflictError):
        await cities.create_document("companies", "c1", {"name": "Again"})


@pytest.mark.asyncio
async def test_list_filters_sort_and_page(cities) -> None:
    page = await cities.list_documents(
        "companies",
        StoreQuery(
            filters=(Filter("employees", QueryOperator.GE, 15),),
            orders=(Order("employees", ascending=False),),
            limit=2,
            offset=1,
        ),
    )
    assert page.total == 3
    assert [d["_id"] for d in page.documents] == ["c3", "c2"]


@pytest.mark.asyncio
async def test_list_in_ids(cities) -> None:
    query = StoreQuery(filters=(Filter("_id", QueryOperator.IN, ["c1", "c3"]),))
    page = await cities.list_documents("companies", query)
    assert sorted(d["name"] for d in page.documents) == ["Acme", "Cedar"]


@pytest.mark.asyncio
async def test_limit_zero_returns_total_only(cities) -> None:
    page = await cities.list_documents("companies", StoreQuery(limit=0))
    assert (page.total, page.documents) == (3, [])


@pytest.mark.asyncio
async def test_update_document(cities) -> None:
    updated = await cities.update_document("companies", "c2", {"city": "Malmo"})
    assert updated["city"] == "Malmo"
    assert updated["name"] == "Birch"
    assert updated["_updated_at"] >= updated["_created_at"]


@pytest.mark.asyncio
async def test_update_missing_document(cities) -> None:
    with pytest.raises(DocumentNotFoundError):
        await cities.update_document("companies", "nope", {"city": "x"})


@pytest.mark.asyncio
async def test_delete_document(cities) -> None:
    await cities.delete_document("companies", "c1")
    page = await cities.list_documents("companies", StoreQuery())
    assert page.total == 2
    with pytest.raises(DocumentNotFoundError):
        await cities.delete_document("companies", "c1")


@pytest.mark.asyncio
async def test_driver_errors_are_wrapped() -> None:
    collection = MagicMock()
    collection.count_documents = AsyncMock(side_effect=PyMongoError("timed out"))
    connection = MagicMock()
    connection.collection.return_value = collection
    store = MongoDocumentStore(connection)

    with pytest.raises(DocumentStoreError, match="timed out"):
        await store.list_documents("companies", StoreQuery())


def test_unconnected_manager_raises() -> None:
    connection = MongoConnectionManager("mongodb://localhost:27017")
    with pytest.raises(StoreConnectionError):
        _ = connection.client


@pytest.mark.asyncio
async def test_health_check_without_client() -> None:
    assert await MongoConnectionManager().health_check() is False


@pytest.mark.asyncio
async def test_health_check_reports_failed_ping() -> None:
    connection = MongoConnectionManager()
    client = MagicMock()
    client.admin.command = AsyncMock(side_effect=PyMongoError("no primary"))
    connection._client = client

    assert await connection.health_check() is False
    client.admin.command.assert_awaited_once_with("ping")


@pytest.mark.asyncio
async def test_collection_uses_configured_database(mongo_connection) -> None:
    coll = mongo_connection.collection("companies")
    assert coll.name == "companies"
    assert coll.database.name == "test_db"
    assert mongo_connection.database_name == "test_db"


# ── Through the builder ──────────────────────────────────────────────


@pytest.mark.asyncio
async def test_builder_round_trip(mongo_client) -> None:
    created = await mongo_client.from_("students").insert(
        {"name": "Ada", "school_id": "sc1"}
    )
    assert created.error is None

    found = await (
        mongo_client.from_("students").select().eq("id", created.data["id"]).single()
    )
    assert found.data == created.data


@pytest.mark.asyncio
async def test_builder_relationships_and_count(mongo_client, mongo_store) -> None:
    await mongo_store.create_document("companies", "c1", {"name": "Acme"})
    await mongo_client.from_("matches").insert(
        [
            {"student_id": "s1", "company_id": "c1"},
            {"student_id": "s2", "company_id": "missing"},
        ]
    )

    result = await (
        mongo_client.from_("matches")
        .select("student_id, companies(name)", count="exact")
        .order("student_id")
        .range(0, 9)
    )

    assert result.error is None
    assert result.count == 2
    assert result.data == [
        {"student_id": "s1", "companies": {"name": "Acme"}},
        {"student_id": "s2", "companies": None},
    ]


@pytest.mark.asyncio
async def test_builder_upsert_update_delete(mongo_client) -> None:
    table = mongo_client.from_("profiles")
    await table.upsert({"email": "ada@example.com", "n": 1}, on_conflict="email")
    await table.upsert({"email": "ada@example.com", "n": 2}, on_conflict="email")

    rows = (await table.select("email, n")).data
    assert rows == [{"email": "ada@example.com", "n": 2}]

    updated = await table.update({"n": 3}).eq("email", "ada@example.com")
    assert [row["n"] for row in updated.data] == [3]

    await table.delete().eq("email", "ada@example.com")
    assert (await table.select("*", count="exact", head=True)).count == 0
