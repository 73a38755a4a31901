"""Client construction and settings."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from docstore_query import (
    ClientSettings,
    ConventionRelationshipResolver,
    DocumentClient,
    InMemoryDocumentStore,
    RegistryRelationshipResolver,
    UniqueIdGenerator,
    build_resolver,
    create_client,
)
from docstore_query.mongo import MongoConnectionManager, MongoDocumentStore


def test_settings_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("DOCSTORE_MONGODB_URL", "mongodb://db:27017")
    monkeypatch.setenv("DOCSTORE_DATABASE", "app")
    monkeypatch.setenv("DOCSTORE_COLLECTIONS", '{"email_logs": "email_log"}')
    monkeypatch.setenv(
        "DOCSTORE_RELATIONSHIPS", '{"matches": {"companies": "employer"}}'
    )
    monkeypatch.setenv("DOCSTORE_RELATIONSHIP_CONVENTION_FALLBACK", "false")

    settings = ClientSettings(_env_file=None)

    assert settings.mongodb_url == "mongodb://db:27017"
    assert settings.database == "app"
    assert settings.collections == {"email_logs": "email_log"}
    assert settings.relationships == {"matches": {"companies": "employer"}}
    assert settings.relationship_convention_fallback is False


def test_settings_defaults(monkeypatch) -> None:
    monkeypatch.delenv("DOCSTORE_DATABASE", raising=False)
    settings = ClientSettings(_env_file=None)
    assert settings.database == "docstore"
    assert settings.collections == {}
    assert settings.relationship_convention_fallback is True


def test_build_resolver() -> None:
    assert isinstance(
        build_resolver(ClientSettings(_env_file=None, relationships={})),
        ConventionRelationshipResolver,
    )
    resolver = build_resolver(
        ClientSettings(_env_file=None, relationships={"a": {"b": "b_ref"}})
    )
    assert isinstance(resolver, RegistryRelationshipResolver)
    assert resolver.registry == {"a": {"b": "b_ref"}}


def test_client_defaults() -> None:
    client = DocumentClient(InMemoryDocumentStore())
    assert isinstance(client.resolver, ConventionRelationshipResolver)
    assert isinstance(client._context.id_generator, UniqueIdGenerator)
    assert client.collection_id("students") == "students"


@pytest.mark.asyncio
async def test_create_client_connects() -> None:
    connection = MagicMock(spec=MongoConnectionManager)
    connection.connect = AsyncMock()
    connection.database_name = "app"
    settings = ClientSettings(
        _env_file=None,
        collections={"email_logs": "email_log"},
        relationships={"matches": {"companies": "employer"}},
    )

    client = await create_client(settings, connection=connection)

    connection.connect.assert_awaited_once()
    assert isinstance(client.store, MongoDocumentStore)
    assert isinstance(client.resolver, RegistryRelationshipResolver)
    assert client.collection_id("email_logs") == "email_log"

    async with client:
        pass
    connection.close.assert_called_once()
