"""Test configuration for the MongoDB document store."""

import pytest

from docstore_query import DocumentClient
from docstore_query.mongo import MongoConnectionManager, MongoDocumentStore


@pytest.fixture
async def mongo_connection():
    """MongoConnectionManager backed by mongomock-motor."""
    try:
        from mongomock_motor import AsyncMongoMockClient

        connection = MongoConnectionManager.__new__(MongoConnectionManager)
        connection._client = AsyncMongoMockClient(default_database_name="test_db")
        connection._database = "test_db"
        connection._url = "mongodb://mock:27017"

        async def _mock_connect():
            return connection._client

        connection.connect = _mock_connect

        yield connection

    except ImportError:
        pytest.skip("mongomock-motor not installed")


@pytest.fixture
def mongo_store(mongo_connection) -> MongoDocumentStore:
    return MongoDocumentStore(mongo_connection)


@pytest.fixture
def mongo_client(mongo_store, ids) -> DocumentClient:
    return DocumentClient(mongo_store, id_generator=ids)


@pytest.fixture(scope="module")
def mongo_container():
    """Create a MongoDB container using testcontainers."""
    pytest.importorskip("testcontainers")

    from testcontainers.mongodb import MongoDbContainer

    with MongoDbContainer("mongo:7.0") as mongo:
        yield mongo


@pytest.fixture
async def real_mongo_connection(mongo_container):
    """Real MongoDB for ``$text`` search and index behaviour mongomock lacks."""
    connection = MongoConnectionManager(
        url=mongo_container.get_connection_url(), database="test_db"
    )
    await connection.connect()
    await connection.client.drop_database("test_db")

    yield connection

    connection.close()
