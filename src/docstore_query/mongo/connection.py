"""MongoConnectionManager — one Motor client bound to the document database."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from ..exceptions import StoreConnectionError

if TYPE_CHECKING:
    from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase

logger = logging.getLogger(__name__)


class MongoConnectionManager:
    """Owns the client shared by the document store and the index bootstrap.

    The client is created lazily by :meth:`connect`; collection handles are
    always taken from the configured database.
    """

    def __init__(
        self,
        url: str = "mongodb://localhost:27017",
        database: str = "docstore",
        *,
        server_selection_timeout_ms: int = 5000,
        connect_timeout_ms: int = 10000,
    ) -> None:
        self._url = url
        self._database = database
        self._server_selection_timeout_ms = server_selection_timeout_ms
        self._connect_timeout_ms = connect_timeout_ms
        self._client: AsyncIOMotorClient[Any] | None = None

    @property
    def database_name(self) -> str:
        return self._database

    async def connect(self) -> AsyncIOMotorClient[Any]:
        if self._client is None:
            try:
                self._client = AsyncIOMotorClient(
                    self._url,
                    serverSelectionTimeoutMS=self._server_selection_timeout_ms,
                    connectTimeoutMS=self._connect_timeout_ms,
                )
            except PyMongoError as e:
                raise StoreConnectionError(f"Invalid MongoDB settings: {e}") from e
            logger.debug("Motor client created for database %s", self._database)
        return self._client

    @property
    def client(self) -> AsyncIOMotorClient[Any]:
        if self._client is None:
            raise StoreConnectionError("Not connected; call connect() first")
        return self._client

    def database(self) -> AsyncIOMotorDatabase[Any]:
        return self.client.get_database(self._database)

    def collection(self, name: str) -> AsyncIOMotorCollection[Any]:
        """Collection ``name`` of the configured database."""
        return self.database().get_collection(name)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    async def health_check(self) -> bool:
        """Ping the server; unreachable or unconnected is reported as False."""
        if self._client is None:
            return False
        try:
            await self._client.admin.command("ping")
        except PyMongoError:
            logger.warning("MongoDB ping failed", exc_info=True)
            return False
        return True
