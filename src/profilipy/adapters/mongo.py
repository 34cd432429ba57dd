"""MongoDB adapter for the profiler source port.

Uses PyMongo's native asyncio client. Every call is read-only: the
profiling level is queried with ``{"profile": -1}``, which reports the
level without changing it.
"""

from collections.abc import AsyncIterator, Mapping
from typing import Any

from pymongo import AsyncMongoClient

PROFILE_COLLECTION = "system.profile"
DEFAULT_TIMEOUT_MS = 5000


class MongoProfileSource:
    """ProfileSourcePort implementation backed by ``AsyncMongoClient``.

    Args:
        uri: MongoDB connection string.
        timeout_ms: Server selection and connect timeout.
        client: Pre-built client, mainly for tests. ``uri`` is ignored
            when given.
    """

    def __init__(
        self,
        uri: str,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        client: AsyncMongoClient | None = None,
    ) -> None:
        self._uri = uri
        self._timeout_ms = timeout_ms
        self._client = client

    @property
    def client(self) -> AsyncMongoClient:
        if self._client is None:
            raise RuntimeError("MongoProfileSource is not connected")
        return self._client

    async def connect(self) -> None:
        """Create the client and check the server answers a ping."""
        if self._client is None:
            self._client = AsyncMongoClient(
                self._uri,
                serverSelectionTimeoutMS=self._timeout_ms,
                connectTimeoutMS=self._timeout_ms,
            )
        await self._client.admin.command("ping")

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def list_database_names(self) -> list[str]:
        return await self.client.list_database_names()

    async def profiling_level(self, database: str) -> int | None:
        result = await self.client[database].command({"profile": -1})
        level = result.get("was")
        return level if isinstance(level, int) else None

    async def has_profile_collection(self, database: str) -> bool:
        names = await self.client[database].list_collection_names(
            filter={"name": PROFILE_COLLECTION}
        )
        return PROFILE_COLLECTION in names

    async def count_profile_entries(self, database: str) -> int:
        return await self.client[database][PROFILE_COLLECTION].count_documents({})

    async def read_profile(self, database: str) -> AsyncIterator[Mapping[str, Any]]:
        cursor = self.client[database][PROFILE_COLLECTION].find({})
        try:
            async for document in cursor:
                yield document
        finally:
            await cursor.close()
