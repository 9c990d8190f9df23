"""SurrealDB connection management (embedded SurrealKV or remote)"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, AsyncGenerator, Optional

from ..repositories.base import Store

if TYPE_CHECKING:
    from surrealdb import AsyncSurreal
    from ..repositories.surrealdb import SurrealUnitOfWork


SCHEMA_PATH = Path(__file__).parent / "schema.surql"


class SurrealStore(Store):
    """
    Store handle owning one SurrealDB client.

    Connection string format: file://./path/to/data for embedded mode,
    ws://host:port for a server.

    Every statement is atomic on its own, but a unit of work spans several
    calls and is not a transaction.
    """

    backend = "surrealdb"
    transactional = False

    def __init__(self, url: str, namespace: str, database: str):
        self.url = url
        self.namespace = namespace
        self.database = database
        self._client: Optional["AsyncSurreal"] = None
        self._initialized = False

    def _ensure_data_dir(self) -> None:
        """Ensure data directory exists for file:// URLs"""
        if not self.url.startswith("file://"):
            return
        data_path = self.url.replace("file://", "")
        # Handle relative paths
        if data_path.startswith("./"):
            path = Path.cwd() / data_path[2:]
        else:
            path = Path(data_path)
        path.mkdir(parents=True, exist_ok=True)

    async def connect(self) -> "AsyncSurreal":
        """Connect to SurrealDB and return the client"""
        if self._client is not None:
            return self._client

        from surrealdb import AsyncSurreal

        self._ensure_data_dir()
        self._client = AsyncSurreal(self.url)
        await self._client.connect()
        await self._client.use(self.namespace, self.database)

        return self._client

    async def init(self, force: bool = False) -> None:
        """
        Connect and apply schema.surql.

        Args:
            force: If True, reapply the schema even if already done
        """
        client = await self.connect()
        if self._initialized and not force:
            return

        if not SCHEMA_PATH.exists():
            raise FileNotFoundError(f"Schema file not found: {SCHEMA_PATH}")

        await client.query(SCHEMA_PATH.read_text())
        self._initialized = True

    async def close(self) -> None:
        """Disconnect from SurrealDB"""
        if self._client is not None:
            await self._client.close()
            self._client = None
            self._initialized = False

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    @asynccontextmanager
    async def _open(self) -> AsyncGenerator["SurrealUnitOfWork", None]:
        from ..repositories.surrealdb import SurrealUnitOfWork

        if self._client is None:
            raise RuntimeError("SurrealStore.init() has not been called")

        async with SurrealUnitOfWork(self._client) as uow:
            yield uow
