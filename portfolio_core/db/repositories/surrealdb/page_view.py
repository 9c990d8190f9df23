"""SurrealDB implementation of PageViewRepository"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..base import PageViewRepository
from .errors import store_errors
from .records import first

if TYPE_CHECKING:
    from surrealdb import AsyncSurreal


class SurrealPageViewRepository(PageViewRepository):
    """One record per path: page_view:⟨path⟩, incremented by a single UPSERT"""

    def __init__(self, client: "AsyncSurreal"):
        self._client = client

    def _record_id(self, path: str):
        from surrealdb import RecordID

        return RecordID("page_view", path)

    @store_errors
    async def increment(self, path: str) -> int:
        result = await self._client.query(
            """
            UPSERT $id SET
                path = $path,
                count += 1,
                last_updated = time::now()
            RETURN AFTER
            """,
            {"id": self._record_id(path), "path": path},
        )
        record = first(result)
        return int(record.get("count", 1)) if record else 1

    @store_errors
    async def get_count(self, path: str) -> int:
        result = await self._client.query(
            "SELECT * FROM $id",
            {"id": self._record_id(path)},
        )
        record = first(result)
        return int(record.get("count", 0)) if record else 0
