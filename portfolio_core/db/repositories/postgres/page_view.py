"""PostgreSQL implementation of PageViewRepository"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from ...entities import _utcnow
from ...models import PageView
from ..base import PageViewRepository
from .errors import store_errors


class PostgresPageViewRepository(PageViewRepository):
    """Counters use INSERT .. ON CONFLICT so concurrent hits never overwrite each other"""

    def __init__(self, session: AsyncSession):
        self._session = session

    @store_errors
    async def increment(self, path: str) -> int:
        now = _utcnow()
        stmt = (
            insert(PageView)
            .values(path=path, count=1, last_updated=now)
            .on_conflict_do_update(
                index_elements=[PageView.path],
                set_={"count": PageView.count + 1, "last_updated": now},
            )
            .returning(PageView.count)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one()

    @store_errors
    async def get_count(self, path: str) -> int:
        result = await self._session.execute(
            select(PageView.count).where(PageView.path == path)
        )
        return result.scalar_one_or_none() or 0
