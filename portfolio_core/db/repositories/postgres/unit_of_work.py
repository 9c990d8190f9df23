"""PostgreSQL Unit of Work implementation"""

from sqlalchemy.ext.asyncio import AsyncSession

from ..base import UnitOfWork
from .content import PostgresContentRepository
from .relation import PostgresRelationRepository
from .activity import PostgresActivityRepository
from .page_view import PostgresPageViewRepository
from .errors import store_errors


class PostgresUnitOfWork(UnitOfWork):
    """PostgreSQL implementation of Unit of Work pattern"""

    def __init__(self, session: AsyncSession):
        self._session = session
        self.content = PostgresContentRepository(session)
        self.relations = PostgresRelationRepository(session)
        self.activities = PostgresActivityRepository(session)
        self.page_views = PostgresPageViewRepository(session)

    async def __aenter__(self) -> "PostgresUnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is not None:
            await self.rollback()
        # Note: commit is NOT automatic - caller must explicitly commit

    @store_errors
    async def commit(self) -> None:
        """Commit the transaction"""
        await self._session.commit()

    async def rollback(self) -> None:
        """Rollback the transaction"""
        await self._session.rollback()
