"""PostgreSQL connection and session management"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .models import Base
from .repositories.base import Store

if TYPE_CHECKING:
    from .repositories.postgres import PostgresUnitOfWork


class PostgresStore(Store):
    """
    Store handle owning one async engine.

    Each unit of work is one session and one transaction, so a reconcile
    and its activity record commit or roll back together.
    """

    backend = "postgres"
    transactional = True

    def __init__(self, database_url: str, echo: bool = False, pool_size: int = 5):
        self.database_url = database_url
        self.echo = echo
        self.pool_size = pool_size
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    async def init(self) -> None:
        """Create the engine and initialize database tables"""
        if self._engine is None:
            self._engine = create_async_engine(
                self.database_url,
                echo=self.echo,
                pool_size=self.pool_size,
                max_overflow=10,
            )
            self._session_factory = async_sessionmaker(
                self._engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Close database connections"""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None

    @asynccontextmanager
    async def _open(self) -> AsyncGenerator["PostgresUnitOfWork", None]:
        from .repositories.postgres import PostgresUnitOfWork

        if self._session_factory is None:
            raise RuntimeError("PostgresStore.init() has not been called")

        async with self._session_factory() as session:
            async with PostgresUnitOfWork(session) as uow:
                yield uow
