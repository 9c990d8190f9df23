"""Memory Unit of Work and Store"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from ..base import Store, UnitOfWork
from .database import MemoryDatabase
from .content import MemoryContentRepository
from .relation import MemoryRelationRepository
from .activity import MemoryActivityRepository
from .page_view import MemoryPageViewRepository


class MemoryUnitOfWork(UnitOfWork):
    """
    Memory implementation of Unit of Work pattern.

    Writes apply immediately; there is nothing to commit and rollback
    cannot undo them (forward-only, like SurrealDB across calls).
    """

    def __init__(self, db: MemoryDatabase):
        self._db = db
        self.content = MemoryContentRepository(db)
        self.relations = MemoryRelationRepository(db)
        self.activities = MemoryActivityRepository(db)
        self.page_views = MemoryPageViewRepository(db)

    async def __aenter__(self) -> "MemoryUnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        pass

    async def commit(self) -> None:
        """Nothing buffered"""

    async def rollback(self) -> None:
        """Writes already applied stay applied"""


class MemoryStore(Store):
    """Store backed by a MemoryDatabase living as long as this handle"""

    backend = "memory"
    transactional = False

    def __init__(self, db: Optional[MemoryDatabase] = None):
        self.db = db or MemoryDatabase()

    async def init(self) -> None:
        pass

    async def close(self) -> None:
        self.db.clear()

    @asynccontextmanager
    async def _open(self) -> AsyncGenerator[MemoryUnitOfWork, None]:
        async with MemoryUnitOfWork(self.db) as uow:
            yield uow
