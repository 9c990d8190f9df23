"""SurrealDB Unit of Work implementation"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..base import UnitOfWork
from .content import SurrealContentRepository
from .relation import SurrealRelationRepository
from .activity import SurrealActivityRepository
from .page_view import SurrealPageViewRepository

if TYPE_CHECKING:
    from surrealdb import AsyncSurreal


class SurrealUnitOfWork(UnitOfWork):
    """
    SurrealDB implementation of Unit of Work pattern.

    Note: each client call runs in its own implicit transaction, so a
    unit of work groups calls but cannot undo them. commit/rollback are
    no-ops; cross-collection drift is healed by the relation repair job.
    """

    def __init__(self, client: "AsyncSurreal"):
        self._client = client

        # Initialize repositories with shared client
        self.content = SurrealContentRepository(client)
        self.relations = SurrealRelationRepository(client)
        self.activities = SurrealActivityRepository(client)
        self.page_views = SurrealPageViewRepository(client)

    async def __aenter__(self) -> "SurrealUnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        pass

    async def commit(self) -> None:
        """Statements are already committed"""

    async def rollback(self) -> None:
        """Nothing to undo across calls"""
