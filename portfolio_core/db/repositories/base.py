"""Abstract repository interfaces - backend agnostic"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncGenerator, Iterable, Optional, Sequence
from uuid import UUID

from ..entities import ActivityEntity


class ContentRepository(ABC):
    """Repository for the related-content entities (projects, skills, posts, tags)"""

    @abstractmethod
    async def create(self, entity) -> UUID:
        """Create an entity in the collection matching its type, return its ID"""
        ...

    @abstractmethod
    async def get(self, collection: str, entity_id: UUID):
        """Get an entity by ID, None when absent"""
        ...

    @abstractmethod
    async def list(self, collection: str, limit: int = 100) -> list:
        """List entities of a collection, newest first"""
        ...

    @abstractmethod
    async def delete(self, collection: str, entity_id: UUID) -> bool:
        """Delete an entity, return whether it existed"""
        ...


class RelationRepository(ABC):
    """Array primitives over reference fields.

    Collection and field names must pass the collections registry.
    Ids that match no document are ignored, never an error.
    """

    @abstractmethod
    async def get_refs(
        self, collection: str, entity_id: UUID, field: str
    ) -> Optional[list[UUID]]:
        """Current reference list of one entity, None if the entity is absent"""
        ...

    @abstractmethod
    async def pull_ref(
        self, collection: str, target_ids: Sequence[UUID], field: str, value: UUID
    ) -> int:
        """Remove `value` from `field` of each target, return documents changed"""
        ...

    @abstractmethod
    async def add_ref(
        self, collection: str, target_ids: Sequence[UUID], field: str, value: UUID
    ) -> int:
        """Set-add `value` to `field` of each target, return documents changed"""
        ...

    @abstractmethod
    async def set_refs(
        self, collection: str, entity_id: UUID, field: str, ids: Sequence[UUID]
    ) -> bool:
        """Replace the whole reference list, return whether the entity exists"""
        ...

    @abstractmethod
    async def pull_ref_everywhere(self, collection: str, field: str, value: UUID) -> int:
        """Remove `value` from `field` in every document holding it"""
        ...

    @abstractmethod
    async def scan_refs(self, collection: str, field: str) -> dict[UUID, list[UUID]]:
        """Map of every entity ID in the collection to its reference list"""
        ...

    @abstractmethod
    async def existing_ids(self, collection: str, ids: Iterable[UUID]) -> set[UUID]:
        """Subset of `ids` present in the collection"""
        ...


class ActivityRepository(ABC):
    """Repository for the append-only activity log"""

    @abstractmethod
    async def create(self, entity: ActivityEntity) -> UUID:
        """Append a record, return its ID"""
        ...

    @abstractmethod
    async def get(self, activity_id: UUID) -> Optional[ActivityEntity]:
        """Get record by ID"""
        ...

    @abstractmethod
    async def list(
        self,
        entity_type: Optional[str] = None,
        item_id: Optional[str] = None,
        exclude_action: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[ActivityEntity]:
        """List records newest first, filters applied before skip/limit"""
        ...

    @abstractmethod
    async def count(
        self,
        entity_type: Optional[str] = None,
        exclude_action: Optional[str] = None,
    ) -> int:
        """Count records with optional filters"""
        ...

    @abstractmethod
    async def count_since(self, since: datetime) -> int:
        """Count records with timestamp >= since"""
        ...

    @abstractmethod
    async def count_by_type(self) -> dict[str, int]:
        """All-time record counts per entity type"""
        ...

    @abstractmethod
    async def count_by_action(self) -> dict[str, int]:
        """All-time record counts per action"""
        ...


class PageViewRepository(ABC):
    """Repository for per-path view counters"""

    @abstractmethod
    async def increment(self, path: str) -> int:
        """Atomic upsert-increment, return the new count"""
        ...

    @abstractmethod
    async def get_count(self, path: str) -> int:
        """Current count, 0 when the path has no counter. Never writes."""
        ...


class UnitOfWork(ABC):
    """Unit of work pattern for transaction management"""

    content: ContentRepository
    relations: RelationRepository
    activities: ActivityRepository
    page_views: PageViewRepository

    @abstractmethod
    async def __aenter__(self) -> "UnitOfWork":
        ...

    @abstractmethod
    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        ...

    @abstractmethod
    async def commit(self) -> None:
        """Commit the transaction"""
        ...

    @abstractmethod
    async def rollback(self) -> None:
        """Rollback the transaction"""
        ...


class Store(ABC):
    """Explicitly owned handle to one backend.

    The process entry point constructs it, calls init() before serving
    and close() on shutdown. Nothing else holds a connection.
    """

    backend: str = ""
    transactional: bool = False  # True when a unit of work is one DB transaction

    @abstractmethod
    async def init(self) -> None:
        """Connect and create schema"""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release connections"""
        ...

    @abstractmethod
    def _open(self) -> AsyncGenerator[UnitOfWork, None]:
        """Async context yielding a fresh unit of work"""
        ...

    @asynccontextmanager
    async def unit_of_work(self) -> AsyncGenerator[UnitOfWork, None]:
        """
        Yield a unit of work, committed on success and rolled back on error.

        Usage:
            async with store.unit_of_work() as uow:
                await uow.activities.create(entity)
        """
        async with self._open() as uow:
            try:
                yield uow
                await uow.commit()
            except Exception:
                await uow.rollback()
                raise
