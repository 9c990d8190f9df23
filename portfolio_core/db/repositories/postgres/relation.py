"""PostgreSQL implementation of RelationRepository"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ...collections import check_ref_field, get_collection
from ...entities import _utcnow
from ...models import MODELS_BY_COLLECTION
from ..base import RelationRepository
from .errors import store_errors


class PostgresRelationRepository(RelationRepository):
    """Reference fields are uuid[] columns; every primitive is one statement"""

    def __init__(self, session: AsyncSession):
        self._session = session

    def _column(self, collection: str, field: str):
        spec = check_ref_field(collection, field)
        model = MODELS_BY_COLLECTION[spec.name]
        return model, getattr(model, field)

    @store_errors
    async def get_refs(
        self, collection: str, entity_id: UUID, field: str
    ) -> Optional[list[UUID]]:
        model, column = self._column(collection, field)
        result = await self._session.execute(
            select(column).where(model.id == entity_id)
        )
        row = result.first()
        if row is None:
            return None
        return list(row[0] or [])

    @store_errors
    async def pull_ref(
        self, collection: str, target_ids: Sequence[UUID], field: str, value: UUID
    ) -> int:
        if not target_ids:
            return 0
        model, column = self._column(collection, field)
        result = await self._session.execute(
            update(model)
            .where(model.id.in_(set(target_ids)), column.contains([value]))
            .values({
                field: func.array_remove(column, value, type_=column.type),
                "updated_at": _utcnow(),
            })
        )
        return result.rowcount or 0

    @store_errors
    async def add_ref(
        self, collection: str, target_ids: Sequence[UUID], field: str, value: UUID
    ) -> int:
        if not target_ids:
            return 0
        model, column = self._column(collection, field)
        result = await self._session.execute(
            update(model)
            .where(model.id.in_(set(target_ids)), ~column.contains([value]))
            .values({
                field: func.array_append(column, value, type_=column.type),
                "updated_at": _utcnow(),
            })
        )
        return result.rowcount or 0

    @store_errors
    async def set_refs(
        self, collection: str, entity_id: UUID, field: str, ids: Sequence[UUID]
    ) -> bool:
        model, _ = self._column(collection, field)
        result = await self._session.execute(
            update(model)
            .where(model.id == entity_id)
            .values({field: list(ids), "updated_at": _utcnow()})
        )
        return (result.rowcount or 0) > 0

    @store_errors
    async def pull_ref_everywhere(self, collection: str, field: str, value: UUID) -> int:
        model, column = self._column(collection, field)
        result = await self._session.execute(
            update(model)
            .where(column.contains([value]))
            .values({
                field: func.array_remove(column, value, type_=column.type),
                "updated_at": _utcnow(),
            })
        )
        return result.rowcount or 0

    @store_errors
    async def scan_refs(self, collection: str, field: str) -> dict[UUID, list[UUID]]:
        model, column = self._column(collection, field)
        result = await self._session.execute(select(model.id, column))
        return {row[0]: list(row[1] or []) for row in result.all()}

    @store_errors
    async def existing_ids(self, collection: str, ids: Iterable[UUID]) -> set[UUID]:
        ids = set(ids)
        if not ids:
            return set()
        model = MODELS_BY_COLLECTION[get_collection(collection).name]
        result = await self._session.execute(select(model.id).where(model.id.in_(ids)))
        return set(result.scalars().all())
