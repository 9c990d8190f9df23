"""PostgreSQL implementation of ContentRepository"""

from __future__ import annotations

from dataclasses import fields
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ...collections import collection_of, get_collection
from ...models import MODELS_BY_COLLECTION
from ..base import ContentRepository
from .errors import store_errors


class PostgresContentRepository(ContentRepository):
    """PostgreSQL implementation using SQLAlchemy"""

    def __init__(self, session: AsyncSession):
        self._session = session

    def _to_entity(self, collection: str, model):
        """Convert SQLAlchemy model to domain entity"""
        entity_class = get_collection(collection).entity_class
        values = {f.name: getattr(model, f.name) for f in fields(entity_class)}
        for ref_field in get_collection(collection).ref_fields:
            values[ref_field] = list(values[ref_field] or [])
        return entity_class(**values)

    def _to_model(self, collection: str, entity):
        """Convert domain entity to SQLAlchemy model"""
        model_class = MODELS_BY_COLLECTION[collection]
        return model_class(**{f.name: getattr(entity, f.name) for f in fields(entity)})

    @store_errors
    async def create(self, entity) -> UUID:
        spec = collection_of(entity)
        model = self._to_model(spec.name, entity)
        self._session.add(model)
        await self._session.flush()
        return model.id

    @store_errors
    async def get(self, collection: str, entity_id: UUID):
        model_class = MODELS_BY_COLLECTION[get_collection(collection).name]
        result = await self._session.execute(
            select(model_class).where(model_class.id == entity_id)
        )
        model = result.scalar_one_or_none()
        return self._to_entity(collection, model) if model else None

    @store_errors
    async def list(self, collection: str, limit: int = 100) -> list:
        model_class = MODELS_BY_COLLECTION[get_collection(collection).name]
        result = await self._session.execute(
            select(model_class).order_by(model_class.created_at.desc()).limit(limit)
        )
        return [self._to_entity(collection, m) for m in result.scalars().all()]

    @store_errors
    async def delete(self, collection: str, entity_id: UUID) -> bool:
        model_class = MODELS_BY_COLLECTION[get_collection(collection).name]
        result = await self._session.execute(
            delete(model_class).where(model_class.id == entity_id)
        )
        return (result.rowcount or 0) > 0
