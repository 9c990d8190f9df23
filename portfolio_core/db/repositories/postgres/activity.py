"""PostgreSQL implementation of ActivityRepository"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ...entities import ActivityEntity, changes_from_dicts, changes_to_dicts
from ...models import Activity
from ..base import ActivityRepository
from .errors import store_errors


class PostgresActivityRepository(ActivityRepository):
    """PostgreSQL implementation using SQLAlchemy"""

    def __init__(self, session: AsyncSession):
        self._session = session

    def _to_entity(self, model: Activity) -> ActivityEntity:
        """Convert SQLAlchemy model to domain entity"""
        return ActivityEntity(
            id=model.id,
            entity_type=model.entity_type,
            title=model.title,
            action=model.action,
            description=model.description,
            timestamp=model.timestamp,
            detailed_time=model.detailed_time,
            details=model.details,
            path=model.path,
            user=model.user,
            item_id=model.item_id,
            changes=changes_from_dicts(model.changes),
        )

    def _to_model(self, entity: ActivityEntity) -> Activity:
        """Convert domain entity to SQLAlchemy model"""
        return Activity(
            id=entity.id,
            entity_type=entity.entity_type,
            title=entity.title,
            action=entity.action,
            description=entity.description,
            timestamp=entity.timestamp,
            detailed_time=entity.detailed_time,
            details=entity.details,
            path=entity.path,
            user=entity.user,
            item_id=entity.item_id,
            changes=changes_to_dicts(entity.changes),
        )

    def _filter(self, query, entity_type=None, item_id=None, exclude_action=None):
        if entity_type:
            query = query.where(Activity.entity_type == entity_type)
        if item_id:
            query = query.where(Activity.item_id == item_id)
        if exclude_action:
            query = query.where(Activity.action != exclude_action)
        return query

    @store_errors
    async def create(self, entity: ActivityEntity) -> UUID:
        """Insert inside a savepoint so a failure leaves the outer transaction usable"""
        model = self._to_model(entity)
        async with self._session.begin_nested():
            self._session.add(model)
            await self._session.flush()
        return model.id

    @store_errors
    async def get(self, activity_id: UUID) -> Optional[ActivityEntity]:
        result = await self._session.execute(
            select(Activity).where(Activity.id == activity_id)
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    @store_errors
    async def list(
        self,
        entity_type: Optional[str] = None,
        item_id: Optional[str] = None,
        exclude_action: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[ActivityEntity]:
        query = self._filter(select(Activity), entity_type, item_id, exclude_action)
        query = query.order_by(Activity.timestamp.desc(), Activity.id.desc()).offset(skip).limit(limit)
        result = await self._session.execute(query)
        return [self._to_entity(m) for m in result.scalars().all()]

    @store_errors
    async def count(
        self,
        entity_type: Optional[str] = None,
        exclude_action: Optional[str] = None,
    ) -> int:
        query = self._filter(
            select(func.count(Activity.id)), entity_type, exclude_action=exclude_action
        )
        result = await self._session.execute(query)
        return result.scalar() or 0

    @store_errors
    async def count_since(self, since: datetime) -> int:
        result = await self._session.execute(
            select(func.count(Activity.id)).where(Activity.timestamp >= since)
        )
        return result.scalar() or 0

    @store_errors
    async def count_by_type(self) -> dict[str, int]:
        result = await self._session.execute(
            select(Activity.entity_type, func.count(Activity.id))
            .group_by(Activity.entity_type)
        )
        return {entity_type: count for entity_type, count in result.all()}

    @store_errors
    async def count_by_action(self) -> dict[str, int]:
        result = await self._session.execute(
            select(Activity.action, func.count(Activity.id))
            .group_by(Activity.action)
        )
        return {action: count for action, count in result.all()}
