"""Memory implementation of ActivityRepository"""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Optional
from uuid import UUID

from ...entities import ActivityEntity
from ..base import ActivityRepository
from .database import MemoryDatabase


class MemoryActivityRepository(ActivityRepository):
    """Activity records are frozen dataclasses, safe to hand out as-is"""

    def __init__(self, db: MemoryDatabase):
        self._db = db

    def _filtered(
        self,
        entity_type: Optional[str] = None,
        item_id: Optional[str] = None,
        exclude_action: Optional[str] = None,
    ) -> list[ActivityEntity]:
        records = [
            r for r in self._db.activities.values()
            if (entity_type is None or r.entity_type == entity_type)
            and (item_id is None or r.item_id == item_id)
            and (exclude_action is None or r.action != exclude_action)
        ]
        records.sort(key=lambda r: (r.timestamp, str(r.id)), reverse=True)
        return records

    async def create(self, entity: ActivityEntity) -> UUID:
        self._db.activities[entity.id] = entity
        return entity.id

    async def get(self, activity_id: UUID) -> Optional[ActivityEntity]:
        return self._db.activities.get(activity_id)

    async def list(
        self,
        entity_type: Optional[str] = None,
        item_id: Optional[str] = None,
        exclude_action: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[ActivityEntity]:
        records = self._filtered(entity_type, item_id, exclude_action)
        return records[skip:skip + limit]

    async def count(
        self,
        entity_type: Optional[str] = None,
        exclude_action: Optional[str] = None,
    ) -> int:
        return len(self._filtered(entity_type, exclude_action=exclude_action))

    async def count_since(self, since: datetime) -> int:
        return sum(1 for r in self._db.activities.values() if r.timestamp >= since)

    async def count_by_type(self) -> dict[str, int]:
        return dict(Counter(r.entity_type for r in self._db.activities.values()))

    async def count_by_action(self) -> dict[str, int]:
        return dict(Counter(r.action for r in self._db.activities.values()))
