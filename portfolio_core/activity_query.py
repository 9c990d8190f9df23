"""Activity queries - Feeds, paginated listing and rollup statistics"""

from __future__ import annotations

import math
from datetime import timedelta
from typing import Optional

from .activity import ActivityAction, EntityType
from .db.entities import ActivityEntity, ActivityPage, ActivityStatistics, _utcnow
from .db.repositories.base import UnitOfWork
from .errors import ValidationError
from .observability import track_errors, track_latency


STAT_WINDOWS = {
    "last_24h": timedelta(hours=24),
    "last_7d": timedelta(days=7),
    "last_30d": timedelta(days=30),
}


def _require_positive(name: str, value: int) -> None:
    if value < 1:
        raise ValidationError(f"{name} must be >= 1, got {value}")


class ActivityQueryEngine:
    """Read side of the activity log. Store failures propagate as StoreUnavailable."""

    def __init__(self, uow: UnitOfWork, clock=_utcnow):
        self.uow = uow
        self.clock = clock

    @track_errors
    @track_latency("query")
    async def recent_activities(
        self,
        limit: int = 10,
        include_views: bool = False,
    ) -> list[ActivityEntity]:
        """Newest records first; view records are left out unless asked for"""
        _require_positive("limit", limit)
        return await self.uow.activities.list(
            exclude_action=None if include_views else ActivityAction.VIEW.value,
            limit=limit,
        )

    @track_errors
    @track_latency("query")
    async def list_activities(
        self,
        page: int = 1,
        page_size: int = 50,
        type_filter: Optional[str] = None,
    ) -> ActivityPage:
        """
        One page of the admin listing.

        The type filter applies before counting and paging, so `total`
        and `total_pages` describe the filtered log.

        Raises:
            ValidationError: page or page_size below 1, or unknown type
        """
        _require_positive("page", page)
        _require_positive("page_size", page_size)
        if type_filter:
            type_filter = _entity_type(type_filter)
        else:
            type_filter = None

        total = await self.uow.activities.count(entity_type=type_filter)
        records = await self.uow.activities.list(
            entity_type=type_filter,
            skip=(page - 1) * page_size,
            limit=page_size,
        )
        return ActivityPage(
            records=records,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size),
        )

    @track_errors
    @track_latency("query")
    async def statistics(self) -> ActivityStatistics:
        """Windowed counts relative to now, plus all-time breakdowns"""
        now = self.clock()
        windows = {
            name: await self.uow.activities.count_since(now - window)
            for name, window in STAT_WINDOWS.items()
        }
        return ActivityStatistics(
            total=await self.uow.activities.count(),
            by_type=await self.uow.activities.count_by_type(),
            by_action=await self.uow.activities.count_by_action(),
            **windows,
        )

    @track_errors
    @track_latency("query")
    async def activities_by_type(self, entity_type: str, limit: int = 20) -> list[ActivityEntity]:
        _require_positive("limit", limit)
        return await self.uow.activities.list(
            entity_type=_entity_type(entity_type), limit=limit
        )

    @track_errors
    @track_latency("query")
    async def activities_by_item(self, item_id: str, limit: int = 20) -> list[ActivityEntity]:
        _require_positive("limit", limit)
        return await self.uow.activities.list(item_id=str(item_id), limit=limit)


def _entity_type(value: str) -> str:
    try:
        return EntityType(value).value
    except ValueError:
        raise ValidationError(f"Unknown activity type: {value!r}") from None
