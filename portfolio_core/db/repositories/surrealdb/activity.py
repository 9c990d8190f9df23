"""SurrealDB implementation of ActivityRepository"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from ...entities import ActivityEntity, changes_from_dicts, changes_to_dicts
from ..base import ActivityRepository
from .errors import store_errors
from .records import ensure_tz, first, parse_datetime, parse_record_id, rows

if TYPE_CHECKING:
    from surrealdb import AsyncSurreal


class SurrealActivityRepository(ActivityRepository):
    """SurrealDB implementation using SurrealQL"""

    def __init__(self, client: "AsyncSurreal"):
        self._client = client

    def _to_entity(self, record: dict) -> ActivityEntity:
        """Convert SurrealDB record to domain entity"""
        return ActivityEntity(
            id=parse_record_id(record.get("id", "")),
            entity_type=record.get("entity_type", "system"),
            title=record.get("title", ""),
            action=record.get("action", ""),
            description=record.get("description", ""),
            timestamp=parse_datetime(record.get("timestamp")),
            detailed_time=record.get("detailed_time"),
            details=record.get("details"),
            path=record.get("path"),
            user=record.get("user", "System"),
            item_id=record.get("item_id"),
            changes=changes_from_dicts(record.get("changes")),
        )

    def _where(
        self,
        entity_type: Optional[str] = None,
        item_id: Optional[str] = None,
        exclude_action: Optional[str] = None,
    ) -> tuple[str, dict]:
        conditions = []
        params = {}

        if entity_type:
            conditions.append("entity_type = $entity_type")
            params["entity_type"] = entity_type
        if item_id:
            conditions.append("item_id = $item_id")
            params["item_id"] = item_id
        if exclude_action:
            conditions.append("action != $exclude_action")
            params["exclude_action"] = exclude_action

        where_clause = ""
        if conditions:
            where_clause = f"WHERE {' AND '.join(conditions)}"
        return where_clause, params

    async def _count(self, where_clause: str, params: dict) -> int:
        result = await self._client.query(
            f"SELECT count() FROM activity {where_clause} GROUP ALL",
            params,
        )
        row = first(result)
        return row.get("count", 0) if row else 0

    @store_errors
    async def create(self, entity: ActivityEntity) -> UUID:
        from surrealdb import RecordID

        await self._client.query(
            """
            CREATE $id CONTENT {
                entity_type: $entity_type,
                title: $title,
                action: $action,
                description: $description,
                timestamp: $timestamp,
                detailed_time: $detailed_time,
                details: $details,
                path: $path,
                user: $user,
                item_id: $item_id,
                changes: $changes
            }
            """,
            {
                "id": RecordID("activity", str(entity.id)),
                "entity_type": entity.entity_type,
                "title": entity.title,
                "action": entity.action,
                "description": entity.description,
                "timestamp": ensure_tz(entity.timestamp),
                "detailed_time": entity.detailed_time,
                "details": entity.details,
                "path": entity.path,
                "user": entity.user,
                "item_id": entity.item_id,
                "changes": changes_to_dicts(entity.changes),
            },
        )
        return entity.id

    @store_errors
    async def get(self, activity_id: UUID) -> Optional[ActivityEntity]:
        from surrealdb import RecordID

        result = rows(await self._client.query(
            "SELECT * FROM $id",
            {"id": RecordID("activity", str(activity_id))},
        ))
        if result:
            return self._to_entity(result[0])
        return None

    @store_errors
    async def list(
        self,
        entity_type: Optional[str] = None,
        item_id: Optional[str] = None,
        exclude_action: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[ActivityEntity]:
        where_clause, params = self._where(entity_type, item_id, exclude_action)
        params.update({"limit": limit, "skip": skip})

        result = await self._client.query(
            f"""
            SELECT * FROM activity
            {where_clause}
            ORDER BY timestamp DESC, id DESC
            LIMIT $limit START $skip
            """,
            params,
        )
        return [self._to_entity(r) for r in rows(result)]

    @store_errors
    async def count(
        self,
        entity_type: Optional[str] = None,
        exclude_action: Optional[str] = None,
    ) -> int:
        where_clause, params = self._where(entity_type, exclude_action=exclude_action)
        return await self._count(where_clause, params)

    @store_errors
    async def count_since(self, since: datetime) -> int:
        return await self._count("WHERE timestamp >= $since", {"since": ensure_tz(since)})

    async def _count_grouped(self, field: str) -> dict[str, int]:
        result = await self._client.query(
            f"SELECT {field}, count() AS count FROM activity GROUP BY {field}"
        )
        return {r.get(field, ""): r.get("count", 0) for r in rows(result)}

    @store_errors
    async def count_by_type(self) -> dict[str, int]:
        return await self._count_grouped("entity_type")

    @store_errors
    async def count_by_action(self) -> dict[str, int]:
        return await self._count_grouped("action")
