"""SurrealDB implementation of ContentRepository"""

from __future__ import annotations

from dataclasses import fields
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from ...collections import collection_of, get_collection
from ..base import ContentRepository
from .errors import store_errors
from .records import ensure_tz, parse_datetime, parse_record_id, parse_uuid_list, rows, uuid_strings

if TYPE_CHECKING:
    from surrealdb import AsyncSurreal


class SurrealContentRepository(ContentRepository):
    """SurrealDB implementation using SurrealQL"""

    def __init__(self, client: "AsyncSurreal"):
        self._client = client

    def _to_entity(self, collection: str, record: dict):
        """Convert SurrealDB record to domain entity"""
        spec = get_collection(collection)
        values = {}
        for f in fields(spec.entity_class):
            if f.name == "id":
                values["id"] = parse_record_id(record.get("id", ""))
            elif f.name in spec.ref_fields:
                values[f.name] = parse_uuid_list(record.get(f.name))
            elif f.name in ("created_at", "updated_at"):
                values[f.name] = parse_datetime(record.get(f.name))
            elif f.name in record:
                values[f.name] = record[f.name]
        return spec.entity_class(**values)

    def _to_content(self, entity) -> dict:
        spec = collection_of(entity)
        content = {}
        for f in fields(entity):
            if f.name == "id":
                continue
            value = getattr(entity, f.name)
            if f.name in spec.ref_fields:
                value = uuid_strings(value)
            elif isinstance(value, datetime):
                value = ensure_tz(value)
            content[f.name] = value
        return content

    @store_errors
    async def create(self, entity) -> UUID:
        from surrealdb import RecordID

        spec = collection_of(entity)
        await self._client.query(
            "CREATE $id CONTENT $content",
            {"id": RecordID(spec.name, str(entity.id)), "content": self._to_content(entity)},
        )
        return entity.id

    @store_errors
    async def get(self, collection: str, entity_id: UUID):
        from surrealdb import RecordID

        spec = get_collection(collection)
        result = rows(await self._client.query(
            "SELECT * FROM $id",
            {"id": RecordID(spec.name, str(entity_id))},
        ))
        if result:
            return self._to_entity(collection, result[0])
        return None

    @store_errors
    async def list(self, collection: str, limit: int = 100) -> list:
        spec = get_collection(collection)
        result = await self._client.query(
            f"SELECT * FROM {spec.name} ORDER BY created_at DESC LIMIT $limit",
            {"limit": limit},
        )
        return [self._to_entity(collection, r) for r in rows(result)]

    @store_errors
    async def delete(self, collection: str, entity_id: UUID) -> bool:
        from surrealdb import RecordID

        spec = get_collection(collection)
        result = await self._client.query(
            "DELETE $id RETURN BEFORE",
            {"id": RecordID(spec.name, str(entity_id))},
        )
        return bool(rows(result))
