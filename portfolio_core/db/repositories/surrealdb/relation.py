"""SurrealDB implementation of RelationRepository"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Optional, Sequence
from uuid import UUID

from ...collections import check_ref_field, get_collection
from ..base import RelationRepository
from .errors import store_errors
from .records import parse_record_id, parse_uuid_list, rows, uuid_strings

if TYPE_CHECKING:
    from surrealdb import AsyncSurreal


class SurrealRelationRepository(RelationRepository):
    """
    Reference fields are arrays of UUID strings.

    Table and field names are interpolated into SurrealQL only after
    check_ref_field has accepted them.
    """

    def __init__(self, client: "AsyncSurreal"):
        self._client = client

    def _record_ids(self, table: str, ids: Iterable[UUID]) -> list:
        from surrealdb import RecordID

        return [RecordID(table, str(i)) for i in set(ids)]

    @store_errors
    async def get_refs(
        self, collection: str, entity_id: UUID, field: str
    ) -> Optional[list[UUID]]:
        from surrealdb import RecordID

        spec = check_ref_field(collection, field)
        result = rows(await self._client.query(
            "SELECT * FROM $id",
            {"id": RecordID(spec.name, str(entity_id))},
        ))
        if not result:
            return None
        return parse_uuid_list(result[0].get(field))

    @store_errors
    async def pull_ref(
        self, collection: str, target_ids: Sequence[UUID], field: str, value: UUID
    ) -> int:
        if not target_ids:
            return 0
        spec = check_ref_field(collection, field)
        result = await self._client.query(
            f"""
            UPDATE {spec.name}
            SET {field} = array::complement({field} ?? [], [$value]),
                updated_at = time::now()
            WHERE id IN $ids AND $value INSIDE {field}
            RETURN id
            """,
            {"ids": self._record_ids(spec.name, target_ids), "value": str(value)},
        )
        return len(rows(result))

    @store_errors
    async def add_ref(
        self, collection: str, target_ids: Sequence[UUID], field: str, value: UUID
    ) -> int:
        if not target_ids:
            return 0
        spec = check_ref_field(collection, field)
        result = await self._client.query(
            f"""
            UPDATE {spec.name}
            SET {field} = array::add({field} ?? [], $value),
                updated_at = time::now()
            WHERE id IN $ids AND $value NOTINSIDE ({field} ?? [])
            RETURN id
            """,
            {"ids": self._record_ids(spec.name, target_ids), "value": str(value)},
        )
        return len(rows(result))

    @store_errors
    async def set_refs(
        self, collection: str, entity_id: UUID, field: str, ids: Sequence[UUID]
    ) -> bool:
        from surrealdb import RecordID

        spec = check_ref_field(collection, field)
        # WHERE instead of UPDATE $id so a missing owner is not created
        result = await self._client.query(
            f"""
            UPDATE {spec.name}
            SET {field} = $refs, updated_at = time::now()
            WHERE id = $id
            RETURN id
            """,
            {"id": RecordID(spec.name, str(entity_id)), "refs": uuid_strings(ids)},
        )
        return bool(rows(result))

    @store_errors
    async def pull_ref_everywhere(self, collection: str, field: str, value: UUID) -> int:
        spec = check_ref_field(collection, field)
        result = await self._client.query(
            f"""
            UPDATE {spec.name}
            SET {field} = array::complement({field} ?? [], [$value]),
                updated_at = time::now()
            WHERE $value INSIDE {field}
            RETURN id
            """,
            {"value": str(value)},
        )
        return len(rows(result))

    @store_errors
    async def scan_refs(self, collection: str, field: str) -> dict[UUID, list[UUID]]:
        spec = check_ref_field(collection, field)
        result = await self._client.query(f"SELECT id, {field} FROM {spec.name}")
        return {
            parse_record_id(r.get("id")): parse_uuid_list(r.get(field))
            for r in rows(result)
        }

    @store_errors
    async def existing_ids(self, collection: str, ids: Iterable[UUID]) -> set[UUID]:
        ids = set(ids)
        if not ids:
            return set()
        spec = get_collection(collection)
        result = await self._client.query(
            f"SELECT id FROM {spec.name} WHERE id IN $ids",
            {"ids": self._record_ids(spec.name, ids)},
        )
        return {parse_record_id(r.get("id")) for r in rows(result)}
