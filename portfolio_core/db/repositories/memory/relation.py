"""Memory implementation of RelationRepository"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence
from uuid import UUID

from ...collections import check_ref_field, get_collection
from ...entities import _utcnow
from ..base import RelationRepository
from .database import MemoryDatabase


class MemoryRelationRepository(RelationRepository):
    """Array primitives over the in-process documents"""

    def __init__(self, db: MemoryDatabase):
        self._db = db

    def _docs(self, collection: str, field: str) -> dict[UUID, object]:
        spec = check_ref_field(collection, field)
        return self._db.documents[spec.name]

    async def get_refs(
        self, collection: str, entity_id: UUID, field: str
    ) -> Optional[list[UUID]]:
        doc = self._docs(collection, field).get(entity_id)
        if doc is None:
            return None
        return list(getattr(doc, field))

    async def pull_ref(
        self, collection: str, target_ids: Sequence[UUID], field: str, value: UUID
    ) -> int:
        docs = self._docs(collection, field)
        changed = 0
        for target_id in set(target_ids):
            doc = docs.get(target_id)
            if doc is None:
                continue
            refs = getattr(doc, field)
            if value in refs:
                setattr(doc, field, [r for r in refs if r != value])
                doc.updated_at = _utcnow()
                changed += 1
        return changed

    async def add_ref(
        self, collection: str, target_ids: Sequence[UUID], field: str, value: UUID
    ) -> int:
        docs = self._docs(collection, field)
        changed = 0
        for target_id in set(target_ids):
            doc = docs.get(target_id)
            if doc is None:
                continue
            refs = getattr(doc, field)
            if value not in refs:
                setattr(doc, field, [*refs, value])
                doc.updated_at = _utcnow()
                changed += 1
        return changed

    async def set_refs(
        self, collection: str, entity_id: UUID, field: str, ids: Sequence[UUID]
    ) -> bool:
        doc = self._docs(collection, field).get(entity_id)
        if doc is None:
            return False
        setattr(doc, field, list(ids))
        doc.updated_at = _utcnow()
        return True

    async def pull_ref_everywhere(self, collection: str, field: str, value: UUID) -> int:
        docs = self._docs(collection, field)
        return await self.pull_ref(collection, list(docs), field, value)

    async def scan_refs(self, collection: str, field: str) -> dict[UUID, list[UUID]]:
        return {
            entity_id: list(getattr(doc, field))
            for entity_id, doc in self._docs(collection, field).items()
        }

    async def existing_ids(self, collection: str, ids: Iterable[UUID]) -> set[UUID]:
        docs = self._db.documents[get_collection(collection).name]
        return {i for i in ids if i in docs}
