"""Memory implementation of ContentRepository"""

from __future__ import annotations

import copy
from uuid import UUID

from ...collections import collection_of, get_collection
from ..base import ContentRepository
from .database import MemoryDatabase


class MemoryContentRepository(ContentRepository):
    """Stores deep copies so callers never share state with the store"""

    def __init__(self, db: MemoryDatabase):
        self._db = db

    async def create(self, entity) -> UUID:
        spec = collection_of(entity)
        self._db.documents[spec.name][entity.id] = copy.deepcopy(entity)
        return entity.id

    async def get(self, collection: str, entity_id: UUID):
        spec = get_collection(collection)
        entity = self._db.documents[spec.name].get(entity_id)
        return copy.deepcopy(entity) if entity is not None else None

    async def list(self, collection: str, limit: int = 100) -> list:
        spec = get_collection(collection)
        entities = sorted(
            self._db.documents[spec.name].values(),
            key=lambda e: e.created_at,
            reverse=True,
        )
        return [copy.deepcopy(e) for e in entities[:limit]]

    async def delete(self, collection: str, entity_id: UUID) -> bool:
        spec = get_collection(collection)
        return self._db.documents[spec.name].pop(entity_id, None) is not None
