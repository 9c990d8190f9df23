"""Memory implementation of PageViewRepository"""

from __future__ import annotations

from ...entities import PageViewEntity, _utcnow
from ..base import PageViewRepository
from .database import MemoryDatabase


class MemoryPageViewRepository(PageViewRepository):
    """Increment reads and writes the counter without yielding in between"""

    def __init__(self, db: MemoryDatabase):
        self._db = db

    async def increment(self, path: str) -> int:
        view = self._db.page_views.get(path)
        if view is None:
            view = self._db.page_views[path] = PageViewEntity(path=path)
        view.count += 1
        view.last_updated = _utcnow()
        return view.count

    async def get_count(self, path: str) -> int:
        view = self._db.page_views.get(path)
        return view.count if view is not None else 0
