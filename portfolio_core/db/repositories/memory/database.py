"""Shared state of the memory backend"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

from ...collections import COLLECTIONS
from ...entities import ActivityEntity, PageViewEntity


@dataclass
class MemoryDatabase:
    """
    Plain dict storage shared by every unit of work of one MemoryStore.

    Repository methods never await between reading and writing this state,
    so each call is atomic with respect to other coroutines.
    """

    documents: dict[str, dict[UUID, object]] = field(
        default_factory=lambda: {name: {} for name in COLLECTIONS}
    )
    activities: dict[UUID, ActivityEntity] = field(default_factory=dict)
    page_views: dict[str, PageViewEntity] = field(default_factory=dict)

    def clear(self) -> None:
        for docs in self.documents.values():
            docs.clear()
        self.activities.clear()
        self.page_views.clear()
