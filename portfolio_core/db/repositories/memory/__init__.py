"""In-process memory backend (single process, no persistence)"""

from __future__ import annotations

from .database import MemoryDatabase
from .content import MemoryContentRepository
from .relation import MemoryRelationRepository
from .activity import MemoryActivityRepository
from .page_view import MemoryPageViewRepository
from .unit_of_work import MemoryUnitOfWork, MemoryStore

__all__ = [
    "MemoryDatabase",
    "MemoryContentRepository",
    "MemoryRelationRepository",
    "MemoryActivityRepository",
    "MemoryPageViewRepository",
    "MemoryUnitOfWork",
    "MemoryStore",
]
