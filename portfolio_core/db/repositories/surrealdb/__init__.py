"""SurrealDB repository implementations"""

from __future__ import annotations

from .content import SurrealContentRepository
from .relation import SurrealRelationRepository
from .activity import SurrealActivityRepository
from .page_view import SurrealPageViewRepository
from .unit_of_work import SurrealUnitOfWork

__all__ = [
    "SurrealContentRepository",
    "SurrealRelationRepository",
    "SurrealActivityRepository",
    "SurrealPageViewRepository",
    "SurrealUnitOfWork",
]
