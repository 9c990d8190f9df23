"""Repository pattern for database abstraction"""

from .base import (
    ContentRepository,
    RelationRepository,
    ActivityRepository,
    PageViewRepository,
    UnitOfWork,
    Store,
)

__all__ = [
    "ContentRepository",
    "RelationRepository",
    "ActivityRepository",
    "PageViewRepository",
    "UnitOfWork",
    "Store",
]
