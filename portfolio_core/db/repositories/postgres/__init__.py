"""PostgreSQL repository implementations"""

from .content import PostgresContentRepository
from .relation import PostgresRelationRepository
from .activity import PostgresActivityRepository
from .page_view import PostgresPageViewRepository
from .unit_of_work import PostgresUnitOfWork

__all__ = [
    "PostgresContentRepository",
    "PostgresRelationRepository",
    "PostgresActivityRepository",
    "PostgresPageViewRepository",
    "PostgresUnitOfWork",
]
