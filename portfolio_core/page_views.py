"""Page view counter - Atomic per-path hit counts"""

from __future__ import annotations

from .db.repositories.base import UnitOfWork
from .errors import ValidationError
from .observability import metrics, track_errors


def normalize_path(path: str) -> str:
    """Counter key for a path: stripped and case-folded"""
    normalized = (path or "").strip().lower()
    if not normalized:
        raise ValidationError("path must not be empty")
    return normalized


class ViewCounter:
    """
    Per-path counters.

    increment() is a single upsert-with-increment in the store, never a
    read followed by a write, so concurrent hits are all counted.
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    @track_errors
    async def increment(self, path: str) -> int:
        """
        Count one hit and return the new total.

        The path is trimmed of surrounding whitespace and lowercased, so
        " /Blog " and "/blog" share one counter.

        Raises:
            ValidationError: path is empty after trimming
        """
        count = await self.uow.page_views.increment(normalize_path(path))
        metrics.increment("page_view_count")
        return count

    @track_errors
    async def peek(self, path: str) -> int:
        """Current count, 0 for unknown paths. Never writes."""
        return await self.uow.page_views.get_count(normalize_path(path))
