"""Store factory for backend selection"""

from __future__ import annotations

from typing import Optional

from ..config import Settings, get_settings
from .base import Store


def create_store(settings: Optional[Settings] = None) -> Store:
    """
    Build the Store for the configured backend.

    The caller owns the handle and must call init() before use and
    close() on shutdown.

    Usage:
        store = create_store(settings)
        await store.init()
        async with store.unit_of_work() as uow:
            count = await uow.page_views.get_count("/blog")
        await store.close()
    """
    settings = settings or get_settings()
    backend = settings.backend.lower()

    if backend == "surrealdb":
        from ..surrealdb import SurrealStore

        return SurrealStore(
            settings.surreal_url,
            settings.surreal_namespace,
            settings.surreal_database,
        )
    if backend == "memory":
        from .memory import MemoryStore

        return MemoryStore()
    if backend == "postgres":
        from ..database import PostgresStore

        return PostgresStore(
            settings.database_url,
            echo=settings.debug,
            pool_size=settings.database_pool_size,
        )
    raise ValueError(f"Unknown backend: {settings.backend!r}")
