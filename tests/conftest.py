"""Shared fixtures: a memory-backed store and seeded content"""

from __future__ import annotations

from typing import AsyncGenerator

import pytest
import pytest_asyncio

from portfolio_core.db.entities import (
    BlogPostEntity,
    BlogTagEntity,
    ProjectEntity,
    SkillEntity,
)
from portfolio_core.db.repositories.memory import MemoryStore
from portfolio_core.observability import metrics


@pytest.fixture(autouse=True)
def reset_metrics():
    """Metrics are process-global"""
    metrics.reset()
    yield
    metrics.reset()


@pytest_asyncio.fixture
async def store() -> AsyncGenerator[MemoryStore, None]:
    """Fresh memory store per test"""
    store = MemoryStore()
    await store.init()
    yield store
    await store.close()


@pytest_asyncio.fixture
async def uow(store):
    """Unit of work on the memory store"""
    async with store.unit_of_work() as uow:
        yield uow


@pytest_asyncio.fixture
async def skills(uow) -> list[SkillEntity]:
    """Three skills with no projects yet"""
    entities = [
        SkillEntity(name="Python", proficiency=90),
        SkillEntity(name="TypeScript", proficiency=75),
        SkillEntity(name="PostgreSQL", proficiency=60),
    ]
    for entity in entities:
        await uow.content.create(entity)
    return entities


@pytest_asyncio.fixture
async def project(uow) -> ProjectEntity:
    """A project with no skills yet"""
    entity = ProjectEntity(title="Portfolio", slug="portfolio", description="This site")
    await uow.content.create(entity)
    return entity


@pytest_asyncio.fixture
async def tags(uow) -> list[BlogTagEntity]:
    entities = [
        BlogTagEntity(name="Python", slug="python"),
        BlogTagEntity(name="Databases", slug="databases"),
    ]
    for entity in entities:
        await uow.content.create(entity)
    return entities


@pytest_asyncio.fixture
async def post(uow) -> BlogPostEntity:
    entity = BlogPostEntity(title="Hello", slug="hello", published=True)
    await uow.content.create(entity)
    return entity
