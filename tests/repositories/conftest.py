"""Test fixtures for repository tests"""

from __future__ import annotations

import os
import tempfile
from contextlib import asynccontextmanager
from typing import AsyncGenerator
from uuid import uuid4

import pytest
import pytest_asyncio

from portfolio_core.db.entities import ActivityEntity, ProjectEntity, SkillEntity


# Test data fixtures
@pytest.fixture
def sample_project() -> ProjectEntity:
    """Create a sample project entity"""
    return ProjectEntity(id=uuid4(), title="Portfolio", slug="portfolio")


@pytest.fixture
def sample_skills() -> list[SkillEntity]:
    """Create sample skill entities"""
    return [
        SkillEntity(id=uuid4(), name="Python", proficiency=90),
        SkillEntity(id=uuid4(), name="Rust", proficiency=40),
    ]


@pytest.fixture
def sample_activity() -> ActivityEntity:
    return ActivityEntity(
        entity_type="project",
        title="Portfolio",
        action="update",
        description="Updated project",
        item_id="abc",
    )


@asynccontextmanager
async def open_store(backend: str) -> AsyncGenerator:
    """Initialized store for a real backend, skipped when unavailable"""
    if backend == "surrealdb":
        # Skip if surrealdb not installed
        pytest.importorskip("surrealdb")
        from portfolio_core.db.surrealdb import SurrealStore

        # Use temporary directory (each test gets clean slate)
        with tempfile.TemporaryDirectory() as tmpdir:
            store = SurrealStore(f"file://{tmpdir}/test", "test", "test")
            await store.init()
            try:
                yield store
            finally:
                await store.close()

    elif backend == "postgres":
        url = os.environ.get("DATABASE_URL")
        if not url:
            pytest.skip("DATABASE_URL not set")
        pytest.importorskip("asyncpg")
        from portfolio_core.db.database import PostgresStore

        store = PostgresStore(url)
        await store.init()
        try:
            yield store
        finally:
            await store.close()

    else:
        raise ValueError(f"Unknown backend: {backend}")


@pytest.fixture(params=["surrealdb", "postgres"])
def backend(request):
    """Parameterized fixture for testing both backends"""
    return request.param


@pytest_asyncio.fixture
async def backend_store(backend) -> AsyncGenerator:
    async with open_store(backend) as store:
        yield store


@pytest_asyncio.fixture
async def backend_uow(backend_store) -> AsyncGenerator:
    """
    Unit of work left uncommitted.

    On PostgreSQL everything is rolled back afterwards, so tests only
    assert on rows they created.
    """
    async with backend_store._open() as uow:
        yield uow
        await uow.rollback()
