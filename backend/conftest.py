"""
Pytest configuration and fixtures for backend tests.

This module provides the core testing infrastructure including:
- Test database setup (created on demand, migrated once per session)
- Session fixtures for database access
- Test client for API integration tests

The test session connects as the table owner, like the application's pool.
Tests that need row-level security applied use ``taskflow.testing.user_context``
or go through the HTTP client, whose request sessions switch to the app role.
"""

import asyncio
from collections.abc import AsyncGenerator
from urllib.parse import urlparse

import asyncpg
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from taskflow.core.config import settings
from taskflow.core.rate_limit import limiter
from taskflow.db.session import get_session, upgrade_database
from taskflow.main import app

# Use a separate test database (replace only the database name at the end)
TEST_DB_NAME = "taskflow_test"
TEST_DATABASE_URL = settings.DATABASE_URL.rsplit("/", 1)[0] + f"/{TEST_DB_NAME}"


async def _ensure_test_database() -> None:
    """Create the test database if it doesn't exist."""
    parsed = urlparse(settings.asyncpg_dsn)
    conn = await asyncpg.connect(
        user=parsed.username,
        password=parsed.password,
        host=parsed.hostname,
        port=parsed.port or 5432,
        database="postgres",
    )
    try:
        exists = await conn.fetchval("SELECT 1 FROM pg_database WHERE datname = $1", TEST_DB_NAME)
        if not exists:
            await conn.execute(f'CREATE DATABASE "{TEST_DB_NAME}"')
    finally:
        await conn.close()


@pytest.fixture(scope="session", autouse=True)
def _apply_migrations():
    """Automatically create the test database and run migrations once per session."""
    asyncio.run(_ensure_test_database())
    upgrade_database(TEST_DATABASE_URL)


@pytest.fixture(scope="function")
async def engine():
    """Create a test database engine."""
    test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, future=True, pool_pre_ping=True)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture(scope="function")
async def session(engine, session_factory) -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh database session for each test.

    Truncates all tables after the test to ensure isolation.
    """
    async with session_factory() as test_session:
        yield test_session

        # Expire all objects to detach them from the session
        test_session.expire_all()

    # Clean up on a new connection; replica mode skips triggers and FK checks.
    async with engine.begin() as conn:
        await conn.execute(text("SET session_replication_role = 'replica'"))
        for table in reversed(SQLModel.metadata.sorted_tables):
            await conn.execute(text(f"TRUNCATE TABLE {table.name} CASCADE"))
        await conn.execute(text("SET session_replication_role = 'origin'"))


@pytest.fixture
async def client(session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async HTTP client for testing API endpoints.

    Overrides the database session dependency so requests share the test
    session; each request still applies its own RLS context on top of it.

    Usage:
        async def test_endpoint(client: AsyncClient):
            response = await client.get("/api/v1/version")
            assert response.status_code == 200
    """

    async def override_get_session() -> AsyncGenerator[AsyncSession, None]:
        # A real request starts with an empty identity map; objects the test
        # loaded as the owner must not leak past row-level security.
        session.expunge_all()
        yield session

    app.dependency_overrides[get_session] = override_get_session

    # Disable rate limiting in tests
    limiter.enabled = False

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()
