"""
Pytest fixtures for testing.

Tests run against a fresh SQLite database per test by default. Set
MARKFY_TEST_DATABASE=postgres to run the same suite against PostgreSQL in a
testcontainers-managed container.
"""
import os
from collections.abc import AsyncGenerator, Awaitable, Callable, Generator
from pathlib import Path

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
from testcontainers.postgres import PostgresContainer

from api.dependencies import get_async_session
from api.main import create_app
from core.config import Settings
from db.session import create_engine, create_session_factory
from models.base import Base
from models.bookmark import Bookmark
from repositories.bookmark_repository import BookmarkRepository
from services.bookmark_service import BookmarkService

USE_POSTGRES = os.environ.get("MARKFY_TEST_DATABASE", "sqlite") == "postgres"


@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer]:
    """Start a PostgreSQL container for the test session."""
    with PostgresContainer("postgres:16", driver="asyncpg") as postgres:
        yield postgres


@pytest.fixture
def database_url(request: pytest.FixtureRequest, tmp_path: Path) -> str:
    """Database URL for one test: a temp SQLite file, or the shared container."""
    if USE_POSTGRES:
        container: PostgresContainer = request.getfixturevalue("postgres_container")
        return container.get_connection_url()
    return f"sqlite+aiosqlite:///{tmp_path}/test.db"


@pytest.fixture
def settings(database_url: str) -> Settings:
    """Settings pointing at the test database."""
    return Settings(database_url=database_url)


@pytest.fixture
async def async_engine(settings: Settings) -> AsyncGenerator[AsyncEngine]:
    """Create an engine with a freshly created schema; drop it afterwards."""
    engine = create_engine(settings)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Create an async session on the test database."""
    session_factory = create_session_factory(async_engine)
    async with session_factory() as session:
        yield session


@pytest.fixture
def service() -> BookmarkService:
    """A service wired the same way the application wires it."""
    return BookmarkService(BookmarkRepository())


@pytest.fixture
async def app(settings: Settings) -> AsyncGenerator[FastAPI]:
    """Application instance built for the test database."""
    application = create_app(settings)
    yield application
    await application.state.engine.dispose()


@pytest.fixture
async def client(app: FastAPI, db_session: AsyncSession) -> AsyncGenerator[AsyncClient]:
    """
    Create a test client with database session override.

    Requests share `db_session` with the test, so rows created by fixtures are visible
    to the API and rows created through the API can be asserted on directly.
    """
    async def override_get_async_session() -> AsyncGenerator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_async_session

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def make_bookmark(db_session: AsyncSession) -> Callable[..., Awaitable[Bookmark]]:
    """Factory fixture inserting a bookmark row with sensible defaults."""
    counter = 0

    async def _make(**overrides: object) -> Bookmark:
        nonlocal counter
        counter += 1
        values = {
            "title": f"Bookmark {counter}",
            "url": f"https://example.com/{counter}",
            "description": None,
            "is_favorite": False,
            **overrides,
        }
        bookmark = Bookmark(**values)
        db_session.add(bookmark)
        await db_session.flush()
        await db_session.refresh(bookmark)
        return bookmark

    return _make
