"""Tests for the health check endpoint."""
from collections.abc import Awaitable, Callable

import pytest
from fastapi import FastAPI
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from models.bookmark import Bookmark

MakeBookmark = Callable[..., Awaitable[Bookmark]]


async def test_health_endpoint_returns_200(client: AsyncClient) -> None:
    """Test that the health endpoint returns 200 OK."""
    response = await client.get("/health")
    assert response.status_code == 200


async def test_health_reports_version_and_bookmark_count(
    client: AsyncClient,
    make_bookmark: MakeBookmark,
) -> None:
    """Test that a reachable database reports healthy along with the stored count."""
    await make_bookmark()
    await make_bookmark()

    response = await client.get("/health")

    assert response.json() == {
        "status": "healthy",
        "database": "healthy",
        "version": "0.1.0",
        "bookmarks": 2,
    }


async def test_health_empty_store_reports_zero(client: AsyncClient) -> None:
    response = await client.get("/health")
    assert response.json()["bookmarks"] == 0


async def test_health_database_failure_reports_degraded(
    app: FastAPI,
    client: AsyncClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Test that an unreachable database is reported as degraded rather than a 500."""
    async def broken_count(*args: object, **kwargs: object) -> int:
        raise OperationalError("SELECT count(*)", {}, Exception("connection refused"))

    monkeypatch.setattr(app.state.bookmark_service.repository, "count", broken_count)

    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "degraded",
        "database": "unhealthy",
        "version": "0.1.0",
    }
