"""Liveness and storage status for Markfy."""
import logging
from typing import Literal

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_bookmark_service
from services.bookmark_service import BookmarkService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """
    Service status.

    `bookmarks` is the number of stored bookmarks and is omitted when the database
    cannot be reached.
    """

    status: Literal["healthy", "degraded"]
    database: Literal["healthy", "unhealthy"]
    version: str
    bookmarks: int | None = None


@router.get("/health", response_model=HealthResponse, response_model_exclude_none=True)
async def health(
    request: Request,
    service: BookmarkService = Depends(get_bookmark_service),
    db: AsyncSession = Depends(get_async_session),
) -> HealthResponse:
    """Report whether the bookmarks table can be queried; never fails with 5xx."""
    version = request.app.version
    try:
        total = await service.repository.count(db)
    except (SQLAlchemyError, OSError):
        logger.exception("Bookmark store unreachable")
        await db.rollback()
        return HealthResponse(status="degraded", database="unhealthy", version=version)
    return HealthResponse(status="healthy", database="healthy", version=version, bookmarks=total)
