"""Bookmark (link) CRUD endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_bookmark_service
from schemas.bookmark import (
    DeleteLinkResponse,
    LinkCreate,
    LinkQuery,
    LinkResponse,
    LinkUpdate,
    PaginatedLinksResponse,
)
from services.bookmark_service import BookmarkService
from services.exceptions import NotFoundError

router = APIRouter(prefix="/links", tags=["links"])


@router.get("", response_model=PaginatedLinksResponse, response_model_exclude_none=True)
async def list_links(
    query: Annotated[LinkQuery, Query()],
    service: BookmarkService = Depends(get_bookmark_service),
    db: AsyncSession = Depends(get_async_session),
) -> PaginatedLinksResponse:
    """
    List bookmarks with search, sorting and pagination.

    - **page**: 1-based page number (default 1)
    - **limit**: page size, 1-100 (default 10)
    - **search**: case-insensitive substring match on title, description and url
    - **sort**: newest (default), oldest, title, or favorites
    - **favorite**: only favorites (true) or only non-favorites (false)
    """
    return await service.get_links(db, query)


@router.post(
    "",
    response_model=LinkResponse,
    response_model_exclude_none=True,
    status_code=201,
)
async def create_link(
    data: LinkCreate,
    service: BookmarkService = Depends(get_bookmark_service),
    db: AsyncSession = Depends(get_async_session),
) -> LinkResponse:
    """Create a new bookmark. Returns 409 if the URL is already saved."""
    return await service.create_link(db, data)


@router.get("/{link_id}", response_model=LinkResponse, response_model_exclude_none=True)
async def get_link(
    link_id: str,
    service: BookmarkService = Depends(get_bookmark_service),
    db: AsyncSession = Depends(get_async_session),
) -> LinkResponse:
    """Get a single bookmark by id."""
    link = await service.get_link_by_id(db, link_id)
    if link is None:
        raise NotFoundError(link_id)
    return link


@router.patch("/{link_id}", response_model=LinkResponse, response_model_exclude_none=True)
async def update_link(
    link_id: str,
    data: LinkUpdate,
    service: BookmarkService = Depends(get_bookmark_service),
    db: AsyncSession = Depends(get_async_session),
) -> LinkResponse:
    """Partially update a bookmark."""
    return await service.update_link(db, link_id, data)


@router.delete("/{link_id}", response_model=DeleteLinkResponse)
async def delete_link(
    link_id: str,
    service: BookmarkService = Depends(get_bookmark_service),
    db: AsyncSession = Depends(get_async_session),
) -> DeleteLinkResponse:
    """Delete a bookmark permanently."""
    await service.delete_link(db, link_id)
    return DeleteLinkResponse()


@router.patch(
    "/{link_id}/favorite",
    response_model=LinkResponse,
    response_model_exclude_none=True,
)
async def toggle_favorite(
    link_id: str,
    service: BookmarkService = Depends(get_bookmark_service),
    db: AsyncSession = Depends(get_async_session),
) -> LinkResponse:
    """Flip the favorite flag of a bookmark."""
    return await service.toggle_favorite(db, link_id)
