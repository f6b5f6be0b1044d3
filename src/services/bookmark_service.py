"""Service layer for bookmark CRUD operations."""
import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from models.bookmark import Bookmark
from repositories.bookmark_repository import BookmarkRepository
from schemas.bookmark import (
    LinkCreate,
    LinkQuery,
    LinkResponse,
    LinkSort,
    LinkUpdate,
    PaginatedLinksResponse,
    PaginationInfo,
)
from services.exceptions import DuplicateUrlError, InternalError, NotFoundError

logger = logging.getLogger(__name__)

URL_UNIQUE_CONSTRAINT = "uq_bookmarks_url"


def to_link_response(bookmark: Bookmark) -> LinkResponse:
    """Map a Bookmark row to its API shape."""
    return LinkResponse.model_validate(bookmark)


def build_paginated_response(
    bookmarks: list[Bookmark],
    query: LinkQuery,
    total: int,
) -> PaginatedLinksResponse:
    """Wrap a page of bookmarks with pagination metadata."""
    return PaginatedLinksResponse(
        data=[to_link_response(b) for b in bookmarks],
        pagination=PaginationInfo.from_total(query.page, query.limit, total),
    )


def _is_url_conflict(error: IntegrityError) -> bool:
    """Check whether an IntegrityError came from the URL unique constraint."""
    message = str(error)
    # PostgreSQL reports the constraint name; SQLite reports the column
    return URL_UNIQUE_CONSTRAINT in message or "bookmarks.url" in message


@contextmanager
def translate_storage_errors(operation: str) -> Iterator[None]:
    """
    Translate unexpected SQLAlchemy errors into InternalError.

    Domain errors raised inside the block pass through untouched; IntegrityError is
    left for the caller, which knows which constraint it may have hit.
    """
    try:
        yield
    except IntegrityError:
        raise
    except SQLAlchemyError as e:
        logger.exception("Storage failure during %s", operation)
        raise InternalError() from e


class BookmarkService:
    """
    Business rules for bookmarks on top of the repository.

    - URL uniqueness is checked before every write that sets a URL; the database
      constraint backs this up for concurrent writers.
    - Missing bookmarks raise NotFoundError for mutations; reads return None.
    - Results are mapped to response schemas (ISO-8601 UTC timestamps).

    Note: Does not commit. Caller (session dependency) handles commit at request end.
    """

    def __init__(self, repository: BookmarkRepository) -> None:
        self.repository = repository

    async def get_links(self, db: AsyncSession, query: LinkQuery) -> PaginatedLinksResponse:
        """Search, sort and paginate bookmarks."""
        with translate_storage_errors("get_links"):
            page = await self.repository.find_by_query(db, query)
        return build_paginated_response(page.items, query, page.total)

    async def get_favorite_links(
        self,
        db: AsyncSession,
        query: LinkQuery,
    ) -> PaginatedLinksResponse:
        """
        List favorite bookmarks, newest first.

        The favorite filter is applied in the query itself, so totals and page counts
        describe favorites only.
        """
        favorite_query = query.model_copy(update={"favorite": True, "sort": LinkSort.NEWEST})
        return await self.get_links(db, favorite_query)

    async def get_link_by_id(self, db: AsyncSession, bookmark_id: str) -> LinkResponse | None:
        """Get a bookmark by id. Returns None if not found."""
        with translate_storage_errors("get_link_by_id"):
            bookmark = await self.repository.find_by_id(db, bookmark_id)
        return to_link_response(bookmark) if bookmark else None

    async def create_link(self, db: AsyncSession, data: LinkCreate) -> LinkResponse:
        """
        Create a new bookmark.

        Raises:
            DuplicateUrlError: If a bookmark with this exact URL already exists.
        """
        with translate_storage_errors("create_link"):
            existing = await self.repository.find_by_url(db, data.url)
            if existing is not None:
                logger.info("Rejected duplicate bookmark URL %s", data.url)
                raise DuplicateUrlError(data.url)
            try:
                bookmark = await self.repository.create(db, data.model_dump())
            except IntegrityError as e:
                await db.rollback()
                # Fallback for race condition: another request inserted the URL first
                if _is_url_conflict(e):
                    raise DuplicateUrlError(data.url) from e
                logger.exception("Integrity error while creating bookmark")
                raise InternalError() from e
        logger.info("Created bookmark %s", bookmark.id)
        return to_link_response(bookmark)

    async def update_link(
        self,
        db: AsyncSession,
        bookmark_id: str,
        data: LinkUpdate,
    ) -> LinkResponse:
        """
        Apply a partial update.

        Only fields present in the request are changed. When the URL changes, uniqueness
        is re-checked against the new value.

        Raises:
            NotFoundError: If the bookmark doesn't exist.
            DuplicateUrlError: If another bookmark already owns the new URL.
        """
        changes = data.model_dump(exclude_unset=True)
        with translate_storage_errors("update_link"):
            bookmark = await self.repository.find_by_id(db, bookmark_id)
            if bookmark is None:
                raise NotFoundError(bookmark_id)
            current_url = bookmark.url

            new_url = changes.get("url")
            if new_url is not None and new_url != current_url:
                duplicate = await self.repository.find_by_url(db, new_url)
                if duplicate is not None and duplicate.id != bookmark.id:
                    logger.info("Rejected duplicate bookmark URL %s", new_url)
                    raise DuplicateUrlError(new_url)

            try:
                bookmark = await self.repository.update(db, bookmark, changes)
            except IntegrityError as e:
                await db.rollback()
                if _is_url_conflict(e):
                    raise DuplicateUrlError(new_url or current_url) from e
                logger.exception("Integrity error while updating bookmark %s", bookmark_id)
                raise InternalError() from e
        return to_link_response(bookmark)

    async def delete_link(self, db: AsyncSession, bookmark_id: str) -> None:
        """
        Delete a bookmark permanently.

        Raises:
            NotFoundError: If the bookmark doesn't exist.
        """
        with translate_storage_errors("delete_link"):
            bookmark = await self.repository.find_by_id(db, bookmark_id)
            if bookmark is None:
                raise NotFoundError(bookmark_id)
            await self.repository.delete(db, bookmark)
        logger.info("Deleted bookmark %s", bookmark_id)

    async def toggle_favorite(self, db: AsyncSession, bookmark_id: str) -> LinkResponse:
        """
        Flip the favorite flag.

        Raises:
            NotFoundError: If the bookmark doesn't exist.
        """
        with translate_storage_errors("toggle_favorite"):
            bookmark = await self.repository.toggle_favorite(db, bookmark_id)
        return to_link_response(bookmark)
