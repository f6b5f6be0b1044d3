"""Data access for bookmarks."""
from typing import Any, NamedTuple
from uuid import UUID

from sqlalchemy import ColumnElement, func, not_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.base import utcnow
from models.bookmark import Bookmark
from repositories.query_builder import build_query_plan
from schemas.bookmark import LinkQuery
from services.exceptions import NotFoundError


class BookmarkPage(NamedTuple):
    """One page of bookmarks plus the total number matching the filter."""

    items: list[Bookmark]
    total: int


def parse_bookmark_id(bookmark_id: str | UUID) -> UUID | None:
    """Parse an opaque id; anything that isn't a UUID can't reference a bookmark."""
    if isinstance(bookmark_id, UUID):
        return bookmark_id
    try:
        return UUID(bookmark_id)
    except (TypeError, ValueError):
        return None


class BookmarkRepository:
    """
    Thin wrapper over the bookmarks table.

    Stateless: it is built once by the application and every method receives the
    request-scoped session. Methods flush but never commit; the session dependency
    commits at request end.
    """

    async def find_many(
        self,
        db: AsyncSession,
        *,
        where: tuple[ColumnElement[bool], ...] = (),
        order_by: tuple[ColumnElement, ...] = (),
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Bookmark]:
        """List bookmarks matching `where`, ordered and windowed."""
        stmt = select(Bookmark).where(*where).order_by(*order_by).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def count(
        self,
        db: AsyncSession,
        *,
        where: tuple[ColumnElement[bool], ...] = (),
    ) -> int:
        """Count bookmarks matching `where`."""
        result = await db.execute(
            select(func.count()).select_from(Bookmark).where(*where),
        )
        return result.scalar() or 0

    async def find_by_id(
        self,
        db: AsyncSession,
        bookmark_id: str | UUID,
    ) -> Bookmark | None:
        """Get a bookmark by id. Returns None if not found."""
        parsed_id = parse_bookmark_id(bookmark_id)
        if parsed_id is None:
            return None
        result = await db.execute(select(Bookmark).where(Bookmark.id == parsed_id))
        return result.scalar_one_or_none()

    async def find_by_url(self, db: AsyncSession, url: str) -> Bookmark | None:
        """Exact (case-sensitive) URL lookup used for uniqueness checks."""
        result = await db.execute(select(Bookmark).where(Bookmark.url == url))
        return result.scalar_one_or_none()

    async def create(self, db: AsyncSession, values: dict[str, Any]) -> Bookmark:
        """
        Insert a bookmark.

        Raises:
            sqlalchemy.exc.IntegrityError: If the URL unique constraint is violated.
        """
        bookmark = Bookmark(**values)
        db.add(bookmark)
        await db.flush()
        await db.refresh(bookmark)
        return bookmark

    async def update(
        self,
        db: AsyncSession,
        bookmark: Bookmark,
        changes: dict[str, Any],
    ) -> Bookmark:
        """
        Apply a partial update.

        updated_at is set explicitly so that a no-op update still counts as a mutation.
        """
        for field, value in changes.items():
            setattr(bookmark, field, value)
        bookmark.updated_at = utcnow()
        await db.flush()
        await db.refresh(bookmark)
        return bookmark

    async def delete(self, db: AsyncSession, bookmark: Bookmark) -> None:
        """Hard-delete a bookmark."""
        await db.delete(bookmark)
        await db.flush()

    async def find_by_query(self, db: AsyncSession, query: LinkQuery) -> BookmarkPage:
        """
        Run a list query and its count.

        Both statements share the same filter; the count ignores offset/limit so the
        caller can compute the number of pages. AsyncSession does not allow concurrent
        statements, so the two run sequentially.
        """
        plan = build_query_plan(query)
        total = await self.count(db, where=plan.where)
        items = await self.find_many(
            db,
            where=plan.where,
            order_by=plan.order_by,
            offset=plan.offset,
            limit=plan.limit,
        )
        return BookmarkPage(items=items, total=total)

    async def toggle_favorite(self, db: AsyncSession, bookmark_id: str | UUID) -> Bookmark:
        """
        Flip is_favorite in a single conditional UPDATE.

        The flip happens in the database (`SET is_favorite = NOT is_favorite`), so two
        concurrent toggles always cancel out instead of one overwriting the other.

        Raises:
            NotFoundError: If no bookmark has this id.
        """
        parsed_id = parse_bookmark_id(bookmark_id)
        if parsed_id is None:
            raise NotFoundError(str(bookmark_id))
        result = await db.execute(
            update(Bookmark)
            .where(Bookmark.id == parsed_id)
            .values(is_favorite=not_(Bookmark.is_favorite), updated_at=utcnow())
            .returning(Bookmark)
            .execution_options(populate_existing=True),
        )
        bookmark = result.scalar_one_or_none()
        if bookmark is None:
            raise NotFoundError(str(bookmark_id))
        return bookmark
