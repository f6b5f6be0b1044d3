"""
Translate a validated LinkQuery into filter, ordering and pagination clauses.

The builder is pure: the same query always produces the same clauses and it never
touches the database. Validation (page >= 1, 1 <= limit <= 100, known sort) happens
upstream in `schemas.bookmark.LinkQuery`, so nothing here raises.
"""
from dataclasses import dataclass

from sqlalchemy import ColumnElement, or_

from models.bookmark import Bookmark
from schemas.bookmark import LinkQuery, LinkSort

LIKE_ESCAPE_CHAR = "\\"


def escape_like(value: str) -> str:
    r"""
    Escape special LIKE/ILIKE characters for safe use in LIKE/ILIKE patterns.

    LIKE/ILIKE treats these characters specially:
    - % matches any sequence of characters
    - _ matches any single character
    - \\ is the escape character

    This function escapes them so they match literally. The escape character is passed
    explicitly to `ilike(..., escape=...)` because SQLite has no default one.
    """
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_filters(query: LinkQuery) -> tuple[ColumnElement[bool], ...]:
    """
    Build WHERE clauses shared by the list and count statements.

    Search is a case-insensitive substring match on title, description or url.
    An empty tuple matches every bookmark.
    """
    clauses: list[ColumnElement[bool]] = []
    if query.search:
        pattern = f"%{escape_like(query.search)}%"
        clauses.append(
            or_(
                Bookmark.title.ilike(pattern, escape=LIKE_ESCAPE_CHAR),
                Bookmark.description.ilike(pattern, escape=LIKE_ESCAPE_CHAR),
                Bookmark.url.ilike(pattern, escape=LIKE_ESCAPE_CHAR),
            ),
        )
    if query.favorite is not None:
        clauses.append(Bookmark.is_favorite == query.favorite)
    return tuple(clauses)


def build_order_by(sort: LinkSort) -> tuple[ColumnElement, ...]:
    """
    Map a sort key to ORDER BY clauses.

    Every ordering ends with tiebreakers so that equal primary keys (same title, same
    favorite flag) paginate deterministically. ids are UUIDv7, so id order agrees with
    creation order.
    """
    newest_first = (Bookmark.created_at.desc(), Bookmark.id.desc())
    if sort == LinkSort.OLDEST:
        return (Bookmark.created_at.asc(), Bookmark.id.asc())
    if sort == LinkSort.TITLE:
        return (Bookmark.title.asc(), *newest_first)
    if sort == LinkSort.FAVORITES:
        return (Bookmark.is_favorite.desc(), *newest_first)
    return newest_first


@dataclass(frozen=True)
class BookmarkQueryPlan:
    """Filter, ordering and pagination derived from a LinkQuery."""

    where: tuple[ColumnElement[bool], ...]
    order_by: tuple[ColumnElement, ...]
    offset: int
    limit: int


def build_query_plan(query: LinkQuery) -> BookmarkQueryPlan:
    """Build the complete plan for a list request."""
    return BookmarkQueryPlan(
        where=build_filters(query),
        order_by=build_order_by(query.sort),
        offset=(query.page - 1) * query.limit,
        limit=query.limit,
    )
