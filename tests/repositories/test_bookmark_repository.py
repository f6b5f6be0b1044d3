"""Tests for the bookmark repository against a real database."""
from collections.abc import Awaitable, Callable
from datetime import timedelta
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from models.base import utcnow
from models.bookmark import Bookmark
from repositories.bookmark_repository import BookmarkRepository, parse_bookmark_id
from schemas.bookmark import LinkQuery, LinkSort
from services.exceptions import NotFoundError

MakeBookmark = Callable[..., Awaitable[Bookmark]]


@pytest.fixture
def repository() -> BookmarkRepository:
    return BookmarkRepository()


async def _seed_in_order(make_bookmark: MakeBookmark, rows: list[dict]) -> list[Bookmark]:
    """Insert rows with creation times one minute apart, first row oldest."""
    start = utcnow() - timedelta(hours=1)
    bookmarks = []
    for i, row in enumerate(rows):
        created_at = start + timedelta(minutes=i)
        bookmarks.append(
            await make_bookmark(created_at=created_at, updated_at=created_at, **row),
        )
    return bookmarks


# =============================================================================
# Id parsing
# =============================================================================


def test__parse_bookmark_id__valid_uuid_string() -> None:
    value = uuid4()
    assert parse_bookmark_id(str(value)) == value


@pytest.mark.parametrize("raw", ["", "123", "not-a-uuid", "../etc/passwd"])
def test__parse_bookmark_id__garbage_is_none(raw: str) -> None:
    """Test that ids which can't be UUIDs never reach the database."""
    assert parse_bookmark_id(raw) is None


# =============================================================================
# Search
# =============================================================================


async def test__find_by_query__search_is_case_insensitive(
    db_session: AsyncSession,
    repository: BookmarkRepository,
    make_bookmark: MakeBookmark,
) -> None:
    """Test that search matches regardless of case in title, description or url."""
    await make_bookmark(title="Next.js Documentation", url="https://nextjs.org/docs")
    await make_bookmark(title="Guides", description="All about NEXT steps")
    await make_bookmark(title="Other", url="https://example.com/NeXt")
    await make_bookmark(title="Unrelated", url="https://unrelated.example.com")

    lower = await repository.find_by_query(db_session, LinkQuery(search="next"))
    upper = await repository.find_by_query(db_session, LinkQuery(search="NEXT"))

    assert lower.total == 3
    assert upper.total == 3
    assert {b.id for b in lower.items} == {b.id for b in upper.items}


async def test__find_by_query__search_treats_wildcards_literally(
    db_session: AsyncSession,
    repository: BookmarkRepository,
    make_bookmark: MakeBookmark,
) -> None:
    """Test that % and _ in a search term only match themselves."""
    match = await make_bookmark(title="100% coverage")
    await make_bookmark(title="1000 tips")
    under = await make_bookmark(title="snake_case guide")
    await make_bookmark(title="snakeXcase guide")

    percent = await repository.find_by_query(db_session, LinkQuery(search="100%"))
    underscore = await repository.find_by_query(db_session, LinkQuery(search="snake_case"))

    assert [b.id for b in percent.items] == [match.id]
    assert [b.id for b in underscore.items] == [under.id]


async def test__find_by_query__search_with_quotes_and_backslashes(
    db_session: AsyncSession,
    repository: BookmarkRepository,
    make_bookmark: MakeBookmark,
) -> None:
    """Test that quotes and backslashes are plain characters, not SQL."""
    match = await make_bookmark(title="It's a C:\\path guide")
    await make_bookmark(title="Unrelated")

    page = await repository.find_by_query(db_session, LinkQuery(search="'s a C:\\"))

    assert [b.id for b in page.items] == [match.id]


async def test__find_by_query__search_term_is_not_trimmed(
    db_session: AsyncSession,
    repository: BookmarkRepository,
    make_bookmark: MakeBookmark,
) -> None:
    """Test that surrounding spaces are part of the substring being searched for."""
    await make_bookmark(title="Next.js Documentation", url="https://nextjs.org/docs")
    spaced = await make_bookmark(title="What comes Next and after", url="https://example.com/x")

    page = await repository.find_by_query(db_session, LinkQuery(search="Next "))

    assert page.total == 1
    assert [b.id for b in page.items] == [spaced.id]


# =============================================================================
# Pagination and counting
# =============================================================================


async def test__find_by_query__count_ignores_window(
    db_session: AsyncSession,
    repository: BookmarkRepository,
    make_bookmark: MakeBookmark,
) -> None:
    """Test that total counts every matching row, not just the returned page."""
    await _seed_in_order(make_bookmark, [{} for _ in range(25)])

    page = await repository.find_by_query(db_session, LinkQuery(page=3, limit=10))

    assert page.total == 25
    assert len(page.items) == 5


async def test__find_by_query__pages_do_not_overlap(
    db_session: AsyncSession,
    repository: BookmarkRepository,
    make_bookmark: MakeBookmark,
) -> None:
    """Test that consecutive pages partition the ordered result set."""
    seeded = await _seed_in_order(make_bookmark, [{} for _ in range(7)])

    seen = []
    for page_number in (1, 2, 3):
        page = await repository.find_by_query(
            db_session, LinkQuery(page=page_number, limit=3, sort=LinkSort.OLDEST),
        )
        seen.extend(b.id for b in page.items)

    assert seen == [b.id for b in seeded]


async def test__find_by_query__page_past_end_is_empty(
    db_session: AsyncSession,
    repository: BookmarkRepository,
    make_bookmark: MakeBookmark,
) -> None:
    await make_bookmark()

    page = await repository.find_by_query(db_session, LinkQuery(page=5))

    assert page.items == []
    assert page.total == 1


# =============================================================================
# Ordering
# =============================================================================


async def test__find_by_query__sort_orders(
    db_session: AsyncSession,
    repository: BookmarkRepository,
    make_bookmark: MakeBookmark,
) -> None:
    """Test newest, oldest, title and favorites orderings on the same rows."""
    a, b, c = await _seed_in_order(
        make_bookmark,
        [
            {"title": "Charlie", "is_favorite": True},
            {"title": "Alpha"},
            {"title": "Bravo", "is_favorite": True},
        ],
    )

    async def ids(sort: LinkSort) -> list:
        page = await repository.find_by_query(db_session, LinkQuery(sort=sort))
        return [bookmark.id for bookmark in page.items]

    assert await ids(LinkSort.NEWEST) == [c.id, b.id, a.id]
    assert await ids(LinkSort.OLDEST) == [a.id, b.id, c.id]
    assert await ids(LinkSort.TITLE) == [b.id, c.id, a.id]
    assert await ids(LinkSort.FAVORITES) == [c.id, a.id, b.id]


async def test__find_by_query__favorite_filter(
    db_session: AsyncSession,
    repository: BookmarkRepository,
    make_bookmark: MakeBookmark,
) -> None:
    favorite = await make_bookmark(is_favorite=True)
    other = await make_bookmark(is_favorite=False)

    only_favorites = await repository.find_by_query(db_session, LinkQuery(favorite=True))
    no_favorites = await repository.find_by_query(db_session, LinkQuery(favorite=False))

    assert [b.id for b in only_favorites.items] == [favorite.id]
    assert [b.id for b in no_favorites.items] == [other.id]


# =============================================================================
# Lookups and writes
# =============================================================================


async def test__find_by_url__is_exact_match(
    db_session: AsyncSession,
    repository: BookmarkRepository,
    make_bookmark: MakeBookmark,
) -> None:
    """Test that URL lookup is case-sensitive and does not normalize."""
    bookmark = await make_bookmark(url="https://Example.com/Path")

    assert (await repository.find_by_url(db_session, "https://Example.com/Path")).id == bookmark.id
    assert await repository.find_by_url(db_session, "https://example.com/path") is None
    assert await repository.find_by_url(db_session, "https://Example.com/Path/") is None


async def test__find_by_id__unknown_and_invalid_ids(
    db_session: AsyncSession,
    repository: BookmarkRepository,
) -> None:
    assert await repository.find_by_id(db_session, str(uuid4())) is None
    assert await repository.find_by_id(db_session, "not-a-uuid") is None


async def test__update__bumps_updated_at(
    db_session: AsyncSession,
    repository: BookmarkRepository,
    make_bookmark: MakeBookmark,
) -> None:
    old = utcnow() - timedelta(days=1)
    bookmark = await make_bookmark(created_at=old, updated_at=old)

    updated = await repository.update(db_session, bookmark, {"title": "Renamed"})

    assert updated.title == "Renamed"
    assert updated.updated_at.replace(tzinfo=None) > old.replace(tzinfo=None)
    assert updated.created_at.replace(tzinfo=None) == old.replace(tzinfo=None)


# =============================================================================
# Toggle favorite
# =============================================================================


async def test__toggle_favorite__flips_flag(
    db_session: AsyncSession,
    repository: BookmarkRepository,
    make_bookmark: MakeBookmark,
) -> None:
    bookmark = await make_bookmark(is_favorite=False)

    toggled = await repository.toggle_favorite(db_session, str(bookmark.id))

    assert toggled.id == bookmark.id
    assert toggled.is_favorite is True


async def test__toggle_favorite__twice_restores_original(
    db_session: AsyncSession,
    repository: BookmarkRepository,
    make_bookmark: MakeBookmark,
) -> None:
    """Test that two toggles cancel out."""
    bookmark = await make_bookmark(is_favorite=True)

    await repository.toggle_favorite(db_session, bookmark.id)
    toggled = await repository.toggle_favorite(db_session, bookmark.id)

    assert toggled.is_favorite is True


async def test__toggle_favorite__not_found(
    db_session: AsyncSession,
    repository: BookmarkRepository,
) -> None:
    with pytest.raises(NotFoundError):
        await repository.toggle_favorite(db_session, str(uuid4()))
    with pytest.raises(NotFoundError):
        await repository.toggle_favorite(db_session, "garbage")
