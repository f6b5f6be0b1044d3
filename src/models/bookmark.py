"""Bookmark model for storing saved links."""
from sqlalchemy import Boolean, String, Text, UniqueConstraint, false
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin, UUIDv7Mixin


class Bookmark(Base, UUIDv7Mixin, TimestampMixin):
    """Bookmark model - stores a URL with a title, optional description and favorite flag."""

    __tablename__ = "bookmarks"
    __table_args__ = (
        # Authoritative uniqueness guard; the service pre-check only gives a nicer error
        UniqueConstraint("url", name="uq_bookmarks_url"),
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_favorite: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Bookmark id={self.id} url={self.url!r}>"
