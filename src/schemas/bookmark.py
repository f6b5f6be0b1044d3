"""Pydantic schemas for bookmark (link) endpoints."""
import math
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import (
    AnyUrl,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from core.config import get_settings

_URL_ADAPTER = TypeAdapter(AnyUrl)


class LinkSort(StrEnum):
    """Supported orderings for link listings."""

    NEWEST = "newest"
    OLDEST = "oldest"
    TITLE = "title"
    FAVORITES = "favorites"


def validate_url(url: str) -> str:
    """
    Validate that a string is an absolute URL.

    The original string is returned untouched: uniqueness is an exact string match, so
    the stored value must be exactly what the user submitted.
    """
    try:
        parsed = _URL_ADAPTER.validate_python(url)
    except ValidationError as e:
        raise ValueError("Must be a valid URL") from e
    if not parsed.scheme or not (parsed.host or parsed.path):
        raise ValueError("Must be a valid URL")
    return url


def validate_title(title: str) -> str:
    """Validate that title is non-empty and doesn't exceed maximum length."""
    settings = get_settings()
    if not title.strip():
        raise ValueError("Title is required")
    if len(title) > settings.max_title_length:
        raise ValueError(
            f"Title must be at most {settings.max_title_length} characters "
            f"(got {len(title):,} characters).",
        )
    return title


def validate_description_length(description: str | None) -> str | None:
    """Validate that description doesn't exceed maximum length."""
    settings = get_settings()
    if description is not None and len(description) > settings.max_description_length:
        raise ValueError(
            f"Description must be at most {settings.max_description_length} characters "
            f"(got {len(description):,} characters).",
        )
    return description


class CamelModel(BaseModel):
    """Base model exposing camelCase JSON while keeping snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LinkCreate(CamelModel):
    """Schema for creating a new bookmark."""

    title: str
    url: str
    description: str | None = None
    is_favorite: bool = False

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str) -> str:
        """Require a non-empty title within the length limit."""
        return validate_title(v)

    @field_validator("url")
    @classmethod
    def check_url(cls, v: str) -> str:
        """Require an absolute URL."""
        return validate_url(v)

    @field_validator("description")
    @classmethod
    def check_description(cls, v: str | None) -> str | None:
        """Validate description length."""
        return validate_description_length(v)


class LinkUpdate(CamelModel):
    """
    Schema for partially updating a bookmark.

    Only fields present in the request body are applied (`model_dump(exclude_unset=True)`).
    `description` may be explicitly set to null to clear it; the other fields may be
    omitted but not nulled.
    """

    title: str | None = None
    url: str | None = None
    description: str | None = None
    is_favorite: bool | None = None

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str | None) -> str | None:
        """Validate title when provided."""
        if v is None:
            return None
        return validate_title(v)

    @field_validator("url")
    @classmethod
    def check_url(cls, v: str | None) -> str | None:
        """Validate URL when provided."""
        if v is None:
            return None
        return validate_url(v)

    @field_validator("description")
    @classmethod
    def check_description(cls, v: str | None) -> str | None:
        """Validate description length."""
        return validate_description_length(v)

    @model_validator(mode="after")
    def reject_null_required_fields(self) -> "LinkUpdate":
        """Reject explicit nulls for fields that cannot be empty."""
        for field in ("title", "url", "is_favorite"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{to_camel(field)} cannot be null")
        return self


class LinkQuery(CamelModel):
    """Validated query parameters for listing bookmarks."""

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    search: str | None = None
    sort: LinkSort = LinkSort.NEWEST
    favorite: bool | None = None

    @field_validator("search", mode="before")
    @classmethod
    def blank_search_is_absent(cls, v: Any) -> Any:
        """Treat empty or whitespace-only search strings as no search."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class LinkResponse(CamelModel):
    """
    Schema for bookmark responses.

    Timestamps are always timezone-aware UTC so they serialize as ISO-8601 with an offset.
    Routes serialize with `exclude_none`, so a missing description is omitted entirely.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    id: str
    title: str
    url: str
    description: str | None = None
    is_favorite: bool
    created_at: datetime
    updated_at: datetime

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v: Any) -> str:
        """Expose ids as opaque strings."""
        return str(v)

    @field_validator("description", mode="before")
    @classmethod
    def empty_description_is_absent(cls, v: Any) -> Any:
        """Map empty descriptions to None."""
        return v or None

    @field_validator("created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """Attach UTC to naive datetimes (SQLite drops the offset)."""
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v.astimezone(UTC)


class PaginationInfo(CamelModel):
    """Pagination metadata derived from a query and the filtered total."""

    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def from_total(cls, page: int, limit: int, total: int) -> "PaginationInfo":
        """Compute metadata; `total == 0` yields zero pages and no neighbours."""
        total_pages = math.ceil(total / limit)
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


class PaginatedLinksResponse(CamelModel):
    """List response: one page of bookmarks plus pagination metadata."""

    data: list[LinkResponse]
    pagination: PaginationInfo


class DeleteLinkResponse(CamelModel):
    """Success marker returned by DELETE."""

    success: bool = True
    message: str = "Bookmark deleted successfully"
