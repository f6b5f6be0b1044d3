"""FastAPI dependencies for injection."""
from fastapi import Request

from db.session import get_async_session
from services.bookmark_service import BookmarkService


def get_bookmark_service(request: Request) -> BookmarkService:
    """Return the service instance built once by `create_app`."""
    return request.app.state.bookmark_service


__all__ = [
    "get_async_session",
    "get_bookmark_service",
]
