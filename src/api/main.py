"""FastAPI application entry point."""
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.errors import register_exception_handlers
from api.routers import health, links
from core.config import Settings, get_settings
from core.logging import configure_logging
from db.session import create_engine, create_session_factory
from repositories.bookmark_repository import BookmarkRepository
from services.bookmark_service import BookmarkService


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan - dispose of the engine on shutdown."""
    yield
    await app.state.engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the application.

    This is the single composition point: the engine, session factory, repository and
    service are created here once and stored on `app.state`; request handlers receive
    them through dependencies in `api.dependencies`.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Markfy API",
        description="A personal bookmarks manager with search, sorting and favorites.",
        version="0.1.0",
        lifespan=lifespan,
    )

    engine = create_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.bookmark_service = BookmarkService(BookmarkRepository())

    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(links.router)
    return app


app = create_app()
