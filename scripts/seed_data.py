"""Seed script to populate the local dev database with sample bookmarks.

Usage:
    PYTHONPATH=src python scripts/seed_data.py populate
    PYTHONPATH=src python scripts/seed_data.py populate --force
    PYTHONPATH=src python scripts/seed_data.py clear
"""

import argparse
import asyncio
from datetime import timedelta

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_settings
from core.logging import configure_logging
from db.session import create_engine, create_session_factory
from models import Base, Bookmark
from models.base import utcnow

BOOKMARKS = [
    {
        "title": "Next.js Documentation",
        "url": "https://nextjs.org/docs",
        "description": "The official Next.js documentation and guides",
        "is_favorite": True,
    },
    {
        "title": "TypeScript Handbook",
        "url": "https://www.typescriptlang.org/docs/",
        "description": "Complete guide to TypeScript programming language",
        "is_favorite": True,
    },
    {
        "title": "Prisma Documentation",
        "url": "https://www.prisma.io/docs",
        "description": "Database toolkit and ORM for Node.js and TypeScript",
        "is_favorite": False,
    },
    {
        "title": "Tailwind CSS",
        "url": "https://tailwindcss.com/docs",
        "description": "Utility-first CSS framework for rapid UI development",
        "is_favorite": True,
    },
    {
        "title": "React Documentation",
        "url": "https://react.dev/learn",
        "description": "Learn React with interactive examples and tutorials",
        "is_favorite": False,
    },
    {
        "title": "GitHub",
        "url": "https://github.com",
        "description": "Code hosting platform for version control and collaboration",
        "is_favorite": True,
    },
    {
        "title": "Stack Overflow",
        "url": "https://stackoverflow.com",
        "description": "Community-driven Q&A for developers",
        "is_favorite": False,
    },
    {
        "title": "MDN Web Docs",
        "url": "https://developer.mozilla.org",
        "description": "Resources for developers, by developers",
        "is_favorite": True,
    },
    {
        "title": "Vercel",
        "url": "https://vercel.com",
        "description": "Frontend cloud platform for developers",
        "is_favorite": False,
    },
    {
        "title": "Node.js",
        "url": "https://nodejs.org",
        "description": "JavaScript runtime built on Chrome's V8 JavaScript engine",
        "is_favorite": False,
    },
    {
        "title": "Docker",
        "url": "https://www.docker.com",
        "description": "Containerization platform for applications",
        "is_favorite": False,
    },
    {
        "title": "AWS",
        "url": "https://aws.amazon.com",
        "description": "Cloud computing services by Amazon",
        "is_favorite": True,
    },
    {
        "title": "Figma",
        "url": "https://www.figma.com",
        "description": "Collaborative interface design tool",
        "is_favorite": False,
    },
    {
        "title": "Notion",
        "url": "https://www.notion.so",
        "description": "All-in-one workspace for notes, docs, and collaboration",
        "is_favorite": True,
    },
    {
        "title": "Linear",
        "url": "https://linear.app",
        "description": "Issue tracking and project management tool",
        "is_favorite": False,
    },
    {
        "title": "Postman",
        "url": "https://www.postman.com",
        "description": "API development and testing platform",
        "is_favorite": False,
    },
    {
        "title": "VS Code",
        "url": "https://code.visualstudio.com",
        "description": "Free source-code editor by Microsoft",
        "is_favorite": True,
    },
    {
        "title": "JetBrains",
        "url": "https://www.jetbrains.com",
        "description": "Professional development tools and IDEs",
        "is_favorite": False,
    },
    {
        "title": "npm",
        "url": "https://www.npmjs.com",
        "description": "Package manager for JavaScript",
        "is_favorite": False,
    },
    {
        "title": "Yarn",
        "url": "https://yarnpkg.com",
        "description": "Fast, reliable, and secure dependency management",
        "is_favorite": False,
    },
    {
        "title": "Webpack",
        "url": "https://webpack.js.org",
        "description": "Module bundler for JavaScript applications",
        "is_favorite": False,
    },
    {
        "title": "Vite",
        "url": "https://vitejs.dev",
        "description": "Next generation frontend tooling",
        "is_favorite": True,
    },
    {
        "title": "ESLint",
        "url": "https://eslint.org",
        "description": "Static analysis tool for JavaScript",
        "is_favorite": False,
    },
    {
        "title": "Prettier",
        "url": "https://prettier.io",
        "description": "Code formatter for JavaScript, CSS, and more",
        "is_favorite": False,
    },
    {
        "title": "Jest",
        "url": "https://jestjs.io",
        "description": "JavaScript testing framework",
        "is_favorite": False,
    },
    {
        "title": "Vitest",
        "url": "https://vitest.dev",
        "description": "Fast unit test framework powered by Vite",
        "is_favorite": True,
    },
    {
        "title": "Playwright",
        "url": "https://playwright.dev",
        "description": "End-to-end testing framework",
        "is_favorite": False,
    },
    {
        "title": "Cypress",
        "url": "https://www.cypress.io",
        "description": "Frontend testing tool for web applications",
        "is_favorite": False,
    },
    {
        "title": "Storybook",
        "url": "https://storybook.js.org",
        "description": "Tool for building UI components in isolation",
        "is_favorite": False,
    },
    {
        "title": "Framer Motion",
        "url": "https://www.framer.com/motion",
        "description": "Production-ready motion library for React",
        "is_favorite": False,
    },
]


async def count_bookmarks(session: AsyncSession) -> int:
    return (await session.execute(select(func.count()).select_from(Bookmark))).scalar_one()


async def clear_data(session: AsyncSession) -> None:
    """Delete every bookmark."""
    count = await count_bookmarks(session)
    await session.execute(delete(Bookmark))
    await session.flush()
    print(f"  Deleted {count} bookmarks")


async def create_bookmarks(session: AsyncSession) -> None:
    """
    Insert the sample bookmarks.

    Creation times are spaced a minute apart (first entry oldest) so that the newest
    and oldest sort orders give visibly different pages.
    """
    start = utcnow() - timedelta(minutes=len(BOOKMARKS))
    for i, data in enumerate(BOOKMARKS):
        created_at = start + timedelta(minutes=i)
        session.add(Bookmark(**data, created_at=created_at, updated_at=created_at))
    await session.flush()
    favorites = sum(1 for b in BOOKMARKS if b["is_favorite"])
    print(f"  Created {len(BOOKMARKS)} bookmarks ({favorites} favorites)")


async def populate(force: bool = False) -> None:
    """Populate the database with seed data."""
    settings = get_settings()
    engine = create_engine(settings)
    session_factory = create_session_factory(engine)

    try:
        if settings.is_sqlite:
            # Local SQLite databases are not migrated; create the table directly
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

        async with session_factory() as session:
            try:
                existing = await count_bookmarks(session)
                if existing > 0:
                    if force:
                        print("Existing data found, clearing first (--force)...")
                        await clear_data(session)
                    else:
                        print(
                            f"Data already exists ({existing} bookmarks). "
                            f"Use --force to clear and re-seed.",
                        )
                        return

                print("Populating seed data...")
                await create_bookmarks(session)
                await session.commit()
                print("Seed data created successfully.")
            except Exception:
                await session.rollback()
                raise
    finally:
        await engine.dispose()


async def clear() -> None:
    """Remove all bookmarks."""
    settings = get_settings()
    engine = create_engine(settings)
    session_factory = create_session_factory(engine)

    try:
        async with session_factory() as session:
            try:
                print("Clearing bookmarks...")
                await clear_data(session)
                await session.commit()
                print("Clear complete.")
            except Exception:
                await session.rollback()
                raise
    finally:
        await engine.dispose()


def main() -> None:
    """Parse arguments and run the requested command."""
    configure_logging(get_settings().log_level)

    parser = argparse.ArgumentParser(description="Seed the dev database with sample bookmarks.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    populate_parser = subparsers.add_parser("populate", help="Populate database with sample data")
    populate_parser.add_argument(
        "--force",
        action="store_true",
        help="Clear existing bookmarks before populating",
    )
    subparsers.add_parser("clear", help="Remove all bookmarks")

    args = parser.parse_args()
    if args.command == "populate":
        asyncio.run(populate(force=args.force))
    elif args.command == "clear":
        asyncio.run(clear())


if __name__ == "__main__":
    main()
