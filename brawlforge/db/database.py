"""
Database engine and session management.

One async engine per process. The import pipeline opens its own short
sessions through async_session_factory (one per batch); request handlers
get theirs from get_session.
"""

from collections.abc import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from brawlforge.config import settings
from brawlforge.models.db import Base


def create_engine(database_url: str | None = None, echo: bool | None = None) -> AsyncEngine:
    """
    Create an async engine for database_url (defaults to settings).

    SQLite connections get foreign key enforcement switched on so card
    deletes cascade to search terms the same way they do on Postgres.
    """
    url = database_url or settings.database_url
    new_engine = create_async_engine(
        url,
        echo=settings.debug if echo is None else echo,
        pool_pre_ping=True,
    )

    if new_engine.dialect.name == "sqlite":

        @event.listens_for(new_engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _connection_record) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory with the settings every caller in this package expects."""
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = create_engine()

async_session_factory = create_session_factory(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides a database session.

    Usage in FastAPI:
        @router.get("/cards/search")
        async def search(session: AsyncSession = Depends(get_session)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError:
            await session.rollback()
            raise


async def init_db(bind: AsyncEngine | None = None) -> None:
    """
    Create the cards, card_search_terms and sets tables if missing.

    Called once at application startup and before an import job.
    """
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db(bind: AsyncEngine | None = None) -> None:
    """
    Drop all tables.

    WARNING: Destroys all imported cards. Use only for testing.
    """
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
