"""
Notes API Backend: Database Session Management
===============================================

What:  Async SQLAlchemy engine, session factory, and the FastAPI session dependency.
How:   `Database` is built from an explicit `Settings` object at startup and
       stored on `app.state.database`. Each request gets its own session that
       commits on success and rolls back on error.

Connection Pooling:
    pool_size / max_overflow come from settings.
    pool_pre_ping validates pooled connections before use.
    pool_recycle=3600 recycles connections every hour.
"""

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from notes_api.config import Settings


class Base(DeclarativeBase):
    """Base class for all ORM models; shares one metadata object with Alembic."""
    pass


class Database:
    """
    Owns the connection pool and hands out per-request sessions.

    One instance per application. Nothing here is module-global, so tests
    can build an app against a different URL without patching imports.
    """

    def __init__(self, settings: Settings):
        engine_kwargs = {
            "pool_pre_ping": settings.db_pool_pre_ping,
            "echo": settings.log_level == "DEBUG",
        }
        # SQLite (used for local experiments) has no queue pool to size
        if not settings.database_url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_recycle=3600,
            )

        self.engine = create_async_engine(settings.database_url, **engine_kwargs)

        # expire_on_commit=False: response models are built after commit
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def ping(self) -> None:
        """Run `SELECT 1`; raises whatever the driver raises when unreachable."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        """Close every pooled connection (application shutdown)."""
        await self.engine.dispose()


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the application's session factory
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back and re-raises so the exception handlers
           can build the response
        5. Always: closes the session (returns the connection to the pool)

    Example usage in a route:
        @router.get("/notes")
        async def list_notes(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
