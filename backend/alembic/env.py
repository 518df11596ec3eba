"""
Alembic Migration Environment
===============================

What:  Applies the note-store migrations (notes, note_list_items, note_tags).
How:   The URL is DATABASE_URL as read by `notes_api.config.Settings`, so
       `alembic upgrade head` and the running service always target the
       same database. Online migrations go through the async engine.

Usage (from backend/):
    alembic upgrade head
    alembic upgrade head --sql      # print DDL instead of running it
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine
from alembic import context

from notes_api.config import get_settings
from notes_api.database import Base

# Side effect: the three note tables register on Base.metadata
from notes_api.models import note as _note_models  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

DATABASE_URL = get_settings().database_url


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=Base.metadata,
        compare_type=True,
        # SQLite cannot ALTER most columns in place
        render_as_batch=DATABASE_URL.startswith("sqlite"),
        **kwargs,
    )


def run_offline() -> None:
    _configure(url=DATABASE_URL, literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def _migrate(connection: Connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_online() -> None:
    engine = create_async_engine(DATABASE_URL, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_offline()
else:
    asyncio.run(run_online())
