"""
Alembic Migration Environment
===============================

What:  Runs the users / bootcamps / courses migrations against DATABASE_URL.
How:   The URL comes from devcamper.config, never from alembic.ini. Online
       runs open a NullPool async engine and hand a sync connection to
       Alembic; SQLite gets batch mode so ALTERs become table rebuilds.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from devcamper.config import settings
from devcamper.database import Base
from devcamper.models import bootcamp, course, user  # noqa: F401

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)

DATABASE_URL = settings.database_url
IS_SQLITE = DATABASE_URL.startswith("sqlite")


def _configure(**options) -> None:
    context.configure(
        target_metadata=Base.metadata,
        compare_type=True,
        render_as_batch=IS_SQLITE,
        **options,
    )


def run_migrations_offline() -> None:
    """Print the migration SQL instead of executing it."""
    _configure(url=DATABASE_URL, literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def _migrate(connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    engine = create_async_engine(DATABASE_URL, poolclass=NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
