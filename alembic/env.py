"""Alembic migration environment.

The URL always comes from ``DATABASE_URL`` (via settings), rewritten for
asyncpg; ``sqlalchemy.url`` in alembic.ini is ignored. Online runs are
timed and reported through the database event logger.
"""

import asyncio
import time
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from gtm_workspace.core.config import get_settings
from gtm_workspace.core.database import Base, to_async_url
from gtm_workspace.core.logging import db_logger

# Registers the tables on Base.metadata
from gtm_workspace.models import Workspace, WorkspaceCollaborator  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _database_url() -> str:
    return to_async_url(str(get_settings().database_url))


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of connecting."""
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def _apply(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    settings = get_settings()
    revision = str(context.get_head_revision() or "base")
    engine = create_async_engine(
        _database_url(),
        poolclass=pool.NullPool,
        connect_args={
            "timeout": settings.db_connect_timeout,
            "command_timeout": settings.db_command_timeout,
        },
    )

    db_logger.migration_started(revision)
    started = time.monotonic()
    success = False
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_apply)
        success = True
    finally:
        db_logger.migration_finished(revision, success, (time.monotonic() - started) * 1000)
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
