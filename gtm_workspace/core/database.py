"""Async SQLAlchemy engine, sessions and the request-scoped session dependency."""

import re
import time
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from gtm_workspace.core.config import Settings, get_settings
from gtm_workspace.core.logging import db_logger, get_logger

logger = get_logger(__name__)

_STATEMENT_TABLE = re.compile(r'\b(?:FROM|INTO|UPDATE)\s+"?(\w+)"?', re.IGNORECASE)


class Base(DeclarativeBase):
    """Declarative base for all models."""


def to_async_url(db_url: str) -> str:
    """Point plain ``postgres``/``postgresql`` URLs at the asyncpg driver."""
    url = make_url(db_url)
    if url.drivername in ("postgres", "postgresql"):
        url = url.set(drivername="postgresql+asyncpg")
    return url.render_as_string(hide_password=False)


def _engine_options(settings: Settings) -> dict[str, Any]:
    connect_args: dict[str, Any] = {
        "timeout": settings.db_connect_timeout,
        "command_timeout": settings.db_command_timeout,
    }
    if settings.environment == "production":
        # asyncpg takes ``ssl``, not libpq's ``sslmode``
        connect_args["ssl"] = "require"
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_timeout": settings.db_pool_timeout,
        "pool_pre_ping": True,
        "echo": settings.debug,
        "connect_args": connect_args,
    }


class DatabaseManager:
    """Owns the process-wide engine and session factory."""

    def __init__(self) -> None:
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call init_db() first.")
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            raise RuntimeError("Database not initialized. Call init_db() first.")
        return self._session_factory

    def init_db(self) -> None:
        settings = get_settings()
        db_url = to_async_url(str(settings.database_url))
        try:
            self._engine = create_async_engine(db_url, **_engine_options(settings))
        except Exception as e:
            db_logger.connection_error(e, db_url)
            raise
        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info(
            "Database engine ready",
            extra={"pool_size": settings.db_pool_size, "environment": settings.environment},
        )

    async def close(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Database engine disposed")

    async def check_connection(self) -> bool:
        """Run ``SELECT 1``; False (and a logged error) when the database is unreachable."""
        try:
            async with self.session_factory() as session:
                await session.execute(text("SELECT 1"))
        except Exception as e:
            db_logger.connection_error(e, str(get_settings().database_url))
            return False
        return True


db_manager = DatabaseManager()


def _statement_table(error: SQLAlchemyError) -> str | None:
    match = _STATEMENT_TABLE.search(getattr(error, "statement", None) or "")
    return match.group(1) if match else None


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """One session per request, committed once after the handler returns.

    Any SQLAlchemy error rolls the whole request back, so a failed write
    never leaves a partially persisted workspace.
    """
    threshold_ms = get_settings().db_slow_query_threshold_ms
    async with db_manager.session_factory() as session:
        started = time.monotonic()
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            db_logger.operation_failed(e, "request_transaction", _statement_table(e))
            raise
        finally:
            duration_ms = (time.monotonic() - started) * 1000
            if duration_ms > threshold_ms:
                db_logger.slow_operation("request_transaction", duration_ms)
