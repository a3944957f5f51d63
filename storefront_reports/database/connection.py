"""
Database Connection Management

Async SQLAlchemy engine for the storefront database. Reports only read;
the seeder is the one writer.
"""

import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

import structlog
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from storefront_reports.config import get_settings
from .models import Base

logger = structlog.get_logger(__name__)

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def _engine_options(url: str) -> Dict[str, Any]:
    settings = get_settings().database
    options: Dict[str, Any] = {"echo": settings.echo}
    # SQLite (tests, local demos) keeps SQLAlchemy's default pool
    if make_url(url).get_backend_name() != "sqlite":
        options.update(
            pool_size=settings.pool_size,
            max_overflow=settings.pool_size // 2,
            pool_pre_ping=True,
        )
    return options


async def init_database(url: Optional[str] = None) -> AsyncEngine:
    """
    Initialize the database engine.

    Args:
        url: Async database URL, defaults to the configured Postgres URL

    Returns:
        AsyncEngine: The initialized database engine
    """
    global _engine, _session_factory

    if _engine is not None:
        logger.warning("Database already initialized")
        return _engine

    url = url or get_settings().database.async_url
    _engine = create_async_engine(url, **_engine_options(url))
    _session_factory = async_sessionmaker(bind=_engine, expire_on_commit=False, autoflush=False)

    try:
        async with _engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        await close_database()
        raise

    logger.info("Database connection established", url=_engine.url.render_as_string(hide_password=True))
    return _engine


async def create_tables() -> None:
    """Create the storefront tables if they do not exist"""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Storefront tables ready", tables=sorted(Base.metadata.tables))


async def close_database() -> None:
    """Dispose of the engine and forget the session factory"""
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
        logger.info("Database connection closed")


def get_engine() -> AsyncEngine:
    """
    Get the database engine.

    Raises:
        RuntimeError: If database is not initialized
    """
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _engine


@asynccontextmanager
async def get_db(readonly: bool = False) -> AsyncGenerator[AsyncSession, None]:
    """
    Get a database session.

    Writable sessions commit on success and roll back on error. Read-only
    sessions never commit; their transaction is rolled back on close.

    Example:
        async with get_db(readonly=True) as db:
            result = await db.execute(query)
    """
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")

    async with _session_factory() as session:
        try:
            yield session
            if not readonly:
                await session.commit()
        except Exception as e:
            logger.error("Database session error, rolling back", error=str(e), error_type=type(e).__name__)
            await session.rollback()
            raise


@asynccontextmanager
async def read_session() -> AsyncGenerator[AsyncSession, None]:
    """Read-only session used by report data sources"""
    async with get_db(readonly=True) as session:
        yield session


async def check_database_health() -> dict:
    """
    Check database health status.

    Returns:
        dict: Health status with latency information
    """
    if _engine is None:
        return {"status": "unhealthy", "error": "not initialized"}

    try:
        start = time.perf_counter()
        async with _engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"status": "healthy", "latency_ms": round((time.perf_counter() - start) * 1000, 2)}
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}
