"""
VidTube Backend — Database Session Management
==============================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   An async engine with connection pooling; a session dependency that
       commits when the handler returns and rolls back on error.
Who:   Route handlers via Depends(get_db_session); background tasks via
       async_session_factory directly.

Connection Pooling:
    pool_size / max_overflow / pool_pre_ping come from settings.
    SQLite URLs (used by the test suite) get the driver's default pool,
    since aiosqlite does not accept queue pool sizing for in-memory databases.
"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from vidtube.config import settings


def _engine_options() -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if not settings.is_sqlite:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


# ── Engine & Session Factory ──────────────────────────────────────────────
engine = create_async_engine(settings.database_url, **_engine_options())

# expire_on_commit=False: response models are built from ORM objects after
# the request transaction has committed
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all ORM models; its metadata drives Alembic."""
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides one session (and one transaction) per
    request.

    On success the transaction is committed; on any exception it is rolled
    back and the exception re-raised for the global handlers.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """Closes every pooled connection; called from the shutdown lifespan."""
    await engine.dispose()
