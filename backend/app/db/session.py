"""
Database session management.

WHY: Async database sessions are required for FastAPI's async/await pattern.
One session per request is the unit of work: it commits when the handler
returns and rolls back when anything raises.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator, Any, Dict
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from app.core.config import settings


def _engine_options(url: str) -> Dict[str, Any]:
    """
    Build engine keyword arguments for the configured backend.

    WHY: SQLite (local runs, tests) uses a singleton pool that rejects
    pool sizing arguments; PostgreSQL gets a bounded connection pool.
    """
    options: Dict[str, Any] = {"echo": settings.DEBUG, "pool_pre_ping": True}
    if not url.startswith("sqlite"):
        options.update(pool_size=10, max_overflow=20)
    return options


engine = create_async_engine(
    settings.async_database_url,
    **_engine_options(settings.async_database_url),
)

# WHY: expire_on_commit=False prevents lazy-loading issues after commit.
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency to get database session.

    WHY: FastAPI dependency injection ensures each request gets its own
    database session. The try/except/finally ensures the request either
    commits as a whole or leaves nothing behind.

    Yields:
        AsyncSession: Database session for the request
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@asynccontextmanager
async def atomic(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Run a block of writes as one all-or-nothing unit.

    WHAT: Rolls back every pending change in the session when the block
    raises, then re-raises.

    WHY: Multi-row side effects (lead conversion, project creation, team
    assignment) must never leave partial state behind. The whole session
    transaction is rolled back, so callers commit anything that must
    survive (confirmed ERP identifiers) before entering the block.

    Usage:
        async with atomic(db):
            await lead_dao.change_status(...)
            await project_dao.create(...)

    Args:
        session: The request's database session

    Yields:
        The same session
    """
    try:
        yield session
        await session.flush()
    except Exception:
        await session.rollback()
        raise
