"""
AntibioStock Backend: Database Session Management
==================================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   Creates an async engine with connection pooling, provides a session
       dependency that auto-commits on success and auto-rolls-back on error.
Who:   Used by route handlers via FastAPI's dependency injection system.
When:  Engine is created at module import; sessions are created per-request.

Connection lifecycle:
    The engine (and its pool) is the only process-wide resource. It is
    created once here and disposed in the application lifespan. Every
    request borrows one connection through its session and returns it in
    get_db_session's `finally`, including on every error path. No
    connection outlives the request that acquired it.

Transactions:
    Stock-mutating services open their own transaction with
    `async with db.begin()`, so BEGIN/COMMIT/ROLLBACK brackets exactly the
    locked read-check-write sequence. The commit in get_db_session then
    only finalizes read-only work.
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from antibiostock.config import settings


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(
    settings.database_url,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=settings.db_pool_pre_ping,
    pool_recycle=3600,
    connect_args=settings.db_connect_args,
    echo=settings.log_level == "DEBUG",
)

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: returned ORM rows stay readable after commit
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares one metadata object between the ORM, Alembic autogenerate and
    the test suite's create_all().
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits any transaction still open
        4. On error: rolls back
        5. Always: closes the session (returns connection to pool)

    Example usage in a route:
        @router.get("/antibioticos")
        async def list_antibiotics(db: AsyncSession = Depends(get_db_session)):
            return await stock_service.list_antibiotics(db)

    Raises:
        Any exception is re-raised to the global error handlers.
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
    """Closes all pooled connections; called from the lifespan shutdown."""
    await engine.dispose()
