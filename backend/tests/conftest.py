"""
AntibioStock Backend: Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session: AsyncMock session, for checks that must happen before any query
    ├── recording_session: mock_db_session that runs through db.begin(), for SQL assertions
    ├── db_engine: aiosqlite engine on a fresh temporary file, tables created
    ├── session_factory: async_sessionmaker bound to db_engine
    ├── db_session: one AsyncSession from session_factory
    ├── seeded: db_engine filled with the reference inventory below
    └── test_client: HTTPX AsyncClient against the app, sessions from session_factory

Reference inventory (seeded):
    antibiotics   AMX Amoxicilina     10 / min 5
                  AZI Azitromicina     4 / min 4   (low)
                  CIP Ciprofloxacino   3 / min 2
                  GEN Gentamicina      2 / min 2   (low)
                  VAN Vancomicina      0 / min 1   (low)
    antibiograms  3 Urocultivo  → AMX, CIP
                  4 Hemocultivo → (none)

SQLite ignores FOR UPDATE, so the SQLite tests cover the check-then-write
logic and rollback behavior. The row locks themselves are checked by
rendering the executed statements with the PostgreSQL dialect.
"""

import os
import tempfile
from typing import Dict, List
from unittest.mock import AsyncMock, MagicMock

# Must be set BEFORE any antibiostock import: the engine is built at import time
_TEST_DB_DIR = tempfile.mkdtemp(prefix="antibiostock_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DB_DIR}/app.db"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["CORS_ORIGINS"] = "*"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from antibiostock.database import Base, dispose_engine, get_db_session
from antibiostock.models.inventory import (
    Antibiogram,
    AntibiogramAntibiotic,
    Antibiotic,
    Outflow,
)


# ══════════════════════════════════════════════════════════════════════════
# Mock Session
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    A MagicMock that simulates AsyncSession behavior.

    Usage:
        with pytest.raises(ValidationError):
            await stock_service.subtract_stock(mock_db_session, "AMX", 0)
        mock_db_session.execute.assert_not_awaited()
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    session.begin = MagicMock()
    return session


class _Transaction:
    """Stands in for the object returned by session.begin(); never swallows errors."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


@pytest.fixture
def recording_session(mock_db_session):
    """
    Mock session that lets a service run inside `async with db.begin()`.

    Statements passed to execute() can be rendered as PostgreSQL SQL with
    postgres_sql(), which shows the row locks SQLite would drop.
    """
    mock_db_session.begin = MagicMock(return_value=_Transaction())
    return mock_db_session


def postgres_sql(session) -> List[str]:
    return [
        str(call.args[0].compile(dialect=postgresql.dialect()))
        for call in session.execute.await_args_list
    ]


# ══════════════════════════════════════════════════════════════════════════
# Real (SQLite) Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'inventory.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded(session_factory):
    """Loads the reference inventory described in the module docstring."""
    async with session_factory() as session:
        async with session.begin():
            session.add_all([
                Antibiotic(code="AMX", name="Amoxicilina", quantity=10, threshold=5),
                Antibiotic(code="AZI", name="Azitromicina", quantity=4, threshold=4),
                Antibiotic(code="CIP", name="Ciprofloxacino", quantity=3, threshold=2),
                Antibiotic(code="GEN", name="Gentamicina", quantity=2, threshold=2),
                Antibiotic(code="VAN", name="Vancomicina", quantity=0, threshold=1),
                Antibiogram(id=3, name="Urocultivo"),
                Antibiogram(id=4, name="Hemocultivo"),
            ])
            await session.flush()
            session.add_all([
                AntibiogramAntibiotic(antibiogram_id=3, antibiotic_code="AMX"),
                AntibiogramAntibiotic(antibiogram_id=3, antibiotic_code="CIP"),
            ])
    return session_factory


# ── Read-back helpers (fresh session each time, so nothing is cached) ────

async def read_quantities(factory) -> Dict[str, int]:
    async with factory() as session:
        result = await session.execute(select(Antibiotic.code, Antibiotic.quantity))
        return {code: quantity for code, quantity in result.all()}


async def read_assigned_codes(factory, antibiogram_id: int):
    async with factory() as session:
        result = await session.execute(
            select(AntibiogramAntibiotic.antibiotic_code)
            .where(AntibiogramAntibiotic.antibiogram_id == antibiogram_id)
            .order_by(AntibiogramAntibiotic.antibiotic_code)
        )
        return list(result.scalars().all())


async def read_outflows(factory):
    async with factory() as session:
        result = await session.execute(select(Outflow).order_by(Outflow.id))
        return list(result.scalars().all())


async def count_outflows(factory) -> int:
    async with factory() as session:
        return (await session.execute(select(func.count(Outflow.id)))).scalar_one()


# ══════════════════════════════════════════════════════════════════════════
# HTTP Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(seeded):
    """
    HTTPX AsyncClient talking to the app through ASGITransport.

    get_db_session is overridden with the same commit/rollback/close
    semantics, backed by the seeded test database.
    """
    from antibiostock.main import app

    async def override_get_db_session():
        async with seeded() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
    # /api/health and /api/dbcheck use the app engine directly
    await dispose_engine()
