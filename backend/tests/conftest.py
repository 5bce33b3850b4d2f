"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import NullPool, StaticPool

from backend.app.main import app
from backend.app.db.session import get_db, get_ledger_storage, Base
from backend.app.db.ledger_storage import LedgerStorage
from backend.app.core.jwt import create_access_token
from backend.app.domain.wallet.authorization import CallerContext
from backend.app.models.harvest_picker import HarvestPicker

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_UID = "uid-manager"
TEST_USERNAME = "farm.manager"


def enable_sqlite_foreign_keys(engine):
    """Enable foreign key constraints for SQLite connections of ``engine``."""

    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def make_storage(session_factory, max_attempts: int = 5) -> LedgerStorage:
    """Ledger storage with short retry waits for tests."""
    return LedgerStorage(
        session_factory,
        max_attempts=max_attempts,
        wait_min=0.001,
        wait_max=0.01,
    )


@pytest.fixture
async def engine():
    """Fresh in-memory database per test."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(test_engine)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
async def file_engine(tmp_path):
    """
    File-backed database for concurrency tests.

    NullPool gives every session its own connection, so concurrent
    transactions really interleave instead of sharing one connection.
    """
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}",
        connect_args={"timeout": 30},
        poolclass=NullPool,
    )
    enable_sqlite_foreign_keys(test_engine)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest.fixture
def storage(session_factory):
    return make_storage(session_factory)


@pytest.fixture
def caller():
    return CallerContext(uid=TEST_UID, username=TEST_USERNAME)


@pytest.fixture
def fetch(session_factory):
    """Read a row through a new session so committed state is observed."""

    async def _fetch(model, key):
        async with session_factory() as session:
            return await session.get(model, key)

    return _fetch


@pytest.fixture
def add_pickers(session_factory):
    """Create harvest pickers for a collection."""

    async def _add_pickers(collection_id: str, pickers, company_id: str = "acme"):
        async with session_factory() as session:
            for number, (picker_id, total_pay, is_paid) in enumerate(pickers, start=1):
                session.add(HarvestPicker(
                    id=picker_id,
                    company_id=company_id,
                    collection_id=collection_id,
                    picker_number=number,
                    picker_name=f"Picker {number}",
                    total_kg=float(total_pay) / 10,
                    total_pay=total_pay,
                    is_paid=is_paid,
                ))
            await session.commit()

    return _add_pickers


@pytest.fixture
async def client(session_factory, storage):
    """Async client for testing, bound to the per-test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    def override_get_ledger_storage():
        return storage

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ledger_storage] = override_get_ledger_storage

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides = {}


@pytest.fixture
def auth_headers():
    token = create_access_token({"sub": TEST_UID, "username": TEST_USERNAME})
    return {"Authorization": f"Bearer {token}"}
