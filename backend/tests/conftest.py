"""Shared fixtures: a fresh SQLite database per test and an API client bound to it."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from synoptics.database import Base, enable_sqlite_foreign_keys, get_db
from synoptics.integrations import BillingSyncError, get_billing_sync, get_blob_store
from synoptics.main import app

TEST_USER_ID = "user-1"


class FakeBlobStore:
    """Blob store that remembers which keys were deleted."""

    def __init__(self):
        self.deleted: list[str] = []

    def delete(self, key: str) -> None:
        self.deleted.append(key)

    def signed_url(self, key: str, expires_in: int) -> str:
        return f"https://blobs.test/{key}?expires_in={expires_in}"


class RecordingBillingSync:
    """Billing sync that records calls and can be told to fail."""

    def __init__(self):
        self.calls: list[int] = []
        self.fail = False

    async def sync_subscription_quantity(self, team_id: int) -> None:
        self.calls.append(team_id)
        if self.fail:
            raise BillingSyncError("billing provider unavailable")


@pytest.fixture
async def engine(tmp_path):
    """File-backed SQLite so concurrent sessions get their own connections."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'synoptics-test.db'}")
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def blob_store():
    return FakeBlobStore()


@pytest.fixture
def billing():
    return RecordingBillingSync()


@pytest.fixture
async def client(session_factory, blob_store, billing):
    """API client whose requests hit the per-test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_billing_sync] = lambda: billing
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-User-Id": TEST_USER_ID},
    ) as client:
        yield client
    app.dependency_overrides.clear()
