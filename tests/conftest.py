"""
Test infrastructure for the Product Catalog API.

Strategy
--------
- SQLite in-memory via aiosqlite replaces Postgres; StaticPool keeps every
  session on the one connection that owns the in-memory database.
- ``get_db`` is overridden so requests use the test session factory.
  Like the production dependency it never commits; writes commit in the
  service layer.
- ``get_cache`` is overridden with a fresh ``CacheManager`` on an
  ``InMemoryCacheBackend`` per test, so cache population and invalidation
  are exercised for real without a Redis server.
- Tables are created before each test and dropped after.
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from catalog.cache import CacheManager, InMemoryCacheBackend
from catalog.database import Base, get_db
from catalog.dependencies import get_cache
from catalog.main import app
from catalog.middleware import install_query_counter

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

install_query_counter(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def cache_manager() -> CacheManager:
    """A cache facade on a private in-memory backend, wired into the app."""
    manager = CacheManager(InMemoryCacheBackend())
    app.dependency_overrides[get_cache] = lambda: manager
    yield manager
    app.dependency_overrides.pop(get_cache, None)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """Yield a live AsyncSession for service-level tests."""
    async with async_session_test() as session:
        yield session


@pytest.fixture
def session_factory() -> async_sessionmaker:
    """The test session factory, for opening a second independent session."""
    return async_session_test


@pytest_asyncio.fixture
async def async_client(cache_manager: CacheManager) -> AsyncClient:
    """httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


LAPTOP = {
    "name": "Laptop",
    "price": 1299.99,
    "description": "A high-performance laptop",
    "stock": 5,
}


@pytest.fixture
def laptop() -> dict:
    return dict(LAPTOP)


class FakeClock:
    """Manually advanced stand-in for ``time.monotonic``."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
