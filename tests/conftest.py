import asyncio
import os
import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Set testing environment variable
os.environ["TESTING"] = "1"

from badge_registry.main import app  # noqa: E402
from badge_registry.models import Base  # noqa: E402
from badge_registry.core.config import settings  # noqa: E402
from badge_registry.core.context import ExecutionContext  # noqa: E402
from badge_registry.core.database import get_db  # noqa: E402
from badge_registry.repositories.unit_of_work import SqlAlchemyUnitOfWork  # noqa: E402
from badge_registry.services.registry_service import RegistryService  # noqa: E402


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def async_engine():
    """Create an async engine for testing."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def async_session(async_engine):
    """Create an async session for testing."""
    async_session_maker = async_sessionmaker(
        async_engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def uow(async_session):
    return SqlAlchemyUnitOfWork(async_session)


@pytest_asyncio.fixture
async def registry(uow):
    """Registry service bound to the test session with its own lock."""
    return RegistryService(uow, lock=asyncio.Lock())


@pytest.fixture
def ctx():
    """Build an execution context: ctx("alice", block_height=10)."""
    def _ctx(caller: str = "alice", block_height: int = 0) -> ExecutionContext:
        return ExecutionContext(caller=caller, block_height=block_height)
    return _ctx


@pytest.fixture
def restore_settings():
    """Restore registry toggles a test flips."""
    original = (settings.TRACK_REGISTRY_STATS, settings.PERSIST_BADGE_EXPIRY)
    yield settings
    settings.TRACK_REGISTRY_STATS, settings.PERSIST_BADGE_EXPIRY = original


@pytest_asyncio.fixture
async def override_get_db(async_session):
    """Override the get_db dependency."""

    async def _override_get_db():
        try:
            yield async_session
            await async_session.commit()
        except Exception:
            await async_session.rollback()
            raise

    return _override_get_db


@pytest_asyncio.fixture
async def client(override_get_db):
    """Create test client with overridden database."""
    from httpx import ASGITransport

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def auth():
    """Bearer header for a principal: auth("alice")."""
    def _auth(principal: str) -> dict:
        return {"Authorization": f"Bearer {principal}"}
    return _auth


@pytest.fixture
def admin_headers():
    return {"X-Admin-Token": settings.ADMIN_TOKEN}
