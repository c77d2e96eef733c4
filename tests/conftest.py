"""
Test infrastructure for the Conduit API.

Strategy
--------
- SQLite in-memory via aiosqlite, so no running Postgres is needed.
- StaticPool makes every session share the one in-memory connection; a
  second connection would see an empty database.
- ``configure_sqlite`` turns on foreign keys (cascades) and explicit BEGIN
  handling so SAVEPOINT rollbacks behave as they do on Postgres.
- ``get_db`` is overridden so HTTP requests use the test session factory.
- Tables are created before and dropped after every test.
- bcrypt runs at its minimum cost so registration stays fast.
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from conduit.config import settings
from conduit.database import Base, configure_sqlite, get_db
from conduit.dependencies import (
    get_article_service,
    get_auth_service,
    get_comment_service,
    get_favorite_service,
    get_profile_service,
)
from conduit.main import app
from conduit.middleware import install_query_counter

settings.BCRYPT_ROUNDS = 4

# ---------------------------------------------------------------------------
# Test database engine
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

configure_sqlite(engine_test)
install_query_counter(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ---------------------------------------------------------------------------
# Dependency override
# ---------------------------------------------------------------------------

async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
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


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """A live session for service-level tests and direct ORM assertions."""
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """httpx client wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


class Services:
    """The service objects a request would get, bound to one session."""

    def __init__(self, session: AsyncSession) -> None:
        self.auth = get_auth_service(session)
        self.articles = get_article_service(session)
        self.profiles = get_profile_service(session)
        self.favorites = get_favorite_service(session)
        self.comments = get_comment_service(session)


@pytest.fixture
def services(db_session: AsyncSession) -> Services:
    return Services(db_session)
