"""
Test infrastructure for the Blog API.

Strategy
--------
- SQLite in-memory via aiosqlite eliminates the need for a running Postgres
  instance in CI, keeping the suite fast and self-contained.
- StaticPool forces all async tasks to share the same in-memory database
  connection, which is required because SQLite in-memory databases are
  connection-scoped; a new connection would see an empty database.
- SQLite ignores foreign keys unless asked; the connect hook turns them on so
  ``ON DELETE CASCADE`` / ``SET NULL`` behave as they do on Postgres.
- The app's get_db dependency is overridden so every test-time request uses
  the test session factory rather than the production one.
- All tables are created fresh before each test and dropped after, giving
  each test a clean isolated state without needing transactions or truncation.
- Actors are plain bearer tokens minted with ``create_access_token``; the
  ``make_user`` / ``auth_headers`` factories cover the common setup.
"""
import itertools

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app
from app.models import Category, Group, User
from app.permissions import Role
from app.security import create_access_token

# ---------------------------------------------------------------------------
# Test database engine - SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine_test.sync_engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ---------------------------------------------------------------------------
# Dependency override - replace production get_db with the test session factory
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
    """
    Yield a live AsyncSession for tests that need to interact with the
    database directly (e.g. seeding data, asserting ORM state).
    """
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def make_user():
    """
    Factory committing a User with the given role in its own session, so the
    row is visible to request sessions straight away.
    """
    counter = itertools.count(1)

    async def _make_user(role: Role = Role.USER, nickname: str | None = None) -> User:
        n = next(counter)
        async with async_session_test() as session:
            user = User(
                username=f"{role.value}_{n}",
                email=f"{role.value}_{n}@example.com",
                nickname=nickname or f"{role.value.title()} {n}",
                role=role,
            )
            session.add(user)
            await session.commit()
            return user

    return _make_user


@pytest.fixture
def auth_headers():
    """Build an Authorization header for a user (or an explicit id/role pair)."""

    def _auth_headers(user: User | None = None, *, user_id: int | None = None, role: Role | None = None) -> dict:
        if user is not None:
            user_id, role = user.id, user.role
        return {"Authorization": f"Bearer {create_access_token(user_id, role)}"}

    return _auth_headers


@pytest.fixture
def make_category():
    """Factory committing a Category, creating its Group on first use."""

    async def _make_category(label: str = "Backend", group_label: str | None = "Dev") -> Category:
        async with async_session_test() as session:
            group = None
            if group_label is not None:
                group = (
                    await session.execute(select(Group).where(Group.label == group_label))
                ).scalar_one_or_none()
                if group is None:
                    group = Group(label=group_label)
                    session.add(group)
            category = Category(label=label, group=group)
            session.add(category)
            await session.commit()
            return category

    return _make_category
