"""Shared test fixtures and configuration for Coachboard backend tests."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["APP_ENV"] = "test"

import pytest
import pytest_asyncio
from typing import AsyncGenerator, Optional
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app
from app.middleware.rate_limit import limiter
from app.auth.utils import create_access_token, get_password_hash
from app.businesses.service import create_business
from app.models import Business, User, SystemRole

TEST_PASSWORD = "password123"


# =============================================================================
# Database
# =============================================================================

@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite database with the full schema."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for arranging and checking test data."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, with get_db bound to the test database."""
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def disable_rate_limits():
    limiter.enabled = False
    yield
    limiter.enabled = True


# =============================================================================
# Factories
# =============================================================================

async def make_user(
    db: AsyncSession,
    email: str,
    system_role: str = SystemRole.CLIENT.value,
    password: Optional[str] = TEST_PASSWORD,
    first_name: str = "Test",
    last_name: str = "User",
) -> User:
    user = User(
        email=email,
        hashed_password=get_password_hash(password) if password else None,
        first_name=first_name,
        last_name=last_name,
        system_role=system_role,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def make_business(
    db: AsyncSession,
    owner: User,
    coach: Optional[User] = None,
    name: str = "Acme Plumbing",
) -> Business:
    business = await create_business(
        db,
        name=name,
        owner=owner,
        industry="Trades",
        assigned_coach_id=coach.id if coach else None,
    )
    await db.commit()
    await db.refresh(business)
    return business


def auth_headers(user: User) -> dict:
    token = create_access_token(user.id, user.email, user.system_role)
    return {"Authorization": f"Bearer {token}"}


# =============================================================================
# Common fixtures
# =============================================================================

@pytest_asyncio.fixture
async def owner(db) -> User:
    return await make_user(db, "owner@acmeplumbing.com", first_name="Olivia", last_name="Owner")


@pytest_asyncio.fixture
async def coach(db) -> User:
    return await make_user(db, "coach@coachboard.io", SystemRole.COACH.value, first_name="Carl", last_name="Coach")


@pytest_asyncio.fixture
async def admin(db) -> User:
    return await make_user(db, "admin@coachboard.io", SystemRole.SUPER_ADMIN.value, first_name="Ada", last_name="Admin")


@pytest_asyncio.fixture
async def outsider(db) -> User:
    return await make_user(db, "sam@stranger.net", first_name="Sam", last_name="Stranger")


@pytest_asyncio.fixture
async def business(db, owner, coach) -> Business:
    return await make_business(db, owner, coach)
