"""Shared fixtures: in-memory database, factories and an ASGI test client."""
import itertools
import uuid

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import lifeline.models  # noqa: F401
from lifeline.database import Base, get_db
from lifeline.main import app
from lifeline.models.account import Account, AccountRole
from lifeline.models.helper import Helper
from lifeline.models.user import User
from lifeline.services.auth import create_access_token
from lifeline.services.locations import LocationStore

_sequence = itertools.count(1)


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(session):
    return LocationStore(session)


@pytest.fixture
def make_helper(session):
    """Create a helper profile, optionally with an account, and commit it."""

    async def factory(
        with_account: bool = True,
        is_verified: bool = True,
        is_available: bool = True,
        is_blocked: bool = False,
        profession: str = "Paramedic",
        response_rate: float = 98,
    ):
        n = next(_sequence)
        helper = Helper(
            profession=profession,
            degree="EMT",
            is_verified=is_verified,
            is_available=is_available,
            response_rate=response_rate,
        )
        session.add(helper)
        await session.flush()

        account = None
        if with_account:
            account = Account(
                name=f"Helper {n}",
                email=f"helper{n}@example.org",
                phone_number=f"+9198{n:08d}",
                role=AccountRole.HELPER,
                helper_id=helper.id,
                is_blocked=is_blocked,
            )
            session.add(account)
        await session.commit()
        return helper, account

    return factory


@pytest.fixture
def make_user(session):
    """Create a user profile with its account and commit it."""

    async def factory():
        n = next(_sequence)
        user = User(blood_group="O+")
        session.add(user)
        await session.flush()

        account = Account(
            name=f"User {n}",
            email=f"user{n}@example.org",
            phone_number=f"+9197{n:08d}",
            role=AccountRole.USER,
            user_id=user.id,
        )
        session.add(account)
        await session.commit()
        return user, account

    return factory


@pytest.fixture
def auth_headers():
    def build(account: Account) -> dict:
        token = create_access_token(account.id, account.role.value)
        return {"Authorization": f"Bearer {token}"}

    return build


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as db:
            try:
                yield db
                await db.commit()
            except Exception:
                await db.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def missing_id():
    return uuid.uuid4()
