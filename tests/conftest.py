import os
from contextlib import contextmanager
from typing import AsyncGenerator, Optional

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser, Role
from libs.db.base import Base
from libs.db.config import build_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

# Import all models so metadata includes every table
from services.distribution_service import models as _distribution_models  # noqa: F401

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


# ---------------------------------------------------------------------------
# Auth helpers
# ---------------------------------------------------------------------------


def make_user(
    role: str = Role.SUPER_ADMIN,
    *,
    user_id: Optional[str] = None,
    zones: Optional[list[str]] = None,
    company_id: Optional[str] = None,
) -> AuthUser:
    return AuthUser(
        user_id=user_id or f"{role}-user",
        email=f"{role.replace('_', '-')}@lilium.iq",
        role=role,
        zones=zones if zones is not None else ["KARKH"],
        company_id=company_id,
    )


@contextmanager
def override_auth(app, user: AuthUser):
    """Temporarily authenticate every request on ``app`` as ``user``."""
    previous = app.dependency_overrides.get(get_current_user)
    app.dependency_overrides[get_current_user] = lambda: user
    try:
        yield user
    finally:
        if previous is None:
            app.dependency_overrides.pop(get_current_user, None)
        else:
            app.dependency_overrides[get_current_user] = previous


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine():
    """
    Fresh schema per test: in-memory SQLite by default, or TEST_DATABASE_URL.
    """
    engine = build_engine(TEST_DATABASE_URL)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def session_factory(test_engine):
    """Session factory bound to the test engine, for code that opens its own sessions."""
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(db_session) -> AsyncGenerator[AsyncClient, None]:
    """
    AsyncClient over the distribution app with the DB dependency pointed at
    ``db_session`` and a super admin as the default caller.
    """
    from libs.db.session import get_async_db
    from services.distribution_service.app.main import app

    async def _get_test_db():
        yield db_session

    app.dependency_overrides[get_async_db] = _get_test_db
    app.dependency_overrides[get_current_user] = lambda: make_user(Role.SUPER_ADMIN)

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
