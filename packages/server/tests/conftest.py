"""
Shared fixtures: a throwaway SQLite database per test, an HTTP client bound
to it, identity tokens and a mocked Redis revocation list.
"""

from __future__ import annotations

import os

os.environ.setdefault("SCENTSHELF_ENVIRONMENT", "test")
os.environ.setdefault("SCENTSHELF_LOG_FORMAT", "text")

import uuid
from decimal import Decimal
from typing import Optional
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

import app.models  # noqa: F401  (registers tables)
from app.core.auth import create_jwt
from app.core.context import RequestContext
from app.core.database import get_session
from app.main import app
from app.models.perfume import Perfume
from app.models.profile import Profile
from scentshelf_shared.schemas.users import CurrentUser


@pytest.fixture
async def engine(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'scentshelf.db'}")

    @event.listens_for(eng.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_conn, _record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def redis_mock():
    redis = AsyncMock()
    redis.exists.return_value = 0
    with patch("app.core.auth.get_redis", AsyncMock(return_value=redis)):
        yield redis


@pytest.fixture
async def client(session_factory, redis_mock):
    async def _get_session():
        async with session_factory() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_session] = _get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Identity helpers
# ---------------------------------------------------------------------------


def make_identity(name: Optional[str] = None, email: Optional[str] = None) -> CurrentUser:
    uid = uuid.uuid4()
    return CurrentUser(
        id=uid,
        email=email or f"{(name or 'user').lower()}-{uid.hex[:6]}@example.com",
        name=name,
    )


def auth_headers(user: CurrentUser) -> dict[str, str]:
    token, _ = create_jwt(user.id, user.email, full_name=user.name, avatar_url=user.avatar_url)
    return {"Authorization": f"Bearer {token}"}


async def add_profile(session: AsyncSession, user: CurrentUser) -> Profile:
    profile = Profile(id=user.id, email=user.email, full_name=user.name, avatar_url=user.avatar_url)
    session.add(profile)
    await session.commit()
    return profile


async def add_perfume(session: AsyncSession, owner: CurrentUser, **fields) -> Perfume:
    """Insert a perfume row directly, bypassing input validation."""
    values = {
        "name": "Sample",
        "brand": "House",
        "price": Decimal("100.00"),
        "rating": 4.0,
        "notes": [],
        "categories": ["Kwiatowe"],
    }
    values.update(fields)
    perfume = Perfume(user_id=owner.id, **values)
    session.add(perfume)
    await session.commit()
    return perfume


@pytest.fixture
async def alice(session) -> CurrentUser:
    user = make_identity("Alice")
    await add_profile(session, user)
    return user


@pytest.fixture
async def bob(session) -> CurrentUser:
    user = make_identity("Bob")
    await add_profile(session, user)
    return user


@pytest.fixture
async def carol(session) -> CurrentUser:
    user = make_identity(None, email="carol@example.com")
    await add_profile(session, user)
    return user


@pytest.fixture
def alice_ctx(alice) -> RequestContext:
    return RequestContext.for_user(alice)


@pytest.fixture
def bob_ctx(bob) -> RequestContext:
    return RequestContext.for_user(bob)


@pytest.fixture
def carol_ctx(carol) -> RequestContext:
    return RequestContext.for_user(carol)
