"""
Pytest fixtures for the test database, HTTP client, and seed data.

Each test gets its own SQLite file (aiosqlite), so concurrent sessions in a
test really are separate connections contending for the same rows.
"""

import os

os.environ["REDIS_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "test"
os.environ["TRANSACTION_MAX_ATTEMPTS"] = "10"
os.environ["TRANSACTION_RETRY_BACKOFF_MS"] = "5"

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

import jwt
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ticket_reserve.main import app
from ticket_reserve.db.base import Base
from ticket_reserve.db.session import build_engine, build_session_factory, get_db
from ticket_reserve.core.config import get_settings
from ticket_reserve.models import AppConfig, Event, Reservation, User, SURVEY_QUESTIONS_KEY

OPEN_WINDOW = {"accept_start_date": "2000.01.01", "accept_end_date": "2999.12.31"}


def issue_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a token the way the identity provider does."""
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return jwt.encode({"sub": user_id, "exp": expire}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Fresh schema per test."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield build_session_factory(engine)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_event(session_factory):
    """Factory: insert an event open for reservations today."""

    async def _make(event_id: str = "live-1", **overrides) -> Event:
        fields = {
            "title": "Summer Swing Night",
            "date": "2999.01.01",
            "venue": "City Hall",
            "ticket_stock": 10,
            "total_reserved": 0,
            "is_accept_reserve": True,
            "max_companions": 5,
            **OPEN_WINDOW,
        }
        fields.update(overrides)
        event = Event(id=event_id, **fields)
        async with session_factory() as session:
            session.add(event)
            await session.commit()
        return event

    return _make


@pytest.fixture
def make_user(session_factory):
    async def _make(user_id: str, is_member: bool = False, display_name: str = "Taro") -> User:
        user = User(id=user_id, display_name=display_name, is_member=is_member)
        async with session_factory() as session:
            session.add(user)
            await session.commit()
        return user

    return _make


@pytest.fixture
def fetch_event(session_factory):
    """Read an event through a separate session, bypassing any cached state."""

    async def _fetch(event_id: str = "live-1") -> Event:
        async with session_factory() as session:
            return await session.get(Event, event_id)

    return _fetch


@pytest.fixture
def fetch_reservation(session_factory):
    async def _fetch(event_id: str, user_id: str):
        async with session_factory() as session:
            return await session.get(Reservation, f"{event_id}_{user_id}")

    return _fetch


@pytest.fixture
def set_survey_questions(session_factory):
    async def _set(questions: list[dict]) -> None:
        async with session_factory() as session:
            session.add(AppConfig(key=SURVEY_QUESTIONS_KEY, value=questions))
            await session.commit()

    return _set


@pytest.fixture
def auth_headers():
    """Authorization headers with a Bearer token for the given user id."""

    def _headers(user_id: str, expires_delta: Optional[timedelta] = None) -> dict:
        token = issue_token(user_id, expires_delta)
        return {"Authorization": f"Bearer {token}"}

    return _headers
