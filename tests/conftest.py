"""Shared fixtures: temporary SQLite database, fake generator, API client."""

import os

# Settings are read at import time, so the environment must be ready first
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./unused.db")

from datetime import datetime, timezone
from pathlib import Path

import httpx
import pytest
import pytest_asyncio

from moviefacts.database import create_engine, create_session_factory, get_db
from moviefacts.models import Base, User
from moviefacts.services.auth import SESSION_COOKIE, create_access_token, session_cookie_value


class FakeGenerator:
    """Stands in for FactGenerator; records every title it is asked about."""

    def __init__(self, error: Exception | None = None) -> None:
        self.calls: list[str] = []
        self.error = error

    async def generate(self, movie_title: str) -> str:
        self.calls.append(movie_title)
        if self.error is not None:
            raise self.error
        return f"Fact {len(self.calls)} about {movie_title}"

    async def close(self) -> None:
        pass


class FixedClock:
    """Clock whose time only moves when a test says so."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest_asyncio.fixture
async def engine(tmp_path: Path):
    """Engine on a fresh SQLite file with all tables created."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def user(db) -> User:
    user = User(email="ada@example.com", name="Ada")
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc))


def session_headers(user_id: str, email: str = "ada@example.com") -> dict:
    """Cookie header of a signed-in user."""
    token = create_access_token({"sub": user_id, "email": email})
    return {"Cookie": f"{SESSION_COOKIE}={session_cookie_value(token)}"}


@pytest_asyncio.fixture
async def client(session_factory, generator):
    """
    API client running the real app against the test database.

    The lifespan is not run: the database session and the generator are
    injected directly, and request throttling is switched off.
    """
    from moviefacts.limiter import limiter
    from moviefacts.main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.state.fact_generator = generator
    limiter.enabled = False

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
    limiter.enabled = True
