"""
Database Connection and Session Management

This module builds SQLAlchemy's async database engine and provides
a dependency injection function for FastAPI routes to access database sessions.

The engine is not created at import time. main.py builds it inside the
application lifespan, keeps it on app.state and disposes it at shutdown,
so tests and scripts can point the app at a different database.
"""

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker


def create_engine(database_url: str, **kwargs) -> AsyncEngine:
    """
    Create the async database engine.

    - echo=False: SQL statements are not logged (set True when debugging)
    - The driver comes from the URL (asyncpg for PostgreSQL, aiosqlite for SQLite)
    - Connection pool is automatically managed by SQLAlchemy
    """
    return create_async_engine(database_url, echo=False, **kwargs)


def create_session_factory(engine: AsyncEngine) -> sessionmaker:
    """
    Session factory for creating database sessions.

    - class_=AsyncSession: Creates async-compatible sessions
    - expire_on_commit=False: Prevents objects from becoming stale after commit
      This is important because we often need to access object attributes after
      committing, and with async code we can't make blocking calls to refresh them
    """
    return sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False
    )


async def get_db(request: Request):
    """
    Database session dependency for FastAPI routes.

    This is a generator function that yields a database session
    and automatically handles cleanup when the request is complete.
    One session per request: every service used by the request shares it.

    Usage in FastAPI routes:
        @router.get("/endpoint")
        async def route(db: AsyncSession = Depends(get_db)):
            result = await db.execute(select(User))

    The async context manager ensures the session is properly closed
    even if an exception occurs during request handling.
    """
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        yield session
