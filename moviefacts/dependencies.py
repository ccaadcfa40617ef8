"""
FastAPI Dependencies

This module provides the dependency injection functions used by the routes:

- get_identity: the signed-in user's id and email, from the session cookie
- get_fact_generator: the provider adapter built at startup
- get_fact_service / get_quota_ledger / get_movie_collection: services
  bound to the request's database session

Keeping construction here means routes never build services themselves,
and tests can replace any piece with app.dependency_overrides.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from moviefacts.database import get_db
from moviefacts.errors import Unauthenticated
from moviefacts.services.auth import SESSION_COOKIE, token_from_cookie, verify_token
from moviefacts.services.facts import FactService
from moviefacts.services.generator import FactGenerator
from moviefacts.services.movies import MovieCollection
from moviefacts.services.quota import QuotaLedger
from moviefacts.services.users import Identity


async def get_identity(request: Request) -> Identity:
    """
    Dependency that requires a valid session.

    This function:
    1. Extracts the JWT token from the request cookie
    2. Verifies the token signature and expiration
    3. Returns the identity it carries

    It does not touch the database: whether the user still exists is
    decided by the services, which answer 404 rather than 401.

    Raises:
        Unauthenticated: No cookie, bad scheme, bad signature or expired token
    """
    token = token_from_cookie(request.cookies.get(SESSION_COOKIE))
    if not token:
        raise Unauthenticated()

    payload = verify_token(token)
    if not payload or not payload.get("sub"):
        raise Unauthenticated()

    return Identity(user_id=payload["sub"], email=payload.get("email"))


def get_fact_generator(request: Request) -> FactGenerator:
    return request.app.state.fact_generator


def get_quota_ledger(db: AsyncSession = Depends(get_db)) -> QuotaLedger:
    return QuotaLedger(db)


def get_movie_collection(db: AsyncSession = Depends(get_db)) -> MovieCollection:
    return MovieCollection(db)


def get_fact_service(
    db: AsyncSession = Depends(get_db),
    generator: FactGenerator = Depends(get_fact_generator),
    ledger: QuotaLedger = Depends(get_quota_ledger),
) -> FactService:
    return FactService(db, generator, ledger=ledger)
