"""
User Service

Loading users, creating them at first sign-in, and building the enriched
profile returned by /auth/session.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from moviefacts.errors import NotFound, StoreFailure
from moviefacts.models import Account, User


logger = logging.getLogger(__name__)


@dataclass
class Identity:
    """Who is making the request, as proven by the session cookie."""

    user_id: str
    email: str | None = None


async def get_user(db: AsyncSession, user_id: str) -> User:
    """
    Load a user by id.

    Raises:
        NotFound: The session is valid but the user row is gone
        StoreFailure: Database error
    """
    try:
        result = await db.execute(select(User).filter(User.id == user_id))
    except SQLAlchemyError as e:
        logger.error(f"Failed to load user {user_id}: {e}")
        raise StoreFailure() from e
    user = result.scalars().first()
    if not user:
        raise NotFound()
    return user


async def upsert_oauth_user(
    db: AsyncSession,
    provider: str,
    provider_account_id: str,
    email: str,
    name: str | None = None,
    image: str | None = None,
) -> User:
    """
    Find or create the user behind an OAuth sign-in.

    Lookup order:
    1. An Account already linked to (provider, provider_account_id)
    2. A User with the same email (links a new Account to it)
    3. Otherwise create both

    Name and avatar are refreshed from the provider profile on every sign-in.
    Favorites are never touched here.
    """
    try:
        result = await db.execute(
            select(Account).filter(
                Account.provider == provider,
                Account.provider_account_id == provider_account_id,
            )
        )
        account = result.scalars().first()

        user = None
        if account:
            result = await db.execute(select(User).filter(User.id == account.user_id))
            user = result.scalars().first()

        if not user:
            result = await db.execute(select(User).filter(User.email == email))
            user = result.scalars().first()

        if not user:
            # First-time user - create account
            user = User(email=email, name=name, image=image)
            db.add(user)
            await db.flush()
            logger.info(f"Created user {user.id} for {email}")
        else:
            user.name = name or user.name
            user.image = image or user.image

        if not account:
            db.add(Account(
                user_id=user.id,
                provider=provider,
                provider_account_id=provider_account_id,
            ))

        await db.commit()
        await db.refresh(user)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to upsert user {email}: {e}")
        raise StoreFailure() from e

    return user


async def enrich_identity(db: AsyncSession, identity: Identity) -> dict:
    """
    Profile fields for the signed-in user, as shown by the client.

    Done on demand by /auth/session rather than on every authenticated
    request, so the other endpoints only pay for the lookup they need.
    """
    user = await get_user(db, identity.user_id)
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "image": user.image,
        "favoriteMovie": user.favorite_movie,
    }
