"""
Fact Cache

Stores the latest generated fact per (user, movie title) in the movie_facts
table. There is no eviction, TTL or size bound: an entry lives until it is
overwritten by a newer generation for the same pair.

Keys are exact and case-sensitive, but titles are trimmed inside every
operation, so "Inception" and " Inception " hit the same entry while
"inception" does not.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from moviefacts.errors import StoreFailure
from moviefacts.models import MovieFact


logger = logging.getLogger(__name__)


class FactCache:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _find(self, user_id: str, title: str) -> MovieFact | None:
        result = await self.db.execute(
            select(MovieFact).where(
                MovieFact.user_id == user_id,
                MovieFact.movie_title == title.strip(),
            )
        )
        return result.scalars().first()

    async def get(self, user_id: str, title: str) -> str | None:
        """Cached fact text, or None on a miss."""
        try:
            entry = await self._find(user_id, title)
        except SQLAlchemyError as e:
            logger.error(f"Failed to read cached fact for user {user_id}: {e}")
            raise StoreFailure() from e
        return entry.fact if entry else None

    async def put(self, user_id: str, title: str, fact: str) -> None:
        """Insert or overwrite the entry for (user_id, title)."""
        try:
            entry = await self._find(user_id, title)
            if entry:
                entry.fact = fact
            else:
                self.db.add(MovieFact(user_id=user_id, movie_title=title.strip(), fact=fact))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to cache fact for user {user_id}: {e}")
            raise StoreFailure() from e
