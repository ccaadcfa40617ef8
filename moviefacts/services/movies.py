"""
Movie Collection Manager

A user's favorite movies are an ordered list of distinct, trimmed,
non-empty titles, stored on the users table as one string:

    ["The Matrix", "Alien"]  <->  "The Matrix, Alien"
    []                       <->  NULL

Matching is exact and case-sensitive: "Alien" and "alien" are two movies.
Titles are expected to be sanitized by the caller (see utils/validators.py).
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from moviefacts.errors import InvalidInput, StoreFailure
from moviefacts.services.users import get_user


logger = logging.getLogger(__name__)

SEPARATOR = ","


def split_titles(raw: str | None) -> list[str]:
    """Split comma-separated input, trim each piece, drop empty pieces."""
    if not raw:
        return []
    return [piece.strip() for piece in raw.split(SEPARATOR) if piece.strip()]


def parse_favorites(stored: str | None) -> list[str]:
    """Decode the stored column into a list of titles."""
    return split_titles(stored)


def serialize_favorites(titles: list[str]) -> str | None:
    """Encode a list of titles; an empty list becomes None (no favorite)."""
    if not titles:
        return None
    return f"{SEPARATOR} ".join(titles)


def merge_titles(current: list[str], new_titles: list[str]) -> list[str]:
    """
    Append each new title unless it is already in the list.

    The check runs against the list as it grows, so "A, A" adds one "A".
    """
    merged = list(current)
    for title in new_titles:
        if title not in merged:
            merged.append(title)
    return merged


class MovieCollection:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def favorites(self, user_id: str) -> list[str]:
        user = await get_user(self.db, user_id)
        return parse_favorites(user.favorite_movie)

    async def add(self, user_id: str, raw_titles_csv: str) -> list[str]:
        """Add comma-separated titles, skipping ones already present."""
        user = await get_user(self.db, user_id)
        titles = merge_titles(parse_favorites(user.favorite_movie), split_titles(raw_titles_csv))
        await self._save(user, titles)
        return titles

    async def remove(self, user_id: str, title: str) -> list[str]:
        """Remove every exact match of the trimmed title."""
        user = await get_user(self.db, user_id)
        target = (title or "").strip()
        titles = [t for t in parse_favorites(user.favorite_movie) if t != target]
        await self._save(user, titles)
        return titles

    async def replace(self, user_id: str, raw_title: str) -> list[str]:
        """Set the favorites to the given input, dropping the previous list."""
        titles = merge_titles([], split_titles(raw_title))
        if not titles:
            raise InvalidInput("Favorite movie is required")
        user = await get_user(self.db, user_id)
        await self._save(user, titles)
        return titles

    async def _save(self, user, titles: list[str]) -> None:
        # Read before commit: a rollback expires the instance
        user_id = user.id
        user.favorite_movie = serialize_favorites(titles)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to update favorites for user {user_id}: {e}")
            raise StoreFailure() from e
