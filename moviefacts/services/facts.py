"""
Fact Service - Cached, Rate-Limited Movie Facts

Orchestrates one fact request:

1. Validate the title (trimmed, non-empty)
2. Resolve the user
3. Serve from the cache unless the caller forces a new fact
4. Check today's quota (forcing bypasses the cache, never the quota)
5. Generate the fact with the provider
6. Consume one unit of quota and cache the fact
7. Report the remaining calls

Quota and cache are only written after the provider succeeded, so a cache
hit, a quota rejection or a provider failure leave no trace. The quota
check and the later increment are not atomic across concurrent requests.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from moviefacts.errors import GenerationFailed, InvalidInput, NotFound, QuotaExceeded, StoreFailure
from moviefacts.services.cache import FactCache
from moviefacts.services.generator import FactGenerator
from moviefacts.services.movies import parse_favorites
from moviefacts.services.quota import QuotaLedger
from moviefacts.services.users import get_user


logger = logging.getLogger(__name__)


@dataclass
class FactResult:
    fact: str
    cached: bool
    remaining_calls: int

    def to_dict(self) -> dict:
        return {
            "fact": self.fact,
            "cached": self.cached,
            "remainingCalls": self.remaining_calls,
        }


class FactService:
    """
    Args:
        db: Request-scoped database session shared by ledger and cache
        generator: Text generation provider adapter
        ledger: Optional QuotaLedger (built from db when omitted)
        cache: Optional FactCache (built from db when omitted)
    """

    def __init__(
        self,
        db: AsyncSession,
        generator: FactGenerator,
        ledger: QuotaLedger | None = None,
        cache: FactCache | None = None,
    ):
        self.db = db
        self.generator = generator
        self.ledger = ledger or QuotaLedger(db)
        self.cache = cache or FactCache(db)

    async def get_fact(self, user_id: str, movie_title: str | None, force_new: bool = False) -> FactResult:
        """
        Return a fact about `movie_title` for this user.

        Raises:
            InvalidInput: Empty title
            NotFound: Unknown user
            QuotaExceeded: Daily limit reached (remaining calls = 0)
            GenerationFailed: Provider, store or unexpected failure
        """
        title = (movie_title or "").strip()
        if not title:
            raise InvalidInput("Movie title is required")

        try:
            return await self._get_fact(user_id, title, force_new)
        except (InvalidInput, NotFound, QuotaExceeded, GenerationFailed):
            raise
        except Exception as e:
            logger.exception(f"Movie fact request failed for user {user_id}: {e}")
            raise GenerationFailed() from e

    async def _get_fact(self, user_id: str, title: str, force_new: bool) -> FactResult:
        await get_user(self.db, user_id)

        if not force_new:
            cached_fact = await self.cache.get(user_id, title)
            if cached_fact is not None:
                return FactResult(
                    fact=cached_fact,
                    cached=True,
                    remaining_calls=await self.ledger.remaining(user_id),
                )

        used = await self.ledger.usage(user_id)
        if used >= self.ledger.limit:
            logger.info(f"User {user_id} reached the daily fact limit ({used}/{self.ledger.limit})")
            raise QuotaExceeded(self.ledger.limit)

        fact = await self.generator.generate(title)

        used = await self.ledger.consume(user_id)
        try:
            await self.cache.put(user_id, title, fact)
        except StoreFailure:
            logger.warning(
                f"Quota consumed for user {user_id} but fact for {title!r} was not cached"
            )
            raise

        return FactResult(
            fact=fact,
            cached=False,
            remaining_calls=self.ledger.remaining_after(used),
        )

    async def fact_for_favorite(self, user_id: str) -> tuple[str, str]:
        """
        Generate a fact about the user's first favorite movie.

        Goes straight to the provider: nothing is cached and no quota is
        consumed.

        Returns:
            (fact, movie title)
        """
        user = await get_user(self.db, user_id)
        favorites = parse_favorites(user.favorite_movie)
        if not favorites:
            raise InvalidInput("No favorite movie set")

        movie = favorites[0]
        fact = await self.generator.generate(movie)
        return fact, movie
