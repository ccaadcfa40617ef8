"""
Quota Ledger - Daily Fact Generation Limit

Each user may generate DAILY_FACT_LIMIT facts per UTC calendar day.
Usage is stored in the rate_limits table, one row per (user, date):

    user_id | date       | count
    --------+------------+------
    a1b2... | 2024-05-01 | 3

The day boundary is the UTC date at the moment of the call, not the user's
local timezone. Dates are datetime.date objects inside this module and are
converted to the ISO string only when they touch the database. Rows for old
days are never touched again, so "reset at midnight" happens by itself.

Callers check remaining() before generating and consume() after a successful
generation. Those two calls are separate, so two concurrent requests can both
pass the check before either increments (accepted overrun). consume() itself
is a single atomic UPDATE ... SET count = count + 1.
"""

import logging
from datetime import date, datetime, timezone
from typing import Callable

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from moviefacts.errors import StoreFailure
from moviefacts.models import RateLimit


logger = logging.getLogger(__name__)

# Maximum number of generated facts per user per UTC day
DAILY_FACT_LIMIT = 10


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def date_key(day: date) -> str:
    """Storage representation of a day: YYYY-MM-DD."""
    return day.isoformat()


class QuotaLedger:
    """
    Per-user, per-day usage counter against a fixed daily limit.

    Args:
        db: Request-scoped database session
        limit: Daily limit (DAILY_FACT_LIMIT unless a test needs otherwise)
        clock: Returns the current time; only its UTC date is used
    """

    def __init__(
        self,
        db: AsyncSession,
        limit: int = DAILY_FACT_LIMIT,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.limit = limit
        self.clock = clock

    def today(self) -> date:
        now = self.clock()
        # Naive datetimes are taken to be UTC already
        if now.tzinfo is not None:
            now = now.astimezone(timezone.utc)
        return now.date()

    async def usage(self, user_id: str) -> int:
        """Number of facts generated today (0 when there is no row yet)."""
        key = date_key(self.today())
        try:
            result = await self.db.execute(
                select(RateLimit.count).where(
                    RateLimit.user_id == user_id,
                    RateLimit.date == key,
                )
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to read quota for user {user_id}: {e}")
            raise StoreFailure() from e
        count = result.scalar_one_or_none()
        return count or 0

    async def remaining(self, user_id: str) -> int:
        """Calls left today, never negative."""
        used = await self.usage(user_id)
        return self.remaining_after(used)

    def remaining_after(self, used: int) -> int:
        return max(0, self.limit - used)

    async def consume(self, user_id: str) -> int:
        """
        Record one generation for today and return the new usage count.

        Increment-or-create:
        1. UPDATE the existing row in place (atomic in the database)
        2. If no row matched, INSERT a row with count=1
        3. If the INSERT loses a race against another request that created
           the row first, fall back to the UPDATE
        """
        key = date_key(self.today())
        try:
            if not await self._increment(user_id, key):
                self.db.add(RateLimit(user_id=user_id, date=key, count=1))
                try:
                    await self.db.commit()
                except IntegrityError:
                    await self.db.rollback()
                    await self._increment(user_id, key)
                    await self.db.commit()
            else:
                await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to consume quota for user {user_id}: {e}")
            raise StoreFailure() from e

        return await self.usage(user_id)

    async def _increment(self, user_id: str, key: str) -> bool:
        result = await self.db.execute(
            update(RateLimit)
            .where(RateLimit.user_id == user_id, RateLimit.date == key)
            .values(count=RateLimit.count + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def prune(self, before: date) -> int:
        """
        Delete counters for days strictly before `before`.

        Counters are never read again once their day is over; this keeps
        the table from growing forever. Returns the number of rows deleted.
        """
        try:
            result = await self.db.execute(
                delete(RateLimit)
                .where(RateLimit.date < date_key(before))
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreFailure() from e
        return result.rowcount
