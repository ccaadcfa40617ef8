"""Tests for FactService."""

import asyncio

import pytest
from sqlalchemy import select

from conftest import FakeGenerator
from moviefacts.errors import (
    GenerationFailed,
    InvalidInput,
    NotFound,
    QuotaExceeded,
    StoreFailure,
    UpstreamFailure,
)
from moviefacts.models import MovieFact, RateLimit, User
from moviefacts.services.cache import FactCache
from moviefacts.services.facts import FactService
from moviefacts.services.quota import DAILY_FACT_LIMIT, QuotaLedger


@pytest.fixture
def ledger(db, clock) -> QuotaLedger:
    return QuotaLedger(db, clock=clock)


@pytest.fixture
def service(db, generator, ledger) -> FactService:
    return FactService(db, generator, ledger=ledger)


async def use_quota(db, user_id: str, count: int) -> None:
    db.add(RateLimit(user_id=user_id, date="2024-05-01", count=count))
    await db.commit()


class TestValidation:

    @pytest.mark.asyncio
    async def test_blank_title(self, service, user, generator) -> None:
        with pytest.raises(InvalidInput):
            await service.get_fact(user.id, "   ")
        assert generator.calls == []

    @pytest.mark.asyncio
    async def test_missing_title(self, service, user) -> None:
        with pytest.raises(InvalidInput):
            await service.get_fact(user.id, None)

    @pytest.mark.asyncio
    async def test_unknown_user(self, service) -> None:
        with pytest.raises(NotFound):
            await service.get_fact("missing", "Alien")


class TestCacheAndQuota:

    @pytest.mark.asyncio
    async def test_cache_miss_generates_and_consumes(self, db, service, user, generator, ledger) -> None:
        """Quota at 3/10: one provider call, quota 4/10, fact cached."""
        await use_quota(db, user.id, 3)

        result = await service.get_fact(user.id, "The Matrix")

        assert generator.calls == ["The Matrix"]
        assert result.cached is False
        assert result.fact == "Fact 1 about The Matrix"
        assert result.remaining_calls == 6
        assert await ledger.usage(user.id) == 4
        assert await FactCache(db).get(user.id, "The Matrix") == result.fact

    @pytest.mark.asyncio
    async def test_cache_hit_uses_no_quota(self, db, service, user, generator, ledger) -> None:
        await use_quota(db, user.id, 3)
        first = await service.get_fact(user.id, "The Matrix")

        second = await service.get_fact(user.id, "The Matrix")

        assert second.cached is True
        assert second.fact == first.fact
        assert second.remaining_calls == first.remaining_calls == 6
        assert await ledger.usage(user.id) == 4
        assert len(generator.calls) == 1

    @pytest.mark.asyncio
    async def test_cache_lookup_trims_title(self, db, service, user, generator) -> None:
        await service.get_fact(user.id, "Alien")

        result = await service.get_fact(user.id, "  Alien  ")

        assert result.cached is True
        assert generator.calls == ["Alien"]

    @pytest.mark.asyncio
    async def test_force_new_regenerates_and_overwrites(self, db, service, user, generator, ledger) -> None:
        await service.get_fact(user.id, "Alien")

        result = await service.get_fact(user.id, "Alien", force_new=True)

        assert result.cached is False
        assert result.fact == "Fact 2 about Alien"
        assert await ledger.usage(user.id) == 2
        facts = (await db.execute(select(MovieFact.fact))).scalars().all()
        assert facts == ["Fact 2 about Alien"]

    @pytest.mark.asyncio
    async def test_eleventh_generation_is_rejected(self, service, user, generator) -> None:
        for i in range(DAILY_FACT_LIMIT):
            result = await service.get_fact(user.id, f"Movie {i}")
        assert result.remaining_calls == 0

        with pytest.raises(QuotaExceeded) as exc_info:
            await service.get_fact(user.id, "One More")
        assert exc_info.value.remaining_calls == 0

        with pytest.raises(QuotaExceeded):
            await service.get_fact(user.id, "Movie 0", force_new=True)

        assert len(generator.calls) == DAILY_FACT_LIMIT

    @pytest.mark.asyncio
    async def test_cache_hit_still_served_when_quota_is_spent(self, db, service, user) -> None:
        await service.get_fact(user.id, "Alien")
        await db.execute(
            RateLimit.__table__.update().values(count=DAILY_FACT_LIMIT)
        )
        await db.commit()

        result = await service.get_fact(user.id, "Alien")

        assert result.cached is True
        assert result.remaining_calls == 0

    @pytest.mark.asyncio
    async def test_concurrent_forced_requests_can_overrun_quota(self, db, user, session_factory, clock) -> None:
        """Both requests pass the check at 9/10 before either records its call."""
        await use_quota(db, user.id, DAILY_FACT_LIMIT - 1)

        class GatedGenerator:
            def __init__(self) -> None:
                self.calls: list[str] = []
                self.both_waiting = asyncio.Event()

            async def generate(self, movie_title: str) -> str:
                self.calls.append(movie_title)
                if len(self.calls) == 2:
                    self.both_waiting.set()
                await self.both_waiting.wait()
                return f"Fact about {movie_title}"

        generator = GatedGenerator()
        async with session_factory() as first, session_factory() as second:
            results = await asyncio.gather(
                FactService(first, generator, ledger=QuotaLedger(first, clock=clock))
                .get_fact(user.id, "Alien", force_new=True),
                FactService(second, generator, ledger=QuotaLedger(second, clock=clock))
                .get_fact(user.id, "Heat", force_new=True),
            )

        assert sorted(generator.calls) == ["Alien", "Heat"]
        assert [r.cached for r in results] == [False, False]
        assert [r.remaining_calls for r in results] == [0, 0]
        async with session_factory() as session:
            ledger = QuotaLedger(session, clock=clock)
            assert await ledger.usage(user.id) == DAILY_FACT_LIMIT + 1
            assert await ledger.remaining(user.id) == 0


class TestFailures:

    @pytest.mark.asyncio
    async def test_provider_failure_leaves_no_trace(self, db, user, ledger) -> None:
        generator = FakeGenerator(error=UpstreamFailure())
        service = FactService(db, generator, ledger=ledger)

        with pytest.raises(GenerationFailed):
            await service.get_fact(user.id, "Alien")

        assert await ledger.usage(user.id) == 0
        assert await FactCache(db).get(user.id, "Alien") is None

    @pytest.mark.asyncio
    async def test_unexpected_error_becomes_generation_failed(self, db, user, ledger) -> None:
        service = FactService(db, FakeGenerator(error=RuntimeError("boom")), ledger=ledger)

        with pytest.raises(GenerationFailed):
            await service.get_fact(user.id, "Alien")

    @pytest.mark.asyncio
    async def test_cache_write_failure_keeps_quota_consumed(self, db, user, generator, ledger) -> None:
        class BrokenCache(FactCache):
            async def put(self, user_id, title, fact):
                raise StoreFailure()

        service = FactService(db, generator, ledger=ledger, cache=BrokenCache(db))

        with pytest.raises(GenerationFailed):
            await service.get_fact(user.id, "Alien")

        assert await ledger.usage(user.id) == 1


class TestFavoriteFact:

    @pytest.mark.asyncio
    async def test_uses_first_favorite(self, db, service, user, generator, ledger) -> None:
        user.favorite_movie = "Heat, Alien"
        await db.commit()

        fact, movie = await service.fact_for_favorite(user.id)

        assert movie == "Heat"
        assert fact == "Fact 1 about Heat"
        assert await ledger.usage(user.id) == 0

    @pytest.mark.asyncio
    async def test_no_favorite(self, service, user) -> None:
        with pytest.raises(InvalidInput):
            await service.fact_for_favorite(user.id)

    @pytest.mark.asyncio
    async def test_missing_credential(self, db, user) -> None:
        from moviefacts.services.generator import FactGenerator

        user.favorite_movie = "Heat"
        await db.commit()
        service = FactService(db, FactGenerator(None))

        with pytest.raises(UpstreamFailure) as exc_info:
            await service.fact_for_favorite(user.id)
        assert "not configured" in exc_info.value.message


@pytest.mark.asyncio
async def test_users_have_separate_caches(db, service, user, generator) -> None:
    other = User(email="grace@example.com")
    db.add(other)
    await db.commit()

    await service.get_fact(user.id, "Alien")
    result = await service.get_fact(other.id, "Alien")

    assert result.cached is False
    assert len(generator.calls) == 2
