"""Integration tests for RateLimiter and CacheManager against SQLite"""

import pytest
from datetime import datetime, timedelta, timezone

from sqlmodel import select

from src.adapter.repositories import SqlAlchemyCacheRepository, SqlAlchemyRateLimitRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.cache_manager import CacheManager, MemoryCacheTier
from src.app.services.rate_limiter import RateLimiter
from src.domain.cache_entry import CacheEntry, CacheType
from src.domain.errors import RateLimitExceeded


class SimulatedClock:

    def __init__(self, start=datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return SimulatedClock()


@pytest.mark.asyncio
class TestRateLimiterPersistence:

    async def test_two_per_minute(self, db_session, clock):
        """
        Given: A limit of 2 requests per 60 seconds
        When: Three requests arrive within the window
        Then: The third is rejected with 0 < retry_after <= 60, and admitted again after the window
        """
        # Arrange
        limiter = RateLimiter(
            SqlAlchemyUnitOfWork(db_session),
            SqlAlchemyRateLimitRepository(db_session),
            limits={"ai_rename_single": {"requests": 2, "window": 60}},
            clock=clock,
        )

        # Act / Assert
        assert await limiter.admit("user_1", "ai_rename_single") is True
        clock.advance(5)
        assert await limiter.admit("user_1", "ai_rename_single") is True
        clock.advance(5)
        with pytest.raises(RateLimitExceeded) as exc_info:
            await limiter.admit("user_1", "ai_rename_single")
        assert 0 < exc_info.value.retry_after <= 60
        assert exc_info.value.retry_after == 50

        clock.advance(51)
        assert await limiter.admit("user_1", "ai_rename_single") is True
        status = await limiter.status("user_1", "ai_rename_single")
        assert status["used"] == 1
        assert status["remaining"] == 1

    async def test_other_owner_unaffected(self, db_session, clock):
        limiter = RateLimiter(
            SqlAlchemyUnitOfWork(db_session),
            SqlAlchemyRateLimitRepository(db_session),
            limits={"ai_bulk_rename": [1, 600]},
            clock=clock,
        )

        await limiter.admit("user_1", "ai_bulk_rename")

        assert await limiter.admit("user_2", "ai_bulk_rename") is True
        with pytest.raises(RateLimitExceeded):
            await limiter.admit("user_1", "ai_bulk_rename")

        assert await limiter.reset("user_1") == 1
        assert await limiter.admit("user_1", "ai_bulk_rename") is True


@pytest.mark.asyncio
class TestCachePersistence:

    async def test_round_trip_and_expiry(self, db_session, clock):
        """
        Given: A content analysis cached with the default two hour TTL
        When: Read just before and just after expiry
        Then: The first read hits, the second misses and removes the row
        """
        # Arrange
        uow = SqlAlchemyUnitOfWork(db_session)
        repo = SqlAlchemyCacheRepository(db_session)
        writer = CacheManager(uow, repo, clock=clock)
        payload = {"descriptor": "Red bicycle", "detected_objects": ["bicycle"]}

        # Act
        stored = await writer.set(CacheType.CONTENT_ANALYSIS, "abc", payload, resource_id=7)
        clock.advance(7199)
        hit = await CacheManager(uow, repo, memory_tier=MemoryCacheTier(), clock=clock).get(
            CacheType.CONTENT_ANALYSIS, "abc"
        )
        clock.advance(2)
        miss = await CacheManager(uow, repo, memory_tier=MemoryCacheTier(), clock=clock).get(
            CacheType.CONTENT_ANALYSIS, "abc"
        )

        # Assert
        assert stored is True
        assert hit == payload
        assert miss is None
        rows = (await db_session.execute(select(CacheEntry))).scalars().all()
        assert rows == []

    async def test_set_replaces_existing_entry(self, db_session, clock):
        cache = CacheManager(SqlAlchemyUnitOfWork(db_session), SqlAlchemyCacheRepository(db_session), clock=clock)

        await cache.set(CacheType.SUGGESTIONS, "k", {"suggestions": ["old-name"]}, resource_id=1)
        await cache.set(CacheType.SUGGESTIONS, "k", {"suggestions": ["new-name"]}, resource_id=1)

        rows = (await db_session.execute(select(CacheEntry))).scalars().all()
        assert len(rows) == 1
        assert rows[0].payload == {"suggestions": ["new-name"]}

    async def test_invalidate_and_purge(self, db_session, clock):
        cache = CacheManager(
            SqlAlchemyUnitOfWork(db_session),
            SqlAlchemyCacheRepository(db_session),
            ttls={CacheType.CONTEXT.value: 60},
            clock=clock,
        )
        await cache.set(CacheType.CONTENT_ANALYSIS, "a", {"x": 1}, resource_id=1)
        await cache.set(CacheType.CONTEXT, "b", {"x": 2}, resource_id=1)
        await cache.set(CacheType.CONTEXT, "c", {"x": 3}, resource_id=2)

        assert await cache.invalidate(1) == 2
        clock.advance(61)
        assert await cache.purge_expired() == 1
        assert (await db_session.execute(select(CacheEntry))).scalars().all() == []
