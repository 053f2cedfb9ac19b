"""SQLAlchemy implementation of CacheRepository"""

from datetime import datetime, timedelta
from typing import Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import delete, func
from src.app.repositories.cache_repository import CacheRepository
from src.domain.base import as_utc
from src.domain.cache_entry import CacheEntry


class SqlAlchemyCacheRepository(CacheRepository):
    """
    Persistent cache tier

    One row per (cache_type, cache_key); writes replace the payload in place.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, cache_type: str, cache_key: str) -> Optional[CacheEntry]:
        stmt = select(CacheEntry).where(
            CacheEntry.cache_type == cache_type,
            CacheEntry.cache_key == cache_key,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert(self, entry: CacheEntry) -> CacheEntry:
        existing = await self.get(entry.cache_type, entry.cache_key)
        if existing is None:
            self.session.add(entry)
            await self.session.flush()
            return entry

        existing.payload = entry.payload
        existing.resource_id = entry.resource_id
        existing.cached_at = entry.cached_at
        existing.ttl_seconds = entry.ttl_seconds
        self.session.add(existing)
        await self.session.flush()
        return existing

    async def delete(self, cache_type: str, cache_key: str) -> int:
        result = await self.session.execute(
            delete(CacheEntry).where(
                CacheEntry.cache_type == cache_type,
                CacheEntry.cache_key == cache_key,
            )
        )
        await self.session.flush()
        return result.rowcount or 0

    async def delete_by_resource(self, resource_id: int) -> int:
        result = await self.session.execute(
            delete(CacheEntry).where(CacheEntry.resource_id == resource_id)
        )
        await self.session.flush()
        return result.rowcount or 0

    async def delete_expired(self, now: datetime) -> int:
        # TTL differs per row, so expiry is evaluated in Python
        result = await self.session.execute(select(CacheEntry.id, CacheEntry.cached_at, CacheEntry.ttl_seconds))
        expired_ids = [
            row.id for row in result.all()
            if as_utc(now) >= as_utc(row.cached_at) + timedelta(seconds=row.ttl_seconds)
        ]
        if not expired_ids:
            return 0

        await self.session.execute(delete(CacheEntry).where(CacheEntry.id.in_(expired_ids)))
        await self.session.flush()
        return len(expired_ids)

    async def delete_all(self) -> int:
        result = await self.session.execute(delete(CacheEntry))
        await self.session.flush()
        return result.rowcount or 0

    async def count_by_type(self) -> dict:
        stmt = select(CacheEntry.cache_type, func.count(CacheEntry.id)).group_by(CacheEntry.cache_type)
        result = await self.session.execute(stmt)
        return {cache_type: count for cache_type, count in result.all()}
