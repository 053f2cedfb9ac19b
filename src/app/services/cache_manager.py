"""Cache Manager

Content-addressed cache for analysis, context and suggestion results.

Keys are derived from the resource id plus its last-modified time, so editing a
resource naturally moves it to fresh keys. ``invalidate`` additionally removes
everything stored for a resource (used after a rename).

Two tiers: a process-local dictionary in front of the persistent
CacheRepository. Both honor the entry TTL.
"""

import hashlib
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional, Tuple

from src.app.repositories.cache_repository import CacheRepository
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import as_utc, utcnow
from src.domain.cache_entry import CacheEntry, CacheType
from src.domain.media_resource import MediaResource

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTLS: Dict[str, int] = {
    CacheType.CONTENT_ANALYSIS.value: 7200,
    CacheType.CONTEXT.value: 3600,
    CacheType.SUGGESTIONS.value: 1800,
}
DEFAULT_TTL = 3600
DEFAULT_MEMORY_MAX_ENTRIES = 1000


class MemoryCacheTier:
    """
    Process-local cache tier: (type, key) -> (payload, resource_id, expires_at)

    Bounded by max_entries. A full tier first drops expired entries, then the
    oldest insertions.
    """

    def __init__(self, max_entries: int = DEFAULT_MEMORY_MAX_ENTRIES):
        self.max_entries = max(1, int(max_entries))
        self._entries: Dict[Tuple[str, str], Tuple[Any, Optional[int], datetime]] = {}

    def get(self, cache_type: str, key: str, now: datetime):
        item = self._entries.get((cache_type, key))
        if item is None:
            return None
        payload, _, expires_at = item
        if now >= expires_at:
            del self._entries[(cache_type, key)]
            return None
        return payload

    def set(
        self,
        cache_type: str,
        key: str,
        payload: Any,
        resource_id: Optional[int],
        expires_at: datetime,
        now: Optional[datetime] = None,
    ):
        entry_key = (cache_type, key)
        self._entries.pop(entry_key, None)
        if len(self._entries) >= self.max_entries:
            self._make_room(now or utcnow())
        self._entries[entry_key] = (payload, resource_id, expires_at)

    def _make_room(self, now: datetime):
        purged = self.purge_expired(now)
        evicted = 0
        # Dicts keep insertion order, so the first keys are the oldest
        while len(self._entries) >= self.max_entries:
            del self._entries[next(iter(self._entries))]
            evicted += 1
        if evicted:
            logger.debug(f"Memory cache full: purged {purged} expired, evicted {evicted} oldest entries")

    def delete(self, cache_type: str, key: str):
        self._entries.pop((cache_type, key), None)

    def delete_by_resource(self, resource_id: int) -> int:
        keys = [k for k, (_, rid, _) in self._entries.items() if rid == resource_id]
        for k in keys:
            del self._entries[k]
        return len(keys)

    def purge_expired(self, now: datetime) -> int:
        keys = [k for k, (_, _, expires_at) in self._entries.items() if now >= expires_at]
        for k in keys:
            del self._entries[k]
        return len(keys)

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    def __len__(self) -> int:
        return len(self._entries)


def _cache_type_value(cache_type) -> str:
    return cache_type.value if isinstance(cache_type, CacheType) else str(cache_type)


class CacheManager:
    """
    Get/set/invalidate over the two cache tiers

    When disabled, get always misses and set is a no-op returning False.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        cache_repo: CacheRepository,
        enabled: bool = True,
        ttls: Optional[Dict[str, int]] = None,
        memory_tier: Optional[MemoryCacheTier] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.cache_repo = cache_repo
        self.enabled = enabled
        self.ttls = {**DEFAULT_CACHE_TTLS, **(ttls or {})}
        self.memory = memory_tier if memory_tier is not None else MemoryCacheTier()
        self.clock = clock

    @staticmethod
    def content_key(resource: MediaResource) -> str:
        signal = as_utc(resource.modified_at).isoformat() if resource.modified_at else ""
        return hashlib.md5(f"{resource.id}_{signal}".encode("utf-8")).hexdigest()

    @staticmethod
    def context_key(resource: MediaResource) -> str:
        signal = as_utc(resource.modified_at).isoformat() if resource.modified_at else ""
        return hashlib.md5(f"context_{resource.id}_{signal}".encode("utf-8")).hexdigest()

    @classmethod
    def suggestions_key(cls, resource: MediaResource, count: int) -> str:
        return f"{cls.content_key(resource)}_{count}"

    def ttl_for(self, cache_type) -> int:
        return int(self.ttls.get(_cache_type_value(cache_type), DEFAULT_TTL))

    async def get(self, cache_type, key: str) -> Optional[Any]:
        if not self.enabled:
            return None

        type_value = _cache_type_value(cache_type)
        now = self.clock()

        payload = self.memory.get(type_value, key, now)
        if payload is not None:
            return payload

        entry = await self.cache_repo.get(type_value, key)
        if entry is None:
            return None

        if not entry.is_valid(now):
            await self.cache_repo.delete(type_value, key)
            await self.uow.commit()
            logger.debug(f"Dropped stale cache entry {type_value}:{key}")
            return None

        self.memory.set(type_value, key, entry.payload, entry.resource_id, entry.expires_at, now=now)
        return entry.payload

    async def set(
        self,
        cache_type,
        key: str,
        payload: Any,
        ttl: Optional[int] = None,
        resource_id: Optional[int] = None,
    ) -> bool:
        if not self.enabled:
            return False

        type_value = _cache_type_value(cache_type)
        ttl_seconds = int(ttl) if ttl is not None else self.ttl_for(type_value)
        if ttl_seconds <= 0:
            return False

        now = self.clock()
        entry = CacheEntry(
            cache_type=type_value,
            cache_key=key,
            resource_id=resource_id,
            payload=payload,
            cached_at=now,
            ttl_seconds=ttl_seconds,
        )
        await self.cache_repo.upsert(entry)
        await self.uow.commit()

        expires_at = now + timedelta(seconds=ttl_seconds)
        self.memory.set(type_value, key, payload, resource_id, expires_at, now=now)
        return True

    async def invalidate(self, resource_id: int) -> int:
        """Remove every cached artifact of a resource. Returns the number removed."""
        persistent_removed = await self.cache_repo.delete_by_resource(resource_id)
        await self.uow.commit()
        memory_removed = self.memory.delete_by_resource(resource_id)

        removed = max(persistent_removed, memory_removed)
        if removed:
            logger.info(f"Invalidated {removed} cache entries for resource {resource_id}")
        return removed

    async def purge_expired(self) -> int:
        now = self.clock()
        removed = await self.cache_repo.delete_expired(now)
        await self.uow.commit()
        self.memory.purge_expired(now)
        return removed

    async def clear(self) -> int:
        removed = await self.cache_repo.delete_all()
        await self.uow.commit()
        self.memory.clear()
        return removed

    async def stats(self) -> dict:
        return {
            "enabled": self.enabled,
            "memory_entries": len(self.memory),
            "persistent_entries": await self.cache_repo.count_by_type(),
            "ttls": dict(self.ttls),
        }
