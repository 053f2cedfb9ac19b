"""Cache Repository Interface

Persistent tier behind the CacheManager.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from src.domain.cache_entry import CacheEntry


class CacheRepository(ABC):

    @abstractmethod
    async def get(self, cache_type: str, cache_key: str) -> Optional[CacheEntry]:
        """Return the stored entry regardless of age (callers check TTL)"""
        pass

    @abstractmethod
    async def upsert(self, entry: CacheEntry) -> CacheEntry:
        """Insert the entry or replace the payload of an existing (type, key) entry"""
        pass

    @abstractmethod
    async def delete(self, cache_type: str, cache_key: str) -> int:
        pass

    @abstractmethod
    async def delete_by_resource(self, resource_id: int) -> int:
        """Delete every entry tied to a resource. Returns deleted count."""
        pass

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        pass

    @abstractmethod
    async def delete_all(self) -> int:
        pass

    @abstractmethod
    async def count_by_type(self) -> dict:
        """Mapping of cache_type -> number of stored entries"""
        pass
