"""Cache Entry Domain Entity

Persistent tier of the analysis/context/suggestion cache.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Optional
from sqlmodel import Field, Column
from sqlalchemy import JSON, UniqueConstraint
from src.domain.base import BaseModel, IdType, UTCDateTime, as_utc, utcnow


class CacheType(str, Enum):
    CONTENT_ANALYSIS = "content_analysis"
    CONTEXT = "context"
    SUGGESTIONS = "suggestions"


class CacheEntry(BaseModel, table=True):
    """
    Cache Entry - content-addressed payload with a time-to-live

    Valid while now < cached_at + ttl_seconds. Stale entries are never served.
    """

    __tablename__ = "cache_entries"
    __table_args__ = (
        UniqueConstraint('cache_type', 'cache_key', name='uq_cache_type_key'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
    )

    cache_type: str = Field(index=True)
    cache_key: str = Field(index=True)
    resource_id: Optional[int] = Field(default=None, index=True)

    payload: Any = Field(
        default=None,
        sa_column=Column(JSON, nullable=True),
    )

    cached_at: datetime = Field(sa_type=UTCDateTime, default_factory=utcnow)
    ttl_seconds: int = Field(default=3600)

    @property
    def expires_at(self) -> datetime:
        return as_utc(self.cached_at) + timedelta(seconds=self.ttl_seconds)

    def is_valid(self, now: datetime) -> bool:
        return as_utc(now) < self.expires_at
