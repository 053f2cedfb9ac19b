"""Rate Window Domain Entity

Fixed-window request counter per (owner, operation).
"""

from datetime import datetime, timedelta
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import UniqueConstraint
from src.domain.base import BaseModel, IdType, UTCDateTime, as_utc, utcnow


class RateWindow(BaseModel, table=True):
    __tablename__ = "rate_windows"
    __table_args__ = (
        UniqueConstraint('owner_id', 'operation', name='uq_rate_window_owner_operation'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
    )

    owner_id: str = Field(index=True)
    operation: str
    count: int = Field(default=0)
    window_started_at: datetime = Field(sa_type=UTCDateTime, default_factory=utcnow)
    window_seconds: int

    def has_expired(self, now: datetime) -> bool:
        return as_utc(now) >= as_utc(self.window_started_at) + timedelta(seconds=self.window_seconds)

    def seconds_remaining(self, now: datetime) -> float:
        end = as_utc(self.window_started_at) + timedelta(seconds=self.window_seconds)
        return max((end - as_utc(now)).total_seconds(), 0.0)
