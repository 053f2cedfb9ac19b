"""Audit Event Domain Entity

Security-relevant failures (rate limit exceeded, permission denied).
"""

from datetime import datetime
from typing import Any, Dict, Optional
from sqlmodel import Field, Column
from sqlalchemy import JSON
from src.domain.base import BaseModel, IdType, UTCDateTime, utcnow


class AuditEvent(BaseModel, table=True):
    __tablename__ = "audit_events"

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
    )

    event_type: str = Field(index=True)
    owner_id: Optional[str] = Field(default=None, index=True)

    details: Dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )

    created_at: datetime = Field(sa_type=UTCDateTime, default_factory=utcnow, index=True)
