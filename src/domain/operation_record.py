"""Operation Record Domain Entity

Rename history. Append-only per resource; only the most recent N are kept.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from sqlmodel import Field, Column
from sqlalchemy import JSON, Text
from src.domain.base import BaseModel, IdType, UTCDateTime, utcnow


class RenameMethod(str, Enum):
    AI = "ai"
    MANUAL = "manual"
    FALLBACK = "fallback"


class OperationRecord(BaseModel, table=True):
    __tablename__ = "operation_records"

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
    )

    resource_id: int = Field(index=True)
    owner_id: str = Field(index=True)
    method: RenameMethod

    suggestions_considered: List[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    selected_index: Optional[int] = None
    previous_name: Optional[str] = None
    selected_name: Optional[str] = None
    credits_used: int = Field(default=0)
    fallback_used: bool = Field(default=False)
    error_occurred: bool = Field(default=False)

    error_message: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
    )

    bulk_batch_id: Optional[str] = Field(default=None, index=True)
    created_at: datetime = Field(sa_type=UTCDateTime, default_factory=utcnow)
