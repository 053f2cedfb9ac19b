"""Settlement Record Domain Entity

One row per remote settlement request. Lets operators find requests that were
confirmed by the settlement service but never committed to the local ledger.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import Text
from src.domain.base import BaseModel, IdType, UTCDateTime, utcnow


class SettlementStatus(str, Enum):
    PENDING = "pending"
    REMOTE_CONFIRMED = "remote_confirmed"
    COMMITTED = "committed"
    FAILED = "failed"


class SettlementRecord(BaseModel, table=True):
    """
    Settlement Record - tracks a remote deduction through its lifecycle

    pending -> remote_confirmed -> committed
    pending -> failed
    """

    __tablename__ = "settlement_records"

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
    )

    request_id: str = Field(
        unique=True,
        index=True,
        description="Caller-generated id, reused across retry attempts"
    )

    owner_id: str = Field(index=True)
    amount: int
    operation: str
    resource_id: Optional[int] = None

    status: SettlementStatus = Field(
        default=SettlementStatus.PENDING,
        index=True,
    )

    attempts: int = Field(default=0, description="Number of remote calls made")
    remote_balance: Optional[int] = Field(default=None, description="Balance reported by the remote service")
    remote_transaction_id: Optional[str] = None

    error_message: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
    )

    created_at: datetime = Field(sa_type=UTCDateTime, default_factory=utcnow)
    updated_at: datetime = Field(sa_type=UTCDateTime, default_factory=utcnow)
