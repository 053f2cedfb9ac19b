"""Credit Account Domain Entity

Tracks the credit balance of one owner. Each owner has exactly one account,
created lazily on first access and never deleted (only reset).
"""

from datetime import datetime
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import CheckConstraint
from src.domain.base import BaseModel, IdType, UTCDateTime, utcnow


class CreditAccount(BaseModel, table=True):
    """
    Credit Account - per-owner balance

    Domain Rules:
    - One account per owner (owner_id is unique)
    - Balance is a non-negative integer
    - Balance changes only through CreditTransactions
    - used_total only grows
    - Free credits are granted at most once
    """

    __tablename__ = "credit_accounts"
    __table_args__ = (
        CheckConstraint('balance >= 0', name='credit_balance_non_negative'),
        CheckConstraint('used_total >= 0', name='credit_used_total_non_negative'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
        description="Unique account identifier (auto-increment)"
    )

    owner_id: str = Field(
        index=True,
        unique=True,
        description="Owner (user) identifier"
    )

    balance: int = Field(
        default=0,
        description="Current credit balance (>= 0)"
    )

    used_total: int = Field(
        default=0,
        description="Total credits consumed over the account lifetime"
    )

    free_credits_granted: bool = Field(
        default=False,
        description="Whether the one-time free credit grant happened"
    )

    free_credits_granted_at: Optional[datetime] = Field(
        sa_type=UTCDateTime,
        default=None,
        description="When the free credits were granted"
    )

    created_at: datetime = Field(
        sa_type=UTCDateTime,
        default_factory=utcnow,
        description="Account creation timestamp"
    )

    last_updated: datetime = Field(
        sa_type=UTCDateTime,
        default_factory=utcnow,
        description="Last balance mutation timestamp"
    )
