"""Credit Transaction Domain Entity

Immutable append-only log of credit mutations. A transaction exists iff the
account balance changed.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey
from src.domain.base import BaseModel, IdType, UTCDateTime, utcnow


class TransactionType(str, Enum):
    """Credit transaction types"""
    ADD = "add"          # Credits granted or purchased
    DEDUCT = "deduct"    # Credits consumed by a rename
    RESET = "reset"      # Balance overwritten by an administrator


class CreditTransaction(BaseModel, table=True):
    """
    Credit Transaction - immutable record of one balance mutation

    Domain Rules:
    - Append-only, never updated
    - amount is signed only for RESET (new - old), positive otherwise
    - balance_before/balance_after snapshot the account around the mutation
    - idempotency_key (when present) is unique, used for remote settlement
    - Only the most recent N per account are retained
    """

    __tablename__ = "credit_transactions"
    __table_args__ = (
        Index('ix_credit_transactions_account_created', 'account_id', 'created_at'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
        description="Unique transaction identifier (auto-increment)"
    )

    account_id: int = Field(
        sa_column=Column(IdType, ForeignKey("credit_accounts.id", ondelete="CASCADE"), nullable=False),
        description="Foreign key to CreditAccount"
    )

    owner_id: str = Field(
        index=True,
        description="Owner identifier for query optimization"
    )

    transaction_type: TransactionType = Field(
        description="Type of transaction (add, deduct, reset)"
    )

    amount: int = Field(
        description="Credit amount"
    )

    balance_before: int = Field(
        description="Balance before the mutation"
    )

    balance_after: int = Field(
        description="Balance after the mutation"
    )

    operation: str = Field(
        description="Operation that caused the mutation (e.g. 'ai_rename')"
    )

    resource_id: Optional[int] = Field(
        default=None,
        description="Media resource the mutation relates to"
    )

    idempotency_key: Optional[str] = Field(
        default=None,
        unique=True,
        index=True,
        description="Settlement request id for remotely settled deductions"
    )

    created_at: datetime = Field(
        sa_type=UTCDateTime,
        default_factory=utcnow,
        description="Transaction timestamp (immutable)"
    )
