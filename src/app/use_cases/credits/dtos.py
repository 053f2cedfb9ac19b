"""Data Transfer Objects for Credit Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

ALLOWED_OPERATIONS = frozenset({
    "ai_rename",
    "bulk_rename",
    "manual_add",
    "free_credits_init",
    "admin_reset",
})


class DeductCommandDTO(BaseModel):
    """
    Command DTO for deducting credits

    Used as input to DeductCredit. Amount and operation are validated by the
    use case so that bad input comes back as a Result error.
    """

    owner_id: str = Field(..., description="Owner identifier")
    amount: int = Field(..., description="Credits to deduct (must be > 0)")
    operation: str = Field(default="ai_rename", description="Operation being charged")
    resource_id: Optional[int] = Field(default=None, description="Media resource being renamed")

    class Config:
        json_schema_extra = {
            "example": {
                "owner_id": "user_42",
                "amount": 1,
                "operation": "ai_rename",
                "resource_id": 1187,
            }
        }


class SettlementDeductCommandDTO(DeductCommandDTO):
    """
    Command DTO for deducting credits through the remote settlement service

    max_retries is the total number of remote attempts (at least one is made).
    """

    max_retries: int = Field(default=3, ge=0, le=10, description="Total remote attempts")


class AddCreditsCommandDTO(BaseModel):
    owner_id: str = Field(..., description="Owner identifier")
    amount: int = Field(..., description="Credits to add (must be > 0)")
    operation: str = Field(default="manual_add", description="Reason for the grant")


class ResetCreditsCommandDTO(BaseModel):
    owner_id: str = Field(..., description="Owner identifier")
    new_balance: int = Field(..., description="Balance after the reset (must be >= 0)")


class CreditTransactionResponseDTO(BaseModel):
    """Response DTO for a single ledger transaction"""

    transaction_id: int = Field(..., description="Transaction identifier")
    owner_id: str
    transaction_type: str = Field(..., description="add, deduct or reset")
    amount: int
    balance_before: int
    balance_after: int
    operation: str
    resource_id: Optional[int] = None
    idempotency_key: Optional[str] = None
    created_at: datetime


class BalanceResponseDTO(BaseModel):
    owner_id: str
    balance: int
    used_total: int
    free_credits_granted: bool
    last_updated: datetime


class SettlementResultDTO(BaseModel):
    """Outcome of a remotely settled deduction"""

    request_id: str = Field(..., description="Request id sent on every attempt")
    attempts: int = Field(..., description="Remote calls made")
    transaction: CreditTransactionResponseDTO
    remote_balance: Optional[int] = None
    remote_transaction_id: Optional[str] = None


class ResetResultDTO(BaseModel):
    owner_id: str
    previous_balance: int
    new_balance: int
    transaction: Optional[CreditTransactionResponseDTO] = Field(
        default=None,
        description="None when the balance already had the requested value"
    )


class FreeCreditsResultDTO(BaseModel):
    owner_id: str
    granted: bool
    amount: int = 0
    balance: int
    reason: Optional[str] = Field(
        default=None,
        description="Why nothing was granted: already_granted, ai_disabled, account_too_new"
    )


class CreditStatsDTO(BaseModel):
    owner_id: str
    current_balance: int
    total_used: int
    free_credits_initialized: bool
    last_updated: Optional[datetime] = None
    total_transactions: int
    last_30_days_used: int
    last_30_days_added: int


class TransactionListResponseDTO(BaseModel):
    owner_id: str
    transactions: List[CreditTransactionResponseDTO]
    total: int
    limit: int
    offset: int


class CleanupResultDTO(BaseModel):
    deleted_count: int
    cutoff: datetime


class StuckSettlementDTO(BaseModel):
    request_id: str
    owner_id: str
    amount: int
    operation: str
    status: str
    attempts: int
    remote_balance: Optional[int] = None
    error_message: Optional[str] = None
    age_seconds: int


class SettlementReconciliationDTO(BaseModel):
    """Settlements that need an operator: confirmed remotely but not locally"""

    checked_at: datetime
    remote_confirmed_uncommitted: List[StuckSettlementDTO]
    pending_unresolved: List[StuckSettlementDTO]
    execution_time_ms: int

    @property
    def needs_attention(self) -> int:
        return len(self.remote_confirmed_uncommitted) + len(self.pending_unresolved)
